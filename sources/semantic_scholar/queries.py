"""Field lists for Semantic Scholar Graph API requests."""

BASE_FIELDS = [
    "paperId",
    "corpusId",
    "externalIds",
    "url",
    "citationCount",
    "openAccessPdf",
    "authors",
    "title",
]

# Fields of each related paper in citation and reference lists
RELATED_PAPER_FIELDS = [
    "paperId",
    "externalIds",
    "url",
    "title",
    "abstract",
    "venue",
    "year",
    "citationCount",
    "openAccessPdf",
    "authors",
]

CITATIONS = "citations"
REFERENCES = "references"

# List kind -> key wrapping the related paper in each item
LIST_ITEM_KEYS = {
    CITATIONS: "citingPaper",
    REFERENCES: "citedPaper",
}


def base_fields_param() -> str:
    return ",".join(BASE_FIELDS)


def related_fields_param() -> str:
    return ",".join(RELATED_PAPER_FIELDS)
