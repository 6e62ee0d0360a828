"""Field selections and filter builders for OpenAlex /works queries."""

from enum import Enum


class FieldSet(str, Enum):
    """Named ``select=`` lists; each call requests only what its consumer needs."""

    SEARCH_PREVIEW = "search_preview"
    FULL_INGESTION = "full_ingestion"
    AUTHOR_RECONCILIATION = "author_reconciliation"
    STUB_CREATION = "stub_creation"


_FULL_FIELDS = [
    "id",
    "ids",
    "doi",
    "title",
    "publication_year",
    "publication_date",
    "type",
    "language",
    "authorships",
    "primary_location",
    "fwci",
    "cited_by_count",
    "abstract_inverted_index",
    "best_oa_location",
    "open_access",
    "keywords",
    "referenced_works",
    "related_works",
]

FIELD_SELECTIONS: dict[FieldSet, list[str]] = {
    FieldSet.SEARCH_PREVIEW: [
        "id",
        "doi",
        "display_name",
        "publication_year",
        "authorships",
        "primary_location",
    ],
    FieldSet.FULL_INGESTION: _FULL_FIELDS,
    FieldSet.AUTHOR_RECONCILIATION: ["id", "doi", "title", "authorships"],
    FieldSet.STUB_CREATION: [
        "id",
        "ids",
        "doi",
        "title",
        "display_name",
        "publication_year",
        "publication_date",
        "type",
        "primary_location",
        "cited_by_count",
    ],
}


def select_param(field_set: FieldSet) -> str:
    """Comma-joined select list for ``field_set``."""
    return ",".join(FIELD_SELECTIONS[field_set])


def bare_work_id(work_id: str) -> str:
    """Strip the https://openalex.org/ prefix (W123 stays W123)."""
    return work_id.rstrip("/").split("/")[-1]


def pipe_filter(name: str, values: list[str]) -> str:
    """OR-filter over ``values``, e.g. ``cites:W1|W2``."""
    return f"{name}:{'|'.join(values)}"


def title_search_filter(query: str) -> str:
    # Commas separate filters in OpenAlex, so they cannot appear in a value
    return f"title.search:{query.replace(',', ' ').strip()}"
