"""Payload builders shaped like real OpenAlex and Semantic Scholar responses."""

from typing import Any, Optional

from sources.openalex import OpenAlexWork
from sources.semantic_scholar import SemanticScholarPaper, SemanticScholarPaperDetails


def openalex_url(openalex_id: str) -> str:
    return f"https://openalex.org/{openalex_id}"


def make_authorship(
    author_id: Optional[str],
    name: str,
    orcid: Optional[str] = None,
    institutions: tuple[dict, ...] = (),
    position: str = "middle",
    is_corresponding: bool = False,
) -> dict[str, Any]:
    """One OpenAlex authorship entry; ``institutions`` are raw institution dicts."""
    return {
        "author_position": position,
        "is_corresponding": is_corresponding,
        "raw_author_name": name,
        "author": {
            "id": openalex_url(author_id) if author_id else None,
            "display_name": name,
            "orcid": f"https://orcid.org/{orcid}" if orcid else None,
        },
        "institutions": list(institutions),
    }


def work_payload(
    work_id: str,
    doi: Optional[str] = None,
    title: Optional[str] = None,
    year: Optional[int] = 2020,
    referenced: tuple[str, ...] = (),
    related: tuple[str, ...] = (),
    authorships: tuple[dict, ...] = (),
    cited_by_count: int = 0,
    **extra,
) -> dict[str, Any]:
    payload = {
        "id": openalex_url(work_id),
        "doi": f"https://doi.org/{doi}" if doi else None,
        "title": title if title is not None else f"Paper {work_id}",
        "publication_year": year,
        "publication_date": f"{year}-01-01" if year else None,
        "type": "article",
        "cited_by_count": cited_by_count,
        "authorships": list(authorships),
        "referenced_works": [openalex_url(w) for w in referenced],
        "related_works": [openalex_url(w) for w in related],
    }
    payload.update(extra)
    return payload


def make_work(work_id: str, **kwargs) -> OpenAlexWork:
    """OpenAlexWork parsed from ``work_payload``."""
    return OpenAlexWork.model_validate(work_payload(work_id, **kwargs))


def ss_paper_payload(
    paper_id: str,
    doi: Optional[str] = None,
    title: Optional[str] = None,
    authors: tuple[tuple[Optional[str], str], ...] = (),
    pdf_url: Optional[str] = None,
    corpus_id: Optional[int] = None,
    year: Optional[int] = 2021,
) -> dict[str, Any]:
    external_ids: dict[str, Any] = {}
    if doi:
        external_ids["DOI"] = doi
    if corpus_id:
        external_ids["CorpusId"] = corpus_id
    return {
        "paperId": paper_id,
        "corpusId": corpus_id,
        "externalIds": external_ids,
        "title": title if title is not None else f"S2 paper {paper_id}",
        "year": year,
        "citationCount": 1,
        "openAccessPdf": {"url": pdf_url} if pdf_url else None,
        "authors": [{"authorId": author_id, "name": name} for author_id, name in authors],
    }


def make_ss_paper(paper_id: str, **kwargs) -> SemanticScholarPaper:
    return SemanticScholarPaper.model_validate(ss_paper_payload(paper_id, **kwargs))


def make_ss_details(
    paper_id: str,
    citations: tuple[SemanticScholarPaper, ...] = (),
    references: tuple[SemanticScholarPaper, ...] = (),
    **kwargs,
) -> SemanticScholarPaperDetails:
    return SemanticScholarPaperDetails.model_validate(
        {
            **ss_paper_payload(paper_id, **kwargs),
            "citations": [p.model_dump() for p in citations],
            "references": [p.model_dump() for p in references],
        }
    )
