"""Entity processors: raw provider records -> canonical graph entities.

Each processor consults the external identifier index before minting a new
uid, merges monotonically into existing entities and registers every
identifier it sees. Provider payloads stay typed (OpenAlex and Semantic
Scholar pydantic models); the ``_*_fields`` adapters are the only place
provider shapes are mapped onto Paper fields.

Merge rules:
- full ingestion (``is_stub=False``): every non-empty incoming value wins and
  the paper is promoted out of stub status
- discovery (``is_stub=True``): incoming values only fill fields that are
  still empty; stub status is never changed
"""

import copy
import logging
from typing import Any, Optional

from sources.openalex import (
    OpenAlexAuthor,
    OpenAlexInstitution,
    OpenAlexWork,
    extract_keywords,
    reconstruct_abstract,
)
from sources.semantic_scholar import SemanticScholarPaper

from .events import (
    AuthorAddedEvent,
    AuthorshipAddedEvent,
    EntityUpdatedEvent,
    InstitutionAddedEvent,
    PaperAddedEvent,
)
from .identifiers import (
    EntityKind,
    Namespace,
    normalize_doi,
    normalize_openalex_id,
    normalize_orcid,
    normalize_ror,
)
from .state import GraphState
from .types import (
    UNKNOWN_AUTHOR,
    UNKNOWN_INSTITUTION,
    Author,
    Authorship,
    Institution,
    Paper,
    authorship_key,
    is_empty_value,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider record -> Paper field adapters
# ---------------------------------------------------------------------------


def _openalex_paper_fields(work: OpenAlexWork) -> dict[str, Any]:
    best_oa_url = None
    oa_status = None
    if work.open_access:
        best_oa_url = work.open_access.oa_url
        oa_status = work.open_access.oa_status
    if not best_oa_url and work.best_oa_location:
        best_oa_url = work.best_oa_location.pdf_url or work.best_oa_location.landing_page_url

    return {
        "title": work.best_title,
        "publication_year": work.publication_year,
        "publication_date": work.publication_date,
        "location": work.venue,
        "abstract": reconstruct_abstract(work.abstract_inverted_index),
        "fwci": work.fwci,
        "cited_by_count": work.cited_by_count,
        "type": work.type,
        "language": work.language,
        "keywords": extract_keywords(work),
        "best_oa_url": best_oa_url,
        "oa_status": oa_status,
    }


def _semantic_scholar_paper_fields(paper: SemanticScholarPaper) -> dict[str, Any]:
    pdf_url = paper.oa_pdf_url
    return {
        "title": paper.title,
        "publication_year": paper.year,
        "publication_date": f"{paper.year}-01-01" if paper.year else None,
        "location": paper.venue,
        "abstract": paper.abstract,
        "cited_by_count": paper.citation_count,
        "best_oa_url": pdf_url,
        "oa_status": "green" if pdf_url else None,
    }


def _non_empty(fields: dict[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if not is_empty_value(value)}


def _apply_changes(state: GraphState, entity, kind: str, changes: dict[str, Any]) -> None:
    if not changes:
        return
    for name, value in changes.items():
        setattr(entity, name, value)
    state.emit(EntityUpdatedEvent(entity=kind, uid=entity.short_uid, changes=copy.deepcopy(changes)))


def _merge_paper(state: GraphState, paper: Paper, fields: dict[str, Any], promote: bool) -> dict:
    """Monotonic merge of ``fields`` into ``paper``; returns applied changes."""
    changes: dict[str, Any] = {}
    for name, value in _non_empty(fields).items():
        current = getattr(paper, name)
        if current == value:
            continue
        if promote or is_empty_value(current):
            changes[name] = value
    if promote and paper.is_stub:
        changes["is_stub"] = False

    _apply_changes(state, paper, "paper", changes)
    return changes


def _create_paper(
    state: GraphState, uid: Optional[str], fields: dict[str, Any], is_stub: bool, **defaults
) -> Paper:
    uid = uid or state.mint_uid(EntityKind.PAPER)
    paper = Paper(short_uid=uid, is_stub=is_stub, **{**defaults, **_non_empty(fields)})
    state.papers[uid] = paper
    state.emit(PaperAddedEvent(paper=paper.model_copy(deep=True)))
    return paper


# ---------------------------------------------------------------------------
# OpenAlex
# ---------------------------------------------------------------------------


def process_openalex_paper(work: OpenAlexWork, state: GraphState, is_stub: bool = False) -> str:
    """Resolve or create the Paper for an OpenAlex work.

    Args:
        work: OpenAlex record (any field set)
        state: GraphState to mutate
        is_stub: False for a full ingestion (promotes and attaches
            authorships), True for a discovery call

    Returns:
        The paper's short uid
    """
    doi = normalize_doi(work.doi or work.ids.get("doi"))
    openalex_id = normalize_openalex_id(work.id or work.ids.get("openalex"))

    uid = state.index.find(Namespace.DOI, doi) or state.index.find(Namespace.OPENALEX, openalex_id)
    fields = _openalex_paper_fields(work)
    paper = state.papers.get(uid) if uid else None

    if paper is None:
        # Also covers a uid that is indexed but whose paper was never stored
        paper = _create_paper(state, uid, fields, is_stub, type="article")
        uid = paper.short_uid
        logger.debug(f"Created {'stub ' if is_stub else ''}paper {uid} for {openalex_id or doi}")
    else:
        changes = _merge_paper(state, paper, fields, promote=not is_stub)
        if changes:
            logger.debug(f"Updated paper {uid} ({', '.join(changes)})")

    if not openalex_id and not doi:
        logger.warning(f"OpenAlex work without id or DOI ingested as {uid}")
    state.index.record(Namespace.OPENALEX, openalex_id, uid)
    state.index.record(Namespace.DOI, doi, uid)

    if not is_stub:
        _process_openalex_authorships(work, uid, state)

    return uid


def _process_openalex_authorships(work: OpenAlexWork, paper_uid: str, state: GraphState) -> None:
    for position, authorship in enumerate(work.authorships):
        if authorship.author is None:
            continue

        author_uid = process_openalex_author(authorship.author, state, is_stub=False)
        key = authorship_key(paper_uid, author_uid)
        if key in state.authorships:
            continue

        institution_uids: list[str] = []
        for institution in authorship.institutions:
            institution_uid = process_openalex_institution(institution, state)
            if institution_uid not in institution_uids:
                institution_uids.append(institution_uid)

        record = Authorship(
            paper_short_uid=paper_uid,
            author_short_uid=author_uid,
            author_position=position,
            is_corresponding=bool(authorship.is_corresponding),
            raw_author_name=authorship.raw_author_name,
            institution_uids=institution_uids,
        )
        state.add_authorship(record)
        state.emit(AuthorshipAddedEvent(authorship=record.model_copy(deep=True)))


def process_openalex_author(author: OpenAlexAuthor, state: GraphState, is_stub: bool = False) -> str:
    """Resolve or create an Author keyed on OpenAlex author id, then ORCID."""
    openalex_id = normalize_openalex_id(author.id)
    orcid = normalize_orcid(author.orcid)

    uid = state.index.find(Namespace.OPENALEX_AUTHOR, openalex_id) or state.index.find(
        Namespace.ORCID, orcid
    )
    existing = state.authors.get(uid) if uid else None

    if existing is None:
        uid = uid or state.mint_uid(EntityKind.AUTHOR)
        record = Author(
            short_uid=uid,
            clean_name=author.display_name or UNKNOWN_AUTHOR,
            orcid=orcid,
            is_stub=is_stub,
        )
        state.authors[uid] = record
        state.emit(AuthorAddedEvent(author=record.model_copy()))
    else:
        changes: dict[str, Any] = {}
        if not is_empty_value(author.display_name) and author.display_name != existing.clean_name:
            if not is_stub or is_empty_value(existing.clean_name):
                changes["clean_name"] = author.display_name
        if orcid and not existing.orcid:
            changes["orcid"] = orcid
        if not is_stub and existing.is_stub:
            changes["is_stub"] = False
        _apply_changes(state, existing, "author", changes)

    state.index.record(Namespace.OPENALEX_AUTHOR, openalex_id, uid)
    state.index.record(Namespace.ORCID, orcid, uid)
    return uid


def process_openalex_institution(institution: OpenAlexInstitution, state: GraphState) -> str:
    """Resolve or create an Institution keyed on OpenAlex institution id, then ROR."""
    openalex_id = normalize_openalex_id(institution.id)
    ror = normalize_ror(institution.ror)

    uid = state.index.find(Namespace.OPENALEX_INSTITUTION, openalex_id) or state.index.find(
        Namespace.ROR, ror
    )
    existing = state.institutions.get(uid) if uid else None

    if existing is None:
        uid = uid or state.mint_uid(EntityKind.INSTITUTION)
        record = Institution(
            short_uid=uid,
            ror_id=ror,
            display_name=institution.display_name or UNKNOWN_INSTITUTION,
            country_code=institution.country_code,
            type=institution.type,
        )
        state.institutions[uid] = record
        state.emit(InstitutionAddedEvent(institution=record.model_copy()))
    else:
        incoming = {
            "ror_id": ror,
            "display_name": institution.display_name,
            "country_code": institution.country_code,
            "type": institution.type,
        }
        changes = {
            name: value
            for name, value in _non_empty(incoming).items()
            if is_empty_value(getattr(existing, name))
        }
        _apply_changes(state, existing, "institution", changes)

    state.index.record(Namespace.OPENALEX_INSTITUTION, openalex_id, uid)
    state.index.record(Namespace.ROR, ror, uid)
    return uid


# ---------------------------------------------------------------------------
# Semantic Scholar
# ---------------------------------------------------------------------------


def process_semantic_scholar_paper(paper: SemanticScholarPaper, state: GraphState) -> str:
    """Resolve or create a stub Paper for a Semantic Scholar record.

    Never promotes a paper out of stub status. Listed authors become stub
    Authors only when the paper has no authorships yet, so a paper already
    ingested from OpenAlex keeps its canonical authors.
    """
    doi = normalize_doi(paper.doi)
    ss_id = paper.paper_id
    corpus_value = paper.corpus_id or paper.external_ids.get("CorpusId")
    corpus_id = str(corpus_value) if corpus_value else None

    uid = (
        state.index.find(Namespace.DOI, doi)
        or state.index.find(Namespace.SS, ss_id)
        or state.index.find(Namespace.CORPUS_ID, corpus_id)
    )
    fields = _semantic_scholar_paper_fields(paper)
    existing = state.papers.get(uid) if uid else None

    if existing is None:
        created = _create_paper(
            state, uid, fields, is_stub=True, type="article", oa_status="closed"
        )
        uid = created.short_uid
        logger.debug(f"Created stub paper {uid} from Semantic Scholar {ss_id or doi}")
    else:
        _merge_paper(state, existing, fields, promote=False)

    state.index.record(Namespace.DOI, doi, uid)
    state.index.record(Namespace.SS, ss_id, uid)
    state.index.record(Namespace.CORPUS_ID, corpus_id, uid)

    if paper.authors and not state.has_authorships(uid):
        _attach_semantic_scholar_authors(paper, uid, state)

    return uid


def _attach_semantic_scholar_authors(
    paper: SemanticScholarPaper, paper_uid: str, state: GraphState
) -> None:
    for position, ss_author in enumerate(paper.authors):
        if not ss_author.name and not ss_author.author_id:
            continue

        author_uid = state.index.find(Namespace.SS_AUTHOR, ss_author.author_id)
        if author_uid is None or author_uid not in state.authors:
            author_uid = author_uid or state.mint_uid(EntityKind.AUTHOR)
            record = Author(
                short_uid=author_uid,
                clean_name=ss_author.name or UNKNOWN_AUTHOR,
                is_stub=True,
            )
            state.authors[author_uid] = record
            state.emit(AuthorAddedEvent(author=record.model_copy()))
            state.index.record(Namespace.SS_AUTHOR, ss_author.author_id, author_uid)

        key = authorship_key(paper_uid, author_uid)
        if key in state.authorships:
            continue
        authorship = Authorship(
            paper_short_uid=paper_uid,
            author_short_uid=author_uid,
            author_position=position,
            raw_author_name=ss_author.name,
        )
        state.add_authorship(authorship)
        state.emit(AuthorshipAddedEvent(authorship=authorship.model_copy(deep=True)))
