"""Cross-provider enrichment of the master paper from Semantic Scholar."""

import logging
from dataclasses import dataclass

from sources.semantic_scholar import SemanticScholarClient

from ..events import EntityUpdatedEvent
from ..identifiers import Namespace
from ..processors import process_semantic_scholar_paper
from ..state import GraphState
from ..types import RelationshipTag, RelationshipType

logger = logging.getLogger(__name__)


@dataclass
class CrossProviderResult:
    found: bool = False
    citations: int = 0
    references: int = 0


async def enrich_from_semantic_scholar(
    state: GraphState, semantic_scholar: SemanticScholarClient
) -> CrossProviderResult:
    """Add Semantic Scholar citations and references of the master paper.

    Citations become ``cites -> master`` edges, references ``master -> cites``
    edges. Unknown papers are created as stubs. Skipped when the master
    paper has no DOI.
    """
    result = CrossProviderResult()
    master_uid = state.master_paper_uid
    doi = state.doi_for(master_uid) if master_uid else None
    if not doi:
        logger.warning("Skipped Semantic Scholar enrichment, no DOI found for master paper")
        return result

    details = await semantic_scholar.fetch_by_doi(doi)
    if details is None:
        return result
    result.found = True

    master = state.papers[master_uid]
    if not master.best_oa_url and details.oa_pdf_url:
        master.best_oa_url = details.oa_pdf_url
        state.emit(
            EntityUpdatedEvent(
                entity="paper", uid=master_uid, changes={"best_oa_url": details.oa_pdf_url}
            )
        )

    state.index.record(Namespace.SS, details.paper_id, master_uid)
    if details.corpus_id:
        state.index.record(Namespace.CORPUS_ID, str(details.corpus_id), master_uid)

    for citing in details.citations:
        uid = process_semantic_scholar_paper(citing, state)
        if state.relationships.add(
            uid, master_uid, RelationshipType.CITES, RelationshipTag.FIRST_DEGREE
        ):
            result.citations += 1

    for cited in details.references:
        uid = process_semantic_scholar_paper(cited, state)
        if state.relationships.add(master_uid, uid, RelationshipType.CITES):
            result.references += 1

    logger.info(
        f"Semantic Scholar added {result.citations} citation and "
        f"{result.references} reference edges"
    )
    return result
