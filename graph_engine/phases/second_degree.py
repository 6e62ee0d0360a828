"""On-demand second-degree expansion."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from core.utils import chunked
from sources.openalex import OpenAlexClient

from ..identifiers import normalize_openalex_id
from ..processors import process_openalex_paper
from ..state import GraphState
from ..types import RelationshipTag, RelationshipType

logger = logging.getLogger(__name__)


@dataclass
class SecondDegreeResult:
    first_degree_papers: int = 0
    citing_works: int = 0
    confirmed_edges: int = 0
    batches: int = 0


async def fetch_second_degree(
    state: GraphState,
    openalex: OpenAlexClient,
    on_batch: Optional[Callable[[int, int], None]] = None,
) -> SecondDegreeResult:
    """Ingest works citing any first-degree paper.

    Each result becomes a full paper tagged ``2nd_degree``. An edge to a
    first-degree paper is drawn only when the result's own reference list
    contains that paper.
    """
    master_uid = state.master_paper_uid
    first_degree = state.relationships.sources_with_tag(RelationshipTag.FIRST_DEGREE, master_uid)

    uid_by_openalex: dict[str, str] = {}
    for uid in first_degree:
        openalex_id = state.openalex_id_for(uid)
        if openalex_id:
            uid_by_openalex[openalex_id] = uid

    result = SecondDegreeResult(first_degree_papers=len(uid_by_openalex))
    if not uid_by_openalex:
        logger.info("No first-degree papers with OpenAlex ids, skipping second-degree fetch")
        return result

    first_degree_uids = set(first_degree)
    chunks = chunked(list(uid_by_openalex), openalex.config.openalex_batch_size)
    result.batches = len(chunks)

    for done, chunk in enumerate(chunks, start=1):
        works = await openalex.fetch_citing_works(chunk)
        for work in works:
            uid = process_openalex_paper(work, state, is_stub=False)
            result.citing_works += 1
            if uid == master_uid:
                continue

            references = {normalize_openalex_id(w) for w in work.referenced_works if w}
            confirmed = [uid_by_openalex[w] for w in chunk if w in references]
            tag = None if uid in first_degree_uids else RelationshipTag.SECOND_DEGREE

            for target_uid in confirmed:
                if state.relationships.add(uid, target_uid, RelationshipType.CITES, tag):
                    result.confirmed_edges += 1
            if tag is not None and not confirmed:
                state.relationships.add_tag(uid, tag)

        if on_batch:
            on_batch(done, len(chunks))

    logger.info(
        f"Second-degree fetch: {result.citing_works} citing works, "
        f"{result.confirmed_edges} confirmed edges over {result.batches} batches"
    )
    return result
