"""First-degree expansion and co-citation stub promotion."""

import logging
from collections import Counter
from dataclasses import dataclass

from sources.openalex import FieldSet, OpenAlexClient, OpenAlexWork

from ..identifiers import Namespace, normalize_openalex_id
from ..processors import process_openalex_paper
from ..state import GraphState
from ..types import RelationshipTag, RelationshipType

logger = logging.getLogger(__name__)


@dataclass
class FirstDegreeResult:
    citing_papers: int = 0
    referenced_stubs: int = 0
    related_stubs: int = 0


def _frequent(counts: Counter, threshold: int) -> list[str]:
    return [work_id for work_id, count in counts.items() if count >= threshold]


async def fetch_first_degree(state: GraphState, openalex: OpenAlexClient) -> FirstDegreeResult:
    """Ingest works citing the master paper and promote frequently shared neighbours.

    Every citing work becomes a full paper with a ``cites -> master`` edge.
    References and related works shared by at least
    ``state.stub_creation_threshold`` citing works become stubs linked to
    the master; rarer ones are dropped.
    """
    result = FirstDegreeResult()
    master_uid = state.master_paper_uid
    master_openalex_id = state.openalex_id_for(master_uid) if master_uid else None
    if not master_openalex_id:
        logger.warning("Master paper has no OpenAlex id, skipping first-degree fetch")
        return result

    citing_works = await openalex.fetch_citing_works([master_openalex_id])
    logger.info(f"Found {len(citing_works)} works citing {master_openalex_id}")

    reference_counts: Counter = Counter()
    related_counts: Counter = Counter()

    for work in citing_works:
        uid = process_openalex_paper(work, state, is_stub=False)
        state.relationships.add(uid, master_uid, RelationshipType.CITES, RelationshipTag.FIRST_DEGREE)

        # Count each work once per citing paper
        reference_counts.update({normalize_openalex_id(w) for w in work.referenced_works if w})
        related_counts.update({normalize_openalex_id(w) for w in work.related_works if w})

    result.citing_papers = len(citing_works)

    referenced = _frequent(reference_counts, state.stub_creation_threshold)
    related = _frequent(related_counts, state.stub_creation_threshold)
    logger.info(
        f"{len(referenced)} referenced and {len(related)} related works reach the "
        f"stub threshold ({state.stub_creation_threshold})"
    )

    await create_stubs(state, openalex, referenced + related)
    result.referenced_stubs = _link_to_master(
        state, referenced, RelationshipTag.REFERENCED_BY_FIRST_DEGREE
    )
    result.related_stubs = _link_to_master(state, related, RelationshipTag.SIMILAR)
    return result


async def create_stubs(state: GraphState, openalex: OpenAlexClient, work_ids: list[str]) -> int:
    """Create stub papers for OpenAlex ids not yet in the index.

    Ids are fetched in one lightweight batch; ids the batch does not return
    still get an id-only stub so the edge can be drawn and hydrated later.
    """
    missing = [w for w in dict.fromkeys(work_ids) if not state.index.find(Namespace.OPENALEX, w)]
    if not missing:
        return 0

    works = await openalex.fetch_by_id_batch(missing, FieldSet.STUB_CREATION)
    for work in works:
        process_openalex_paper(work, state, is_stub=True)

    unresolved = [w for w in missing if not state.index.find(Namespace.OPENALEX, w)]
    for work_id in unresolved:
        process_openalex_paper(OpenAlexWork(id=work_id), state, is_stub=True)
    if unresolved:
        logger.debug(f"{len(unresolved)} stub ids were not returned by OpenAlex")

    return len(missing)


def _link_to_master(state: GraphState, work_ids: list[str], tag: RelationshipTag) -> int:
    linked = 0
    for work_id in work_ids:
        uid = state.index.find(Namespace.OPENALEX, work_id)
        if uid and state.relationships.add(uid, state.master_paper_uid, RelationshipType.SIMILAR, tag):
            linked += 1
    return linked
