"""Hydration: replace thin records with full OpenAlex data."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from core.utils import chunked
from sources.openalex import FieldSet, OpenAlexClient

from ..processors import process_openalex_paper
from ..state import GraphState

logger = logging.getLogger(__name__)

BatchCallback = Callable[[int, int], None]


@dataclass
class HydrationResult:
    requested: int = 0
    hydrated: int = 0
    batches: int = 0


async def hydrate_master_paper(state: GraphState, openalex: OpenAlexClient) -> bool:
    """Re-fetch the master paper's full record and merge it in."""
    master_uid = state.master_paper_uid
    openalex_id = state.openalex_id_for(master_uid) if master_uid else None
    if not openalex_id:
        logger.warning("Master paper has no OpenAlex id, skipping hydration")
        return False

    work = await openalex.fetch_by_id(openalex_id, FieldSet.FULL_INGESTION)
    if work is None:
        return False
    process_openalex_paper(work, state, is_stub=False)
    logger.info(f"Master paper {openalex_id} hydrated")
    return True


async def hydrate_stub_papers(
    state: GraphState,
    openalex: OpenAlexClient,
    on_batch: Optional[BatchCallback] = None,
) -> HydrationResult:
    """Fetch full records for every stub paper and promote them.

    Stubs are looked up by OpenAlex id when they have one, otherwise by
    DOI. Stubs with neither stay stubs.
    """
    by_openalex: list[str] = []
    by_doi: list[str] = []
    for paper in state.stub_papers():
        openalex_id = state.openalex_id_for(paper.short_uid)
        doi = state.doi_for(paper.short_uid)
        if openalex_id:
            by_openalex.append(openalex_id)
        elif doi:
            by_doi.append(doi)

    result = HydrationResult(requested=len(by_openalex) + len(by_doi))
    if not result.requested:
        logger.info("No stub papers to hydrate")
        return result

    batch_size = openalex.config.openalex_batch_size
    batches = [(ids, False) for ids in chunked(by_openalex, batch_size)]
    batches += [(dois, True) for dois in chunked(by_doi, batch_size)]
    result.batches = len(batches)

    for done, (values, is_doi) in enumerate(batches, start=1):
        if is_doi:
            works = await openalex.fetch_by_doi_batch(values, FieldSet.FULL_INGESTION)
        else:
            works = await openalex.fetch_by_id_batch(values, FieldSet.FULL_INGESTION)
        for work in works:
            process_openalex_paper(work, state, is_stub=False)
        result.hydrated += len(works)
        if on_batch:
            on_batch(done, len(batches))

    logger.info(f"Hydrated {result.hydrated} of {result.requested} stub papers")
    return result
