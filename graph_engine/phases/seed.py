"""Seed phase: ingest the master paper."""

import logging

from sources.openalex import OpenAlexWork

from ..events import MasterPaperSetEvent
from ..processors import process_openalex_paper
from ..state import GraphState

logger = logging.getLogger(__name__)


def ingest_master_paper(state: GraphState, work: OpenAlexWork) -> str:
    """Ingest ``work`` as a full paper and make it the session's master."""
    uid = process_openalex_paper(work, state, is_stub=False)
    state.master_paper_uid = uid
    state.emit(
        MasterPaperSetEvent(uid=uid, stub_creation_threshold=state.stub_creation_threshold)
    )
    logger.info(f"Master paper {work.id} ingested as {uid}")
    return uid
