"""Enrichment orchestrator: the phase state machine.

    idle -> loading -> enriching -> active -> extending -> active
                                        (any state) -> error

``loading`` covers seed, first-degree and cross-provider enrichment,
``enriching`` covers master hydration and author reconciliation.
``extending`` can be entered again from ``active`` any number of times.

Phases run one after another against the same GraphState. Within a phase,
a ``FetchError`` (non-retryable status or exhausted retries) is fatal and
ends the session in ``error``; any other exception is logged and the
pipeline continues with the data it has. Cross-provider enrichment and
author reconciliation are optional: a ``FetchError`` there is logged
like any other failure.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from core.utils import FetchError
from sources.errors import SourceError
from sources.openalex import FieldSet, OpenAlexClient, OpenAlexWork
from sources.semantic_scholar import SemanticScholarClient

from .config import GraphConfig, get_graph_config
from .errors import GraphEngineError, InvalidTransitionError
from .events import EnrichmentCompleteEvent, FatalErrorEvent, GraphEvent, StatusEvent
from .identifiers import normalize_doi
from .phases import (
    enrich_from_semantic_scholar,
    fetch_first_degree,
    fetch_second_degree,
    hydrate_master_paper,
    hydrate_stub_papers,
    ingest_master_paper,
)
from .progress import EXTENSION_START, ProgressTracker
from .reconciliation import reconcile_authors
from .state import GraphState
from .types import AppState

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALLOWED_TRANSITIONS: dict[AppState, set[AppState]] = {
    AppState.IDLE: {AppState.LOADING},
    AppState.LOADING: {AppState.ENRICHING},
    AppState.ENRICHING: {AppState.ACTIVE},
    AppState.ACTIVE: {AppState.EXTENDING},
    AppState.EXTENDING: {AppState.ACTIVE},
    AppState.ERROR: set(),
}


class EnrichmentOrchestrator:
    """Drives the phases over one GraphState and reports status and progress."""

    def __init__(
        self,
        state: GraphState,
        openalex: OpenAlexClient,
        semantic_scholar: SemanticScholarClient,
        emit: Callable[[GraphEvent], None],
        config: Optional[GraphConfig] = None,
    ):
        self.state = state
        self.openalex = openalex
        self.semantic_scholar = semantic_scholar
        self.config = config or get_graph_config()
        self._emit = emit
        self.progress = ProgressTracker(emit)
        self.status = AppState.IDLE
        self.error_message: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.status in (AppState.LOADING, AppState.ENRICHING, AppState.EXTENDING)

    def _transition(self, target: AppState, message: Optional[str] = None) -> None:
        if target != AppState.ERROR and target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move from {self.status.value} to {target.value}",
                current_state=self.status.value,
            )
        logger.info(f"State {self.status.value} -> {target.value}")
        self.status = target
        self._emit(StatusEvent(state=target, message=message))

    def _fail(self, error: Exception) -> None:
        message = str(error) or type(error).__name__
        logger.error(f"Fatal error in state {self.status.value}: {message}", exc_info=error)
        self.error_message = message
        self._transition(AppState.ERROR, message)
        self._emit(FatalErrorEvent(message=message))

    async def _run_phase(self, name: str, phase: Awaitable[T], fatal: bool = True) -> Optional[T]:
        """Await ``phase``; fetch errors propagate when ``fatal``, anything else degrades."""
        try:
            return await phase
        except FetchError as e:
            if fatal:
                raise
            logger.warning(f"Phase '{name}' could not fetch, continuing without it: {e}")
            return None
        except Exception as e:
            logger.warning(f"Phase '{name}' failed, continuing with partial data: {e}")
            return None

    async def _resolve_master(self, master: OpenAlexWork | str) -> OpenAlexWork:
        if isinstance(master, OpenAlexWork):
            return master
        doi = normalize_doi(master)
        if doi:
            work = await self.openalex.fetch_by_doi(doi, FieldSet.FULL_INGESTION)
        else:
            work = await self.openalex.fetch_by_id(master, FieldSet.FULL_INGESTION)
        if work is None:
            raise GraphEngineError(f"Master paper {master} not found in OpenAlex")
        return work

    async def run_initial_load(self, master: OpenAlexWork | str) -> AppState:
        """Seed, expand and enrich the graph around ``master``.

        Args:
            master: OpenAlex work record, OpenAlex id or DOI

        Returns:
            ``active`` on success, ``error`` on a fatal failure
        """
        if self.status != AppState.IDLE:
            raise InvalidTransitionError(
                f"Initial load requires idle state, not {self.status.value}",
                current_state=self.status.value,
            )

        try:
            self._transition(AppState.LOADING, "Processing master paper...")
            self.progress.checkpoint("initializing", "Processing master paper...")

            work = await self._resolve_master(master)
            ingest_master_paper(self.state, work)

            await self._run_phase("first-degree", fetch_first_degree(self.state, self.openalex))
            self.progress.checkpoint("first_degree", "Fetched first-degree citations")

            await self._run_phase(
                "cross-provider",
                enrich_from_semantic_scholar(self.state, self.semantic_scholar),
                fatal=False,
            )
            self.progress.checkpoint("semantic_scholar", "Enriched with Semantic Scholar")

            self._transition(AppState.ENRICHING)
            await self._run_phase("master hydration", hydrate_master_paper(self.state, self.openalex))
            self.progress.checkpoint("hydrate_master", "Reconciling authors...")
            await self._run_phase(
                "author reconciliation",
                reconcile_authors(self.state, self.openalex, self.config),
                fatal=False,
            )
            self.progress.checkpoint("reconcile_authors", "Reconciled authors")

            self._transition(AppState.ACTIVE)
            self.progress.checkpoint("complete", "Graph ready")
            self._emit(EnrichmentCompleteEvent())
        except (FetchError, SourceError, GraphEngineError) as e:
            self._fail(e)

        return self.status

    async def run_extension(self) -> AppState:
        """Second-degree expansion and stub hydration against the current graph."""
        if self.status != AppState.ACTIVE:
            raise InvalidTransitionError(
                f"Extension requires active state, not {self.status.value}",
                current_state=self.status.value,
            )

        try:
            self._transition(AppState.EXTENDING, "Extending network...")
            self.progress.set(EXTENSION_START, "Extending network...")

            def second_degree_batch(done: int, total: int) -> None:
                self.progress.advance(
                    self.progress.extension_step("second_degree", total),
                    f"Fetching second-degree citations... ({done}/{total})",
                )

            def hydration_batch(done: int, total: int) -> None:
                self.progress.advance(
                    self.progress.extension_step("hydrate_stubs", total),
                    f"Hydrating related papers... ({done}/{total})",
                )

            await self._run_phase(
                "second-degree",
                fetch_second_degree(self.state, self.openalex, on_batch=second_degree_batch),
            )
            await self._run_phase(
                "stub hydration",
                hydrate_stub_papers(self.state, self.openalex, on_batch=hydration_batch),
            )

            self._transition(AppState.ACTIVE)
            self.progress.set(100, "Extension complete")
        except FetchError as e:
            self._fail(e)

        return self.status
