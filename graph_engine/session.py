"""GraphSession: one analysis session from master paper to extended graph."""

import logging
from typing import Optional

from core.logging import end_run, start_run
from core.utils import AsyncContextManager
from sources.config import SourceConfig
from sources.openalex import OpenAlexClient, OpenAlexWork, get_openalex_client
from sources.semantic_scholar import SemanticScholarClient, get_semantic_scholar_client

from .config import GraphConfig, get_graph_config
from .errors import InvalidTransitionError, SessionNotStartedError
from .events import ResetEvent
from .orchestrator import EnrichmentOrchestrator
from .state import GraphSnapshot, GraphState
from .streaming import EventSink, EventStream
from .types import AppState

logger = logging.getLogger(__name__)


def _discard(batch) -> None:
    pass


class GraphSession(AsyncContextManager):
    """Owns the GraphState, source clients, event stream and orchestrator.

    Usage:
        async with GraphSession(sink=mirror.apply_batch) as session:
            await session.start("W2741809807")
            await session.extend()
            snapshot = session.snapshot()
    """

    def __init__(
        self,
        sink: Optional[EventSink] = None,
        openalex: Optional[OpenAlexClient] = None,
        semantic_scholar: Optional[SemanticScholarClient] = None,
        graph_config: Optional[GraphConfig] = None,
        source_config: Optional[SourceConfig] = None,
        stub_creation_threshold: Optional[int] = None,
    ):
        self.config = graph_config or get_graph_config()
        self._owns_clients = openalex is None and semantic_scholar is None and source_config is not None
        if source_config is not None:
            openalex = openalex or OpenAlexClient(source_config)
            semantic_scholar = semantic_scholar or SemanticScholarClient(source_config)
        self.openalex = openalex or get_openalex_client()
        self.semantic_scholar = semantic_scholar or get_semantic_scholar_client()
        self.stub_creation_threshold = stub_creation_threshold or self.config.stub_creation_threshold
        self.stream = EventStream(sink or _discard, flush_interval=self.config.event_flush_interval)
        self.state: Optional[GraphState] = None
        self.orchestrator: Optional[EnrichmentOrchestrator] = None
        self._run_count = 0
        self._generation = 0

    @property
    def status(self) -> AppState:
        return self.orchestrator.status if self.orchestrator else AppState.IDLE

    @property
    def error_message(self) -> Optional[str]:
        return self.orchestrator.error_message if self.orchestrator else None

    def _emitter(self, generation: int):
        def emit(event) -> None:
            # Events from a session that has since been reset are dropped
            if generation == self._generation:
                self.stream.emit(event)

        return emit

    def _new_session(self) -> None:
        self._generation += 1
        emit = self._emitter(self._generation)
        self.state = GraphState(
            stub_creation_threshold=self.stub_creation_threshold,
            emit=emit,
        )
        self.orchestrator = EnrichmentOrchestrator(
            self.state,
            self.openalex,
            self.semantic_scholar,
            emit=emit,
            config=self.config,
        )

    async def start(self, master: OpenAlexWork | str) -> AppState:
        """Start a fresh session around ``master`` and run the initial load.

        Args:
            master: OpenAlex work record, OpenAlex id or DOI

        Returns:
            Final state (``active`` or ``error``)
        """
        if self.orchestrator is not None and self.orchestrator.is_busy:
            raise InvalidTransitionError(
                "A session is already running", current_state=self.status.value
            )

        self._run_count += 1
        start_run(f"session-{self._run_count}")
        self.stream.discard()
        self._new_session()
        self.stream.emit(ResetEvent())
        self.stream.start()
        orchestrator = self.orchestrator
        try:
            return await orchestrator.run_initial_load(master)
        finally:
            await self.stream.stop()

    async def extend(self) -> AppState:
        """Run second-degree expansion and stub hydration; re-entrant from ``active``."""
        if self.orchestrator is None:
            raise SessionNotStartedError("extend() called before start()")

        orchestrator = self.orchestrator
        self.stream.start()
        try:
            return await orchestrator.run_extension()
        finally:
            await self.stream.stop()

    async def reset(self) -> None:
        """Discard the current graph and return to ``idle``.

        A phase still running for the old graph finishes on its own state,
        but none of its events reach the sink any more.
        """
        self._generation += 1
        dropped = self.stream.discard()
        if dropped:
            logger.debug(f"Reset dropped {dropped} undelivered events")
        self.state = None
        self.orchestrator = None
        self.stream.emit(ResetEvent())
        self.stream.flush()
        end_run()

    def snapshot(self) -> GraphSnapshot:
        if self.state is None:
            raise SessionNotStartedError("No graph to snapshot; call start() first")
        return self.state.snapshot()

    async def close(self) -> None:
        """Close clients created by this session (shared clients stay open)."""
        await self.stream.stop()
        if self._owns_clients:
            await self.openalex.close()
            await self.semantic_scholar.close()
