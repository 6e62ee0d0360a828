"""
Tests for GraphSession and the consumer-side GraphMirror.
"""

import pytest

from graph_engine.errors import SessionNotStartedError
from graph_engine.events import ResetEvent
from graph_engine.mirror import GraphMirror
from graph_engine.session import GraphSession
from graph_engine.types import AppState
from testing.utils import (
    MASTER_ID,
    FakeOpenAlex,
    RecordingSink,
    add_second_degree,
    scenario_openalex,
    scenario_semantic_scholar,
)


def _session(graph_config, sink, openalex=None, **kwargs) -> GraphSession:
    return GraphSession(
        sink=sink,
        openalex=openalex or scenario_openalex(),
        semantic_scholar=scenario_semantic_scholar(),
        graph_config=graph_config,
        **kwargs,
    )


class TestGraphSession:
    """Tests for the session lifecycle."""

    async def test_start_and_extend(self, graph_config):
        sink = RecordingSink()
        async with _session(graph_config, sink, openalex=add_second_degree(scenario_openalex())) as session:
            assert session.status == AppState.IDLE
            assert await session.start(MASTER_ID) == AppState.ACTIVE
            assert await session.extend() == AppState.ACTIVE
            counts = session.snapshot().counts()

        assert sink.types()[0] == "reset"
        assert "enrichment-complete" in sink.types()
        assert counts["papers"] > 10
        assert counts["relationships"] > 10

    async def test_threshold_override(self, graph_config):
        async with _session(graph_config, RecordingSink(), stub_creation_threshold=2) as session:
            await session.start(MASTER_ID)
            assert session.snapshot().stub_creation_threshold == 2

    async def test_extend_before_start(self, graph_config):
        async with _session(graph_config, RecordingSink()) as session:
            with pytest.raises(SessionNotStartedError):
                await session.extend()
            with pytest.raises(SessionNotStartedError):
                session.snapshot()

    async def test_error_surfaces_message(self, graph_config):
        async with _session(graph_config, RecordingSink(), openalex=FakeOpenAlex()) as session:
            assert await session.start("W404") == AppState.ERROR
            assert session.status == AppState.ERROR
            assert "W404" in session.error_message

    async def test_reset_returns_to_idle(self, graph_config):
        sink = RecordingSink()
        async with _session(graph_config, sink) as session:
            await session.start(MASTER_ID)
            await session.reset()

            assert session.status == AppState.IDLE
            assert sink.events[-1] == ResetEvent()
            with pytest.raises(SessionNotStartedError):
                session.snapshot()

    async def test_restart_after_reset(self, graph_config):
        async with _session(graph_config, RecordingSink()) as session:
            await session.start(MASTER_ID)
            first_master = session.snapshot().master_paper_uid
            await session.reset()

            assert await session.start(MASTER_ID) == AppState.ACTIVE
            assert session.snapshot().master_paper_uid != first_master

    async def test_stale_events_dropped_after_reset(self, graph_config):
        sink = RecordingSink()
        async with _session(graph_config, sink) as session:
            await session.start(MASTER_ID)
            stale_emit = session.state.emit
            await session.reset()
            delivered = len(sink.events)

            stale_emit(ResetEvent())
            session.stream.flush()
            assert len(sink.events) == delivered

    async def test_closes_only_owned_clients(self, graph_config):
        openalex = scenario_openalex()
        async with _session(graph_config, RecordingSink(), openalex=openalex) as session:
            await session.start(MASTER_ID)
        assert openalex.closed is False


class TestGraphMirror:
    """Folding the event stream reproduces the engine state."""

    async def test_mirror_matches_snapshot_after_initial_load(self, graph_config):
        mirror = GraphMirror()
        async with _session(graph_config, mirror.apply_batch) as session:
            await session.start(MASTER_ID)
            snapshot = session.snapshot()

        assert mirror.to_snapshot().model_dump() == snapshot.model_dump()
        assert mirror.status == AppState.ACTIVE
        assert mirror.progress == 70
        assert mirror.enrichment_complete is True

    async def test_mirror_matches_snapshot_after_extension(self, graph_config):
        mirror = GraphMirror()
        openalex = add_second_degree(scenario_openalex())
        async with _session(graph_config, mirror.apply_batch, openalex=openalex) as session:
            await session.start(MASTER_ID)
            await session.extend()
            snapshot = session.snapshot()

        assert mirror.to_snapshot().model_dump() == snapshot.model_dump()
        assert mirror.progress == 100

    async def test_mirror_cleared_on_reset(self, graph_config):
        mirror = GraphMirror()
        async with _session(graph_config, mirror.apply_batch) as session:
            await session.start(MASTER_ID)
            await session.reset()

        assert mirror.papers == {}
        assert mirror.master_paper_uid is None
        assert mirror.enrichment_complete is False

    async def test_mirror_records_fatal_error(self, graph_config):
        mirror = GraphMirror()
        async with _session(graph_config, mirror.apply_batch, openalex=FakeOpenAlex()) as session:
            await session.start("W404")

        assert mirror.status == AppState.ERROR
        assert "W404" in mirror.error
