"""
Tests for the enrichment orchestrator: phases, state machine and failures.

Scenario layout is described in testing/utils/scenario.py.
"""

import httpx
import pytest

from core.utils import FatalHttpError, RetryExhaustedError
from graph_engine.events import (
    EnrichmentCompleteEvent,
    FatalErrorEvent,
    ProgressEvent,
    StatusEvent,
)
from graph_engine.errors import InvalidTransitionError
from graph_engine.identifiers import Namespace
from graph_engine.orchestrator import EnrichmentOrchestrator
from graph_engine.state import GraphState
from graph_engine.types import AppState, RelationshipTag, RelationshipType
from sources.openalex import OpenAlexClient
from testing.utils import (
    CITING_IDS,
    MASTER_DOI,
    FakeSemanticScholar,
    add_second_degree,
    scenario_openalex,
    scenario_semantic_scholar,
    work_payload,
)


def _orchestrator(graph_config, openalex=None, semantic_scholar=None, threshold=3):
    events: list = []
    state = GraphState(stub_creation_threshold=threshold, emit=events.append)
    orchestrator = EnrichmentOrchestrator(
        state,
        openalex or scenario_openalex(),
        semantic_scholar or scenario_semantic_scholar(),
        emit=events.append,
        config=graph_config,
    )
    return orchestrator, state, events


def _uid(state, openalex_id):
    return state.index.find(Namespace.OPENALEX, openalex_id)


class TestInitialLoad:
    """Tests for run_initial_load."""

    async def test_reaches_active(self, graph_config):
        orchestrator, state, events = _orchestrator(graph_config)

        assert await orchestrator.run_initial_load("W100") == AppState.ACTIVE

        states = [e.state for e in events if isinstance(e, StatusEvent)]
        assert states == [AppState.LOADING, AppState.ENRICHING, AppState.ACTIVE]
        assert isinstance(events[-1], EnrichmentCompleteEvent)
        percents = [e.percent for e in events if isinstance(e, ProgressEvent)]
        assert percents == sorted(percents)
        assert percents[-1] == 70

    async def test_master_by_doi(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load(f"https://doi.org/{MASTER_DOI}")
        assert state.master_paper.title == "The Master Paper"
        assert state.master_paper.is_stub is False

    async def test_first_degree_edges(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")

        master = state.master_paper_uid
        for work_id in CITING_IDS:
            uid = _uid(state, work_id)
            assert state.relationships.has(uid, RelationshipType.CITES, master)
            assert state.papers[uid].is_stub is False
            assert "1st_degree" in state.papers[uid].relationship_tags

    async def test_co_cited_work_above_threshold_becomes_stub(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")

        w1 = _uid(state, "W1")
        assert w1 is not None
        assert state.papers[w1].is_stub is True
        assert state.papers[w1].title == "Co-cited Work"
        assert "referenced_by_1st_degree" in state.papers[w1].relationship_tags
        assert state.relationships.has(w1, RelationshipType.SIMILAR, state.master_paper_uid)

        # Referenced by only two first-degree papers
        assert _uid(state, "W2") is None

    async def test_related_work_above_threshold_tagged_similar(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")
        assert state.papers[_uid(state, "W3")].relationship_tags == ["similar"]

    async def test_lower_threshold_keeps_rarer_works(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config, threshold=2)
        await orchestrator.run_initial_load("W100")
        assert _uid(state, "W2") is not None

    async def test_semantic_scholar_enrichment(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")

        master = state.master_paper_uid
        assert state.master_paper.best_oa_url == "https://x.org/master.pdf"
        assert state.index.find(Namespace.SS, "S100") == master

        # S20 is the same paper as W20 (shared DOI)
        assert state.index.find(Namespace.SS, "S20") == _uid(state, "W20")

        s5 = state.index.find(Namespace.SS, "S5")
        assert state.relationships.has(s5, RelationshipType.CITES, master)
        assert state.papers[s5].is_stub is True
        assert state.papers[s5].relationship_tags == ["1st_degree"]

        r1 = state.index.find(Namespace.SS, "R1")
        assert state.relationships.has(master, RelationshipType.CITES, r1)
        assert state.papers[r1].relationship_tags == []

        keys = [r.key for r in state.relationships.edges]
        assert len(keys) == len(set(keys))

    async def test_stub_author_reconciled_into_master_author(self, graph_config):
        orchestrator, state, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")

        ada = state.index.find(Namespace.OPENALEX_AUTHOR, "A1")
        assert state.index.find(Namespace.SS_AUTHOR, "s1") == ada
        assert [a.clean_name for a in state.authors.values()].count("Ada Lovelace") == 1
        assert not any(a.is_stub for a in state.authors.values())

    async def test_soft_degradation(self, graph_config):
        orchestrator, state, events = _orchestrator(
            graph_config, semantic_scholar=FakeSemanticScholar(failure=RuntimeError("boom"))
        )
        assert await orchestrator.run_initial_load("W100") == AppState.ACTIVE
        assert not any(isinstance(e, FatalErrorEvent) for e in events)

    async def test_semantic_scholar_fetch_failure_is_not_fatal(self, graph_config):
        """Exhausted retries against Semantic Scholar leave an OpenAlex-only graph."""
        failure = RetryExhaustedError("429 after 5 attempts", url="https://s2", status_code=429)
        orchestrator, state, events = _orchestrator(
            graph_config, semantic_scholar=FakeSemanticScholar(failure=failure)
        )

        assert await orchestrator.run_initial_load("W100") == AppState.ACTIVE
        assert orchestrator.error_message is None
        assert not any(isinstance(e, FatalErrorEvent) for e in events)
        assert any(isinstance(e, EnrichmentCompleteEvent) for e in events)
        assert state.index.find(Namespace.SS, "S100") is None
        for work_id in CITING_IDS:
            assert _uid(state, work_id) is not None

    async def test_reconciliation_fetch_failure_is_not_fatal(self, graph_config):
        """A rejected DOI batch leaves the stub authors unmerged."""
        openalex = scenario_openalex()
        openalex.failures["fetch_by_doi_batch"] = FatalHttpError(
            "403 Forbidden", url="https://api.openalex.test/works", status_code=403
        )
        orchestrator, state, events = _orchestrator(graph_config, openalex=openalex)

        assert await orchestrator.run_initial_load("W100") == AppState.ACTIVE
        assert not any(isinstance(e, FatalErrorEvent) for e in events)
        assert openalex.calls_to("fetch_by_doi_batch")
        assert any(a.is_stub for a in state.authors.values())

    async def test_master_not_found(self, graph_config):
        orchestrator, state, events = _orchestrator(graph_config)
        assert await orchestrator.run_initial_load("W404") == AppState.ERROR
        assert "not found" in orchestrator.error_message
        assert state.papers == {}

    async def test_fatal_server_error_during_first_degree(self, graph_config, source_config):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/works/W100":
                return httpx.Response(200, json=work_payload("W100", doi=MASTER_DOI))
            return httpx.Response(500)

        client = OpenAlexClient(source_config, transport=httpx.MockTransport(handler))
        orchestrator, state, events = _orchestrator(graph_config, openalex=client)

        async with client:
            status = await orchestrator.run_initial_load("W100")

        assert status == AppState.ERROR
        assert orchestrator.status == AppState.ERROR
        assert orchestrator.error_message
        assert state.master_paper is not None
        assert state.master_paper.title == "Paper W100"

        fatal = [e for e in events if isinstance(e, FatalErrorEvent)]
        assert len(fatal) == 1 and fatal[0].message == orchestrator.error_message
        assert [e.state for e in events if isinstance(e, StatusEvent)][-1] == AppState.ERROR

    async def test_cannot_run_twice(self, graph_config):
        orchestrator, _, _ = _orchestrator(graph_config)
        await orchestrator.run_initial_load("W100")
        with pytest.raises(InvalidTransitionError):
            await orchestrator.run_initial_load("W100")


class TestExtension:
    """Tests for run_extension."""

    async def test_extension_requires_active(self, graph_config):
        orchestrator, _, _ = _orchestrator(graph_config)
        with pytest.raises(InvalidTransitionError):
            await orchestrator.run_extension()

    async def test_second_degree_and_hydration(self, graph_config):
        openalex = add_second_degree(scenario_openalex())
        orchestrator, state, events = _orchestrator(graph_config, openalex=openalex)
        await orchestrator.run_initial_load("W100")
        events.clear()

        assert await orchestrator.run_extension() == AppState.ACTIVE

        w20, w21 = _uid(state, "W20"), _uid(state, "W21")
        w300, w301 = _uid(state, "W300"), _uid(state, "W301")

        assert state.relationships.has(w300, RelationshipType.CITES, w20)
        assert state.papers[w300].relationship_tags == ["2nd_degree"]

        assert state.papers[w301].relationship_tags == ["2nd_degree"]
        assert not any(r.source_short_uid == w301 for r in state.relationships.edges)

        peer_edges = [
            r for r in state.relationships.edges if r.source_short_uid == w21 and r.target_short_uid == w20
        ]
        assert len(peer_edges) == 1 and peer_edges[0].tag is None
        assert RelationshipTag.SECOND_DEGREE.value not in state.papers[w21].relationship_tags

        # Stubs hydrated by OpenAlex id and by DOI; unknown DOI stays a stub
        assert state.papers[_uid(state, "W1")].is_stub is False
        assert state.papers[_uid(state, "W3")].is_stub is False
        assert state.papers[state.index.find(Namespace.SS, "S5")].is_stub is False
        assert state.papers[state.index.find(Namespace.SS, "R1")].is_stub is True

        states = [e.state for e in events if isinstance(e, StatusEvent)]
        assert states == [AppState.EXTENDING, AppState.ACTIVE]
        percents = [e.percent for e in events if isinstance(e, ProgressEvent)]
        assert percents[0] == 70 and percents[-1] == 100
        assert percents == sorted(percents)

    async def test_extension_is_reentrant(self, graph_config):
        openalex = add_second_degree(scenario_openalex())
        orchestrator, state, _ = _orchestrator(graph_config, openalex=openalex)
        await orchestrator.run_initial_load("W100")
        await orchestrator.run_extension()
        edges = len(state.relationships)

        assert await orchestrator.run_extension() == AppState.ACTIVE
        assert len(state.relationships) == edges

    async def test_fatal_error_during_extension(self, graph_config):
        openalex = scenario_openalex()
        orchestrator, state, _ = _orchestrator(graph_config, openalex=openalex)
        await orchestrator.run_initial_load("W100")
        openalex.failures["fetch_citing_works"] = RetryExhaustedError(
            "API continued to fail after 5 attempts with status 503",
            url="/works",
            status_code=503,
            attempts=5,
        )

        assert await orchestrator.run_extension() == AppState.ERROR
        assert "503" in orchestrator.error_message
        assert state.master_paper is not None
