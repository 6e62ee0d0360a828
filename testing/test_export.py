"""
Tests for snapshot export: tables, counts round-trip and CSV bundles.
"""

import pytest

from graph_engine.export import (
    TABLE_COLUMNS,
    counts_from_tables,
    read_csv_bundle,
    to_tables,
    write_csv_bundle,
)
from graph_engine.orchestrator import EnrichmentOrchestrator
from graph_engine.state import GraphState
from testing.utils import (
    MASTER_ID,
    add_second_degree,
    scenario_openalex,
    scenario_semantic_scholar,
)


@pytest.fixture
async def snapshot(graph_config):
    """Snapshot of the scenario graph after the initial load and one extension."""
    state = GraphState(stub_creation_threshold=3)
    orchestrator = EnrichmentOrchestrator(
        state,
        add_second_degree(scenario_openalex()),
        scenario_semantic_scholar(),
        emit=lambda event: None,
        config=graph_config,
    )
    await orchestrator.run_initial_load(MASTER_ID)
    await orchestrator.run_extension()
    return state.snapshot()


class TestTables:
    """Tests for to_tables."""

    async def test_all_tables_present(self, snapshot):
        tables = to_tables(snapshot)
        assert set(tables) == set(TABLE_COLUMNS)
        for name, rows in tables.items():
            for row in rows:
                assert set(row) == set(TABLE_COLUMNS[name]), name

    async def test_counts_round_trip(self, snapshot):
        assert counts_from_tables(to_tables(snapshot)) == snapshot.counts()

    async def test_external_ids_split_by_entity(self, snapshot):
        tables = to_tables(snapshot)
        paper_types = {row["id_type"] for row in tables["paper_to_externalid"]}
        author_types = {row["id_type"] for row in tables["author_to_externalid"]}
        assert paper_types == {"openalex", "doi", "ss"}
        assert author_types == {"openalex_author", "ss_author"}
        assert all(row["short_uid"].startswith("p_") for row in tables["paper_to_externalid"])

    async def test_relationship_tags_and_keywords(self, snapshot):
        tables = to_tables(snapshot)
        tags = {row["relationship_tag"] for row in tables["paper_relationship_types"]}
        assert tags == {"1st_degree", "2nd_degree", "referenced_by_1st_degree", "similar"}
        assert tables["paper_keywords"] == []

    def test_empty_snapshot(self):
        snapshot = GraphState().snapshot()
        tables = to_tables(snapshot)
        assert all(rows == [] for rows in tables.values())
        assert counts_from_tables(tables) == snapshot.counts()


class TestCsvBundle:
    """Tests for write_csv_bundle / read_csv_bundle."""

    async def test_csv_round_trip_counts(self, snapshot, tmp_path):
        paths = write_csv_bundle(snapshot, tmp_path / "export")
        assert len(paths) == len(TABLE_COLUMNS)
        assert all(p.exists() for p in paths)

        tables = read_csv_bundle(tmp_path / "export")
        assert counts_from_tables(tables) == snapshot.counts()

    async def test_header_order(self, snapshot, tmp_path):
        write_csv_bundle(snapshot, tmp_path)
        header = (tmp_path / "papers.csv").read_text(encoding="utf-8").splitlines()[0]
        assert header.split(",") == TABLE_COLUMNS["papers"]
