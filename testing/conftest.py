"""
Pytest configuration for the graph engine test suite.

Usage:
    # Whole suite
    pytest testing/

    # One module
    pytest testing/test_processors.py
"""

from collections.abc import Generator

import pytest

from core.logging import end_run, start_run
from graph_engine.config import GraphConfig
from graph_engine.state import GraphState
from sources.config import SourceConfig


@pytest.fixture(autouse=True)
def logging_run(request: pytest.FixtureRequest) -> Generator[None, None, None]:
    """Rotate logs at test module boundaries.

    Each test module gets its own logging run, which triggers log rotation
    on first write to each module's log file.

    When running with pytest-xdist, each worker uses a separate log directory
    to prevent file corruption from concurrent writes.
    """
    import os

    worker_id = os.environ.get("PYTEST_XDIST_WORKER")
    if worker_id:
        os.environ["CITEGRAPH_LOG_DIR"] = f"logs/test-{worker_id}"

    # Use test module path as run identifier (e.g., "test-testing-test_processors")
    test_path = request.node.nodeid.split("::")[0]
    test_name = test_path.replace("/", "-").replace(".py", "")
    start_run(f"test-{test_name}")
    yield
    end_run()


@pytest.fixture
def events() -> list:
    """Collects every event emitted by the ``state`` fixture."""
    return []


@pytest.fixture
def state(events) -> GraphState:
    """Empty GraphState recording its events into ``events``."""
    return GraphState(stub_creation_threshold=3, emit=events.append)


@pytest.fixture
def source_config() -> SourceConfig:
    """Source config with instant retries and small pages."""
    return SourceConfig(
        openalex_base_url="https://api.openalex.test",
        openalex_email="test@example.org",
        semantic_scholar_base_url="https://api.semanticscholar.test/graph/v1",
        semantic_scholar_api_key="test-key",
        max_attempts=3,
        base_delay=0.0,
        jitter=0.0,
        openalex_batch_size=2,
        openalex_per_page=2,
        openalex_max_pages_per_chunk=3,
        semantic_scholar_page_limit=2,
        max_concurrent_fetches=2,
    )


@pytest.fixture
def graph_config() -> GraphConfig:
    """Graph config with default thresholds and a fast flush."""
    return GraphConfig(
        stub_creation_threshold=3,
        event_flush_interval=0.01,
        author_match_threshold=0.85,
        last_name_gate=0.9,
        initial_boost=1.15,
    )


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring external services",
    )
