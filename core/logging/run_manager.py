"""Run-based log rotation manager.

A "run" is one logical unit of work: a graph session (seed + enrichment +
any extensions) or a test module. The first write to each log file inside a
run rotates that file, so every file holds the current run plus exactly one
previous run.

Usage:
    from core.logging import start_run, end_run

    start_run("session-W2741809807")
    try:
        ...
    finally:
        end_run()
"""

from contextvars import ContextVar

# ContextVars so concurrent sessions on one event loop don't share run state
_current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)
_rotated_this_run: ContextVar[set[str] | None] = ContextVar("rotated_this_run", default=None)

# Module names never change, so the resolution cache outlives runs
_module_log_cache: dict[str, str] = {}

# Module path prefix -> log file name (longest prefix wins, else "misc")
MODULE_TO_LOG = {
    # Provider adapters
    "sources.openalex": "openalex",
    "sources.semantic_scholar": "semantic-scholar",
    "sources": "sources",
    # Graph assembly
    "graph_engine.phases": "phases",
    "graph_engine.reconciliation": "reconciliation",
    "graph_engine.streaming": "streaming",
    "graph_engine.cli": "cli",
    "graph_engine": "graph-engine",
    # Core modules
    "core.utils": "utils",
    "core.config": "config",
    "core.logging": "logging-internal",
    # Test suite
    "testing": "testing",
}

_SORTED_PREFIXES = sorted(MODULE_TO_LOG.keys(), key=len, reverse=True)


def start_run(run_id: str) -> None:
    """Signal start of new run.

    Safe to call repeatedly; each call resets the rotation tracking.

    Args:
        run_id: Unique identifier for this run (e.g., session id, test module)
    """
    _current_run_id.set(run_id)
    _rotated_this_run.set(set())


def end_run() -> None:
    """Signal end of run.

    Best-effort cleanup. Rotation is driven by start_run(), so a missed
    end_run() after a crash does not affect correctness.
    """
    _current_run_id.set(None)
    _rotated_this_run.set(None)


def get_current_run_id() -> str | None:
    """Get the current run ID, if any."""
    return _current_run_id.get()


def should_rotate(log_name: str) -> bool:
    """Check if rotation is needed for this log file.

    True only inside a run, and only for the first write to ``log_name`` in
    that run. Marks the log as rotated before returning.
    """
    run_id = _current_run_id.get()
    rotated = _rotated_this_run.get()

    if run_id is None or rotated is None:
        return False

    if log_name in rotated:
        return False

    rotated.add(log_name)
    return True


def module_to_log_name(module_name: str) -> str:
    """Resolve module path to log filename (without extension).

    Args:
        module_name: The __name__ of the module (e.g., "graph_engine.phases.first_degree")

    Returns:
        Log file name, e.g. "phases"
    """
    if module_name not in _module_log_cache:
        _module_log_cache[module_name] = _compute_log_name(module_name)
    return _module_log_cache[module_name]


def is_project_module(module_name: str) -> bool:
    """Whether a logger name belongs to this project (vs. a third-party library)."""
    return any(
        module_name == prefix or module_name.startswith(prefix + ".")
        for prefix in ("core", "sources", "graph_engine", "testing", "__main__")
    )


def _compute_log_name(module_name: str) -> str:
    """Find longest matching prefix in MODULE_TO_LOG, or "misc"."""
    for prefix in _SORTED_PREFIXES:
        if module_name.startswith(prefix):
            return MODULE_TO_LOG[prefix]
    return "misc"
