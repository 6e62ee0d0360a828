"""Module-based logging with run-based rotation.

Per-area log files with rotation at run boundaries (one graph session, or
one test module).

Usage:
    # At entry points (CLI, GraphSession.start, tests):
    from core.logging import configure_logging, start_run, end_run

    configure_logging()
    start_run("session-W123")
    try:
        ...
    finally:
        end_run()

    # In modules:
    import logging
    logger = logging.getLogger(__name__)

Log files are created in logs/:
    - logs/openalex.log, logs/phases.log, logs/reconciliation.log, ...
    - logs/run-3p.log (all third-party libraries)
    - logs/*.previous.log (previous run's logs)
"""

from core.logging.handlers import ModuleDispatchHandler, ThirdPartyHandler
from core.logging.run_manager import (
    MODULE_TO_LOG,
    end_run,
    get_current_run_id,
    module_to_log_name,
    start_run,
)
from core.logging.setup import configure_logging

__all__ = [
    "configure_logging",
    "start_run",
    "end_run",
    "get_current_run_id",
    "module_to_log_name",
    "ModuleDispatchHandler",
    "ThirdPartyHandler",
    "MODULE_TO_LOG",
]
