"""One-time installation of the logging handlers."""

import logging
from pathlib import Path

from core.config import get_log_dir, get_log_level
from core.logging.handlers import ModuleDispatchHandler, ThirdPartyHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(
    log_dir: str | Path | None = None,
    console_level: int | None = None,
    console: bool = True,
) -> None:
    """Install file dispatch handlers and an optional console handler.

    Idempotent: later calls are no-ops so library code and the CLI can both
    call it.

    Args:
        log_dir: Directory for log files (default from CITEGRAPH_LOG_DIR)
        console_level: Console handler level (default from CITEGRAPH_MODE)
        console: Whether to attach a stderr handler
    """
    global _configured
    if _configured:
        return

    directory = Path(log_dir or get_log_dir())
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    module_handler = ModuleDispatchHandler(directory)
    module_handler.setLevel(logging.DEBUG)
    module_handler.setFormatter(formatter)
    root.addHandler(module_handler)

    third_party_handler = ThirdPartyHandler(directory)
    third_party_handler.setLevel(logging.INFO)
    third_party_handler.setFormatter(formatter)
    root.addHandler(third_party_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(console_level if console_level is not None else get_log_level())
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(stream_handler)

    _configured = True
