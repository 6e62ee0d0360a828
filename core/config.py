"""Citegraph configuration and environment setup.

This module provides centralized configuration for the engine, including
development mode detection and log-level selection.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def is_dev_mode() -> bool:
    """Check if running in development mode.

    Returns:
        True if CITEGRAPH_MODE is set to 'dev', False otherwise.
    """
    return os.getenv("CITEGRAPH_MODE", "prod").lower() == "dev"


def get_log_level() -> int:
    """Resolve the console log level.

    CITEGRAPH_LOG_LEVEL wins when set; otherwise dev mode logs at DEBUG and
    prod at INFO.
    """
    explicit = os.getenv("CITEGRAPH_LOG_LEVEL")
    if explicit:
        level = logging.getLevelName(explicit.upper())
        return level if isinstance(level, int) else logging.INFO
    return logging.DEBUG if is_dev_mode() else logging.INFO


def get_log_dir() -> str:
    """Directory for per-module log files (CITEGRAPH_LOG_DIR, default 'logs')."""
    return os.getenv("CITEGRAPH_LOG_DIR", "logs")
