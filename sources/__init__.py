"""Bibliographic source adapters: OpenAlex (primary) and Semantic Scholar (secondary)."""

from .config import SourceConfig, get_source_config
from .errors import SourceError, SourceParseError

__all__ = ["SourceConfig", "get_source_config", "SourceError", "SourceParseError"]
