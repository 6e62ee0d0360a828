"""Configuration for graph assembly."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass
class GraphConfig:
    """Tuning knobs for graph assembly and author reconciliation.

    Environment Variables:
        STUB_CREATION_THRESHOLD: Minimum co-citation frequency before a work
            referenced by first-degree papers becomes a stub (default: 3)
        EVENT_FLUSH_INTERVAL: Seconds between batched event flushes (default: 0.25)
        AUTHOR_MATCH_THRESHOLD: Minimum score to accept an author match (default: 0.85)
        LAST_NAME_GATE: Minimum last-name similarity before scoring (default: 0.9)
        INITIAL_BOOST: Multiplier when a first-name initial matches (default: 1.15)
    """

    stub_creation_threshold: int = field(
        default_factory=lambda: int(os.environ.get("STUB_CREATION_THRESHOLD", "3"))
    )
    event_flush_interval: float = field(
        default_factory=lambda: float(os.environ.get("EVENT_FLUSH_INTERVAL", "0.25"))
    )
    author_match_threshold: float = field(
        default_factory=lambda: float(os.environ.get("AUTHOR_MATCH_THRESHOLD", "0.85"))
    )
    last_name_gate: float = field(
        default_factory=lambda: float(os.environ.get("LAST_NAME_GATE", "0.9"))
    )
    initial_boost: float = field(
        default_factory=lambda: float(os.environ.get("INITIAL_BOOST", "1.15"))
    )


_config: GraphConfig | None = None


def get_graph_config() -> GraphConfig:
    """Get global GraphConfig instance."""
    global _config
    if _config is None:
        _config = GraphConfig()
    return _config
