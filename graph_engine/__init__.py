"""Citation graph assembly engine.

Seeds a graph from one OpenAlex work, expands it through OpenAlex and
Semantic Scholar, deduplicates entities through an external identifier
index and streams graph deltas to a consumer in timed batches.
"""

from .categorize import CategorizedCitations, categorize_citations
from .config import GraphConfig, get_graph_config
from .errors import GraphEngineError, InvalidTransitionError, SessionNotStartedError
from .mirror import GraphMirror
from .orchestrator import EnrichmentOrchestrator
from .session import GraphSession
from .state import GraphSnapshot, GraphState
from .streaming import EventStream
from .types import (
    AppState,
    Author,
    Authorship,
    Institution,
    Paper,
    PaperRelationship,
    RelationshipTag,
    RelationshipType,
)

__all__ = [
    "CategorizedCitations",
    "categorize_citations",
    "GraphConfig",
    "get_graph_config",
    "GraphEngineError",
    "InvalidTransitionError",
    "SessionNotStartedError",
    "GraphMirror",
    "EnrichmentOrchestrator",
    "GraphSession",
    "GraphSnapshot",
    "GraphState",
    "EventStream",
    "AppState",
    "Author",
    "Authorship",
    "Institution",
    "Paper",
    "PaperRelationship",
    "RelationshipTag",
    "RelationshipType",
]
