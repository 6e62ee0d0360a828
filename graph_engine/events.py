"""Graph delta events delivered to consumers.

Every mutation of a GraphState is described by exactly one event, so a
consumer folding the stream from ``reset`` rebuilds the same state (see
``mirror.GraphMirror``). Events carry copies of entities, never live
references.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .types import AppState, Author, Authorship, Institution, Paper, PaperRelationship


class ResetEvent(BaseModel):
    type: Literal["reset"] = "reset"


class MasterPaperSetEvent(BaseModel):
    type: Literal["master-paper-set"] = "master-paper-set"
    uid: str
    stub_creation_threshold: int


class PaperAddedEvent(BaseModel):
    type: Literal["paper-added"] = "paper-added"
    paper: Paper


class AuthorAddedEvent(BaseModel):
    type: Literal["author-added"] = "author-added"
    author: Author


class InstitutionAddedEvent(BaseModel):
    type: Literal["institution-added"] = "institution-added"
    institution: Institution


class AuthorshipAddedEvent(BaseModel):
    type: Literal["authorship-added"] = "authorship-added"
    authorship: Authorship


class RelationshipAddedEvent(BaseModel):
    type: Literal["relationship-added"] = "relationship-added"
    relationship: PaperRelationship


class ExternalIdSetEvent(BaseModel):
    type: Literal["external-id-set"] = "external-id-set"
    key: str
    uid: str


class EntityUpdatedEvent(BaseModel):
    """Partial update: ``changes`` maps field name to its new value."""

    type: Literal["entity-updated"] = "entity-updated"
    entity: Literal["paper", "author", "institution"]
    uid: str
    changes: dict[str, Any]


class AuthorUpdate(BaseModel):
    uid: str
    changes: dict[str, Any]


class AuthorMergeEvent(BaseModel):
    """One reconciliation pass applied atomically."""

    type: Literal["batch-author-merge"] = "batch-author-merge"
    author_updates: list[AuthorUpdate] = Field(default_factory=list)
    authorships_removed: list[str] = Field(default_factory=list)
    authorships_added: list[Authorship] = Field(default_factory=list)
    author_deletions: list[str] = Field(default_factory=list)
    index_updates: dict[str, str] = Field(default_factory=dict)


class StatusEvent(BaseModel):
    type: Literal["status-update"] = "status-update"
    state: AppState
    message: Optional[str] = None


class ProgressEvent(BaseModel):
    type: Literal["progress-update"] = "progress-update"
    percent: float
    message: Optional[str] = None


class FatalErrorEvent(BaseModel):
    type: Literal["fatal-error"] = "fatal-error"
    message: str


class EnrichmentCompleteEvent(BaseModel):
    type: Literal["enrichment-complete"] = "enrichment-complete"
    status: str = "success"


GraphEvent = Annotated[
    Union[
        ResetEvent,
        MasterPaperSetEvent,
        PaperAddedEvent,
        AuthorAddedEvent,
        InstitutionAddedEvent,
        AuthorshipAddedEvent,
        RelationshipAddedEvent,
        ExternalIdSetEvent,
        EntityUpdatedEvent,
        AuthorMergeEvent,
        StatusEvent,
        ProgressEvent,
        FatalErrorEvent,
        EnrichmentCompleteEvent,
    ],
    Field(discriminator="type"),
]

# Sent as soon as they are emitted instead of waiting for the next flush
IMMEDIATE_EVENT_TYPES = frozenset(
    {"status-update", "progress-update", "fatal-error", "enrichment-complete"}
)


def is_immediate(event: BaseModel) -> bool:
    return getattr(event, "type", None) in IMMEDIATE_EVENT_TYPES
