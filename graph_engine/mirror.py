"""Consumer-side replica built by folding event batches."""

import logging
from typing import Iterable, Optional

from .events import (
    AuthorAddedEvent,
    AuthorMergeEvent,
    AuthorshipAddedEvent,
    EnrichmentCompleteEvent,
    EntityUpdatedEvent,
    ExternalIdSetEvent,
    FatalErrorEvent,
    GraphEvent,
    InstitutionAddedEvent,
    MasterPaperSetEvent,
    PaperAddedEvent,
    ProgressEvent,
    RelationshipAddedEvent,
    ResetEvent,
    StatusEvent,
)
from .state import DEFAULT_STUB_CREATION_THRESHOLD, GraphSnapshot
from .types import AppState, Author, Authorship, Institution, Paper, PaperRelationship

logger = logging.getLogger(__name__)


class GraphMirror:
    """In-memory replica of a session, fed only by the event stream.

    Usage:
        mirror = GraphMirror()
        session = GraphSession(sink=mirror.apply_batch)
    """

    def __init__(self):
        self.status = AppState.IDLE
        self.status_message: Optional[str] = None
        self.progress = 0.0
        self.progress_message: Optional[str] = None
        self.error: Optional[str] = None
        self.enrichment_complete = False
        self.batches_received = 0
        self._clear()

    def _clear(self) -> None:
        self.papers: dict[str, Paper] = {}
        self.authors: dict[str, Author] = {}
        self.institutions: dict[str, Institution] = {}
        self.authorships: dict[str, Authorship] = {}
        self.relationships: list[PaperRelationship] = []
        self.external_ids: dict[str, str] = {}
        self.master_paper_uid: Optional[str] = None
        self.stub_creation_threshold = DEFAULT_STUB_CREATION_THRESHOLD

    def apply_batch(self, batch: Iterable[GraphEvent]) -> None:
        self.batches_received += 1
        for event in batch:
            self.apply(event)

    def apply(self, event: GraphEvent) -> None:
        if isinstance(event, ResetEvent):
            self._clear()
            self.error = None
            self.enrichment_complete = False
        elif isinstance(event, MasterPaperSetEvent):
            self.master_paper_uid = event.uid
            self.stub_creation_threshold = event.stub_creation_threshold
        elif isinstance(event, PaperAddedEvent):
            self.papers[event.paper.short_uid] = event.paper.model_copy(deep=True)
        elif isinstance(event, AuthorAddedEvent):
            self.authors[event.author.short_uid] = event.author.model_copy()
        elif isinstance(event, InstitutionAddedEvent):
            self.institutions[event.institution.short_uid] = event.institution.model_copy()
        elif isinstance(event, AuthorshipAddedEvent):
            self.authorships[event.authorship.key] = event.authorship.model_copy(deep=True)
        elif isinstance(event, RelationshipAddedEvent):
            self.relationships.append(event.relationship.model_copy())
        elif isinstance(event, ExternalIdSetEvent):
            self.external_ids[event.key] = event.uid
        elif isinstance(event, EntityUpdatedEvent):
            self._apply_update(event)
        elif isinstance(event, AuthorMergeEvent):
            self._apply_merge(event)
        elif isinstance(event, StatusEvent):
            self.status = event.state
            self.status_message = event.message
        elif isinstance(event, ProgressEvent):
            self.progress = event.percent
            self.progress_message = event.message
        elif isinstance(event, FatalErrorEvent):
            self.error = event.message
        elif isinstance(event, EnrichmentCompleteEvent):
            self.enrichment_complete = True
        else:
            logger.warning(f"Ignoring unknown event {type(event).__name__}")

    def _apply_update(self, event: EntityUpdatedEvent) -> None:
        target = {
            "paper": self.papers,
            "author": self.authors,
            "institution": self.institutions,
        }[event.entity].get(event.uid)
        if target is None:
            logger.warning(f"Update for unknown {event.entity} {event.uid}")
            return
        for name, value in event.changes.items():
            setattr(target, name, value.copy() if isinstance(value, list) else value)

    def _apply_merge(self, event: AuthorMergeEvent) -> None:
        for update in event.author_updates:
            author = self.authors.get(update.uid)
            if author is not None:
                for name, value in update.changes.items():
                    setattr(author, name, value)
        for key in event.authorships_removed:
            self.authorships.pop(key, None)
        for authorship in event.authorships_added:
            self.authorships[authorship.key] = authorship.model_copy(deep=True)
        for uid in event.author_deletions:
            self.authors.pop(uid, None)
        self.external_ids.update(event.index_updates)

    def to_snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            papers={uid: p.model_copy(deep=True) for uid, p in self.papers.items()},
            authors={uid: a.model_copy() for uid, a in self.authors.items()},
            institutions={uid: i.model_copy() for uid, i in self.institutions.items()},
            authorships={key: a.model_copy(deep=True) for key, a in self.authorships.items()},
            relationships=[r.model_copy() for r in self.relationships],
            external_ids=dict(self.external_ids),
            master_paper_uid=self.master_paper_uid,
            stub_creation_threshold=self.stub_creation_threshold,
        )
