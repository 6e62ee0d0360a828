"""GraphState: the single mutable aggregate of one analysis session."""

import logging
from typing import Callable, Optional

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field

from .events import GraphEvent
from .id_index import ExternalIdIndex
from .identifiers import EntityKind, Namespace, generate_short_uid
from .relationships import RelationshipBuilder
from .types import Author, Authorship, Institution, Paper, PaperRelationship

logger = logging.getLogger(__name__)

DEFAULT_STUB_CREATION_THRESHOLD = 3


class GraphSnapshot(BaseModel):
    """Frozen point-in-time copy of a GraphState."""

    model_config = ConfigDict(frozen=True)

    papers: dict[str, Paper] = Field(default_factory=dict)
    authors: dict[str, Author] = Field(default_factory=dict)
    institutions: dict[str, Institution] = Field(default_factory=dict)
    authorships: dict[str, Authorship] = Field(default_factory=dict)
    relationships: list[PaperRelationship] = Field(default_factory=list)
    external_ids: dict[str, str] = Field(default_factory=dict)
    master_paper_uid: Optional[str] = None
    stub_creation_threshold: int = DEFAULT_STUB_CREATION_THRESHOLD

    def counts(self) -> dict[str, int]:
        """Entity counts, comparable with ``export.counts_from_tables``."""
        return {
            "papers": len(self.papers),
            "stub_papers": sum(1 for p in self.papers.values() if p.is_stub),
            "authors": len(self.authors),
            "institutions": len(self.institutions),
            "authorships": len(self.authorships),
            "relationships": len(self.relationships),
            "external_ids": len(self.external_ids),
        }

    def to_networkx(self) -> nx.MultiDiGraph:
        """Paper graph with edges keyed by relationship type."""
        graph = nx.MultiDiGraph()
        for uid, paper in self.papers.items():
            graph.add_node(
                uid,
                title=paper.title,
                year=paper.publication_year,
                is_stub=paper.is_stub,
                is_master=uid == self.master_paper_uid,
            )
        for rel in self.relationships:
            graph.add_edge(
                rel.source_short_uid,
                rel.target_short_uid,
                key=rel.relationship_type.value,
                tag=rel.tag.value if rel.tag else None,
            )
        return graph


class GraphState:
    """Entity maps, identifier index and relationships for one session.

    Phase functions receive the state explicitly; nothing in the engine
    keeps module-level graph data. Every mutation is reported through
    ``emit`` so a consumer can mirror the state from the event stream.
    """

    def __init__(
        self,
        stub_creation_threshold: int = DEFAULT_STUB_CREATION_THRESHOLD,
        emit: Optional[Callable[[GraphEvent], None]] = None,
    ):
        if stub_creation_threshold < 1:
            raise ValueError(f"stub_creation_threshold must be >= 1, got {stub_creation_threshold}")
        self.stub_creation_threshold = stub_creation_threshold
        self._emit = emit
        self.papers: dict[str, Paper] = {}
        self.authors: dict[str, Author] = {}
        self.institutions: dict[str, Institution] = {}
        self.authorships: dict[str, Authorship] = {}
        self._authorships_by_paper: dict[str, dict[str, None]] = {}
        self._authorships_by_author: dict[str, dict[str, None]] = {}
        self.index = ExternalIdIndex(emit=self.emit)
        self.relationships = RelationshipBuilder(self)
        self.master_paper_uid: Optional[str] = None

    def emit(self, event: GraphEvent) -> None:
        if self._emit is not None:
            self._emit(event)

    def mint_uid(self, kind: EntityKind) -> str:
        """New short uid not used by any entity of ``kind``."""
        existing = {
            EntityKind.PAPER: self.papers,
            EntityKind.AUTHOR: self.authors,
            EntityKind.INSTITUTION: self.institutions,
        }[kind]
        while True:
            uid = generate_short_uid(kind)
            if uid not in existing:
                return uid

    @property
    def master_paper(self) -> Optional[Paper]:
        if self.master_paper_uid is None:
            return None
        return self.papers.get(self.master_paper_uid)

    def doi_for(self, paper_uid: str) -> Optional[str]:
        return self.index.value_for(paper_uid, Namespace.DOI)

    def openalex_id_for(self, paper_uid: str) -> Optional[str]:
        return self.index.value_for(paper_uid, Namespace.OPENALEX)

    def add_authorship(self, authorship: Authorship) -> None:
        """Store ``authorship`` under its key and index it by paper and author."""
        key = authorship.key
        self.authorships[key] = authorship
        self._authorships_by_paper.setdefault(authorship.paper_short_uid, {})[key] = None
        self._authorships_by_author.setdefault(authorship.author_short_uid, {})[key] = None

    def remove_authorship(self, key: str) -> Authorship:
        authorship = self.authorships.pop(key)
        self._authorships_by_paper.get(authorship.paper_short_uid, {}).pop(key, None)
        self._authorships_by_author.get(authorship.author_short_uid, {}).pop(key, None)
        return authorship

    def has_authorships(self, paper_uid: str) -> bool:
        return bool(self._authorships_by_paper.get(paper_uid))

    def authorships_of_author(self, author_uid: str) -> list[Authorship]:
        return [self.authorships[key] for key in self._authorships_by_author.get(author_uid, {})]

    def authorships_of_paper(self, paper_uid: str) -> list[Authorship]:
        return [self.authorships[key] for key in self._authorships_by_paper.get(paper_uid, {})]

    def stub_papers(self) -> list[Paper]:
        return [p for p in self.papers.values() if p.is_stub]

    def snapshot(self) -> GraphSnapshot:
        """Deep-copied, frozen view of the current state."""
        return GraphSnapshot(
            papers={uid: p.model_copy(deep=True) for uid, p in self.papers.items()},
            authors={uid: a.model_copy(deep=True) for uid, a in self.authors.items()},
            institutions={uid: i.model_copy(deep=True) for uid, i in self.institutions.items()},
            authorships={key: a.model_copy(deep=True) for key, a in self.authorships.items()},
            relationships=[r.model_copy(deep=True) for r in self.relationships.edges],
            external_ids=self.index.as_dict(),
            master_paper_uid=self.master_paper_uid,
            stub_creation_threshold=self.stub_creation_threshold,
        )
