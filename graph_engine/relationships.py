"""Deduplicated paper-to-paper edges with provenance tags."""

import logging
from typing import TYPE_CHECKING, Optional

import networkx as nx

from .events import EntityUpdatedEvent, RelationshipAddedEvent
from .types import PaperRelationship, RelationshipTag, RelationshipType, relationship_key

if TYPE_CHECKING:
    from .state import GraphState

logger = logging.getLogger(__name__)


class RelationshipBuilder:
    """Owns every PaperRelationship of one GraphState.

    Edges are mirrored into a MultiDiGraph keyed by relationship type, and a
    set of ``source|type|target`` keys makes re-adding an edge a no-op no
    matter which phase rediscovers it. Adding a tagged edge also tags the
    endpoint that is not the master paper.
    """

    def __init__(self, state: "GraphState"):
        self._state = state
        self._graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._edges: list[PaperRelationship] = []
        self._keys: set[str] = set()

    @property
    def graph(self) -> nx.MultiDiGraph:
        """Access to underlying networkx graph."""
        return self._graph

    @property
    def edges(self) -> list[PaperRelationship]:
        return self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def has(self, source_uid: str, relationship_type: RelationshipType, target_uid: str) -> bool:
        return relationship_key(source_uid, relationship_type, target_uid) in self._keys

    def add(
        self,
        source_uid: str,
        target_uid: str,
        relationship_type: RelationshipType,
        tag: Optional[RelationshipTag] = None,
    ) -> bool:
        """Add directed edge (source -> target).

        Returns:
            False if the edge already exists or is a self-loop, True if added
        """
        if source_uid == target_uid:
            logger.debug(f"Ignoring self-loop on {source_uid}")
            return False

        relationship_type = RelationshipType(relationship_type)
        key = relationship_key(source_uid, relationship_type, target_uid)
        if key in self._keys or self._graph.has_edge(
            source_uid, target_uid, key=relationship_type.value
        ):
            return False

        relationship = PaperRelationship(
            source_short_uid=source_uid,
            target_short_uid=target_uid,
            relationship_type=relationship_type,
            tag=tag,
        )
        self._keys.add(key)
        self._edges.append(relationship)
        self._graph.add_edge(
            source_uid,
            target_uid,
            key=relationship_type.value,
            tag=tag.value if tag else None,
        )
        self._state.emit(RelationshipAddedEvent(relationship=relationship.model_copy()))

        if tag is not None:
            master = self._state.master_paper_uid
            self.add_tag(target_uid if source_uid == master else source_uid, tag)
        return True

    def add_tag(self, paper_uid: str, tag: RelationshipTag) -> bool:
        """Attach a provenance tag to a paper; True if it was new."""
        paper = self._state.papers.get(paper_uid)
        if paper is None:
            return False
        tag_value = RelationshipTag(tag).value
        if tag_value in paper.relationship_tags:
            return False
        paper.relationship_tags.append(tag_value)
        self._state.emit(
            EntityUpdatedEvent(
                entity="paper",
                uid=paper_uid,
                changes={"relationship_tags": list(paper.relationship_tags)},
            )
        )
        return True

    def sources_with_tag(self, tag: RelationshipTag, target_uid: Optional[str] = None) -> list[str]:
        """Source uids of tagged edges, in insertion order, optionally into ``target_uid``."""
        seen: dict[str, None] = {}
        for edge in self._edges:
            if edge.tag == tag and (target_uid is None or edge.target_short_uid == target_uid):
                seen.setdefault(edge.source_short_uid, None)
        return list(seen)
