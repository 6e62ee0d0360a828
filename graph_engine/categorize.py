"""Partition citing papers by their distance from the master paper."""

from dataclasses import dataclass, field

from .state import GraphSnapshot
from .types import Paper, RelationshipTag, RelationshipType


@dataclass
class CategorizedCitations:
    first_degree: list[Paper] = field(default_factory=list)
    second_degree: list[Paper] = field(default_factory=list)
    referenced_by_first_degree: list[Paper] = field(default_factory=list)


def categorize_citations(snapshot: GraphSnapshot) -> CategorizedCitations:
    """Group non-stub papers (master excluded) into citation categories.

    - first degree: papers with a ``cites`` edge into the master
    - second degree: papers with a ``cites`` edge into a first-degree paper
    - referenced by first degree: targets of ``cites`` edges from first-degree
      papers, or of edges tagged ``referenced_by_1st_degree``; first-degree
      papers themselves are excluded
    """
    master_uid = snapshot.master_paper_uid
    candidates = [
        paper
        for uid, paper in snapshot.papers.items()
        if not paper.is_stub and uid != master_uid
    ]
    cites = [r for r in snapshot.relationships if r.relationship_type == RelationshipType.CITES]

    first_degree_uids = {r.source_short_uid for r in cites if r.target_short_uid == master_uid}
    second_degree_uids = {
        r.source_short_uid
        for r in cites
        if r.target_short_uid in first_degree_uids and r.source_short_uid != master_uid
    }
    referenced_uids = {
        r.target_short_uid
        for r in snapshot.relationships
        if (r.relationship_type == RelationshipType.CITES and r.source_short_uid in first_degree_uids)
        or r.tag == RelationshipTag.REFERENCED_BY_FIRST_DEGREE
    }
    # A referenced_by_1st_degree edge points at the master; its source is the co-cited paper
    referenced_uids |= {
        r.source_short_uid
        for r in snapshot.relationships
        if r.tag == RelationshipTag.REFERENCED_BY_FIRST_DEGREE
    }

    return CategorizedCitations(
        first_degree=[p for p in candidates if p.short_uid in first_degree_uids],
        second_degree=[p for p in candidates if p.short_uid in second_degree_uids],
        referenced_by_first_degree=[
            p
            for p in candidates
            if p.short_uid in referenced_uids and p.short_uid not in first_degree_uids
        ],
    )
