"""Canonical entities of the citation graph."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

UNTITLED = "Untitled"
UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_INSTITUTION = "Unknown Institution"


class RelationshipType(str, Enum):
    CITES = "cites"
    SIMILAR = "similar"


class RelationshipTag(str, Enum):
    """Provenance of a paper relative to the master paper."""

    FIRST_DEGREE = "1st_degree"
    SECOND_DEGREE = "2nd_degree"
    REFERENCED_BY_FIRST_DEGREE = "referenced_by_1st_degree"
    SIMILAR = "similar"


class AppState(str, Enum):
    """Session lifecycle states."""

    IDLE = "idle"
    LOADING = "loading"
    ENRICHING = "enriching"
    ACTIVE = "active"
    EXTENDING = "extending"
    ERROR = "error"


class Paper(BaseModel):
    short_uid: str
    title: str = UNTITLED
    publication_year: Optional[int] = None
    publication_date: Optional[str] = None
    location: Optional[str] = None  # venue name
    abstract: Optional[str] = None
    fwci: Optional[float] = None
    cited_by_count: int = 0
    type: Optional[str] = None
    language: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    best_oa_url: Optional[str] = None
    oa_status: Optional[str] = None
    is_stub: bool = True
    relationship_tags: list[str] = Field(default_factory=list)  # ordered, unique


class Author(BaseModel):
    short_uid: str
    clean_name: str = UNKNOWN_AUTHOR
    orcid: Optional[str] = None
    is_stub: bool = True


class Institution(BaseModel):
    short_uid: str
    ror_id: Optional[str] = None
    display_name: str = UNKNOWN_INSTITUTION
    country_code: Optional[str] = None
    type: Optional[str] = None


class Authorship(BaseModel):
    paper_short_uid: str
    author_short_uid: str
    author_position: int
    is_corresponding: bool = False
    raw_author_name: Optional[str] = None
    institution_uids: list[str] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return authorship_key(self.paper_short_uid, self.author_short_uid)


class PaperRelationship(BaseModel):
    source_short_uid: str
    target_short_uid: str
    relationship_type: RelationshipType
    tag: Optional[RelationshipTag] = None

    @property
    def key(self) -> str:
        return relationship_key(
            self.source_short_uid, self.relationship_type, self.target_short_uid
        )


def authorship_key(paper_uid: str, author_uid: str) -> str:
    return f"{paper_uid}_{author_uid}"


def relationship_key(source_uid: str, relationship_type: RelationshipType, target_uid: str) -> str:
    return f"{source_uid}|{RelationshipType(relationship_type).value}|{target_uid}"


_PLACEHOLDERS = frozenset({"", UNTITLED, UNKNOWN_AUTHOR, UNKNOWN_INSTITUTION})


def is_empty_value(value) -> bool:
    """Placeholder-aware emptiness used by monotonic merges (0 counts as empty)."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _PLACEHOLDERS
    if isinstance(value, (list, dict, set)):
        return not value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False
