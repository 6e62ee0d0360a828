"""Pydantic data models for OpenAlex work payloads.

Models mirror the subset of the OpenAlex schema requested through the
field sets in ``queries.FieldSet``. Unknown fields are ignored, and every
field is optional because the ``select=`` lists vary by call.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _OpenAlexModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OpenAlexInstitution(_OpenAlexModel):
    """Institution attached to an authorship."""

    id: Optional[str] = None
    display_name: Optional[str] = None
    ror: Optional[str] = None
    country_code: Optional[str] = None
    type: Optional[str] = None


class OpenAlexAuthor(_OpenAlexModel):
    """Author identity inside an authorship."""

    id: Optional[str] = None
    display_name: Optional[str] = None
    orcid: Optional[str] = None


class OpenAlexAuthorship(_OpenAlexModel):
    """One author's participation in a work."""

    author_position: Optional[str] = None  # first, middle, last
    is_corresponding: Optional[bool] = None
    raw_author_name: Optional[str] = None
    author: Optional[OpenAlexAuthor] = None
    institutions: list[OpenAlexInstitution] = Field(default_factory=list)


class OpenAlexSource(_OpenAlexModel):
    display_name: Optional[str] = None


class OpenAlexLocation(_OpenAlexModel):
    source: Optional[OpenAlexSource] = None
    pdf_url: Optional[str] = None
    landing_page_url: Optional[str] = None


class OpenAlexOpenAccess(_OpenAlexModel):
    is_oa: Optional[bool] = None
    oa_status: Optional[str] = None  # gold, green, hybrid, bronze, closed
    oa_url: Optional[str] = None


class OpenAlexKeyword(_OpenAlexModel):
    id: Optional[str] = None
    display_name: Optional[str] = None
    score: Optional[float] = None


class OpenAlexWork(_OpenAlexModel):
    """Individual academic work from OpenAlex."""

    id: Optional[str] = None
    ids: dict[str, str] = Field(default_factory=dict)
    doi: Optional[str] = None
    title: Optional[str] = None
    display_name: Optional[str] = None
    publication_year: Optional[int] = None
    publication_date: Optional[str] = None
    type: Optional[str] = None
    language: Optional[str] = None
    fwci: Optional[float] = None
    cited_by_count: Optional[int] = None
    authorships: list[OpenAlexAuthorship] = Field(default_factory=list)
    primary_location: Optional[OpenAlexLocation] = None
    best_oa_location: Optional[OpenAlexLocation] = None
    open_access: Optional[OpenAlexOpenAccess] = None
    keywords: list[OpenAlexKeyword] = Field(default_factory=list)
    abstract_inverted_index: Optional[dict[str, list[int]]] = None
    referenced_works: list[str] = Field(default_factory=list)
    related_works: list[str] = Field(default_factory=list)

    @property
    def best_title(self) -> Optional[str]:
        return self.title or self.display_name

    @property
    def venue(self) -> Optional[str]:
        if self.primary_location and self.primary_location.source:
            return self.primary_location.source.display_name
        return None


class OpenAlexMeta(_OpenAlexModel):
    count: Optional[int] = None
    per_page: Optional[int] = None
    next_cursor: Optional[str] = None


class OpenAlexPage(_OpenAlexModel):
    """One page of a /works list response (raw results, parsed lazily)."""

    meta: OpenAlexMeta = Field(default_factory=OpenAlexMeta)
    results: list[dict] = Field(default_factory=list)
