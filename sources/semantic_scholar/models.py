"""Pydantic data models for Semantic Scholar Graph API payloads."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _SemanticScholarModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SemanticScholarAuthor(_SemanticScholarModel):
    author_id: Optional[str] = Field(default=None, alias="authorId")
    name: Optional[str] = None


class SemanticScholarOpenAccessPdf(_SemanticScholarModel):
    url: Optional[str] = None


class SemanticScholarPaper(_SemanticScholarModel):
    """A citing or cited paper as returned inside citation/reference lists."""

    paper_id: Optional[str] = Field(default=None, alias="paperId")
    corpus_id: Optional[int] = Field(default=None, alias="corpusId")
    external_ids: dict[str, Optional[str | int]] = Field(default_factory=dict, alias="externalIds")
    url: Optional[str] = None
    title: Optional[str] = None
    abstract: Optional[str] = None
    venue: Optional[str] = None
    year: Optional[int] = None
    citation_count: Optional[int] = Field(default=None, alias="citationCount")
    open_access_pdf: Optional[SemanticScholarOpenAccessPdf] = Field(
        default=None, alias="openAccessPdf"
    )
    authors: list[SemanticScholarAuthor] = Field(default_factory=list)

    @property
    def doi(self) -> Optional[str]:
        value = self.external_ids.get("DOI")
        return str(value) if value else None

    @property
    def oa_pdf_url(self) -> Optional[str]:
        return self.open_access_pdf.url if self.open_access_pdf else None


class SemanticScholarCitation(_SemanticScholarModel):
    """Item of /paper/{id}/citations."""

    citing_paper: Optional[SemanticScholarPaper] = Field(default=None, alias="citingPaper")


class SemanticScholarReference(_SemanticScholarModel):
    """Item of /paper/{id}/references."""

    cited_paper: Optional[SemanticScholarPaper] = Field(default=None, alias="citedPaper")


class SemanticScholarListPage(_SemanticScholarModel):
    offset: Optional[int] = None
    next: Optional[int] = None
    data: list[dict] = Field(default_factory=list)


class SemanticScholarPaperDetails(SemanticScholarPaper):
    """Base record plus fully paginated citation and reference lists."""

    citations: list[SemanticScholarPaper] = Field(default_factory=list)
    references: list[SemanticScholarPaper] = Field(default_factory=list)
