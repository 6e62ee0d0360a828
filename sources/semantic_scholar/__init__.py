"""Semantic Scholar source adapter (secondary provider)."""

from .client import SemanticScholarClient, get_semantic_scholar_client
from .models import (
    SemanticScholarAuthor,
    SemanticScholarPaper,
    SemanticScholarPaperDetails,
)

__all__ = [
    "SemanticScholarClient",
    "get_semantic_scholar_client",
    "SemanticScholarAuthor",
    "SemanticScholarPaper",
    "SemanticScholarPaperDetails",
]
