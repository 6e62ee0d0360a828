"""OpenAlex source adapter (primary provider)."""

from .client import OpenAlexClient, get_openalex_client
from .models import (
    OpenAlexAuthor,
    OpenAlexAuthorship,
    OpenAlexInstitution,
    OpenAlexPage,
    OpenAlexWork,
)
from .parsing import extract_keywords, parse_work, reconstruct_abstract
from .queries import FIELD_SELECTIONS, FieldSet

__all__ = [
    "OpenAlexClient",
    "get_openalex_client",
    "OpenAlexAuthor",
    "OpenAlexAuthorship",
    "OpenAlexInstitution",
    "OpenAlexPage",
    "OpenAlexWork",
    "extract_keywords",
    "parse_work",
    "reconstruct_abstract",
    "FIELD_SELECTIONS",
    "FieldSet",
]
