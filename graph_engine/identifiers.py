"""External identifier namespaces, normalization and internal uid minting.

Index keys are ``"<namespace>:<value>"`` with values normalized to bare
tokens: no URL prefixes are ever stored.
"""

import random
import re
import string
from enum import Enum
from typing import Optional


class Namespace(str, Enum):
    """External identifier namespaces understood by the index."""

    OPENALEX = "openalex"
    DOI = "doi"
    SS = "ss"
    CORPUS_ID = "corpusId"
    OPENALEX_AUTHOR = "openalex_author"
    ORCID = "orcid"
    OPENALEX_INSTITUTION = "openalex_institution"
    ROR = "ror"
    SS_AUTHOR = "ss_author"


class EntityKind(str, Enum):
    PAPER = "paper"
    AUTHOR = "author"
    INSTITUTION = "institution"


UID_PREFIXES = {
    EntityKind.PAPER: "p_",
    EntityKind.AUTHOR: "a_",
    EntityKind.INSTITUTION: "i_",
}

# Namespaces whose keys point at each entity kind (used by exports)
NAMESPACE_KINDS = {
    Namespace.OPENALEX: EntityKind.PAPER,
    Namespace.DOI: EntityKind.PAPER,
    Namespace.SS: EntityKind.PAPER,
    Namespace.CORPUS_ID: EntityKind.PAPER,
    Namespace.OPENALEX_AUTHOR: EntityKind.AUTHOR,
    Namespace.ORCID: EntityKind.AUTHOR,
    Namespace.SS_AUTHOR: EntityKind.AUTHOR,
    Namespace.OPENALEX_INSTITUTION: EntityKind.INSTITUTION,
    Namespace.ROR: EntityKind.INSTITUTION,
}

_UID_ALPHABET = string.digits + string.ascii_lowercase
_UID_LENGTH = 9

_DOI_PATTERN = re.compile(r"(10\.\d{4,9}/\S+)", re.IGNORECASE)


def normalize_doi(value: Optional[str]) -> Optional[str]:
    """Bare, lower-cased DOI (``10.1234/abc``), or None if ``value`` holds none.

    Accepts ``https://doi.org/...``, ``http://dx.doi.org/...`` and ``doi:...``.
    """
    if not value:
        return None
    match = _DOI_PATTERN.search(value.strip())
    if not match:
        return None
    return match.group(1).lower()


def _last_path_segment(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    token = value.strip().rstrip("/").split("/")[-1]
    return token or None


def normalize_openalex_id(value: Optional[str]) -> Optional[str]:
    """``https://openalex.org/W123`` -> ``W123``; works for A/I ids too."""
    token = _last_path_segment(value)
    return token.upper() if token else None


def normalize_orcid(value: Optional[str]) -> Optional[str]:
    """``https://orcid.org/0000-0002-1825-0097`` -> ``0000-0002-1825-0097``."""
    token = _last_path_segment(value)
    return token.upper() if token else None


def normalize_ror(value: Optional[str]) -> Optional[str]:
    """``https://ror.org/03vek6s52`` -> ``03vek6s52``."""
    token = _last_path_segment(value)
    return token.lower() if token else None


def index_key(namespace: Namespace | str, value: str) -> str:
    ns = namespace.value if isinstance(namespace, Namespace) else namespace
    return f"{ns}:{value}"


def split_index_key(key: str) -> tuple[str, str]:
    """Inverse of ``index_key``; values may themselves contain colons."""
    namespace, _, value = key.partition(":")
    return namespace, value


def generate_short_uid(kind: EntityKind) -> str:
    """Random kind-prefixed uid, e.g. ``p_k3j9x0q2m``."""
    suffix = "".join(random.choices(_UID_ALPHABET, k=_UID_LENGTH))
    return f"{UID_PREFIXES[kind]}{suffix}"
