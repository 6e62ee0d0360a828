"""Data transformation functions for OpenAlex."""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from sources.errors import SourceParseError

from .models import OpenAlexWork

logger = logging.getLogger(__name__)


def reconstruct_abstract(inverted_index: Optional[dict[str, list[int]]]) -> Optional[str]:
    """Reconstruct abstract from OpenAlex inverted index format."""
    if not inverted_index:
        return None

    # Build word->position mapping
    words_with_positions = []
    for word, positions in inverted_index.items():
        for pos in positions:
            words_with_positions.append((pos, word))

    # Sort by position and join
    words_with_positions.sort(key=lambda x: x[0])
    return " ".join(word for _, word in words_with_positions) or None


def extract_keywords(work: OpenAlexWork) -> list[str]:
    """Keyword display names in API order, skipping blanks."""
    return [kw.display_name for kw in work.keywords if kw.display_name]


def parse_work(raw: dict) -> OpenAlexWork:
    """Parse an OpenAlex work response into our model."""
    try:
        return OpenAlexWork.model_validate(raw)
    except ValidationError as e:
        raise SourceParseError(f"Malformed OpenAlex work: {e}", provider="openalex") from e


def parse_works(raw_works: Iterable[dict], context: str) -> list[OpenAlexWork]:
    """Parse a list of works, logging and skipping malformed entries."""
    results = []
    for raw in raw_works:
        try:
            results.append(parse_work(raw))
        except SourceParseError as e:
            logger.warning(f"Failed to parse {context} work {raw.get('id', '?')}: {e}")
            continue
    return results
