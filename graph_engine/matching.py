"""Fuzzy author-name matching for reconciliation."""

import re
from difflib import SequenceMatcher

DEFAULT_LAST_NAME_GATE = 0.9
DEFAULT_INITIAL_BOOST = 1.15

NAME_PARTICLES = {
    "von",
    "van",
    "de",
    "der",
    "den",
    "la",
    "le",
    "di",
    "da",
    "dos",
    "das",
    "del",
    "della",
    "lo",
    "el",
    "al",
    "bin",
    "ibn",
    "af",
    "zu",
    "ter",
    "ten",
}


def normalize_name(name: str) -> str:
    """Lowercase, drop periods, collapse whitespace; "Last, First" -> "first last"."""
    name = (name or "").strip()
    if "," in name:
        last, _, first = name.partition(",")
        name = f"{first} {last}"
    name = name.lower().replace(".", " ")
    return re.sub(r"\s+", " ", name).strip()


def split_name(normalized: str) -> tuple[str, str]:
    """Split a normalized name into (first, last); particles stay with the last name.

    - "john smith" -> ("john", "smith")
    - "j r r tolkien" -> ("j", "tolkien")
    - "ludwig van beethoven" -> ("ludwig", "van beethoven")
    - "plato" -> ("", "plato")
    """
    parts = normalized.split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return "", parts[0]

    last_start = len(parts) - 1
    while last_start > 1 and parts[last_start - 1] in NAME_PARTICLES:
        last_start -= 1

    return parts[0], " ".join(parts[last_start:])


def string_similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1]."""
    if not a and not b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def calculate_match_score(
    stub_name: str,
    candidate_name: str,
    last_name_gate: float = DEFAULT_LAST_NAME_GATE,
    initial_boost: float = DEFAULT_INITIAL_BOOST,
) -> float:
    """Score how likely two author names denote the same person.

    Identical normalized names score 1.0. Otherwise last names must be at
    least ``last_name_gate`` similar (else 0.0), the score is the full-name
    similarity, and a stub first name that is a single initial matching the
    candidate's initial multiplies the score by ``initial_boost`` (capped
    at 1.0). Handles "J. Smith" vs "John Smith".
    """
    stub = normalize_name(stub_name)
    candidate = normalize_name(candidate_name)
    if not stub or not candidate:
        return 0.0
    if stub == candidate:
        return 1.0

    stub_first, stub_last = split_name(stub)
    cand_first, cand_last = split_name(candidate)
    if string_similarity(stub_last, cand_last) < last_name_gate:
        return 0.0

    score = string_similarity(stub, candidate)
    if len(stub_first) == 1 and cand_first and cand_first[0] == stub_first:
        score = min(1.0, score * initial_boost)
    return score
