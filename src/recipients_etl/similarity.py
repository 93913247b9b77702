"""Edit-distance similarity between already-normalized strings."""
from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str, b: str) -> float:
    """Return 1 - distance / longest length, so identical strings score 1.0.

    Two empty strings are identical; an empty string against a non-empty one
    scores 0.0 through the same formula.
    """
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b), 1)
    return 1.0 - levenshtein_distance(a, b) / longest
