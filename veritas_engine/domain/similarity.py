"""Edit-distance similarity for fuzzy comparison of free-text names"""

from typing import Optional

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: Optional[str], b: Optional[str]) -> int:
    """Minimum number of single-character insertions, deletions or substitutions"""
    return Levenshtein.distance(a or "", b or "")


def similarity_ratio(a: Optional[str], b: Optional[str]) -> float:
    """
    Normalized similarity between two strings, from 0.0 to 1.0.

    ratio = (max_len - levenshtein_distance) / max_len

    Comparison is case-sensitive on the strings exactly as given; callers
    normalize first if they need to. Two empty strings are identical (1.0).
    None is treated as an empty string.
    """
    a = a or ""
    b = b or ""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(a, b)) / max_len


def normalize_name(name: Optional[str]) -> str:
    """Case-fold and collapse whitespace so cosmetic differences do not count"""
    return " ".join((name or "").split()).casefold()
