"""Unit tests for string similarity"""

import pytest

from veritas_engine.domain.similarity import levenshtein_distance, normalize_name, similarity_ratio


def test_levenshtein_distance():
    """Classic kitten/sitting example"""
    assert levenshtein_distance("kitten", "sitting") == 3


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("", "", 1.0),
        ("abc", "", 0.0),
        ("abc", "abc", 1.0),
        ("Apple Inc", "Apple Inc", 1.0),
        ("abc", "xyz", 0.0),
        ("abc", "abd", pytest.approx(2 / 3)),
        ("kitten", "sitting", pytest.approx(4 / 7)),
    ],
)
def test_similarity_ratio(a, b, expected):
    """(max_len - distance) / max_len"""
    assert similarity_ratio(a, b) == expected


def test_similarity_ratio_is_case_sensitive():
    """Normalization is the caller's job"""
    assert similarity_ratio("ABC", "abc") == 0.0


def test_similarity_ratio_treats_none_as_empty():
    assert similarity_ratio(None, None) == 1.0
    assert similarity_ratio("Acme", None) == 0.0


def test_normalize_name():
    """Collapse whitespace and fold case"""
    assert normalize_name("  Acme   Plumbing\tLLC ") == "acme plumbing llc"
    assert normalize_name(None) == ""
