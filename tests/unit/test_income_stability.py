"""Unit tests for income stability analysis"""

import pytest

from veritas_engine.domain.income_stability import (
    calculate_income_stability,
    calculate_interval_stats,
    calculate_intervals,
    calculate_stability_score,
    interpret_stability_score,
)
from veritas_engine.domain.models import IntervalStats, StabilityLevel
from veritas_engine.domain.thresholds import IncomeStabilityThresholds


def test_biweekly_payroll_is_very_stable(make_transaction):
    """Identical 14-day gaps sit exactly on a pay cycle"""
    transactions = [make_transaction(2000, "Payroll direct dep", day=i * 14) for i in range(6)]

    result = calculate_income_stability(transactions)

    assert result.stability_score == 100
    assert result.interpretation.level == StabilityLevel.VERY_STABLE
    assert result.intervals == (14, 14, 14, 14, 14)
    assert result.income_transaction_count == 6
    assert result.average_income_amount == 2000.0
    assert result.stability_ratio == 1.0


def test_irregular_income_scores_lower(make_transaction):
    """
    Gaps 7, 30, 14: mean 17, sample std 11.79.
    base 100 - 69.35 = 30.65, +8 near a 15-day cycle, +0 consistency, +2 data → 41
    """
    days = [0, 7, 37, 51]
    transactions = [make_transaction(1500, "Freelance income", day=d) for d in days]

    result = calculate_income_stability(transactions)

    assert result.interval_stats.mean == 17.0
    assert result.interval_stats.standard_deviation == 11.79
    assert result.stability_score == 41
    assert result.interpretation.level == StabilityLevel.MODERATE


def test_single_income_is_insufficient(make_transaction):
    """One income deposit cannot produce an interval"""
    result = calculate_income_stability([make_transaction(2000, "Salary")])

    assert result.stability_score == 0
    assert result.interpretation.level == StabilityLevel.INSUFFICIENT_DATA
    assert not result.has_sufficient_data


def test_long_gaps_are_dropped_as_anomalies(make_transaction):
    """A gap over 45 days is discarded, leaving too few intervals"""
    transactions = [
        make_transaction(2000, "Salary", day=0),
        make_transaction(2000, "Salary", day=14),
        make_transaction(2000, "Salary", day=91),
    ]

    result = calculate_income_stability(transactions)

    assert result.interpretation.level == StabilityLevel.INSUFFICIENT_DATA


def test_small_and_non_income_credits_are_ignored(make_transaction):
    """Credits under $50 or without an income keyword are not income"""
    transactions = [
        make_transaction(20, "Salary", day=0),
        make_transaction(5000, "Sale of car", day=14),
        make_transaction(-2000, "Payroll reversal", day=28),
    ]

    result = calculate_income_stability(transactions)

    assert result.income_transaction_count == 0
    assert result.interpretation.level == StabilityLevel.INSUFFICIENT_DATA


def test_same_day_income_gaps_are_dropped(make_transaction):
    """Two deposits on one day produce no interval"""
    income = [
        make_transaction(1000, "Payroll", day=0),
        make_transaction(1000, "Payroll", day=0),
        make_transaction(1000, "Payroll", day=14),
    ]

    assert calculate_intervals(income, 45) == [14]


def test_interval_stats():
    """Sample variance over the gaps"""
    stats = calculate_interval_stats([10, 20, 30])

    assert stats.mean == 20.0
    assert stats.variance == 100.0
    assert stats.standard_deviation == 10.0
    assert stats.median == 20
    assert stats.min == 10
    assert stats.max == 30
    assert stats.count == 3


def test_stability_score_formula():
    """cv 0.5 → base 50, +10 on a 30-day cycle, +0 consistency, +2 data"""
    stats = IntervalStats(mean=30.0, standard_deviation=15.0, count=3)

    assert calculate_stability_score(stats, IncomeStabilityThresholds()) == 62


def test_stability_score_is_capped_at_100():
    """Bonuses never push the score past 100"""
    stats = IntervalStats(mean=14.0, standard_deviation=0.0, count=10)

    assert calculate_stability_score(stats, IncomeStabilityThresholds()) == 100


@pytest.mark.parametrize(
    "score,level",
    [
        (85, StabilityLevel.VERY_STABLE),
        (80, StabilityLevel.VERY_STABLE),
        (65, StabilityLevel.STABLE),
        (45, StabilityLevel.MODERATE),
        (25, StabilityLevel.UNSTABLE),
        (5, StabilityLevel.VERY_UNSTABLE),
    ],
)
def test_interpretation_levels(score, level):
    """Level bands at 80/60/40/20"""
    assert interpret_stability_score(score).level == level
