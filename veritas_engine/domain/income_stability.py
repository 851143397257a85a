"""Income stability analysis - regularity of income deposits over time"""

import logging
import math
import statistics
from typing import List, Sequence, Tuple

from veritas_engine.domain.models import (
    IncomeStability,
    IntervalStats,
    StabilityInterpretation,
    StabilityLevel,
    Transaction,
    parse_transactions,
)
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig, IncomeStabilityThresholds

logger = logging.getLogger(__name__)

# (inclusive floor, level, description, recommendation), highest first
_INTERPRETATIONS = (
    (
        80,
        StabilityLevel.VERY_STABLE,
        "Highly regular income pattern with minimal variation",
        "Excellent income stability for loan approval",
    ),
    (
        60,
        StabilityLevel.STABLE,
        "Generally consistent income pattern with some variation",
        "Good income stability for most financial products",
    ),
    (
        40,
        StabilityLevel.MODERATE,
        "Moderately stable income with noticeable variation",
        "Income stability may require additional verification",
    ),
    (
        20,
        StabilityLevel.UNSTABLE,
        "Irregular income pattern with significant variation",
        "Income stability concerns - consider additional documentation",
    ),
)


def filter_income_transactions(
    transactions: Sequence[Transaction], thresholds: IncomeStabilityThresholds
) -> List[Transaction]:
    """Credits above the income floor, dated, with an income keyword in the description"""
    return [
        t
        for t in transactions
        if t.amount is not None
        and t.amount >= thresholds.min_income_amount
        and t.date is not None
        and any(keyword in t.text for keyword in thresholds.income_keywords)
    ]


def calculate_intervals(sorted_income: Sequence[Transaction], max_interval_days: int) -> List[int]:
    """
    Day-gaps between consecutive income deposits.

    Same-day repeats and gaps longer than max_interval_days are treated as
    anomalies and dropped.
    """
    intervals = []
    for previous, current in zip(sorted_income, sorted_income[1:]):
        gap = (current.date - previous.date).days
        if 0 < gap <= max_interval_days:
            intervals.append(gap)
    return intervals


def calculate_interval_stats(intervals: Sequence[int]) -> IntervalStats:
    """Mean, sample variance, standard deviation, median and range of the gaps"""
    if not intervals:
        return IntervalStats()

    mean = statistics.fmean(intervals)
    variance = statistics.variance(intervals) if len(intervals) > 1 else 0.0

    return IntervalStats(
        mean=round(mean, 2),
        variance=round(variance, 2),
        standard_deviation=round(math.sqrt(variance), 2),
        median=statistics.median(intervals),
        min=min(intervals),
        max=max(intervals),
        count=len(intervals),
    )


def calculate_stability_score(stats: IntervalStats, thresholds: IncomeStabilityThresholds) -> int:
    """
    Score income regularity from 0 (erratic) to 100 (clockwork).

    Base: 100 - 100 * coefficient of variation, floored at 0.
    Bonuses:
    - up to +10 when the mean gap sits on a pay cycle (7, 14, 15, 30, 31 days)
    - up to +10 for a small absolute standard deviation
    - up to +5 for the number of observed gaps
    """
    if stats.count == 0 or stats.mean == 0:
        return 0

    coefficient_of_variation = stats.standard_deviation / stats.mean
    base_score = max(0.0, 100 - coefficient_of_variation * 100)

    closest_cycle = min(thresholds.pay_cycles, key=lambda cycle: abs(cycle - stats.mean))
    interval_bonus = max(0.0, thresholds.max_interval_bonus - abs(stats.mean - closest_cycle))
    consistency_bonus = max(0.0, thresholds.max_consistency_bonus - stats.standard_deviation)
    data_bonus = min(thresholds.max_data_bonus, stats.count - 1)

    return round(min(100.0, base_score + interval_bonus + consistency_bonus + data_bonus))


def interpret_stability_score(score: int) -> StabilityInterpretation:
    for floor, level, description, recommendation in _INTERPRETATIONS:
        if score >= floor:
            return StabilityInterpretation(level, description, recommendation)
    return StabilityInterpretation(
        StabilityLevel.VERY_UNSTABLE,
        "Highly irregular income pattern",
        "Significant income stability risks - thorough review required",
    )


def generate_recommendations(score: int, stats: IntervalStats) -> Tuple[str, ...]:
    recommendations = []

    if score < 40:
        recommendations.append("Consider requesting additional income documentation")
        recommendations.append("Review for alternative income sources")
    if stats.standard_deviation > 10:
        recommendations.append("High variability in income timing detected")
    if stats.count < 3:
        recommendations.append("Limited transaction history - consider longer analysis period")
    if stats.mean > 35:
        recommendations.append("Income frequency appears to be monthly or less frequent")
    elif stats.mean < 10:
        recommendations.append("Very frequent income deposits detected - may include non-salary income")

    if not recommendations:
        recommendations.append("Income stability analysis shows positive results")
    return tuple(recommendations)


def insufficient_data_result(reason: str) -> IncomeStability:
    """Neutral result used when there are too few income deposits to measure"""
    return IncomeStability(
        stability_score=0,
        interval_stats=IntervalStats(),
        interpretation=StabilityInterpretation(
            StabilityLevel.INSUFFICIENT_DATA,
            reason,
            "Unable to calculate stability score",
        ),
        recommendations=("Provide more transaction data for accurate analysis",),
    )


def calculate_income_stability(transactions, config: EngineConfig = DEFAULT_CONFIG) -> IncomeStability:
    """
    Measure how regularly income arrives.

    Fewer than two qualifying income deposits (or fewer than two usable gaps)
    yields an INSUFFICIENT_DATA result with score 0 rather than an error.
    """
    thresholds = config.income
    parsed = parse_transactions(transactions)

    income = sorted(filter_income_transactions(parsed, thresholds), key=lambda t: t.date)
    if len(income) < 2:
        return insufficient_data_result("Insufficient income transactions for analysis")

    intervals = calculate_intervals(income, thresholds.max_income_interval_days)
    if len(intervals) < 2:
        return insufficient_data_result("Insufficient intervals for stability calculation")

    stats = calculate_interval_stats(intervals)
    score = calculate_stability_score(stats, thresholds)
    total_income = sum(t.amount for t in income)

    logger.debug(
        "Income stability calculated",
        extra={
            "income_transaction_count": len(income),
            "interval_count": stats.count,
            "stability_score": score,
        },
    )

    return IncomeStability(
        stability_score=score,
        interval_stats=stats,
        interpretation=interpret_stability_score(score),
        intervals=tuple(intervals),
        income_transaction_count=len(income),
        total_income_amount=round(total_income, 2),
        average_income_amount=round(total_income / len(income), 2),
        recommendations=generate_recommendations(score, stats),
    )
