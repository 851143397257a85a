"""Veritas Score synthesis - combines a metrics bundle into one bounded credit score"""

import math
from typing import Dict

from veritas_engine.domain.models import BusinessMetrics, IncomeStability, MetricsBundle, RiskLevel, Score
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig, ScoreWeights


def calculate_nsf_impact(nsf_count: int, weights: ScoreWeights) -> float:
    """-50 points per NSF event, capped at -150"""
    return -min(nsf_count * weights.nsf_penalty, weights.nsf_penalty_cap)


def calculate_balance_impact(average_daily_balance: float, lowest_balance: float, weights: ScoreWeights) -> float:
    """
    Reward balance cushion relative to a $5,000 reference, up to +100.

    Hard floors: -100 when the average balance is not positive, -50 when the
    balance ever went negative.
    """
    if average_daily_balance <= 0:
        return weights.non_positive_balance_impact
    if lowest_balance < 0:
        return weights.negative_minimum_impact

    balance_score = min(weights.max_balance_impact, average_daily_balance / weights.reference_balance * 100)
    return float(math.floor(balance_score))


def calculate_stability_impact(income: IncomeStability, weights: ScoreWeights) -> float:
    """Centered on a neutral stability of 50: -50 (erratic or unknown) to +50 (clockwork)"""
    return float(math.floor(income.stability_score - weights.neutral_stability))


def calculate_transaction_impact(transaction_count: int, weights: ScoreWeights) -> float:
    """Small bonus for a statistically meaningful ledger: count/2, capped at +50"""
    if transaction_count < weights.min_transactions_for_bonus:
        return 0.0
    return float(min(weights.transaction_bonus_cap, transaction_count // 2))


def calculate_business_impact(business: BusinessMetrics, weights: ScoreWeights) -> float:
    """Profit ratio of business-platform activity as points, within +/-50"""
    profit_ratio = business.profit_ratio
    if not business.has_business_activity or profit_ratio is None:
        return 0.0
    cap = weights.business_bonus_cap
    return float(math.floor(max(-cap, min(cap, profit_ratio * 100))))


def determine_risk_level(score: float, weights: ScoreWeights) -> RiskLevel:
    """
    Map score to a risk tier.

    Score bands (inclusive lower bounds):
    - 750+:      VERY_LOW
    - 650 - 750: LOW
    - 550 - 650: MEDIUM
    - 450 - 550: HIGH
    - below 450: VERY_HIGH
    """
    if score >= weights.very_low_risk_floor:
        return RiskLevel.VERY_LOW
    elif score >= weights.low_risk_floor:
        return RiskLevel.LOW
    elif score >= weights.medium_risk_floor:
        return RiskLevel.MEDIUM
    elif score >= weights.high_risk_floor:
        return RiskLevel.HIGH
    else:
        return RiskLevel.VERY_HIGH


def calculate_veritas_score(metrics: MetricsBundle, config: EngineConfig = DEFAULT_CONFIG) -> Score:
    """
    Calculate the Veritas Score from 300 (highest risk) to 850 (lowest risk).

    Starts at a 700 baseline and adds capped factor contributions:
    - NSF events:          down to -150
    - Average balance:     -100 .. +100
    - Income stability:    -50 .. +50
    - Transaction volume:  0 .. +50
    - Business activity:   -50 .. +50 (only when business activity was detected)

    The result is clamped to the scale so extreme ledgers can never escape it.
    """
    weights = config.score

    factors: Dict[str, float] = {
        "nsf_impact": calculate_nsf_impact(metrics.nsf_count, weights),
        "balance_impact": calculate_balance_impact(
            metrics.average_daily_balance, metrics.lowest_balance, weights
        ),
        "stability_impact": calculate_stability_impact(metrics.income_stability, weights),
        "transaction_impact": calculate_transaction_impact(metrics.transaction_count, weights),
        "business_impact": calculate_business_impact(metrics.business, weights),
    }

    raw_score = weights.baseline + sum(factors.values())
    value = max(weights.min_score, min(weights.max_score, raw_score))

    return Score(
        value=value,
        risk_level=determine_risk_level(value, weights),
        factor_breakdown=factors,
        min_value=weights.min_score,
        max_value=weights.max_score,
    )
