"""Versioned, read-only thresholds, weights and keyword sets for the engine.

Every public function in the domain layer accepts an ``EngineConfig``
(defaulting to ``DEFAULT_CONFIG``) instead of reading module globals, so a
caller can evaluate a statement against an alternative rule set without
touching shared state.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


@dataclass(frozen=True)
class MetricsThresholds:
    """Keyword sets used while deriving metrics from raw transactions"""

    nsf_keywords: Tuple[str, ...] = (
        "nsf",
        "insufficient",
        "non-sufficient",
        "overdraft",
        "overdraw",
        "returned check",
        "returned item",
        "returned deposit",
        "bounce",
        "unavailable funds",
        "return fee",
        "chargeback",
        "dishonored",
        "refer to maker",
        "reject",
        "decline",
        "reversal",
        "unpaid",
    )
    business_keywords: Tuple[str, ...] = ("paypal", "square", "stripe", "shopify", "vendor", "inventory")
    business_categories: FrozenSet[str] = frozenset({"business", "business income", "business expense"})


@dataclass(frozen=True)
class IncomeStabilityThresholds:
    """Filters and bonuses for the interval-based stability score"""

    income_keywords: Tuple[str, ...] = (
        "payroll",
        "salary",
        "wage",
        "direct dep",
        "deposit",
        "paycheck",
        "income",
        "earnings",
        "compensation",
        "stipend",
        "pension",
        "retirement",
        "social security",
        "unemployment",
        "benefits",
        "freelance",
        "contractor",
        "commission",
        "bonus",
        "overtime",
        "transfer from",
        "ach credit",
        "wire transfer",
        "govt payment",
        "refund",
    )
    min_income_amount: float = 50.0
    max_income_interval_days: int = 45
    pay_cycles: Tuple[int, ...] = (7, 14, 15, 30, 31)
    max_interval_bonus: float = 10.0
    max_consistency_bonus: float = 10.0
    max_data_bonus: float = 5.0


@dataclass(frozen=True)
class ScoreWeights:
    """Baseline, per-factor weights and caps for the Veritas Score (300-850 scale)"""

    min_score: float = 300.0
    max_score: float = 850.0
    baseline: float = 700.0

    nsf_penalty: float = 50.0
    nsf_penalty_cap: float = 150.0

    reference_balance: float = 5000.0
    max_balance_impact: float = 100.0
    non_positive_balance_impact: float = -100.0
    negative_minimum_impact: float = -50.0

    neutral_stability: float = 50.0

    min_transactions_for_bonus: int = 5
    transaction_bonus_cap: float = 50.0

    business_bonus_cap: float = 50.0

    # Inclusive lower bounds, highest first
    very_low_risk_floor: float = 750.0
    low_risk_floor: float = 650.0
    medium_risk_floor: float = 550.0
    high_risk_floor: float = 450.0


@dataclass(frozen=True)
class AlertThresholds:
    """Trigger points for every alert rule"""

    nsf_count: int = 3
    low_average_balance: float = 500.0

    velocity_medium: float = 2.0
    velocity_high: float = 3.5
    velocity_critical: float = 5.0

    stability_low: float = 70.0
    stability_medium: float = 55.0
    stability_high: float = 40.0

    negative_cash_flow_high: float = 5000.0
    withdrawal_ratio_medium: float = 0.9
    withdrawal_ratio_high: float = 1.1

    large_deposit: float = 10_000.0
    large_deposit_total_high: float = 50_000.0
    large_deposit_count_high: int = 3
    structuring_floor: float = 9_000.0
    structuring_ceiling: float = 10_000.0
    structuring_min_count: int = 2

    cash_keyword: str = "cash"
    large_cash_withdrawal: float = 2_000.0
    cash_total_high: float = 15_000.0
    cash_count_high: int = 3
    cash_total_critical: float = 25_000.0
    cash_count_critical: int = 5
    atm_keywords: Tuple[str, ...] = ("atm", "withdrawal")
    atm_count: int = 20

    # Credit quality bands on the 0-100 view of the Veritas Score
    credit_quality_critical: float = 30.0
    credit_quality_high: float = 50.0
    credit_quality_medium: float = 70.0

    high_volume: float = 100_000.0

    name_inconsistency_similarity: float = 0.6
    min_transactions: int = 30
    required_application_fields: Tuple[Tuple[str, str], ...] = (
        ("business_name", "business name"),
        ("industry", "industry"),
        ("requested_amount", "requested amount"),
    )

    round_amount_unit: float = 100.0
    round_amount_floor: float = 1_000.0
    round_amount_share: float = 0.3
    weekend_share: float = 0.2

    debt_service_rate: float = 0.1
    debt_service_medium: float = 0.4
    debt_service_high: float = 0.6
    debt_service_critical: float = 0.8

    high_risk_industries: Tuple[str, ...] = (
        "cannabis",
        "marijuana",
        "adult entertainment",
        "gambling",
        "cryptocurrency",
        "money services",
        "pawn shop",
        "check cashing",
        "payday lending",
    )
    cash_intensive_industries: Tuple[str, ...] = (
        "restaurant",
        "retail",
        "convenience store",
        "gas station",
        "bar",
        "nightclub",
    )
    cash_intensive_velocity: float = 4.0

    nsf_spread: int = 3
    balance_deviation: float = 0.5
    multi_account_risk_score: float = 70.0

    revenue_discrepancy_pct: float = 20.0

    name_match_similarity: float = 0.8
    new_business_months: float = 6.0
    days_per_month: float = 30.0
    time_in_business_months: int = 3


@dataclass(frozen=True)
class EngineConfig:
    """Complete, immutable configuration for one engine evaluation"""

    version: str = "2024.1"
    metrics: MetricsThresholds = field(default_factory=MetricsThresholds)
    income: IncomeStabilityThresholds = field(default_factory=IncomeStabilityThresholds)
    score: ScoreWeights = field(default_factory=ScoreWeights)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)


DEFAULT_CONFIG = EngineConfig()
