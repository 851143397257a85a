"""
Alert rules - independent, side-effect-free checks that each return one Alert or None.

Rules never raise on missing optional data: an absent metrics bundle, score,
application or verification record simply means the rule does not fire.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from veritas_engine.domain.alerts.catalog import Alert, AlertCode, Severity
from veritas_engine.domain.models import (
    ApplicationRecord,
    MetricsBundle,
    Score,
    StatementAnalysis,
    Transaction,
    VerificationRecord,
)
from veritas_engine.domain.similarity import normalize_name, similarity_ratio
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig
from veritas_engine.utils.date_utils import calendar_months_between, is_weekend

logger = logging.getLogger(__name__)


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _credits(transactions: Sequence[Transaction]):
    return [t for t in transactions or () if t.is_credit]


def _debits(transactions: Sequence[Transaction]):
    return [t for t in transactions or () if t.is_debit]


# --- Single-statement rules -------------------------------------------------


def check_nsf_count(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """HIGH when the statement shows 3 or more NSF events"""
    threshold = config.alerts.nsf_count
    if metrics is None or metrics.nsf_count < threshold:
        return None

    nsf_count = metrics.nsf_count
    return Alert(
        code=AlertCode.HIGH_NSF_COUNT,
        severity=Severity.HIGH,
        title="High NSF Count Detected",
        message=f"Account has {nsf_count} Non-Sufficient Funds incidents, indicating potential cash flow issues.",
        recommendation="Review account management practices and consider overdraft protection to prevent future NSF incidents.",
        data={
            "nsf_count": nsf_count,
            "threshold": threshold,
            "total_nsf_fees": metrics.nsf_total,
            "average_fee_amount": round(metrics.nsf_total / nsf_count, 2),
            "nsf_transactions": [
                {"date": t.date.isoformat() if t.date else None, "amount": t.amount, "description": t.description}
                for t in metrics.nsf_transactions
            ],
        },
    )


def check_low_average_balance(
    metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM when the average daily balance is under $500"""
    threshold = config.alerts.low_average_balance
    if metrics is None or metrics.average_daily_balance >= threshold:
        return None

    average = metrics.average_daily_balance
    return Alert(
        code=AlertCode.LOW_AVERAGE_BALANCE,
        severity=Severity.MEDIUM,
        title="Low Average Daily Balance",
        message=f"Average daily balance of {_money(average)} is below the recommended minimum of {_money(threshold)}.",
        recommendation="Consider strategies to increase account balance such as automatic savings transfers or budget adjustments to maintain higher cash reserves.",
        data={
            "average_daily_balance": average,
            "threshold": threshold,
            "shortfall": round(threshold - average, 2),
            "minimum_balance": metrics.lowest_balance,
            "balance_category": "VERY_LOW" if average < 100 else "LOW",
            "period_days": metrics.period_days,
        },
    )


@dataclass(frozen=True)
class NegativeBalanceSignal:
    """Outcome of combining every available negative-balance signal"""

    detected: bool
    negative_day_count: int = 0
    worst_balance: Optional[float] = None
    source: Optional[str] = None


def detect_negative_balance(
    negative_balance_days: Optional[Sequence[date]],
    lowest_balance: Optional[float],
    has_negative_balance: Optional[bool],
) -> NegativeBalanceSignal:
    """
    One detector over three alternative signals for the same condition.

    The detail reported is the most informative available: the negative day
    count when days were tracked, else the magnitude of the negative minimum.
    """
    day_count = len(negative_balance_days or ())
    worst = lowest_balance if lowest_balance is not None and lowest_balance < 0 else None

    if day_count > 0:
        return NegativeBalanceSignal(True, day_count, worst, "negative_days")
    if worst is not None:
        return NegativeBalanceSignal(True, 0, worst, "minimum_balance")
    if has_negative_balance:
        return NegativeBalanceSignal(True, 0, None, "reported_flag")
    return NegativeBalanceSignal(False)


def check_negative_balance(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """CRITICAL when the account went below zero by any available signal"""
    if metrics is None:
        return None

    signal = detect_negative_balance(
        metrics.negative_balance_days, metrics.lowest_balance, metrics.has_negative_balance
    )
    if not signal.detected:
        return None

    if signal.negative_day_count > 0:
        message = f"Account had negative balances for {signal.negative_day_count} day(s), indicating severe cash flow issues."
    elif signal.worst_balance is not None:
        message = f"Account experienced negative balance periods (minimum balance: {_money(signal.worst_balance)}), indicating severe cash flow issues."
    else:
        message = "Statement reports negative balance periods, indicating severe cash flow issues."

    return Alert(
        code=AlertCode.NEGATIVE_BALANCE_DAYS,
        severity=Severity.CRITICAL,
        title="Negative Balance Detected",
        message=message,
        recommendation="Immediate attention required. Review all transactions, consider overdraft protection, and implement strict budget controls to prevent future overdrafts.",
        data={
            "negative_day_count": signal.negative_day_count,
            "negative_days": [d.isoformat() for d in metrics.negative_balance_days[:10]],
            "minimum_balance": signal.worst_balance,
            "overdraft_amount": abs(signal.worst_balance) if signal.worst_balance is not None else 0.0,
            "detected_by": signal.source,
            "total_days_analyzed": metrics.period_days,
        },
    )


def check_velocity_ratio(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """MEDIUM above 2.0, HIGH above 3.5, CRITICAL above 5.0"""
    thresholds = config.alerts
    velocity = metrics.cash_flow.velocity_ratio if metrics is not None else None
    if velocity is None or velocity <= thresholds.velocity_medium:
        return None

    if velocity > thresholds.velocity_critical:
        severity = Severity.CRITICAL
        message = f"Extremely high velocity ratio: {velocity:.2f} suggests potential money laundering"
    elif velocity > thresholds.velocity_high:
        severity = Severity.HIGH
        message = f"Very high velocity ratio: {velocity:.2f} indicates unusual activity"
    else:
        severity = Severity.MEDIUM
        message = f"Velocity ratio of {velocity:.2f} indicates high transaction turnover"

    return Alert(
        code=AlertCode.HIGH_VELOCITY_RATIO,
        severity=severity,
        title="High Transaction Velocity",
        message=message,
        recommendation="Review the source and purpose of deposits relative to the balances maintained.",
        data={
            "velocity_ratio": velocity,
            "total_deposits": metrics.total_deposits,
            "average_daily_balance": metrics.average_daily_balance,
            "benchmark_ratio": thresholds.velocity_medium,
        },
    )


def check_income_stability(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """LOW under 70, MEDIUM under 55, HIGH under 40; unmeasurable income scores 0 and lands in HIGH"""
    thresholds = config.alerts
    if metrics is None:
        return None

    income = metrics.income_stability
    score = income.stability_score
    if score >= thresholds.stability_low:
        return None

    if score < thresholds.stability_high:
        severity = Severity.HIGH
        message = f"Very low income stability: Score {score} indicates highly irregular income"
    elif score < thresholds.stability_medium:
        severity = Severity.MEDIUM
        message = f"Low income stability: Score {score} suggests income irregularity"
    else:
        severity = Severity.LOW
        message = f"Income stability score of {score} indicates irregular income patterns"

    return Alert(
        code=AlertCode.INCOME_INSTABILITY,
        severity=severity,
        title="Income Instability",
        message=message,
        recommendation=income.interpretation.recommendation,
        data={
            "stability_score": score,
            "level": income.interpretation.level.value,
            "mean_interval_days": income.interval_stats.mean,
            "interval_std_dev": income.interval_stats.standard_deviation,
            "benchmark_score": thresholds.stability_low,
            "improvement_needed": thresholds.stability_low - score,
        },
    )


def check_negative_cash_flow(
    metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM for any net outflow, HIGH beyond $5,000"""
    if metrics is None or metrics.cash_flow.net_cash_flow >= 0:
        return None

    net = metrics.cash_flow.net_cash_flow
    if abs(net) > config.alerts.negative_cash_flow_high:
        severity = Severity.HIGH
        message = f"Significant negative cash flow: {_money(abs(net))}"
    else:
        severity = Severity.MEDIUM
        message = f"Negative cash flow of {_money(abs(net))}"

    return Alert(
        code=AlertCode.NEGATIVE_CASH_FLOW,
        severity=severity,
        title="Negative Cash Flow",
        message=message,
        recommendation="Confirm the business can cover outflows exceeding inflows over the statement period.",
        data={
            "net_cash_flow": net,
            "total_deposits": metrics.total_deposits,
            "total_withdrawals": metrics.total_withdrawals,
            "cash_flow_ratio": round(net / metrics.total_deposits, 4) if metrics.total_deposits > 0 else 0.0,
        },
    )


def check_withdrawal_ratio(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """MEDIUM when withdrawals exceed 90% of deposits, HIGH beyond 110%"""
    thresholds = config.alerts
    if metrics is None or metrics.total_withdrawals <= 0:
        return None
    ratio = metrics.cash_flow.withdrawal_ratio
    if ratio is None or ratio <= thresholds.withdrawal_ratio_medium:
        return None

    return Alert(
        code=AlertCode.HIGH_WITHDRAWAL_RATIO,
        severity=Severity.HIGH if ratio > thresholds.withdrawal_ratio_high else Severity.MEDIUM,
        title="High Withdrawal Ratio",
        message=f"High withdrawal ratio: {ratio * 100:.1f}% of deposits",
        recommendation="Review spending relative to income and confirm reserves for repayment.",
        data={
            "withdrawal_ratio": ratio,
            "total_deposits": metrics.total_deposits,
            "total_withdrawals": metrics.total_withdrawals,
            "excess_withdrawals": round(metrics.total_withdrawals - metrics.total_deposits, 2),
        },
    )


def check_large_deposits(transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """Single deposits over $10,000; HIGH when they total over $50,000 or number more than 3"""
    thresholds = config.alerts
    large = [t for t in _credits(transactions) if t.amount > thresholds.large_deposit]
    if not large:
        return None

    total = sum(t.amount for t in large)
    severity = Severity.MEDIUM
    if total > thresholds.large_deposit_total_high or len(large) > thresholds.large_deposit_count_high:
        severity = Severity.HIGH

    return Alert(
        code=AlertCode.LARGE_DEPOSIT_PATTERN,
        severity=severity,
        title="Large Deposit Pattern",
        message=f"{len(large)} large deposit(s) totaling {_money(total)}",
        recommendation="Obtain documentation for the source of large deposits.",
        data={
            "large_deposit_count": len(large),
            "total_large_deposits": round(total, 2),
            "largest_deposit": max(t.amount for t in large),
            "average_large_deposit": round(total / len(large), 2),
            "deposit_dates": [t.date.isoformat() for t in large if t.date],
        },
    )


def check_structuring(transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """HIGH when 2 or more deposits land just under the $10,000 reporting threshold"""
    thresholds = config.alerts
    structured = [
        t
        for t in _credits(transactions)
        if thresholds.structuring_floor <= t.amount < thresholds.structuring_ceiling
    ]
    if len(structured) < thresholds.structuring_min_count:
        return None

    return Alert(
        code=AlertCode.POTENTIAL_STRUCTURING,
        severity=Severity.HIGH,
        title="Potential Structuring",
        message=f"{len(structured)} deposits just under {_money(thresholds.structuring_ceiling)} detected - potential structuring",
        recommendation="Escalate for AML review of deposits clustered below the currency reporting threshold.",
        data={
            "structured_count": len(structured),
            "total_structured_amount": round(sum(t.amount for t in structured), 2),
            "deposits": [
                {"amount": t.amount, "date": t.date.isoformat() if t.date else None, "description": t.description}
                for t in structured
            ],
        },
    )


def check_large_cash_withdrawals(
    transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """Cash withdrawals over $2,000; escalates with their count and total"""
    thresholds = config.alerts
    cash = [
        t
        for t in _debits(transactions)
        if thresholds.cash_keyword in t.text and abs(t.amount) > thresholds.large_cash_withdrawal
    ]
    if not cash:
        return None

    total = sum(abs(t.amount) for t in cash)
    if total > thresholds.cash_total_critical or len(cash) > thresholds.cash_count_critical:
        severity = Severity.CRITICAL
    elif total > thresholds.cash_total_high or len(cash) > thresholds.cash_count_high:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM

    return Alert(
        code=AlertCode.LARGE_CASH_WITHDRAWALS,
        severity=severity,
        title="Large Cash Withdrawals",
        message=f"{len(cash)} large cash withdrawal(s) totaling {_money(total)}",
        recommendation="Ask the applicant to explain the business purpose of large cash withdrawals.",
        data={
            "cash_withdrawal_count": len(cash),
            "total_cash_withdrawals": round(total, 2),
            "largest_cash_withdrawal": max(abs(t.amount) for t in cash),
            "withdrawal_dates": [t.date.isoformat() for t in cash if t.date],
        },
    )


def check_atm_usage(transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """MEDIUM when more than 20 ATM/withdrawal debits appear"""
    thresholds = config.alerts
    atm = [t for t in _debits(transactions) if any(keyword in t.text for keyword in thresholds.atm_keywords)]
    if len(atm) <= thresholds.atm_count:
        return None

    total = sum(abs(t.amount) for t in atm)
    return Alert(
        code=AlertCode.EXCESSIVE_ATM_USAGE,
        severity=Severity.MEDIUM,
        title="Excessive ATM Usage",
        message=f"{len(atm)} ATM withdrawals suggest heavy cash usage",
        recommendation="Review cash handling practices and reconcile cash withdrawals with business expenses.",
        data={
            "atm_withdrawal_count": len(atm),
            "total_atm_amount": round(total, 2),
            "average_atm_amount": round(total / len(atm), 2),
        },
    )


def check_credit_risk(score: Optional[Score], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """
    Credit-risk tier from the Veritas Score's 0-100 credit-quality view.

    - quality < 30: VERY_HIGH_CREDIT_RISK (CRITICAL)
    - quality < 50: HIGH_CREDIT_RISK (HIGH)
    - quality < 70: MODERATE_CREDIT_RISK (MEDIUM)
    """
    if score is None:
        return None

    thresholds = config.alerts
    quality = score.credit_quality
    if quality < thresholds.credit_quality_critical:
        code, severity, label, decision = AlertCode.VERY_HIGH_CREDIT_RISK, Severity.CRITICAL, "very high", "DECLINE"
    elif quality < thresholds.credit_quality_high:
        code, severity, label, decision = AlertCode.HIGH_CREDIT_RISK, Severity.HIGH, "high", "CAUTION"
    elif quality < thresholds.credit_quality_medium:
        code, severity, label, decision = AlertCode.MODERATE_CREDIT_RISK, Severity.MEDIUM, "moderate", "REVIEW"
    else:
        return None

    return Alert(
        code=code,
        severity=severity,
        title=f"{label.capitalize()} Credit Risk",
        message=f"Veritas Score of {score.value:.0f} indicates {label} credit risk",
        recommendation=f"Underwriting guidance: {decision}",
        data={
            "veritas_score": score.value,
            "credit_quality": quality,
            "risk_level": score.risk_level.value,
            "factor_breakdown": dict(score.factor_breakdown),
            "decision_guidance": decision,
        },
    )


def check_high_volume(metrics: Optional[MetricsBundle], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """MEDIUM when deposits or withdrawals exceed $100,000"""
    threshold = config.alerts.high_volume
    if metrics is None:
        return None
    if metrics.total_deposits <= threshold and metrics.total_withdrawals <= threshold:
        return None

    return Alert(
        code=AlertCode.HIGH_VOLUME_ACTIVITY,
        severity=Severity.MEDIUM,
        title="High Volume Activity",
        message="High transaction volume may require enhanced due diligence",
        recommendation="Perform enhanced due diligence on the account's transaction volume.",
        data={
            "total_deposits": metrics.total_deposits,
            "total_withdrawals": metrics.total_withdrawals,
            "total_volume": round(metrics.total_deposits + metrics.total_withdrawals, 2),
            "threshold": threshold,
        },
    )


def check_transaction_sufficiency(
    transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM when fewer than 30 transactions are available for analysis"""
    minimum = config.alerts.min_transactions
    count = len(transactions or ())
    if count >= minimum:
        return None

    return Alert(
        code=AlertCode.INSUFFICIENT_TRANSACTION_DATA,
        severity=Severity.MEDIUM,
        title="Insufficient Transaction Data",
        message=f"Only {count} transactions available for analysis",
        recommendation="Request additional statements to cover a longer period.",
        data={"transaction_count": count, "minimum_recommended": minimum},
    )


def check_round_amounts(transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG) -> Optional[Alert]:
    """MEDIUM when over 30% of transactions are round hundreds of at least $1,000"""
    thresholds = config.alerts
    transactions = transactions or ()
    if not transactions:
        return None

    round_amounts = [
        t
        for t in transactions
        if t.amount is not None
        and abs(t.amount) >= thresholds.round_amount_floor
        and t.amount % thresholds.round_amount_unit == 0
    ]
    share = len(round_amounts) / len(transactions)
    if share <= thresholds.round_amount_share:
        return None

    return Alert(
        code=AlertCode.SUSPICIOUS_ROUND_AMOUNTS,
        severity=Severity.MEDIUM,
        title="Suspicious Round Amounts",
        message=f"{len(round_amounts)} transactions with round amounts may indicate manipulation",
        recommendation="Verify round-amount transactions against invoices or contracts.",
        data={
            "round_amount_count": len(round_amounts),
            "total_transactions": len(transactions),
            "percentage": round(share * 100, 1),
            "examples": [t.amount for t in round_amounts[:5]],
        },
    )


def check_weekend_activity(
    transactions: Sequence[Transaction], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """LOW when more than 20% of transactions fall on a Saturday or Sunday"""
    transactions = transactions or ()
    if not transactions:
        return None

    weekend = [t for t in transactions if t.date is not None and is_weekend(t.date)]
    share = len(weekend) / len(transactions)
    if share <= config.alerts.weekend_share:
        return None

    return Alert(
        code=AlertCode.UNUSUAL_TIMING_PATTERN,
        severity=Severity.LOW,
        title="Unusual Timing Pattern",
        message="High percentage of weekend transactions may indicate unusual activity",
        recommendation="Confirm weekend activity is consistent with the business's operating hours.",
        data={
            "weekend_transaction_count": len(weekend),
            "total_transactions": len(transactions),
            "weekend_percentage": round(share * 100, 1),
        },
    )


def check_debt_service(
    application: Optional[ApplicationRecord],
    metrics: Optional[MetricsBundle],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """
    Estimated monthly payment against net cash flow.

    payment = requested amount * 10% / 12; ratio = payment / max(net cash flow, 1)
    MEDIUM above 0.4, HIGH above 0.6, CRITICAL above 0.8.
    """
    thresholds = config.alerts
    if application is None or metrics is None:
        return None
    requested = application.requested_amount
    net = metrics.cash_flow.net_cash_flow
    if not requested or requested <= 0 or not net:
        return None

    monthly_payment = requested * thresholds.debt_service_rate / 12
    ratio = monthly_payment / max(net, 1)
    if ratio <= thresholds.debt_service_medium:
        return None

    if ratio > thresholds.debt_service_critical:
        severity = Severity.CRITICAL
    elif ratio > thresholds.debt_service_high:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM

    return Alert(
        code=AlertCode.HIGH_DEBT_SERVICE_RATIO,
        severity=severity,
        title="High Debt Service Ratio",
        message=f"Estimated debt service ratio of {ratio * 100:.1f}% may strain cash flow",
        recommendation="Consider a smaller advance or longer term to keep payments within cash flow.",
        data={
            "requested_amount": requested,
            "estimated_monthly_payment": round(monthly_payment, 2),
            "net_cash_flow": net,
            "debt_service_ratio": round(ratio, 4),
            "max_recommended_ratio": thresholds.debt_service_medium,
        },
    )


def check_cash_intensive_velocity(
    application: Optional[ApplicationRecord],
    metrics: Optional[MetricsBundle],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """MEDIUM for a cash-intensive industry with velocity above 4.0"""
    thresholds = config.alerts
    if application is None or not application.industry or metrics is None:
        return None
    industry = application.industry.lower()
    if not any(term in industry for term in thresholds.cash_intensive_industries):
        return None
    velocity = metrics.cash_flow.velocity_ratio
    if velocity is None or velocity <= thresholds.cash_intensive_velocity:
        return None

    return Alert(
        code=AlertCode.CASH_INTENSIVE_HIGH_VELOCITY,
        severity=Severity.MEDIUM,
        title="Cash-Intensive Industry With High Velocity",
        message=f"High velocity ratio {velocity:.2f} in cash-intensive industry requires review",
        recommendation="Review cash deposit sources for the cash-intensive business.",
        data={"industry": application.industry, "velocity_ratio": velocity, "industry_type": "cash-intensive"},
    )


# --- Application rules ------------------------------------------------------


def check_sanctions_screening(
    application: Optional[ApplicationRecord], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM reminder that the named business entity must be sanctions-screened"""
    if application is None or not application.business_name:
        return None

    return Alert(
        code=AlertCode.OFAC_SCREENING_REQUIRED,
        severity=Severity.MEDIUM,
        title="Sanctions Screening Required",
        message="OFAC sanctions screening required for business entity",
        recommendation="Screen the business and its principals against the OFAC sanctions lists.",
        data={"business_name": application.business_name, "screening_required": True, "compliance_check": "pending"},
    )


def check_application_completeness(
    application: Optional[ApplicationRecord], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM when business name, industry or requested amount is missing"""
    if application is None:
        return None
    fields = config.alerts.required_application_fields
    missing = [label for attr, label in fields if not getattr(application, attr)]
    if not missing:
        return None

    return Alert(
        code=AlertCode.INCOMPLETE_APPLICATION_DATA,
        severity=Severity.MEDIUM,
        title="Incomplete Application Data",
        message=f"Missing critical application data: {', '.join(missing)}",
        recommendation="Request the missing application fields before underwriting.",
        data={
            "missing_fields": missing,
            "data_completeness": round((len(fields) - len(missing)) / len(fields) * 100, 1),
        },
    )


def check_data_consistency(
    application: Optional[ApplicationRecord],
    verification: Optional[VerificationRecord],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """MEDIUM when the applied name and the registry's name are less than 60% similar"""
    if application is None or verification is None:
        return None
    if not application.business_name or not verification.matched_business_name:
        return None

    similarity = similarity_ratio(
        normalize_name(application.business_name), normalize_name(verification.matched_business_name)
    )
    if similarity >= config.alerts.name_inconsistency_similarity:
        return None

    return Alert(
        code=AlertCode.DATA_INCONSISTENCY,
        severity=Severity.MEDIUM,
        title="Application Data Inconsistency",
        message="Significant discrepancy between application and verification data",
        recommendation="Reconcile the applied business name with registry records.",
        data={
            "applied_name": application.business_name,
            "verified_name": verification.matched_business_name,
            "similarity": round(similarity, 4),
        },
    )


def check_high_risk_industry(
    application: Optional[ApplicationRecord], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """HIGH when the stated industry is on the high-risk denylist"""
    if application is None or not application.industry:
        return None
    industry = application.industry.lower()
    matched = [term for term in config.alerts.high_risk_industries if term in industry]
    if not matched:
        return None

    return Alert(
        code=AlertCode.HIGH_RISK_INDUSTRY,
        severity=Severity.HIGH,
        title="High-Risk Industry",
        message=f"Business operates in high-risk industry: {application.industry}",
        recommendation="Apply additional due diligence and industry-specific compliance checks.",
        data={"industry": application.industry, "matched_terms": matched, "additional_due_diligence_required": True},
    )


# --- Cross-statement rules --------------------------------------------------


def check_inconsistent_nsf(
    statements: Sequence[StatementAnalysis], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM when NSF counts across 2+ accounts differ by more than 3"""
    statements = [s for s in statements or () if s is not None]
    if len(statements) < 2:
        return None

    nsf_counts = [s.metrics.nsf_count for s in statements]
    spread = max(nsf_counts) - min(nsf_counts)
    if spread <= config.alerts.nsf_spread:
        return None

    return Alert(
        code=AlertCode.INCONSISTENT_NSF_PATTERNS,
        severity=Severity.MEDIUM,
        title="Inconsistent NSF Patterns",
        message=f"Inconsistent NSF patterns across bank accounts (range: {min(nsf_counts)}-{max(nsf_counts)})",
        recommendation="Review how funds are moved between the applicant's accounts.",
        data={"nsf_counts": nsf_counts, "max_nsf": max(nsf_counts), "min_nsf": min(nsf_counts), "account_count": len(statements)},
    )


def check_balance_inconsistency(
    statements: Sequence[StatementAnalysis], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """MEDIUM when any account's average balance deviates more than 50% from the cross-account mean"""
    statements = [s for s in statements or () if s is not None]
    if len(statements) < 2:
        return None

    balances = [s.metrics.average_daily_balance for s in statements]
    overall = sum(balances) / len(balances)
    if overall <= 0:
        return None
    limit = overall * config.alerts.balance_deviation
    if not any(abs(balance - overall) > limit for balance in balances):
        return None

    return Alert(
        code=AlertCode.BALANCE_INCONSISTENCY,
        severity=Severity.MEDIUM,
        title="Balance Inconsistency Across Accounts",
        message="Significant balance variations detected across bank accounts",
        recommendation="Confirm which accounts are operating accounts and why balances differ.",
        data={"average_balances": balances, "overall_average": round(overall, 2), "account_count": len(statements)},
    )


def check_multi_account_risk(
    statements: Sequence[StatementAnalysis], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """HIGH when more than half of 2+ accounts have a risk score above 70"""
    statements = [s for s in statements or () if s is not None]
    if len(statements) < 2:
        return None

    risk_scores = [s.score.risk_score for s in statements]
    high_risk = sum(1 for r in risk_scores if r > config.alerts.multi_account_risk_score)
    if high_risk <= len(statements) / 2:
        return None

    return Alert(
        code=AlertCode.MULTI_ACCOUNT_HIGH_RISK,
        severity=Severity.HIGH,
        title="Multiple High-Risk Accounts",
        message=f"Majority of bank accounts ({high_risk}/{len(statements)}) show high risk indicators",
        recommendation="Treat the applicant's overall banking relationship as high risk.",
        data={"risk_scores": risk_scores, "high_risk_count": high_risk, "total_accounts": len(statements)},
    )


# --- Verification rules -----------------------------------------------------


def verify_annual_revenue(
    application: Optional[ApplicationRecord],
    statements: Sequence[StatementAnalysis],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """
    Compare stated annual revenue with deposits annualized over the observed period.

    projected = (total deposits / max(1, days between first and last deposit)) * 365
    HIGH when |projected - stated| / stated exceeds 20%.
    """
    if application is None or not application.stated_annual_revenue or application.stated_annual_revenue <= 0:
        return None
    stated = application.stated_annual_revenue

    deposits = [
        t for s in statements or () if s is not None for t in s.transactions if t.is_credit and t.date is not None
    ]
    if not deposits:
        logger.debug("Skipping revenue verification - no dated deposits")
        return None

    earliest = min(t.date for t in deposits)
    latest = max(t.date for t in deposits)
    period_days = max(1, (latest - earliest).days)
    total_deposits = sum(t.amount for t in deposits)

    projected = total_deposits / period_days * 365
    discrepancy = abs(projected - stated)
    discrepancy_pct = discrepancy / stated * 100
    if discrepancy_pct <= config.alerts.revenue_discrepancy_pct:
        return None

    is_projected_higher = projected > stated
    return Alert(
        code=AlertCode.ANNUAL_REVENUE_DISCREPANCY,
        severity=Severity.HIGH,
        title="Annual Revenue Discrepancy",
        message=(
            f"Stated annual revenue of {_money(stated)} "
            f"{'is below' if is_projected_higher else 'exceeds'} projected gross annual revenue of "
            f"{_money(projected)} by {discrepancy_pct:.1f}%"
        ),
        recommendation="Request additional documentation to verify actual revenue figures.",
        data={
            "stated_annual_revenue": stated,
            "projected_gross_annual_revenue": round(projected, 2),
            "discrepancy_amount": round(discrepancy, 2),
            "discrepancy_percentage": round(discrepancy_pct, 2),
            "is_projected_higher": is_projected_higher,
            "total_deposits": round(total_deposits, 2),
            "time_period_days": period_days,
            "transaction_count": len(deposits),
            "date_range": {"start": earliest.isoformat(), "end": latest.isoformat()},
        },
    )


def check_business_not_found(
    verification: Optional[VerificationRecord], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """HIGH when the registry lookup found no matching business"""
    if verification is None or verification.found:
        return None

    return Alert(
        code=AlertCode.BUSINESS_NOT_VERIFIED,
        severity=Severity.HIGH,
        title="Business Not Verified",
        message="Business could not be verified with Secretary of State records",
        recommendation="Request formation documents or a certificate of good standing.",
        data={"searched_name": verification.business_name, "state": verification.state},
    )


def check_business_inactive(
    verification: Optional[VerificationRecord], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[Alert]:
    """CRITICAL when the business was found but is not in active standing"""
    if verification is None or not verification.found or verification.is_active is not False:
        return None

    return Alert(
        code=AlertCode.BUSINESS_INACTIVE_STATUS,
        severity=Severity.CRITICAL,
        title="Business Inactive",
        message=f"Business status is '{verification.status or 'unknown'}' - not active",
        recommendation="Do not proceed until the business is restored to active standing.",
        data={
            "business_name": verification.matched_business_name,
            "status": verification.status,
            "registration_date": verification.registration_date.isoformat() if verification.registration_date else None,
            "state": verification.state,
        },
    )


def check_business_name_match(
    verification: Optional[VerificationRecord],
    application: Optional[ApplicationRecord] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """MEDIUM when the searched and registered names are less than 80% similar"""
    if verification is None or not verification.found or not verification.matched_business_name:
        return None
    applied_name = verification.business_name or (application.business_name if application else None)
    if not applied_name:
        return None

    similarity = similarity_ratio(normalize_name(applied_name), normalize_name(verification.matched_business_name))
    if similarity >= config.alerts.name_match_similarity:
        return None

    return Alert(
        code=AlertCode.BUSINESS_NAME_MISMATCH,
        severity=Severity.MEDIUM,
        title="Business Name Mismatch",
        message=f"Business name mismatch: Applied as '{applied_name}' but registered as '{verification.matched_business_name}'",
        recommendation="Confirm DBA filings or name changes that explain the difference.",
        data={
            "applied_name": applied_name,
            "registered_name": verification.matched_business_name,
            "similarity": round(similarity, 4),
        },
    )


def check_newly_registered(
    verification: Optional[VerificationRecord],
    as_of: date,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """MEDIUM when the business was registered less than 6 months before as_of"""
    if verification is None or not verification.found or verification.registration_date is None:
        return None

    thresholds = config.alerts
    months_old = (as_of - verification.registration_date).days / thresholds.days_per_month
    if months_old >= thresholds.new_business_months:
        return None

    return Alert(
        code=AlertCode.NEWLY_REGISTERED_BUSINESS,
        severity=Severity.MEDIUM,
        title="Newly Registered Business",
        message=f"Business registered only {months_old:.1f} months ago",
        recommendation="Apply new-business underwriting guidelines.",
        data={
            "registration_date": verification.registration_date.isoformat(),
            "months_old": round(months_old, 1),
        },
    )


def verify_time_in_business(
    application: Optional[ApplicationRecord],
    verification: Optional[VerificationRecord],
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Alert]:
    """HIGH when the stated start month is more than 3 months before the registration month"""
    if application is None or verification is None:
        return None
    started = application.business_start_date
    registered = verification.registration_date
    if started is None or registered is None:
        return None

    months_early = calendar_months_between(started, registered)
    if months_early <= config.alerts.time_in_business_months:
        return None

    return Alert(
        code=AlertCode.TIME_IN_BUSINESS_DISCREPANCY,
        severity=Severity.HIGH,
        title="Time in Business Discrepancy",
        message=(
            f"Stated business start date ({started.isoformat()}) is {months_early} months earlier than "
            f"official registration date ({registered.isoformat()})"
        ),
        recommendation="Verify actual business start date with additional documentation.",
        data={
            "stated_start_date": started.isoformat(),
            "official_registration_date": registered.isoformat(),
            "discrepancy_months": months_early,
            "comparison_method": "month_and_year_only",
            "threshold": config.alerts.time_in_business_months,
        },
    )
