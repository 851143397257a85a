"""Alert generation - runs every rule over the statements and collects a severity-sorted list"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from veritas_engine.domain.alerts import rules
from veritas_engine.domain.alerts.catalog import Alert, AlertCode, AlertSummary, Severity
from veritas_engine.domain.models import ApplicationRecord, StatementAnalysis, VerificationRecord
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig
from veritas_engine.infrastructure.observability.logging import log_alert_run
from veritas_engine.infrastructure.observability.metrics import record_alerts, record_rule_failure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may read during one generate_alerts call"""

    statements: Tuple[StatementAnalysis, ...]
    application: Optional[ApplicationRecord]
    verification: Optional[VerificationRecord]
    as_of: date
    config: EngineConfig
    statement: Optional[StatementAnalysis] = None


Rule = Callable[[RuleContext], Optional[Alert]]

STATEMENT_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("nsf_count", lambda ctx: rules.check_nsf_count(ctx.statement.metrics, ctx.config)),
    ("low_average_balance", lambda ctx: rules.check_low_average_balance(ctx.statement.metrics, ctx.config)),
    ("negative_balance", lambda ctx: rules.check_negative_balance(ctx.statement.metrics, ctx.config)),
    ("velocity_ratio", lambda ctx: rules.check_velocity_ratio(ctx.statement.metrics, ctx.config)),
    ("income_stability", lambda ctx: rules.check_income_stability(ctx.statement.metrics, ctx.config)),
    ("negative_cash_flow", lambda ctx: rules.check_negative_cash_flow(ctx.statement.metrics, ctx.config)),
    ("withdrawal_ratio", lambda ctx: rules.check_withdrawal_ratio(ctx.statement.metrics, ctx.config)),
    ("large_deposits", lambda ctx: rules.check_large_deposits(ctx.statement.transactions, ctx.config)),
    ("structuring", lambda ctx: rules.check_structuring(ctx.statement.transactions, ctx.config)),
    ("large_cash_withdrawals", lambda ctx: rules.check_large_cash_withdrawals(ctx.statement.transactions, ctx.config)),
    ("atm_usage", lambda ctx: rules.check_atm_usage(ctx.statement.transactions, ctx.config)),
    ("credit_risk", lambda ctx: rules.check_credit_risk(ctx.statement.score, ctx.config)),
    ("high_volume", lambda ctx: rules.check_high_volume(ctx.statement.metrics, ctx.config)),
    ("transaction_sufficiency", lambda ctx: rules.check_transaction_sufficiency(ctx.statement.transactions, ctx.config)),
    ("round_amounts", lambda ctx: rules.check_round_amounts(ctx.statement.transactions, ctx.config)),
    ("weekend_activity", lambda ctx: rules.check_weekend_activity(ctx.statement.transactions, ctx.config)),
    ("debt_service", lambda ctx: rules.check_debt_service(ctx.application, ctx.statement.metrics, ctx.config)),
    (
        "cash_intensive_velocity",
        lambda ctx: rules.check_cash_intensive_velocity(ctx.application, ctx.statement.metrics, ctx.config),
    ),
)

# Depend on the application alone, so they run once rather than once per statement
APPLICATION_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("sanctions_screening", lambda ctx: rules.check_sanctions_screening(ctx.application, ctx.config)),
    ("application_completeness", lambda ctx: rules.check_application_completeness(ctx.application, ctx.config)),
    ("high_risk_industry", lambda ctx: rules.check_high_risk_industry(ctx.application, ctx.config)),
)

PORTFOLIO_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("inconsistent_nsf", lambda ctx: rules.check_inconsistent_nsf(ctx.statements, ctx.config)),
    ("balance_inconsistency", lambda ctx: rules.check_balance_inconsistency(ctx.statements, ctx.config)),
    ("multi_account_risk", lambda ctx: rules.check_multi_account_risk(ctx.statements, ctx.config)),
    ("annual_revenue", lambda ctx: rules.verify_annual_revenue(ctx.application, ctx.statements, ctx.config)),
)

VERIFICATION_RULES: Tuple[Tuple[str, Rule], ...] = (
    ("business_not_found", lambda ctx: rules.check_business_not_found(ctx.verification, ctx.config)),
    ("business_inactive", lambda ctx: rules.check_business_inactive(ctx.verification, ctx.config)),
    (
        "business_name_match",
        lambda ctx: rules.check_business_name_match(ctx.verification, ctx.application, ctx.config),
    ),
    ("newly_registered", lambda ctx: rules.check_newly_registered(ctx.verification, ctx.as_of, ctx.config)),
    ("time_in_business", lambda ctx: rules.verify_time_in_business(ctx.application, ctx.verification, ctx.config)),
    (
        "data_consistency",
        lambda ctx: rules.check_data_consistency(ctx.application, ctx.verification, ctx.config),
    ),
)


def _run_rule(name: str, rule: Rule, ctx: RuleContext) -> Optional[Alert]:
    """Run one rule; a failing rule is logged and counted but never stops the others"""
    try:
        return rule(ctx)
    except Exception as e:
        logger.error(
            f"Alert rule failed: {name}",
            extra={"rule": name, "error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )
        record_rule_failure(name)
        return None


def _run_rules(
    named_rules: Iterable[Tuple[str, Rule]], ctx: RuleContext, statement_index: Optional[int] = None
) -> List[Alert]:
    alerts = []
    for name, rule in named_rules:
        alert = _run_rule(name, rule, ctx)
        if alert is None:
            continue
        if statement_index is not None:
            alert = replace(alert, statement_index=statement_index)
        alerts.append(alert)
    return alerts


def _coerce_record(value: Any, model):
    """Accept a validated record, a plain mapping, or None; anything unusable becomes None"""
    if value is None or isinstance(value, model):
        return value
    if isinstance(value, Mapping):
        try:
            return model.model_validate(dict(value))
        except ValidationError as e:
            logger.warning(
                f"Ignoring invalid {model.__name__}", extra={"error": str(e)}
            )
            return None
    logger.warning(f"Ignoring unsupported {model.__name__} input", extra={"input_type": type(value).__name__})
    return None


def generation_error_alert(error: Exception) -> Alert:
    return Alert(
        code=AlertCode.ALERT_GENERATION_ERROR,
        severity=Severity.HIGH,
        title="Alert Generation Error",
        message="An error occurred while generating alerts. Manual review recommended.",
        recommendation="Perform manual review of all financial data.",
        data={"error": str(error), "error_type": type(error).__name__},
    )


def sort_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Severity order CRITICAL > HIGH > MEDIUM > LOW; equal severities keep their input order"""
    return sorted(alerts, key=lambda alert: alert.severity.rank)


def summarize_alerts(alerts: Sequence[Alert]) -> AlertSummary:
    """Counts by severity and alerts grouped under their display category"""
    counts = {severity: 0 for severity in Severity}
    categories: Dict[str, List[Alert]] = {}

    for alert in alerts:
        counts[alert.severity] += 1
        categories.setdefault(alert.category.value, []).append(alert)

    return AlertSummary(
        total=len(alerts),
        critical=counts[Severity.CRITICAL],
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        categories=categories,
    )


def generate_alerts(
    statements: Optional[Sequence[StatementAnalysis]],
    application: Any = None,
    verification: Any = None,
    *,
    as_of: Optional[date] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[Alert]:
    """
    Evaluate every alert rule and return the findings sorted by severity.

    Per statement: the single-statement rules, tagged with the statement's
    index. Once per call: application rules, cross-statement rules, revenue
    verification, and the registry rules when a verification record is given.

    Never raises. A rule that fails is skipped; a failure of the run itself
    yields a single ALERT_GENERATION_ERROR alert.
    """
    start_time = time.time()

    try:
        analyses = tuple(s for s in (statements or ()) if s is not None)
        ctx = RuleContext(
            statements=analyses,
            application=_coerce_record(application, ApplicationRecord),
            verification=_coerce_record(verification, VerificationRecord),
            as_of=as_of or date.today(),
            config=config,
        )

        alerts: List[Alert] = []
        for index, statement in enumerate(analyses):
            alerts.extend(_run_rules(STATEMENT_RULES, replace(ctx, statement=statement), statement_index=index))

        if ctx.application is not None:
            alerts.extend(_run_rules(APPLICATION_RULES, ctx))
        alerts.extend(_run_rules(PORTFOLIO_RULES, ctx))
        if ctx.verification is not None:
            alerts.extend(_run_rules(VERIFICATION_RULES, ctx))

        alerts = sort_alerts(alerts)

        duration_ms = (time.time() - start_time) * 1000
        record_alerts(alerts, duration_ms / 1000)
        log_alert_run(len(analyses), alerts, duration_ms)
        return alerts

    except Exception as e:
        logger.error(
            "Alert generation failed",
            extra={"error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )
        return [generation_error_alert(e)]
