"""Unit tests for alert generation, ordering and summaries"""

import pytest
from dataclasses import replace
from datetime import date
from types import MappingProxyType

from prometheus_client import REGISTRY

from veritas_engine.domain.alerts import engine, rules
from veritas_engine.domain.alerts.catalog import Alert, AlertCategory, AlertCode, Severity
from veritas_engine.domain.alerts.engine import generate_alerts, sort_alerts, summarize_alerts
from veritas_engine.domain.analysis import analyze_statement
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, AlertThresholds


def _alert(code: AlertCode, severity: Severity, title: str = "") -> Alert:
    return Alert(code=code, severity=severity, title=title, message="", recommendation="")


@pytest.fixture
def nsf_statement(make_transaction):
    """Four NSF fees on an otherwise quiet account"""
    transactions = [make_transaction(-35, "NSF FEE", day=d) for d in range(4)]
    transactions.append(make_transaction(800, "Customer payment", day=5))
    return analyze_statement(transactions, 2000.0, statement_id="stmt-nsf")


def test_sort_alerts_orders_by_severity_and_keeps_ties_in_order():
    """CRITICAL first, LOW last, equal severities stay as given"""
    alerts = [
        _alert(AlertCode.UNUSUAL_TIMING_PATTERN, Severity.LOW, "a"),
        _alert(AlertCode.HIGH_NSF_COUNT, Severity.HIGH, "b"),
        _alert(AlertCode.LOW_AVERAGE_BALANCE, Severity.MEDIUM, "c"),
        _alert(AlertCode.POTENTIAL_STRUCTURING, Severity.HIGH, "d"),
        _alert(AlertCode.NEGATIVE_BALANCE_DAYS, Severity.CRITICAL, "e"),
    ]

    assert [a.title for a in sort_alerts(alerts)] == ["e", "b", "d", "c", "a"]


def test_summarize_alerts_counts_and_groups():
    alerts = [
        _alert(AlertCode.HIGH_NSF_COUNT, Severity.HIGH),
        _alert(AlertCode.INCONSISTENT_NSF_PATTERNS, Severity.MEDIUM),
        _alert(AlertCode.BUSINESS_INACTIVE_STATUS, Severity.CRITICAL),
        _alert(AlertCode.ANNUAL_REVENUE_DISCREPANCY, Severity.HIGH),
    ]

    summary = summarize_alerts(alerts)

    assert summary.total == 4
    assert (summary.critical, summary.high, summary.medium, summary.low) == (1, 2, 1, 0)
    assert len(summary.categories[AlertCategory.NSF.value]) == 2
    assert len(summary.categories[AlertCategory.BUSINESS_VERIFICATION.value]) == 2
    assert summary.to_dict()["categories"]["NSF & Overdrafts"] == ["HIGH_NSF_COUNT", "INCONSISTENT_NSF_PATTERNS"]


def test_every_code_has_a_category():
    """The generation error is the only code filed under Other"""
    uncategorized = [code for code in AlertCode if _alert(code, Severity.LOW).category == AlertCategory.OTHER]

    assert uncategorized == [AlertCode.ALERT_GENERATION_ERROR]


def test_no_statements_no_alerts():
    assert generate_alerts([]) == []
    assert generate_alerts(None) == []


def test_statement_alerts_carry_statement_index(nsf_statement, sample_analysis):
    """Per-statement findings point at the statement that produced them"""
    alerts = generate_alerts([sample_analysis, nsf_statement])

    nsf_alerts = [a for a in alerts if a.code == AlertCode.HIGH_NSF_COUNT]
    assert len(nsf_alerts) == 1
    assert nsf_alerts[0].statement_index == 1
    assert nsf_alerts[0].data["nsf_count"] == 4


def test_generated_alerts_are_sorted(nsf_statement):
    alerts = generate_alerts([nsf_statement])

    ranks = [a.severity.rank for a in alerts]
    assert ranks == sorted(ranks)


def test_failing_rule_is_isolated(monkeypatch, nsf_statement):
    """One broken rule is skipped and counted; the others still report"""

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    labels = {"rule": "nsf_count"}
    before = REGISTRY.get_sample_value("veritas_rule_failures_total", labels) or 0.0
    monkeypatch.setattr(rules, "check_nsf_count", broken)

    alerts = generate_alerts([nsf_statement])
    codes = {a.code for a in alerts}

    assert AlertCode.HIGH_NSF_COUNT not in codes
    assert AlertCode.ALERT_GENERATION_ERROR not in codes
    assert AlertCode.INSUFFICIENT_TRANSACTION_DATA in codes
    assert REGISTRY.get_sample_value("veritas_rule_failures_total", labels) == before + 1


def test_unexpected_failure_returns_generation_error(monkeypatch, nsf_statement):
    """A failure outside any single rule yields one HIGH error alert instead of raising"""

    def broken(alerts):
        raise ValueError("sort failed")

    monkeypatch.setattr(engine, "sort_alerts", broken)

    alerts = generate_alerts([nsf_statement])

    assert len(alerts) == 1
    assert alerts[0].code == AlertCode.ALERT_GENERATION_ERROR
    assert alerts[0].severity == Severity.HIGH
    assert alerts[0].data["error_type"] == "ValueError"


def test_application_rules_run_once(sample_analysis, nsf_statement):
    """Application-only findings are not repeated per statement"""
    application = {"businessName": "Acme Plumbing LLC", "industry": "Plumbing", "requestedAmount": 5000}

    alerts = generate_alerts([sample_analysis, nsf_statement], application)

    ofac = [a for a in alerts if a.code == AlertCode.OFAC_SCREENING_REQUIRED]
    assert len(ofac) == 1
    assert ofac[0].statement_index is None


def test_application_rules_run_without_statements():
    alerts = generate_alerts([], {"businessName": "Acme", "industry": "Online Gambling"})
    codes = {a.code for a in alerts}

    assert codes == {
        AlertCode.HIGH_RISK_INDUSTRY,
        AlertCode.OFAC_SCREENING_REQUIRED,
        AlertCode.INCOMPLETE_APPLICATION_DATA,
    }


def test_read_only_mapping_application_is_accepted(nsf_statement):
    """Any mapping validates into a record, not only a dict"""
    application = MappingProxyType({"businessName": "Acme Plumbing LLC", "industry": "Online Gambling"})

    codes = {a.code for a in generate_alerts([nsf_statement], application)}

    assert AlertCode.HIGH_RISK_INDUSTRY in codes
    assert AlertCode.OFAC_SCREENING_REQUIRED in codes


def test_statement_without_income_history_flags_instability(make_transaction):
    """A ledger with no measurable income reports HIGH income instability"""
    statement = analyze_statement(
        [make_transaction(1500, "Customer payment"), make_transaction(-200, "Rent", day=1)], 1000.0
    )

    alerts = generate_alerts([statement])

    instability = [a for a in alerts if a.code == AlertCode.INCOME_INSTABILITY]
    assert len(instability) == 1
    assert instability[0].severity == Severity.HIGH
    assert instability[0].data["level"] == "INSUFFICIENT_DATA"


def test_unusable_application_is_ignored(nsf_statement):
    """Malformed optional input degrades to absent rather than failing the run"""
    alerts = generate_alerts([nsf_statement], application="not a record")
    codes = {a.code for a in alerts}

    assert AlertCode.ALERT_GENERATION_ERROR not in codes
    assert AlertCode.OFAC_SCREENING_REQUIRED not in codes


def test_verification_rules_need_a_record(nsf_statement):
    codes = {a.code for a in generate_alerts([nsf_statement])}

    assert AlertCode.BUSINESS_NOT_VERIFIED not in codes

    codes = {a.code for a in generate_alerts([nsf_statement], verification={"found": False})}

    assert AlertCode.BUSINESS_NOT_VERIFIED in codes


def test_as_of_controls_business_age(nsf_statement):
    verification = {"found": True, "isActive": True, "registrationDate": "2024-01-01"}

    young = generate_alerts([nsf_statement], verification=verification, as_of=date(2024, 3, 1))
    mature = generate_alerts([nsf_statement], verification=verification, as_of=date(2025, 3, 1))

    assert AlertCode.NEWLY_REGISTERED_BUSINESS in {a.code for a in young}
    assert AlertCode.NEWLY_REGISTERED_BUSINESS not in {a.code for a in mature}


def test_custom_config_changes_thresholds(nsf_statement):
    """Thresholds come from the config passed in, not from globals"""
    lenient = replace(DEFAULT_CONFIG, alerts=AlertThresholds(nsf_count=5))

    default_codes = {a.code for a in generate_alerts([nsf_statement])}
    lenient_codes = {a.code for a in generate_alerts([nsf_statement], config=lenient)}

    assert AlertCode.HIGH_NSF_COUNT in default_codes
    assert AlertCode.HIGH_NSF_COUNT not in lenient_codes


def test_alert_to_dict(nsf_statement):
    alert = next(a for a in generate_alerts([nsf_statement]) if a.code == AlertCode.HIGH_NSF_COUNT)

    payload = alert.to_dict()

    assert payload["code"] == "HIGH_NSF_COUNT"
    assert payload["severity"] == "HIGH"
    assert payload["category"] == "NSF & Overdrafts"
    assert payload["statement_index"] == 0
    assert payload["data"]["nsf_count"] == 4
