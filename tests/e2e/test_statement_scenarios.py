"""
End-to-end scenarios: raw ledger in, score and alerts out.

Each scenario runs the full pipeline the way a caller would:
analyze_statement per statement, then generate_alerts over all of them.
"""

from datetime import date, timedelta

from veritas_engine.domain.alerts.catalog import AlertCode, Severity
from veritas_engine.domain.alerts.engine import generate_alerts, summarize_alerts
from veritas_engine.domain.analysis import analyze_statement

START = date(2024, 1, 1)


def _ledger(*entries):
    """(day offset, amount, description) triples as caller-style mappings"""
    return [
        {"date": (START + timedelta(days=day)).isoformat(), "amount": amount, "description": description}
        for day, amount, description in entries
    ]


def test_overdraft_account_raises_nsf_alert():
    """
    Account with four NSF fees
    Expected: HIGH_NSF_COUNT at HIGH severity reporting all four
    """
    ledger = _ledger(
        (0, 1500.00, "Customer payment"),
        (3, -35.00, "NSF FEE"),
        (7, -35.00, "Overdraft fee"),
        (12, -35.00, "NSF returned item"),
        (20, -35.00, "Insufficient funds fee"),
        (25, -900.00, "Rent"),
    )

    analysis = analyze_statement(ledger, 100.0, statement_id="overdraft")
    alerts = generate_alerts([analysis])

    nsf = [a for a in alerts if a.code == AlertCode.HIGH_NSF_COUNT]
    assert len(nsf) == 1
    assert nsf[0].severity == Severity.HIGH
    assert nsf[0].data["nsf_count"] == 4
    assert analysis.score.factor_breakdown["nsf_impact"] == -150


def test_low_balance_account():
    """
    Opening 200, then +1000, -800, -150 on consecutive days → ADB 616.67.
    A further week at 250 and a -100 debit pull the average to 350.
    Expected: LOW_AVERAGE_BALANCE and a score inside the scale
    """
    first_days = _ledger((0, 1000.00, "Payroll deposit"), (1, -800.00, "Rent"), (2, -150.00, "Utilities"))

    short = analyze_statement(first_days, 200.0)
    assert short.metrics.average_daily_balance == 616.67

    ledger = first_days + _ledger((9, -100.00, "Phone bill"))
    analysis = analyze_statement(ledger, 200.0, statement_id="low-balance")
    alerts = generate_alerts([analysis])

    assert analysis.metrics.average_daily_balance == 350.0
    assert AlertCode.LOW_AVERAGE_BALANCE in {a.code for a in alerts}
    assert 300 <= analysis.score.value <= 850


def test_full_underwriting_review():
    """
    Two accounts plus application and registry data
    Expected: identity, revenue and cross-account findings, severity-sorted
    """
    operating = analyze_statement(
        _ledger(*[(day, 4000.00, "Stripe payout") for day in range(0, 60, 7)], (30, -2500.00, "Rent")),
        5000.0,
        statement_id="operating",
    )
    reserve = analyze_statement(
        _ledger((0, -35.00, "NSF FEE"), (1, -35.00, "NSF FEE"), (2, -35.00, "NSF FEE"), (3, -35.00, "NSF FEE")),
        300.0,
        statement_id="reserve",
    )
    application = {
        "businessName": "Acme Plumbing LLC",
        "industry": "Plumbing",
        "statedAnnualRevenue": 1_000_000,
        "requestedAmount": 50_000,
        "businessStartDate": "2019-01-15",
    }
    verification = {
        "found": True,
        "isActive": False,
        "status": "Forfeited",
        "businessName": "Acme Plumbing LLC",
        "matchedBusinessName": "Acme Plumbing LLC",
        "registrationDate": "2020-03-01",
    }

    alerts = generate_alerts([operating, reserve], application, verification, as_of=date(2024, 6, 1))
    codes = {a.code for a in alerts}

    assert alerts[0].severity == Severity.CRITICAL
    assert AlertCode.BUSINESS_INACTIVE_STATUS in codes
    assert AlertCode.HIGH_DEBT_SERVICE_RATIO in codes
    assert AlertCode.TIME_IN_BUSINESS_DISCREPANCY in codes
    assert AlertCode.ANNUAL_REVENUE_DISCREPANCY in codes
    assert AlertCode.INCONSISTENT_NSF_PATTERNS in codes
    assert AlertCode.OFAC_SCREENING_REQUIRED in codes
    assert AlertCode.BUSINESS_NAME_MISMATCH not in codes
    assert AlertCode.NEWLY_REGISTERED_BUSINESS not in codes

    ranks = [a.severity.rank for a in alerts]
    assert ranks == sorted(ranks)

    summary = summarize_alerts(alerts)
    assert summary.total == len(alerts)
    assert summary.critical + summary.high + summary.medium + summary.low == summary.total
