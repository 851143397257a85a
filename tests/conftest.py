"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Callable, List

from veritas_engine.domain.analysis import analyze_statement
from veritas_engine.domain.metrics import calculate_metrics
from veritas_engine.domain.models import MetricsBundle, StatementAnalysis, Transaction


@pytest.fixture
def base_date() -> date:
    """A Monday, so weekday arithmetic in tests is predictable"""
    return date(2024, 1, 1)


@pytest.fixture
def sample_transactions(base_date: date) -> List[Transaction]:
    """Ten weeks of a small business account: biweekly payroll, weekly spending"""
    transactions = []

    # Payroll every other Friday
    for period in range(5):
        transactions.append(
            Transaction(
                date=base_date + timedelta(days=4 + period * 14),
                description="ACME CORP PAYROLL DIRECT DEP",
                amount=2500.00,
            )
        )

    # Weekly groceries on Mondays
    for week in range(10):
        transactions.append(
            Transaction(
                date=base_date + timedelta(days=week * 7),
                description="Supermarket purchase",
                amount=-180.00,
            )
        )

    transactions.append(
        Transaction(date=base_date + timedelta(days=2), description="Rent payment", amount=-1200.00)
    )
    return transactions


@pytest.fixture
def sample_metrics(sample_transactions: List[Transaction]) -> MetricsBundle:
    return calculate_metrics(sample_transactions, 1500.0)


@pytest.fixture
def sample_analysis(sample_transactions: List[Transaction]) -> StatementAnalysis:
    return analyze_statement(sample_transactions, 1500.0, statement_id="stmt-sample")


@pytest.fixture
def make_transaction(base_date: date) -> Callable[..., Transaction]:
    """Build a transaction dated a number of days after base_date"""

    def _make(amount: float, description: str = "Test", day: int = 0, category: str = None) -> Transaction:
        return Transaction(
            date=base_date + timedelta(days=day),
            description=description,
            amount=amount,
            category=category,
        )

    return _make
