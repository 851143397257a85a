"""Metrics engine - turns a transaction ledger into the figures used for scoring and alerts"""

import logging
import math
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from veritas_engine.domain.exceptions import InvalidOpeningBalanceError
from veritas_engine.domain.income_stability import calculate_income_stability
from veritas_engine.domain.models import (
    BalanceMetrics,
    BusinessMetrics,
    CashFlowMetrics,
    DepositWithdrawalTotals,
    MetricsBundle,
    NsfMetrics,
    Transaction,
    parse_transactions,
)
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig
from veritas_engine.utils.date_utils import generate_date_range

logger = logging.getLogger(__name__)


def _is_nsf(txn: Transaction, config: EngineConfig) -> bool:
    text = txn.text
    return bool(text) and any(keyword in text for keyword in config.metrics.nsf_keywords)


def calculate_nsf_metrics(transactions, config: EngineConfig = DEFAULT_CONFIG) -> NsfMetrics:
    """
    Find NSF/overdraft events by case-insensitive keyword match on the description.

    Missing or non-text descriptions never match.
    """
    parsed = parse_transactions(transactions)
    nsf_transactions = tuple(t for t in parsed if _is_nsf(t, config))
    nsf_total = sum(abs(t.amount) for t in nsf_transactions if t.amount is not None)

    return NsfMetrics(
        nsf_count=len(nsf_transactions),
        nsf_total=round(nsf_total, 2),
        nsf_transactions=nsf_transactions,
    )


def calculate_nsf_count(transactions, config: EngineConfig = DEFAULT_CONFIG) -> int:
    """Number of transactions whose description names an NSF/overdraft event"""
    return calculate_nsf_metrics(transactions, config).nsf_count


def calculate_total_deposits_and_withdrawals(transactions) -> DepositWithdrawalTotals:
    """
    Sum credits as deposits and the absolute value of debits as withdrawals.

    Entries without a numeric amount are skipped.
    """
    parsed = parse_transactions(transactions)

    total_deposits = 0.0
    total_withdrawals = 0.0
    deposit_count = 0
    withdrawal_count = 0

    for txn in parsed:
        if txn.is_credit:
            total_deposits += txn.amount
            deposit_count += 1
        elif txn.is_debit:
            total_withdrawals += abs(txn.amount)
            withdrawal_count += 1

    return DepositWithdrawalTotals(
        total_deposits=round(total_deposits, 2),
        total_withdrawals=round(total_withdrawals, 2),
        deposit_count=deposit_count,
        withdrawal_count=withdrawal_count,
    )


def _validate_opening_balance(opening_balance) -> float:
    if isinstance(opening_balance, bool) or not isinstance(opening_balance, (int, float, Decimal)):
        raise InvalidOpeningBalanceError(
            f"Opening balance must be a number, got {type(opening_balance).__name__}"
        )
    if not math.isfinite(opening_balance):
        raise InvalidOpeningBalanceError(f"Opening balance must be finite, got {opening_balance}")
    return float(opening_balance)


def calculate_average_daily_balance(transactions, opening_balance) -> BalanceMetrics:
    """
    Average daily balance with carry-forward for no-transaction days.

    Walks one calendar day at a time from the first to the last transaction
    date (inclusive). Days without activity keep the previous balance; days
    with activity apply the sum of that day's amounts before the balance is
    recorded. Lowest/highest include the opening balance.

    Example:
        opening 200, +1000 on Jan 1, -800 on Jan 2, -150 on Jan 3
        daily balances: 1200, 400, 250 → average 616.67 over 3 days

    Raises:
        InvalidOpeningBalanceError: opening_balance is not a finite number
        InvalidTransactionDataError: transactions is not a list
    """
    balance = _validate_opening_balance(opening_balance)
    parsed = parse_transactions(transactions)

    # Only dated, numeric entries can be placed on the calendar
    net_by_date: Dict[date, float] = defaultdict(float)
    for txn in parsed:
        if txn.date is not None and txn.amount is not None:
            net_by_date[txn.date] += txn.amount

    if not net_by_date:
        return BalanceMetrics(
            average_daily_balance=balance,
            lowest_balance=balance,
            highest_balance=balance,
            closing_balance=balance,
            period_days=0,
        )

    all_dates = generate_date_range(min(net_by_date), max(net_by_date))
    lowest = highest = balance
    balance_sum = 0.0
    negative_days: List[date] = []

    for day in all_dates:
        balance += net_by_date.get(day, 0.0)
        balance_sum += balance
        lowest = min(lowest, balance)
        highest = max(highest, balance)
        if balance < 0:
            negative_days.append(day)

    return BalanceMetrics(
        average_daily_balance=round(balance_sum / len(all_dates), 2),
        lowest_balance=round(lowest, 2),
        highest_balance=round(highest, 2),
        closing_balance=round(balance, 2),
        period_days=len(all_dates),
        negative_balance_days=tuple(negative_days),
    )


def calculate_cash_flow_metrics(
    totals: DepositWithdrawalTotals, balance: BalanceMetrics
) -> CashFlowMetrics:
    """
    Net flow, withdrawal-to-deposit ratio and velocity (deposit turnover of the average balance).

    Ratios are None instead of dividing by zero.
    """
    withdrawal_ratio: Optional[float] = None
    if totals.total_deposits > 0:
        withdrawal_ratio = round(totals.total_withdrawals / totals.total_deposits, 4)

    velocity_ratio: Optional[float] = None
    if balance.average_daily_balance > 0:
        velocity_ratio = round(totals.total_deposits / balance.average_daily_balance, 4)

    return CashFlowMetrics(
        net_cash_flow=round(totals.total_deposits - totals.total_withdrawals, 2),
        withdrawal_ratio=withdrawal_ratio,
        velocity_ratio=velocity_ratio,
    )


def _is_business(txn: Transaction, config: EngineConfig) -> bool:
    if txn.category and txn.category.strip().lower() in config.metrics.business_categories:
        return True
    text = txn.text
    return any(keyword in text for keyword in config.metrics.business_keywords)


def calculate_business_metrics(transactions, config: EngineConfig = DEFAULT_CONFIG) -> BusinessMetrics:
    """
    Totals for business-platform activity (PayPal, Square, Stripe, vendors, ...).

    A transaction counts when its description carries a business keyword or
    its already-assigned category label marks it as business activity.
    """
    parsed = parse_transactions(transactions)
    business = [t for t in parsed if t.amount is not None and _is_business(t, config)]

    return BusinessMetrics(
        total_business_deposits=round(sum(t.amount for t in business if t.amount > 0), 2),
        total_business_expenses=round(sum(abs(t.amount) for t in business if t.amount < 0), 2),
        business_transaction_count=len(business),
    )


def calculate_metrics(
    transactions,
    opening_balance,
    config: EngineConfig = DEFAULT_CONFIG,
    has_negative_balance: Optional[bool] = None,
) -> MetricsBundle:
    """
    Main entry point: compute every per-statement metric in one pass over the inputs.

    has_negative_balance is an optional flag reported by the statement parser;
    it is carried through untouched for the negative-balance rule.
    """
    parsed = parse_transactions(transactions)

    nsf = calculate_nsf_metrics(parsed, config)
    totals = calculate_total_deposits_and_withdrawals(parsed)
    balance = calculate_average_daily_balance(parsed, opening_balance)
    income = calculate_income_stability(parsed, config)
    cash_flow = calculate_cash_flow_metrics(totals, balance)
    business = calculate_business_metrics(parsed, config)

    logger.debug(
        "Metrics calculated",
        extra={
            "transaction_count": len(parsed),
            "nsf_count": nsf.nsf_count,
            "period_days": balance.period_days,
            "average_daily_balance": balance.average_daily_balance,
        },
    )

    return MetricsBundle(
        nsf_count=nsf.nsf_count,
        nsf_total=nsf.nsf_total,
        total_deposits=totals.total_deposits,
        total_withdrawals=totals.total_withdrawals,
        deposit_count=totals.deposit_count,
        withdrawal_count=totals.withdrawal_count,
        transaction_count=len(parsed),
        average_daily_balance=balance.average_daily_balance,
        lowest_balance=balance.lowest_balance,
        highest_balance=balance.highest_balance,
        closing_balance=balance.closing_balance,
        period_days=balance.period_days,
        income_stability=income,
        cash_flow=cash_flow,
        business=business,
        negative_balance_days=balance.negative_balance_days,
        has_negative_balance=has_negative_balance,
        nsf_transactions=nsf.nsf_transactions,
    )
