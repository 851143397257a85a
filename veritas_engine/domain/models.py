"""Domain models - validated input records and immutable analysis results"""

import datetime
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from veritas_engine.domain.exceptions import InvalidTransactionDataError


def parse_date(value: Any) -> Optional[datetime.date]:
    """Best-effort conversion of ISO strings, dates and datetimes to a date"""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and len(value) >= 8:
        try:
            return datetime.date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def parse_number(value: Any, allow_text: bool = False) -> Optional[float]:
    """Return a finite float, or None for anything non-numeric"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif allow_text and isinstance(value, str):
        try:
            number = float(value.replace(",", "").replace("$", "").strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class Transaction(BaseModel):
    """Single bank-statement line. Positive amount = credit, negative = debit."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    date: Optional[datetime.date] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    running_balance: Optional[float] = Field(default=None, alias="runningBalance")
    category: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[datetime.date]:
        return parse_date(value)

    @field_validator("description", "category", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("amount", "running_balance", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Optional[float]:
        return parse_number(value)

    @property
    def text(self) -> str:
        """Lower-cased description, empty when absent"""
        return (self.description or "").lower()

    @property
    def is_credit(self) -> bool:
        return self.amount is not None and self.amount > 0

    @property
    def is_debit(self) -> bool:
        return self.amount is not None and self.amount < 0


def parse_transactions(transactions: Any) -> List[Transaction]:
    """
    Validate a caller-supplied transaction collection.

    Accepts a list or tuple of ``Transaction`` objects or plain mappings.

    Raises:
        InvalidTransactionDataError: if the collection is not a list/tuple or an
            entry is neither a Transaction nor a mapping
    """
    if not isinstance(transactions, (list, tuple)):
        raise InvalidTransactionDataError(
            f"Transactions must be a list, got {type(transactions).__name__}"
        )

    parsed = []
    for index, txn in enumerate(transactions):
        if isinstance(txn, Transaction):
            parsed.append(txn)
        elif isinstance(txn, Mapping):
            try:
                parsed.append(Transaction.model_validate(dict(txn)))
            except ValidationError as e:
                raise InvalidTransactionDataError(f"Transaction {index} is invalid: {e}") from e
        else:
            raise InvalidTransactionDataError(
                f"Transaction {index} must be a mapping, got {type(txn).__name__}"
            )
    return parsed


class ApplicationRecord(BaseModel):
    """Business attributes stated on the funding application"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    business_name: Optional[str] = Field(default=None, alias="businessName")
    industry: Optional[str] = None
    stated_annual_revenue: Optional[float] = Field(default=None, alias="statedAnnualRevenue")
    requested_amount: Optional[float] = Field(default=None, alias="requestedAmount")
    business_start_date: Optional[datetime.date] = Field(default=None, alias="businessStartDate")
    state: Optional[str] = None

    @field_validator("business_name", "industry", "state", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text_or_none(value)

    @field_validator("stated_annual_revenue", "requested_amount", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> Optional[float]:
        return parse_number(value, allow_text=True)

    @field_validator("business_start_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[datetime.date]:
        return parse_date(value)


class VerificationRecord(BaseModel):
    """Result of a business-registry (Secretary of State) lookup"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    found: bool = False
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    status: Optional[str] = None
    registration_date: Optional[datetime.date] = Field(default=None, alias="registrationDate")
    business_name: Optional[str] = Field(default=None, alias="businessName")
    matched_business_name: Optional[str] = Field(default=None, alias="matchedBusinessName")
    state: Optional[str] = None
    checked_at: Optional[datetime.datetime] = Field(default=None, alias="timestamp")

    @field_validator("status", "business_name", "matched_business_name", "state", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text_or_none(value)

    @field_validator("registration_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[datetime.date]:
        return parse_date(value)


@dataclass(frozen=True)
class NsfMetrics:
    """NSF/overdraft events found by keyword"""

    nsf_count: int
    nsf_total: float
    nsf_transactions: Tuple[Transaction, ...] = ()


@dataclass(frozen=True)
class DepositWithdrawalTotals:
    total_deposits: float
    total_withdrawals: float
    deposit_count: int
    withdrawal_count: int


@dataclass(frozen=True)
class BalanceMetrics:
    """Result of the day-by-day balance walk"""

    average_daily_balance: float
    lowest_balance: float
    highest_balance: float
    closing_balance: float
    period_days: int
    negative_balance_days: Tuple[datetime.date, ...] = ()


@dataclass(frozen=True)
class IntervalStats:
    """Statistics over day-gaps between consecutive income deposits"""

    mean: float = 0.0
    variance: float = 0.0
    standard_deviation: float = 0.0
    median: float = 0.0
    min: int = 0
    max: int = 0
    count: int = 0


class StabilityLevel(str, Enum):
    VERY_STABLE = "VERY_STABLE"
    STABLE = "STABLE"
    MODERATE = "MODERATE"
    UNSTABLE = "UNSTABLE"
    VERY_UNSTABLE = "VERY_UNSTABLE"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


@dataclass(frozen=True)
class StabilityInterpretation:
    level: StabilityLevel
    description: str
    recommendation: str


@dataclass(frozen=True)
class IncomeStability:
    """Interval-based income regularity score (0-100)"""

    stability_score: int
    interval_stats: IntervalStats
    interpretation: StabilityInterpretation
    intervals: Tuple[int, ...] = ()
    income_transaction_count: int = 0
    total_income_amount: float = 0.0
    average_income_amount: float = 0.0
    recommendations: Tuple[str, ...] = ()

    @property
    def stability_ratio(self) -> float:
        return self.stability_score / 100

    @property
    def has_sufficient_data(self) -> bool:
        return self.interpretation.level != StabilityLevel.INSUFFICIENT_DATA


@dataclass(frozen=True)
class CashFlowMetrics:
    net_cash_flow: float
    withdrawal_ratio: Optional[float]  # None when there were no deposits
    velocity_ratio: Optional[float]  # None when the average balance is not positive


@dataclass(frozen=True)
class BusinessMetrics:
    total_business_deposits: float = 0.0
    total_business_expenses: float = 0.0
    business_transaction_count: int = 0

    @property
    def has_business_activity(self) -> bool:
        return self.business_transaction_count > 0

    @property
    def profit_ratio(self) -> Optional[float]:
        if self.total_business_deposits <= 0:
            return None
        return (self.total_business_deposits - self.total_business_expenses) / self.total_business_deposits


@dataclass(frozen=True)
class MetricsBundle:
    """All per-statement figures consumed by scoring and alert rules"""

    nsf_count: int
    nsf_total: float
    total_deposits: float
    total_withdrawals: float
    deposit_count: int
    withdrawal_count: int
    transaction_count: int
    average_daily_balance: float
    lowest_balance: float
    highest_balance: float
    closing_balance: float
    period_days: int
    income_stability: IncomeStability
    cash_flow: CashFlowMetrics
    business: BusinessMetrics = field(default_factory=BusinessMetrics)
    negative_balance_days: Tuple[datetime.date, ...] = ()
    has_negative_balance: Optional[bool] = None
    nsf_transactions: Tuple[Transaction, ...] = ()


class RiskLevel(str, Enum):
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


@dataclass(frozen=True)
class Score:
    """Veritas Score on the 300-850 scale (higher = safer)"""

    value: float
    risk_level: RiskLevel
    factor_breakdown: Dict[str, float]
    min_value: float = 300.0
    max_value: float = 850.0

    @property
    def credit_quality(self) -> float:
        """0-100 view of the score, higher = safer"""
        span = self.max_value - self.min_value
        return round((self.value - self.min_value) / span * 100, 2)

    @property
    def risk_score(self) -> float:
        """0-100 view of the score, higher = riskier"""
        return round(100 - self.credit_quality, 2)


@dataclass(frozen=True)
class StatementAnalysis:
    """One statement's transactions with the metrics and score derived from them"""

    transactions: Tuple[Transaction, ...]
    metrics: MetricsBundle
    score: Score
    statement_id: Optional[str] = None

    @classmethod
    def build(
        cls,
        transactions: Sequence[Transaction],
        metrics: MetricsBundle,
        score: Score,
        statement_id: Optional[str] = None,
    ) -> "StatementAnalysis":
        return cls(transactions=tuple(transactions), metrics=metrics, score=score, statement_id=statement_id)
