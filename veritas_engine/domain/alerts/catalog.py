"""Alert vocabulary - severities, codes, summary categories and the Alert record"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Sort rank: CRITICAL=0 first, LOW=3 last"""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.HIGH: 1, Severity.MEDIUM: 2, Severity.LOW: 3}


class AlertCode(str, Enum):
    HIGH_NSF_COUNT = "HIGH_NSF_COUNT"
    LOW_AVERAGE_BALANCE = "LOW_AVERAGE_BALANCE"
    NEGATIVE_BALANCE_DAYS = "NEGATIVE_BALANCE_DAYS"
    HIGH_VELOCITY_RATIO = "HIGH_VELOCITY_RATIO"
    INCOME_INSTABILITY = "INCOME_INSTABILITY"
    NEGATIVE_CASH_FLOW = "NEGATIVE_CASH_FLOW"
    HIGH_WITHDRAWAL_RATIO = "HIGH_WITHDRAWAL_RATIO"
    LARGE_DEPOSIT_PATTERN = "LARGE_DEPOSIT_PATTERN"
    POTENTIAL_STRUCTURING = "POTENTIAL_STRUCTURING"
    LARGE_CASH_WITHDRAWALS = "LARGE_CASH_WITHDRAWALS"
    EXCESSIVE_ATM_USAGE = "EXCESSIVE_ATM_USAGE"
    VERY_HIGH_CREDIT_RISK = "VERY_HIGH_CREDIT_RISK"
    HIGH_CREDIT_RISK = "HIGH_CREDIT_RISK"
    MODERATE_CREDIT_RISK = "MODERATE_CREDIT_RISK"
    HIGH_VOLUME_ACTIVITY = "HIGH_VOLUME_ACTIVITY"
    OFAC_SCREENING_REQUIRED = "OFAC_SCREENING_REQUIRED"
    INCOMPLETE_APPLICATION_DATA = "INCOMPLETE_APPLICATION_DATA"
    DATA_INCONSISTENCY = "DATA_INCONSISTENCY"
    INSUFFICIENT_TRANSACTION_DATA = "INSUFFICIENT_TRANSACTION_DATA"
    SUSPICIOUS_ROUND_AMOUNTS = "SUSPICIOUS_ROUND_AMOUNTS"
    UNUSUAL_TIMING_PATTERN = "UNUSUAL_TIMING_PATTERN"
    HIGH_DEBT_SERVICE_RATIO = "HIGH_DEBT_SERVICE_RATIO"
    HIGH_RISK_INDUSTRY = "HIGH_RISK_INDUSTRY"
    CASH_INTENSIVE_HIGH_VELOCITY = "CASH_INTENSIVE_HIGH_VELOCITY"
    INCONSISTENT_NSF_PATTERNS = "INCONSISTENT_NSF_PATTERNS"
    BALANCE_INCONSISTENCY = "BALANCE_INCONSISTENCY"
    MULTI_ACCOUNT_HIGH_RISK = "MULTI_ACCOUNT_HIGH_RISK"
    ANNUAL_REVENUE_DISCREPANCY = "ANNUAL_REVENUE_DISCREPANCY"
    BUSINESS_NOT_VERIFIED = "BUSINESS_NOT_VERIFIED"
    BUSINESS_INACTIVE_STATUS = "BUSINESS_INACTIVE_STATUS"
    BUSINESS_NAME_MISMATCH = "BUSINESS_NAME_MISMATCH"
    NEWLY_REGISTERED_BUSINESS = "NEWLY_REGISTERED_BUSINESS"
    TIME_IN_BUSINESS_DISCREPANCY = "TIME_IN_BUSINESS_DISCREPANCY"
    ALERT_GENERATION_ERROR = "ALERT_GENERATION_ERROR"


class AlertCategory(str, Enum):
    NSF = "NSF & Overdrafts"
    BALANCE = "Balance Issues"
    VELOCITY = "Transaction Velocity"
    INCOME = "Income Stability"
    CASH_FLOW = "Cash Flow"
    DEPOSITS = "Deposit Patterns"
    BUSINESS_VERIFICATION = "Business Verification"
    CREDIT_RISK = "Credit Risk"
    COMPLIANCE = "Compliance"
    DATA_QUALITY = "Data Quality"
    FRAUD = "Fraud Indicators"
    DEBT_SERVICE = "Debt Service"
    INDUSTRY = "Industry Risk"
    OTHER = "Other"


ALERT_CATEGORIES: Mapping[AlertCode, AlertCategory] = {
    AlertCode.HIGH_NSF_COUNT: AlertCategory.NSF,
    AlertCode.INCONSISTENT_NSF_PATTERNS: AlertCategory.NSF,
    AlertCode.LOW_AVERAGE_BALANCE: AlertCategory.BALANCE,
    AlertCode.NEGATIVE_BALANCE_DAYS: AlertCategory.BALANCE,
    AlertCode.BALANCE_INCONSISTENCY: AlertCategory.BALANCE,
    AlertCode.HIGH_VELOCITY_RATIO: AlertCategory.VELOCITY,
    AlertCode.CASH_INTENSIVE_HIGH_VELOCITY: AlertCategory.VELOCITY,
    AlertCode.INCOME_INSTABILITY: AlertCategory.INCOME,
    AlertCode.NEGATIVE_CASH_FLOW: AlertCategory.CASH_FLOW,
    AlertCode.HIGH_WITHDRAWAL_RATIO: AlertCategory.CASH_FLOW,
    AlertCode.LARGE_CASH_WITHDRAWALS: AlertCategory.CASH_FLOW,
    AlertCode.EXCESSIVE_ATM_USAGE: AlertCategory.CASH_FLOW,
    AlertCode.LARGE_DEPOSIT_PATTERN: AlertCategory.DEPOSITS,
    AlertCode.POTENTIAL_STRUCTURING: AlertCategory.DEPOSITS,
    AlertCode.ANNUAL_REVENUE_DISCREPANCY: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.BUSINESS_NOT_VERIFIED: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.BUSINESS_INACTIVE_STATUS: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.BUSINESS_NAME_MISMATCH: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.NEWLY_REGISTERED_BUSINESS: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.TIME_IN_BUSINESS_DISCREPANCY: AlertCategory.BUSINESS_VERIFICATION,
    AlertCode.VERY_HIGH_CREDIT_RISK: AlertCategory.CREDIT_RISK,
    AlertCode.HIGH_CREDIT_RISK: AlertCategory.CREDIT_RISK,
    AlertCode.MODERATE_CREDIT_RISK: AlertCategory.CREDIT_RISK,
    AlertCode.MULTI_ACCOUNT_HIGH_RISK: AlertCategory.CREDIT_RISK,
    AlertCode.HIGH_VOLUME_ACTIVITY: AlertCategory.COMPLIANCE,
    AlertCode.OFAC_SCREENING_REQUIRED: AlertCategory.COMPLIANCE,
    AlertCode.INCOMPLETE_APPLICATION_DATA: AlertCategory.DATA_QUALITY,
    AlertCode.DATA_INCONSISTENCY: AlertCategory.DATA_QUALITY,
    AlertCode.INSUFFICIENT_TRANSACTION_DATA: AlertCategory.DATA_QUALITY,
    AlertCode.SUSPICIOUS_ROUND_AMOUNTS: AlertCategory.FRAUD,
    AlertCode.UNUSUAL_TIMING_PATTERN: AlertCategory.FRAUD,
    AlertCode.HIGH_DEBT_SERVICE_RATIO: AlertCategory.DEBT_SERVICE,
    AlertCode.HIGH_RISK_INDUSTRY: AlertCategory.INDUSTRY,
    AlertCode.ALERT_GENERATION_ERROR: AlertCategory.OTHER,
}


def category_for(code: AlertCode) -> AlertCategory:
    return ALERT_CATEGORIES.get(code, AlertCategory.OTHER)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Alert:
    """One risk or compliance finding produced by a rule"""

    code: AlertCode
    severity: Severity
    title: str
    message: str
    recommendation: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)
    statement_index: Optional[int] = None

    @property
    def category(self) -> AlertCategory:
        return category_for(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "recommendation": self.recommendation,
            "data": dict(self.data),
            "timestamp": self.timestamp.isoformat(),
            "statement_index": self.statement_index,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class AlertSummary:
    """Counts by severity plus alerts grouped by summary category"""

    total: int
    critical: int
    high: int
    medium: int
    low: int
    categories: Dict[str, List[Alert]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "categories": {name: [a.code.value for a in alerts] for name, alerts in self.categories.items()},
        }
