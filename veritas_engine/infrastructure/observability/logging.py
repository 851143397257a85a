"""Structured JSON logging for scoring and alert runs"""

import logging
import sys
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from pythonjsonlogger import jsonlogger

from veritas_engine.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with time, level and service name"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: Optional[str] = None) -> None:
    """Route the root logger to stdout as JSON"""
    logger = logging.getLogger()
    logger.setLevel(level or settings.log_level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_statement_analysis(
    statement_id: Optional[str],
    transaction_count: int,
    score: float,
    risk_level: str,
    duration_ms: float,
) -> None:
    logging.getLogger("veritas_engine.analysis").info(
        "Statement analyzed",
        extra={
            "step": "statement_analyzed",
            "statement_id": statement_id,
            "transaction_count": transaction_count,
            "veritas_score": score,
            "risk_level": risk_level,
            "duration_ms": duration_ms,
        },
    )


def log_alert_run(statement_count: int, alerts: Sequence[Any], duration_ms: float) -> None:
    """Log one structured record summarizing an alert generation run"""
    severities = Counter(alert.severity.value for alert in alerts)
    logging.getLogger("veritas_engine.alerts").info(
        "Alert generation completed",
        extra={
            "step": "alerts_generated",
            "statement_count": statement_count,
            "alert_count": len(alerts),
            "severity_counts": dict(severities),
            "alert_codes": [alert.code.value for alert in alerts],
            "duration_ms": duration_ms,
        },
    )
