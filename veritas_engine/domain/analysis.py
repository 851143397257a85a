"""Statement analysis pipeline - metrics then score for one bank statement"""

import logging
import time
from typing import Optional

from veritas_engine.domain.metrics import calculate_metrics
from veritas_engine.domain.models import Score, StatementAnalysis, parse_transactions
from veritas_engine.domain.scoring import calculate_veritas_score
from veritas_engine.domain.thresholds import DEFAULT_CONFIG, EngineConfig
from veritas_engine.infrastructure.observability.logging import log_statement_analysis
from veritas_engine.infrastructure.observability.metrics import record_score

logger = logging.getLogger(__name__)


def analyze_statement(
    transactions,
    opening_balance,
    statement_id: Optional[str] = None,
    has_negative_balance: Optional[bool] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> StatementAnalysis:
    """
    Run the metrics engine and score synthesis over one statement.

    The returned StatementAnalysis is the unit the alert engine consumes.

    Raises:
        InvalidTransactionDataError: transactions is not a list of records
        InvalidOpeningBalanceError: opening_balance is not a finite number
    """
    start_time = time.time()

    parsed = parse_transactions(transactions)
    metrics = calculate_metrics(parsed, opening_balance, config, has_negative_balance=has_negative_balance)
    score = calculate_veritas_score(metrics, config)

    duration_ms = (time.time() - start_time) * 1000
    record_score(score.value, score.risk_level.value)
    log_statement_analysis(statement_id, len(parsed), score.value, score.risk_level.value, duration_ms)

    return StatementAnalysis.build(parsed, metrics, score, statement_id=statement_id)


def quick_score(transactions, opening_balance, config: EngineConfig = DEFAULT_CONFIG) -> Score:
    """Score only, for callers that do not need alerts"""
    metrics = calculate_metrics(transactions, opening_balance, config)
    return calculate_veritas_score(metrics, config)
