"""Prometheus metrics for score distribution, alert volume and rule health"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from veritas_engine.config import settings

# Scoring metrics
statements_analyzed_counter = Counter(
    "veritas_statements_analyzed_total",
    "Bank statements run through the metrics and scoring pipeline",
    ["risk_level"],  # VERY_LOW | LOW | MEDIUM | HIGH | VERY_HIGH
)

score_histogram = Histogram(
    "veritas_score",
    "Distribution of Veritas Scores",
    buckets=[300, 450, 550, 650, 750, 850],
)

# Alert metrics
alerts_counter = Counter(
    "veritas_alerts_total",
    "Alerts raised by code and severity",
    ["severity", "code"],
)

rule_failure_counter = Counter(
    "veritas_rule_failures_total",
    "Alert rules that raised and were skipped",
    ["rule"],
)

alert_generation_histogram = Histogram(
    "veritas_alert_generation_seconds",
    "Time to evaluate every alert rule for one request",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)


def record_score(score_value: float, risk_level: str) -> None:
    if not settings.metrics_enabled:
        return
    statements_analyzed_counter.labels(risk_level=risk_level).inc()
    score_histogram.observe(score_value)


def record_alerts(alerts: Iterable, duration_seconds: float) -> None:
    """Count every alert by severity and code and time the run"""
    if not settings.metrics_enabled:
        return
    for alert in alerts:
        alerts_counter.labels(severity=alert.severity.value, code=alert.code.value).inc()
    alert_generation_histogram.observe(duration_seconds)


def record_rule_failure(rule: str) -> None:
    if not settings.metrics_enabled:
        return
    rule_failure_counter.labels(rule=rule).inc()
