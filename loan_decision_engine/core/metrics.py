"""Prometheus metrics for the Loan Decision Engine.

Metrics are organized into two categories:

Business Metrics (for Credit/Operations):
- lde_decision_total: Decisions by result and source
- lde_override_total: Overrides by new result
- lde_rule_triggered_total: Triggered rules by action

Technical Metrics (for Engineering/SRE):
- lde_operation_latency_seconds: Decisioning operation latency
- lde_credit_check_total: Credit bureau requests by status
- lde_credit_check_failures_total: Credit bureau failures by error type
- lde_credit_check_latency_seconds: Credit bureau latency
- lde_rule_evaluation_failures_total: Rules that failed to evaluate
- lde_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Credit/Operations dashboards)
# =============================================================================

decision_total = Counter(
    "lde_decision_total",
    "Total number of loan decisions recorded",
    ["result", "source"],
)

override_total = Counter(
    "lde_override_total",
    "Total number of decision overrides",
    ["result"],
)

rule_triggered_total = Counter(
    "lde_rule_triggered_total",
    "Total number of triggered decisioning rules",
    ["action"],
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

operation_latency = Histogram(
    "lde_operation_latency_seconds",
    "Decisioning operation latency in seconds",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

credit_check_latency = Histogram(
    "lde_credit_check_latency_seconds",
    "Credit bureau request latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

credit_check_total = Counter(
    "lde_credit_check_total",
    "Total number of credit bureau requests",
    ["status"],  # success, failure
)

credit_check_failures = Counter(
    "lde_credit_check_failures_total",
    "Total number of credit bureau failures",
    ["error_type"],  # timeout, error, invalid_response
)

rule_evaluation_failures = Counter(
    "lde_rule_evaluation_failures_total",
    "Total number of rules that could not be evaluated",
    ["ruleset_id"],
)

http_requests_total = Counter(
    "lde_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "lde_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_decision(result: str, source: str) -> None:
    """Record a persisted decision."""
    decision_total.labels(result=result, source=source).inc()


def record_override(result: str) -> None:
    """Record a decision override."""
    override_total.labels(result=result).inc()


def record_rule_triggered(action: str) -> None:
    """Record a rule whose condition evaluated to true."""
    rule_triggered_total.labels(action=action).inc()


def record_rule_evaluation_failure(ruleset_id: str) -> None:
    """Record a rule that could not be evaluated."""
    rule_evaluation_failures.labels(ruleset_id=ruleset_id).inc()


@contextmanager
def track_operation_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track decisioning operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        operation_latency.labels(operation=operation).observe(duration)


@contextmanager
def track_credit_check_latency() -> Generator[None, None, None]:
    """Context manager to track credit bureau latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        credit_check_latency.observe(duration)


def record_credit_check_success() -> None:
    """Record a successful credit bureau request."""
    credit_check_total.labels(status="success").inc()


def record_credit_check_failure(error_type: str) -> None:
    """Record a credit bureau failure."""
    credit_check_total.labels(status="failure").inc()
    credit_check_failures.labels(error_type=error_type).inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
