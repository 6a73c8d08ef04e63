"""Prometheus metrics for monitoring settlements and document store health"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "swissone_settlement_total",
    "Settlement attempts by operation and outcome",
    ["operation", "outcome"],  # transfer | external_transfer | deposit, completed | <error code>
)

settlement_amount_histogram = Histogram(
    "swissone_settlement_amount",
    "Amounts moved by completed settlements",
    ["operation"],
    buckets=[10, 50, 100, 500, 1_000, 5_000, 10_000, 50_000],
)

# Document store metrics
store_latency_histogram = Histogram(
    "document_store_latency_seconds",
    "Document store response time",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

store_failure_counter = Counter(
    "document_store_failures_total",
    "Failed document store calls",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(operation: str, outcome: str, amount: float | None = None) -> None:
    """Record one settlement attempt; amounts only for completed ones"""
    settlement_counter.labels(operation=operation, outcome=outcome).inc()

    if outcome == "completed" and amount is not None:
        settlement_amount_histogram.labels(operation=operation).observe(amount)
