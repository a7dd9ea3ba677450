"""Prometheus metric definitions for the ledger service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


ledger_operations_total = Counter(
    "ledger_operations_total",
    "Ledger operations by outcome",
    ["service", "operation", "outcome"],
)
ledger_operation_latency_seconds = Histogram(
    "ledger_operation_latency_seconds",
    "Latency of deposit/withdraw including lock wait",
    ["service", "operation"],
)
account_lock_wait_seconds = Histogram(
    "account_lock_wait_seconds",
    "Time spent waiting for the per-account write lock",
    ["service"],
)
append_conflicts_total = Counter(
    "append_conflicts_total",
    "Appends rejected by the (account_id, sequence) constraint",
    ["service"],
)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
