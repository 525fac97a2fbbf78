"""Prometheus metrics for the Installment Gateway service.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- installment_plans_created_total: Plans opened at checkout
- installment_checkout_rejections_total: Checkouts refused, by reason
- installment_sale_confirmations_total: Seller sale decisions
- installment_tranche_validations_total: Seller tranche decisions
- installment_penalties_cents_total: Late penalties collected
- installment_plans_completed_total: Plans fully repaid
- installment_products_suspended_total: Products auto-suspended

Technical Metrics (for Engineering/SRE):
- installment_sweep_duration_seconds: Reconciliation pass latency
- installment_sweep_orders_total: Orders visited by the sweeper
- installment_order_conflicts_total: Optimistic-lock conflicts
- installment_notification_delivery_total: Outbox deliveries by outcome
- installment_notification_latency_seconds: Dispatcher latency
- installment_restriction_check_latency_seconds: Users service latency
- installment_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

plans_created_total = Counter(
    "installment_plans_created_total",
    "Total number of installment plans created",
    ["risk_level"],
)

checkout_rejections_total = Counter(
    "installment_checkout_rejections_total",
    "Checkouts rejected before any side effect",
    ["reason"],
)

sale_confirmations_total = Counter(
    "installment_sale_confirmations_total",
    "Seller decisions on the initial payment",
    ["outcome"],  # confirmed, rejected
)

tranche_proofs_total = Counter(
    "installment_tranche_proofs_total",
    "Tranche payment proofs submitted by buyers",
)

tranche_validations_total = Counter(
    "installment_tranche_validations_total",
    "Seller decisions on tranche proofs",
    ["outcome", "timeliness"],  # approved/rejected, on_time/late
)

penalties_cents_total = Counter(
    "installment_penalties_cents_total",
    "Late penalties collected, in cents",
)

plans_completed_total = Counter(
    "installment_plans_completed_total",
    "Installment plans fully repaid",
)

products_suspended_total = Counter(
    "installment_products_suspended_total",
    "Products whose installment offer was suspended automatically",
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

sweep_duration = Histogram(
    "installment_sweep_duration_seconds",
    "Reconciliation sweep latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

sweep_orders_total = Counter(
    "installment_sweep_orders_total",
    "Orders visited by the reconciliation sweeper",
)

sweep_notifications_total = Counter(
    "installment_sweep_notifications_total",
    "Notifications produced by the sweeper",
    ["kind"],  # reminder, overdue
)

order_conflicts_total = Counter(
    "installment_order_conflicts_total",
    "Order updates rejected by the optimistic version check",
    ["source"],  # request, sweeper
)

notification_delivery_total = Counter(
    "installment_notification_delivery_total",
    "Outbox notification delivery attempts by outcome",
    ["status"],  # sent, retrying, failed
)

notification_enqueue_failures_total = Counter(
    "installment_notification_enqueue_failures_total",
    "Notifications that could not be written to the outbox",
)

notification_latency = Histogram(
    "installment_notification_latency_seconds",
    "Notification dispatcher latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

restriction_check_latency = Histogram(
    "installment_restriction_check_latency_seconds",
    "Users service restriction lookup latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

restriction_check_failures = Counter(
    "installment_restriction_check_failures_total",
    "Failed restriction lookups",
    ["error_type"],  # timeout, error, not_found
)

http_requests_total = Counter(
    "installment_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "installment_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_plan_created(risk_level: str) -> None:
    """Record a new installment plan."""
    plans_created_total.labels(risk_level=risk_level).inc()


def record_checkout_rejection(reason: str) -> None:
    """Record a refused checkout (the domain error code)."""
    checkout_rejections_total.labels(reason=reason).inc()


def record_sale_confirmation(confirmed: bool) -> None:
    outcome = "confirmed" if confirmed else "rejected"
    sale_confirmations_total.labels(outcome=outcome).inc()


def record_tranche_proof() -> None:
    tranche_proofs_total.inc()


def record_tranche_validation(approved: bool, penalty_cents: int = 0) -> None:
    """Record a seller decision on a tranche proof."""
    outcome = "approved" if approved else "rejected"
    timeliness = "late" if penalty_cents > 0 else "on_time"
    tranche_validations_total.labels(outcome=outcome, timeliness=timeliness).inc()
    if penalty_cents > 0:
        penalties_cents_total.inc(penalty_cents)


def record_plan_completed() -> None:
    plans_completed_total.inc()


def record_product_suspended() -> None:
    products_suspended_total.inc()


@contextmanager
def track_sweep_duration() -> Generator[None, None, None]:
    """Context manager to track a reconciliation pass."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        sweep_duration.observe(duration)


def record_sweep_order() -> None:
    sweep_orders_total.inc()


def record_sweep_notification(kind: str) -> None:
    sweep_notifications_total.labels(kind=kind).inc()


def record_order_conflict(source: str) -> None:
    """Record an optimistic-lock conflict."""
    order_conflicts_total.labels(source=source).inc()


@contextmanager
def track_notification_latency() -> Generator[None, None, None]:
    """Context manager to track notification dispatcher latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        notification_latency.observe(duration)


def record_notification_delivery(status: str) -> None:
    notification_delivery_total.labels(status=status).inc()


def record_notification_enqueue_failure() -> None:
    notification_enqueue_failures_total.inc()


@contextmanager
def track_restriction_check_latency() -> Generator[None, None, None]:
    """Context manager to track users service latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        restriction_check_latency.observe(duration)


def record_restriction_check_failure(error_type: str) -> None:
    restriction_check_failures.labels(error_type=error_type).inc()


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
