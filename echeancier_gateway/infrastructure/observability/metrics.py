"""Prometheus metrics for monitoring schedule regenerations and ledger churn"""

from prometheus_client import Counter, Histogram

# Regeneration metrics
regeneration_counter = Counter(
    "echeancier_regeneration_total",
    "Total echeancier regenerations attempted",
    ["outcome"],  # success | configuration_error | not_found | error
)

coupons_created_counter = Counter(
    "echeancier_coupons_created_total",
    "Pending coupons written by regenerations",
)

pending_deleted_counter = Counter(
    "echeancier_pending_coupons_deleted_total",
    "Pending coupons removed by regenerations",
)

frequency_fallback_counter = Counter(
    "echeancier_frequency_fallback_total",
    "Regenerations that used the annual fallback for an unknown coupon frequency",
)

regeneration_duration_histogram = Histogram(
    "echeancier_regeneration_duration_seconds",
    "End-to-end regeneration time including database writes",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_regeneration(
    outcome: str,
    created_coupons: int = 0,
    deleted_pending_coupons: int = 0,
    frequency_fallback: bool = False,
) -> None:
    """Record one regeneration attempt and the ledger rows it touched"""
    regeneration_counter.labels(outcome=outcome).inc()
    if created_coupons:
        coupons_created_counter.inc(created_coupons)
    if deleted_pending_coupons:
        pending_deleted_counter.inc(deleted_pending_coupons)
    if frequency_fallback:
        frequency_fallback_counter.inc()
