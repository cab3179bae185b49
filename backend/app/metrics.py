"""Prometheus metrics for monitoring.

Tracks request latency, per-provider validation outcomes and batch sizes.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, Info

# Application info
APP_INFO = Info("keycheck_app", "AI Key Checker application info")

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "keycheck_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "keycheck_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Key validation metrics
KEY_VALIDATIONS_TOTAL = Counter(
    "keycheck_key_validations_total",
    "Total key validations",
    ["provider", "outcome"],
)

KEY_VALIDATION_DURATION = Histogram(
    "keycheck_key_validation_duration_seconds",
    "Provider validation call duration",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

BATCH_SIZE = Histogram(
    "keycheck_batch_size",
    "Number of keys per batch request",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500),
)
