"""Prometheus metrics helpers for the webhook relay."""
from __future__ import annotations

from prometheus_client import Counter, Histogram

WEBHOOK_REQUEST_COUNT = Counter(
    "relay_webhook_request_total",
    "Number of inbound webhook requests by HTTP outcome",
    labelnames=("status",),
)

WEBHOOK_EVENT_COUNT = Counter(
    "relay_webhook_event_total",
    "Verified Stripe events by type and handler outcome",
    labelnames=("event_type", "outcome"),
)

WEBHOOK_DISPATCH_LATENCY = Histogram(
    "relay_webhook_dispatch_duration_seconds",
    "Time spent dispatching a verified Stripe event",
    labelnames=("event_type",),
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

DOWNSTREAM_FAILURE_COUNT = Counter(
    "relay_downstream_failure_total",
    "Side effects that failed while handling a webhook",
    labelnames=("target",),
)
