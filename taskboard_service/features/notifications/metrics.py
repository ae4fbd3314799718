"""Prometheus metrics for notification delivery and live streams.

Usage:
    from taskboard_service.features.notifications.metrics import (
        notification_delivered_total,
    )

    notification_delivered_total.labels(channel="email", status="sent").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from taskboard_service.infra.metrics.prometheus import DEFAULT_LATENCY_BUCKETS, REGISTRY

# =============================================================================
# Dispatch
# =============================================================================

notification_created_total = Counter(
    "notification_created_total",
    "Total number of notifications created",
    labelnames=["type"],
    registry=REGISTRY,
)

notification_delivered_total = Counter(
    "notification_delivered_total",
    "Total number of channel deliveries by channel and final status",
    labelnames=["channel", "status"],
    registry=REGISTRY,
)

notification_delivery_duration_seconds = Histogram(
    "notification_delivery_duration_seconds",
    "Time spent in one channel send",
    labelnames=["channel"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# =============================================================================
# Read-state
# =============================================================================

notification_read_total = Counter(
    "notification_read_total",
    "Total number of notifications marked read",
    registry=REGISTRY,
)

# =============================================================================
# Live stream
# =============================================================================

notification_stream_connections = Gauge(
    "notification_stream_connections",
    "Currently open notification streams",
    registry=REGISTRY,
)

notification_stream_events_total = Counter(
    "notification_stream_events_total",
    "Events emitted on notification streams",
    labelnames=["event"],
    registry=REGISTRY,
)

notification_stream_poll_failures_total = Counter(
    "notification_stream_poll_failures_total",
    "Failed store polls on notification streams",
    registry=REGISTRY,
)
