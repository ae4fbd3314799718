"""Metrics infrastructure for Prometheus monitoring."""

from __future__ import annotations

from prometheus_client import generate_latest

from taskboard_service.infra.metrics.prometheus import (
    DEFAULT_LATENCY_BUCKETS,
    REGISTRY,
    application_info,
)

__all__ = [
    "DEFAULT_LATENCY_BUCKETS",
    "REGISTRY",
    "application_info",
    "generate_latest",
]
