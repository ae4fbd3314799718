"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    Notifications:
        - notification_created_total - Notifications created by type
        - notification_delivered_total - Channel deliveries by channel and status
        - notification_delivery_duration_seconds - Time spent per channel send
        - notification_read_total - Notifications marked read

    Live stream:
        - notification_stream_connections - Open streams
        - notification_stream_events_total - Events emitted by event name
        - notification_stream_poll_failures_total - Failed store polls

    Application Info:
        - application_info - Service version, name and environment labels
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from taskboard_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose metrics in the Prometheus text format."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
