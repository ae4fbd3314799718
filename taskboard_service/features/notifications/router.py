"""API router for the notifications feature.

Endpoints (caller identity from ``X-User-Id``):
- GET  /notifications                      - List own notifications
- POST /notifications                      - Dispatch a notification
- GET  /notifications/unread-count         - Unread counter
- GET  /notifications/stats                - Total/unread/read/today counters
- GET  /notifications/channels             - Channels usable for the caller
- GET  /notifications/contact              - Caller's contact details
- PUT  /notifications/contact              - Update caller's contact details
- GET  /notifications/stream               - Live Server-Sent Events stream
- POST /notifications/mark-all-read        - Mark every unread notification read
- GET  /notifications/templates            - List active templates
- POST /notifications/templates/seed       - Create missing default templates
- GET  /notifications/{notification_id}    - One own notification
- POST /notifications/{notification_id}/mark-read - Mark one notification read
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import StreamingResponse

from taskboard_service.features.notifications.dependencies import (
    CurrentUserIdDep,
    NotificationServiceDep,
    NotificationSettingsDep,
    NotificationTemplateServiceDep,
    PublisherFactoryDep,
    SessionDep,
)
from taskboard_service.features.notifications.schemas import (
    AvailableChannelsResponse,
    MarkAllReadResponse,
    NotificationContactResponse,
    NotificationContactUpdate,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    NotificationStatsResponse,
    NotificationTemplateListResponse,
    NotificationTemplateResponse,
    SeedTemplatesResponse,
    UnreadCountResponse,
)
from taskboard_service.features.notifications.stream import LiveStreamPublisher
from taskboard_service.infra.logging import get_lazy_logger

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ============================================================================
# Notifications
# ============================================================================


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List own notifications",
)
async def list_notifications(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
    unread_only: Annotated[bool, Query(description="Only return unread notifications")] = False,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 50,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
) -> NotificationListResponse:
    """List notifications for the caller, newest first."""
    notifications, total = await service.list_notifications(
        session,
        user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Dispatch a notification",
    description="""
Create a notification and attempt every requested channel once.

Channel failures don't fail the request; inspect `channel_status` for the
per-channel outcome (`sent` or `failed` with a `reason`).
""",
)
async def create_notification(
    payload: NotificationCreate,
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationResponse:
    notification = await service.send_notification(
        session,
        payload.recipient_id or user_id,
        payload.title,
        payload.message,
        type=payload.type,
        channels=payload.channels,
        metadata=payload.metadata,
        template_key=payload.template_key,
        template_variables=payload.template_variables,
    )
    return NotificationResponse.model_validate(notification)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread counter")
async def unread_count(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.get_unread_count(session, user_id))


@router.get("/stats", response_model=NotificationStatsResponse, summary="Notification counters")
async def notification_stats(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationStatsResponse:
    stats = await service.get_stats(session, user_id)
    return NotificationStatsResponse.model_validate(stats)


@router.get(
    "/channels",
    response_model=AvailableChannelsResponse,
    summary="Channels usable for the caller",
)
async def available_channels(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> AvailableChannelsResponse:
    return AvailableChannelsResponse(channels=await service.available_channels(session, user_id))


# ============================================================================
# Contact
# ============================================================================


@router.get("/contact", response_model=NotificationContactResponse, summary="Own contact details")
async def get_contact(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationContactResponse:
    contact = await service.get_contact(session, user_id)
    if contact is None:
        return NotificationContactResponse(recipient_id=user_id)
    return NotificationContactResponse.model_validate(contact)


@router.put("/contact", response_model=NotificationContactResponse, summary="Update contact details")
async def update_contact(
    payload: NotificationContactUpdate,
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationContactResponse:
    contact = await service.update_contact(session, user_id, **payload.model_dump(exclude_unset=True))
    return NotificationContactResponse.model_validate(contact)


# ============================================================================
# Live stream
# ============================================================================


async def _watch_disconnect(request: Request, publisher: LiveStreamPublisher, interval: float) -> None:
    """Cancel ``publisher`` once the client goes away."""
    while not publisher.cancelled:
        if await request.is_disconnected():
            lazy_logger.debug(lambda: f"stream client for {publisher.recipient_id} disconnected")
            publisher.cancel()
            return
        await asyncio.sleep(interval)


async def _sse_body(
    request: Request,
    publisher: LiveStreamPublisher,
    check_interval: float,
) -> AsyncIterator[str]:
    watcher = asyncio.create_task(_watch_disconnect(request, publisher, check_interval))
    try:
        async with contextlib.aclosing(publisher.events()) as events:
            async for event in events:
                yield event.to_sse()
    finally:
        publisher.cancel()
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


@router.get(
    "/stream",
    summary="Live notification stream",
    description="""
Server-Sent Events stream of new unread notifications.

Events: `connected`, `notification`, `heartbeat`, `disconnected`. The stream
closes itself after the configured number of poll cycles
(`disconnected.reason = "timeout"`); clients reconnect.
""",
    response_class=StreamingResponse,
)
async def stream_notifications(
    request: Request,
    user_id: CurrentUserIdDep,
    publisher_factory: PublisherFactoryDep,
    settings: NotificationSettingsDep,
) -> StreamingResponse:
    publisher = publisher_factory(user_id)
    return StreamingResponse(
        _sse_body(request, publisher, settings.stream_disconnect_check_interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


# ============================================================================
# Read-state
# ============================================================================


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications read",
)
async def mark_all_read(
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> MarkAllReadResponse:
    """Mark the caller's current unread notifications read.

    Notifications created while the request runs stay unread.
    """
    return MarkAllReadResponse(marked_count=await service.mark_all_as_read(session, user_id))


# ============================================================================
# Templates
# ============================================================================


@router.get(
    "/templates",
    response_model=NotificationTemplateListResponse,
    summary="List active templates",
)
async def list_templates(
    _user_id: CurrentUserIdDep,
    session: SessionDep,
    template_service: NotificationTemplateServiceDep,
) -> NotificationTemplateListResponse:
    templates = await template_service.list_templates(session)
    return NotificationTemplateListResponse(
        items=[NotificationTemplateResponse.model_validate(t) for t in templates],
        total=len(templates),
    )


@router.post(
    "/templates/seed",
    response_model=SeedTemplatesResponse,
    summary="Create missing default templates",
)
async def seed_templates(
    _user_id: CurrentUserIdDep,
    session: SessionDep,
    template_service: NotificationTemplateServiceDep,
) -> SeedTemplatesResponse:
    created = await template_service.seed_defaults(session)
    await session.commit()
    return SeedTemplatesResponse(created=created)


# ============================================================================
# Single notification
# ============================================================================


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    summary="Get one notification",
    responses={404: {"description": "Notification not found"}},
)
async def get_notification(
    notification_id: UUID,
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationResponse:
    notification = await service.get_notification(session, notification_id, user_id)
    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/mark-read",
    response_model=NotificationResponse,
    summary="Mark notification as read",
    description="Idempotent: marking an already-read notification returns it unchanged.",
    responses={404: {"description": "Notification not found"}},
)
async def mark_notification_read(
    notification_id: UUID,
    user_id: CurrentUserIdDep,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationResponse:
    notification = await service.mark_as_read(session, notification_id, user_id)
    return NotificationResponse.model_validate(notification)
