"""FastAPI dependencies and composition root for the notifications feature.

Backends are built once from settings and injected into the channel senders;
the dispatcher, service and stream publishers receive them from here.

Example usage:
    @router.get("/notifications/unread-count")
    async def unread_count(
        user_id: CurrentUserIdDep,
        session: SessionDep,
        service: NotificationServiceDep,
    ) -> UnreadCountResponse:
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from taskboard_service.core.dependencies import CurrentUserIdDep, SessionDep
from taskboard_service.core.settings import NotificationSettings, get_notification_settings
from taskboard_service.features.notifications.channels import (
    ChannelRegistry,
    build_channel_registry,
)
from taskboard_service.features.notifications.dispatcher import NotificationDispatcher
from taskboard_service.features.notifications.service import NotificationService
from taskboard_service.features.notifications.stream import LiveStreamPublisher, RepositoryFeed
from taskboard_service.features.notifications.templates import (
    NotificationTemplateService,
    get_notification_template_service,
)
from taskboard_service.infra.email import get_email_client
from taskboard_service.infra.notifier import build_notifiers

PublisherFactory = Callable[[str], LiveStreamPublisher]

_registry: ChannelRegistry | None = None
_dispatcher: NotificationDispatcher | None = None
_service: NotificationService | None = None


def get_channel_registry() -> ChannelRegistry:
    """Registry with senders wired to the configured backends (singleton)."""
    global _registry
    if _registry is None:
        _registry = build_channel_registry(
            get_email_client(),
            build_notifiers(get_notification_settings()),
        )
    return _registry


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get NotificationDispatcher instance (singleton)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(get_channel_registry())
    return _dispatcher


def get_notification_service() -> NotificationService:
    """Get NotificationService instance (singleton)."""
    global _service
    if _service is None:
        _service = NotificationService(get_notification_dispatcher())
    return _service


def get_stream_publisher_factory() -> PublisherFactory:
    """Factory building one publisher per stream connection."""
    settings = get_notification_settings()
    feed = RepositoryFeed()

    def factory(recipient_id: str) -> LiveStreamPublisher:
        return LiveStreamPublisher.from_settings(recipient_id, feed, settings)

    return factory


def reset_notification_dependencies() -> None:
    """Drop cached singletons so the next call rebuilds them from settings."""
    global _registry, _dispatcher, _service
    _registry = None
    _dispatcher = None
    _service = None


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
NotificationTemplateServiceDep = Annotated[
    NotificationTemplateService,
    Depends(get_notification_template_service),
]
NotificationSettingsDep = Annotated[NotificationSettings, Depends(get_notification_settings)]
PublisherFactoryDep = Annotated[PublisherFactory, Depends(get_stream_publisher_factory)]

__all__ = [
    "CurrentUserIdDep",
    "NotificationServiceDep",
    "NotificationSettingsDep",
    "NotificationTemplateServiceDep",
    "PublisherFactory",
    "PublisherFactoryDep",
    "SessionDep",
    "get_channel_registry",
    "get_notification_dispatcher",
    "get_notification_service",
    "get_stream_publisher_factory",
    "reset_notification_dependencies",
]
