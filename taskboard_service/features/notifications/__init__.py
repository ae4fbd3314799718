"""Notifications: multi-channel dispatch, live stream and read-state.

Public entry points:
    NotificationDispatcher.send_notification  - persist, then fan out per channel
    NotificationService                       - read-state, queries, task helpers
    LiveStreamPublisher                       - per-connection SSE publisher
"""

from taskboard_service.features.notifications.dispatcher import NotificationDispatcher
from taskboard_service.features.notifications.models import (
    DeliveryStatus,
    Notification,
    NotificationContact,
    NotificationDelivery,
    NotificationTemplate,
    NotificationType,
)
from taskboard_service.features.notifications.service import NotificationService
from taskboard_service.features.notifications.stream import (
    LiveStreamPublisher,
    StreamEvent,
    StreamState,
)

__all__ = [
    "DeliveryStatus",
    "LiveStreamPublisher",
    "Notification",
    "NotificationContact",
    "NotificationDelivery",
    "NotificationDispatcher",
    "NotificationService",
    "NotificationTemplate",
    "NotificationType",
    "StreamEvent",
    "StreamState",
]
