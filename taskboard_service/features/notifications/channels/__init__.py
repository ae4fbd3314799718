"""Channel senders and the registry the dispatcher routes through."""

from taskboard_service.features.notifications.channels.base import ChannelSender, SendResult
from taskboard_service.features.notifications.channels.email import EmailSender
from taskboard_service.features.notifications.channels.in_app import InAppSender
from taskboard_service.features.notifications.channels.notifier import (
    NotifierSender,
    PushSender,
    SlackSender,
    SmsSender,
    TelegramSender,
)
from taskboard_service.features.notifications.channels.registry import (
    ChannelRegistry,
    build_channel_registry,
)

__all__ = [
    "ChannelRegistry",
    "ChannelSender",
    "EmailSender",
    "InAppSender",
    "NotifierSender",
    "PushSender",
    "SendResult",
    "SlackSender",
    "SmsSender",
    "TelegramSender",
    "build_channel_registry",
]
