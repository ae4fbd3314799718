"""Outbound notifier backends for push, sms, slack and telegram."""

from taskboard_service.infra.notifier.base import BaseNotifier, NotifierError
from taskboard_service.infra.notifier.clients import (
    ConsoleNotifier,
    GatewayNotifier,
    SlackNotifier,
    TelegramNotifier,
)
from taskboard_service.infra.notifier.factory import build_notifiers

__all__ = [
    "BaseNotifier",
    "ConsoleNotifier",
    "GatewayNotifier",
    "NotifierError",
    "SlackNotifier",
    "TelegramNotifier",
    "build_notifiers",
]
