"""Channel identifier -> sender mapping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskboard_service.features.notifications.channels.email import EmailSender
from taskboard_service.features.notifications.channels.in_app import InAppSender
from taskboard_service.features.notifications.channels.notifier import (
    PushSender,
    SlackSender,
    SmsSender,
    TelegramSender,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from taskboard_service.features.notifications.channels.base import ChannelSender
    from taskboard_service.infra.email import EmailClient
    from taskboard_service.infra.notifier import BaseNotifier

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Registered channel senders keyed by channel identifier.

    New channels are added with ``register``; the dispatcher only ever looks
    senders up here.
    """

    def __init__(self) -> None:
        self._senders: dict[str, ChannelSender] = {}

    def register(self, channel: str, sender: ChannelSender) -> None:
        """Register ``sender`` for ``channel``, replacing any previous one."""
        key = channel.strip().lower()
        if key in self._senders:
            logger.warning("Replacing channel sender", extra={"channel": key})
        self._senders[key] = sender

    def get(self, channel: str) -> ChannelSender | None:
        return self._senders.get(channel)

    def channels(self) -> list[str]:
        return list(self._senders)

    def __contains__(self, channel: object) -> bool:
        return channel in self._senders


def build_channel_registry(
    email_client: EmailClient,
    notifiers: Mapping[str, BaseNotifier | None],
) -> ChannelRegistry:
    """Registry with the built-in senders wired to their backends."""
    registry = ChannelRegistry()
    registry.register("in_app", InAppSender())
    registry.register("email", EmailSender(email_client))
    registry.register("push", PushSender(notifiers.get("push")))
    registry.register("sms", SmsSender(notifiers.get("sms")))
    registry.register("slack", SlackSender(notifiers.get("slack")))
    registry.register("telegram", TelegramSender(notifiers.get("telegram")))
    return registry
