"""Build notifier backends from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskboard_service.infra.notifier.clients import (
    ConsoleNotifier,
    GatewayNotifier,
    SlackNotifier,
    TelegramNotifier,
)

if TYPE_CHECKING:
    from taskboard_service.core.settings import NotificationSettings
    from taskboard_service.infra.notifier.base import BaseNotifier

logger = logging.getLogger(__name__)

NOTIFIER_CHANNELS = ("push", "sms", "slack", "telegram")


def build_notifiers(settings: NotificationSettings) -> dict[str, BaseNotifier | None]:
    """Map each notifier channel to its configured backend, or None.

    With ``console_notifier`` enabled every channel logs instead of sending.
    """
    if settings.console_notifier:
        return {channel: ConsoleNotifier(channel) for channel in NOTIFIER_CHANNELS}

    timeout = settings.notifier_timeout
    notifiers: dict[str, BaseNotifier | None] = dict.fromkeys(NOTIFIER_CHANNELS)

    if settings.push_gateway_url:
        notifiers["push"] = GatewayNotifier(
            "push",
            settings.push_gateway_url,
            api_key=settings.push_api_key.get_secret_value() if settings.push_api_key else None,
            timeout=timeout,
        )
    if settings.sms_gateway_url:
        notifiers["sms"] = GatewayNotifier(
            "sms",
            settings.sms_gateway_url,
            api_key=settings.sms_api_key.get_secret_value() if settings.sms_api_key else None,
            timeout=timeout,
        )
    if settings.slack_bot_token:
        notifiers["slack"] = SlackNotifier(
            settings.slack_bot_token.get_secret_value(),
            api_url=settings.slack_api_url,
            timeout=timeout,
        )
    if settings.telegram_bot_token:
        notifiers["telegram"] = TelegramNotifier(
            settings.telegram_bot_token.get_secret_value(),
            api_url=settings.telegram_api_url,
            timeout=timeout,
        )

    logger.info(
        "Notifier backends configured",
        extra={"configured": sorted(name for name, backend in notifiers.items() if backend)},
    )
    return notifiers
