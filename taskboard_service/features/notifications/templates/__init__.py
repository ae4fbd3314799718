"""Notification templates: storage-backed lookup and Jinja2 rendering."""

from taskboard_service.features.notifications.templates.renderer import (
    RenderedTemplate,
    TemplateRenderer,
    get_template_renderer,
)
from taskboard_service.features.notifications.templates.service import (
    NotificationTemplateService,
    get_notification_template_service,
)

__all__ = [
    "NotificationTemplateService",
    "RenderedTemplate",
    "TemplateRenderer",
    "get_notification_template_service",
    "get_template_renderer",
]
