"""Template lookup, rendering and seeding."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from taskboard_service.core.services import BaseService
from taskboard_service.features.notifications.exceptions import TemplateNotFoundError
from taskboard_service.features.notifications.models import NotificationTemplate
from taskboard_service.features.notifications.repository import (
    NotificationTemplateRepository,
    get_notification_template_repository,
)
from taskboard_service.features.notifications.templates.defaults import DEFAULT_TEMPLATES
from taskboard_service.features.notifications.templates.renderer import (
    RenderedTemplate,
    TemplateRenderer,
    get_template_renderer,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class NotificationTemplateService(BaseService):
    """Resolve ``(key, channel)`` to a rendered subject and content."""

    def __init__(
        self,
        repository: NotificationTemplateRepository | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        super().__init__()
        self._repository = repository or get_notification_template_repository()
        self._renderer = renderer or get_template_renderer()

    async def render_template(
        self,
        session: AsyncSession,
        key: str,
        channel: str,
        variables: dict[str, Any],
    ) -> RenderedTemplate:
        """Render the active template for ``key`` on ``channel``.

        Raises:
            TemplateNotFoundError: No active template for the pair.
            TemplateRenderError: The template could not be rendered.
        """
        template = await self._repository.get_active(session, key, channel)
        if template is None:
            self.logger.warning(
                "Template not found",
                extra={"template_key": key, "channel": channel},
            )
            raise TemplateNotFoundError(key, channel)
        return self._renderer.render(template, variables)

    async def list_templates(self, session: AsyncSession) -> Sequence[NotificationTemplate]:
        """All active templates."""
        return await self._repository.list_active(session)

    async def seed_defaults(self, session: AsyncSession) -> int:
        """Create built-in templates that don't exist yet.

        Returns:
            Number of templates created.
        """
        created = 0
        for data in DEFAULT_TEMPLATES:
            if await self._repository.exists(session, data["key"], data["channel"]):
                continue
            await self._repository.create(
                session,
                NotificationTemplate(is_active=True, **data),
            )
            created += 1
            self.logger.info(
                "Created default template",
                extra={"template_key": data["key"], "channel": data["channel"]},
            )
        return created


_template_service: NotificationTemplateService | None = None


def get_notification_template_service() -> NotificationTemplateService:
    """Get NotificationTemplateService instance (singleton)."""
    global _template_service
    if _template_service is None:
        _template_service = NotificationTemplateService()
    return _template_service
