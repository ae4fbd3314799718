"""Unit tests for template rendering and the template service."""

from __future__ import annotations

import pytest

from taskboard_service.features.notifications.exceptions import (
    TemplateNotFoundError,
    TemplateRenderError,
)
from taskboard_service.features.notifications.models import NotificationTemplate
from taskboard_service.features.notifications.templates import (
    NotificationTemplateService,
    TemplateRenderer,
)
from taskboard_service.features.notifications.templates.defaults import DEFAULT_TEMPLATES


def _template(**overrides) -> NotificationTemplate:
    data = {
        "key": "greeting",
        "name": "Greeting",
        "channel": "email",
        "subject": "Hi {{ user_name }}",
        "content": "<p>Hello {{ user_name }}</p>",
        "variables": ["user_name"],
        "is_active": True,
    }
    data.update(overrides)
    return NotificationTemplate(**data)


class TestTemplateRenderer:
    """Test TemplateRenderer."""

    def test_renders_subject_and_content(self) -> None:
        rendered = TemplateRenderer().render(_template(), {"user_name": "Ann"})

        assert rendered.subject == "Hi Ann"
        assert rendered.content == "<p>Hello Ann</p>"

    def test_content_is_escaped_subject_is_not(self) -> None:
        rendered = TemplateRenderer().render(_template(), {"user_name": "<b>Ann</b>"})

        assert rendered.subject == "Hi <b>Ann</b>"
        assert rendered.content == "<p>Hello &lt;b&gt;Ann&lt;/b&gt;</p>"

    def test_missing_required_variable(self) -> None:
        with pytest.raises(TemplateRenderError) as exc_info:
            TemplateRenderer().render(_template(), {})

        assert exc_info.value.reason == "template render failed"
        assert "user_name" in exc_info.value.message

    def test_syntax_error(self) -> None:
        template = _template(content="{% if %}", variables=[])

        with pytest.raises(TemplateRenderError, match="Syntax error"):
            TemplateRenderer().render(template, {})

    def test_sandbox_blocks_unsafe_attribute_access(self) -> None:
        template = _template(content="{{ user_name.__class__() }}")

        with pytest.raises(TemplateRenderError):
            TemplateRenderer().render(template, {"user_name": "Ann"})

    def test_empty_subject(self) -> None:
        rendered = TemplateRenderer().render(_template(subject=None), {"user_name": "Ann"})

        assert rendered.subject == ""


class TestNotificationTemplateService:
    """Test NotificationTemplateService against SQLite."""

    @pytest.mark.asyncio
    async def test_seed_defaults_is_idempotent(self, db_session) -> None:
        service = NotificationTemplateService()

        created = await service.seed_defaults(db_session)
        await db_session.commit()
        again = await service.seed_defaults(db_session)

        assert created == len(DEFAULT_TEMPLATES)
        assert again == 0
        keys = [t.key for t in await service.list_templates(db_session)]
        assert keys == sorted(t["key"] for t in DEFAULT_TEMPLATES)

    @pytest.mark.asyncio
    async def test_render_active_template(self, db_session) -> None:
        db_session.add(_template())
        await db_session.commit()

        rendered = await NotificationTemplateService().render_template(
            db_session,
            "greeting",
            "email",
            {"user_name": "Ann"},
        )

        assert rendered.subject == "Hi Ann"

    @pytest.mark.asyncio
    async def test_inactive_or_other_channel_is_not_found(self, db_session) -> None:
        db_session.add(_template(is_active=False))
        db_session.add(_template(channel="sms"))
        await db_session.commit()
        service = NotificationTemplateService()

        with pytest.raises(TemplateNotFoundError) as exc_info:
            await service.render_template(db_session, "greeting", "email", {"user_name": "Ann"})

        assert exc_info.value.reason == "template not found"
        with pytest.raises(TemplateNotFoundError):
            await service.render_template(db_session, "greeting", "push", {"user_name": "Ann"})
