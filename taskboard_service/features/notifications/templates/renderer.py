"""Jinja2 template rendering with sandboxing and required-variable checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateError, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from taskboard_service.features.notifications.exceptions import TemplateRenderError
from taskboard_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from taskboard_service.features.notifications.models import NotificationTemplate


@dataclass(slots=True, frozen=True)
class RenderedTemplate:
    """Subject and content produced for one channel."""

    subject: str
    content: str


class TemplateRenderer:
    """Render notification templates in a sandboxed Jinja2 environment.

    Content is HTML and autoescaped so recipient-controlled variables can't
    inject markup; subjects are plain text and rendered without escaping.
    Every name listed in ``template.variables`` must be present in the
    context.
    """

    def __init__(self) -> None:
        self._lazy = get_lazy_logger(__name__)
        self._html_env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._text_env = SandboxedEnvironment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template: NotificationTemplate, context: dict[str, Any]) -> RenderedTemplate:
        """Render subject and content of ``template``.

        Raises:
            TemplateRenderError: On missing required variables or Jinja2 errors.
        """
        self._validate_context(template, context)

        try:
            subject = (
                self._text_env.from_string(template.subject).render(**context)
                if template.subject
                else ""
            )
            content = self._html_env.from_string(template.content).render(**context)
        except UndefinedError as exc:
            msg = f"Missing variable in template {template.key}: {exc}"
            raise TemplateRenderError(msg, template_key=template.key) from exc
        except TemplateSyntaxError as exc:
            msg = f"Syntax error in template {template.key}: {exc}"
            raise TemplateRenderError(msg, template_key=template.key) from exc
        except TemplateError as exc:
            msg = f"Failed to render template {template.key}: {exc}"
            raise TemplateRenderError(msg, template_key=template.key) from exc

        self._lazy.debug(
            lambda: f"Rendered template {template.key} for {template.channel}: {len(content)} chars"
        )
        return RenderedTemplate(subject=subject.strip(), content=content)

    def _validate_context(self, template: NotificationTemplate, context: dict[str, Any]) -> None:
        missing = [name for name in template.variables or [] if name not in context]
        if missing:
            msg = f"Missing required context variables for template {template.key}: {', '.join(missing)}"
            raise TemplateRenderError(msg, template_key=template.key, missing_vars=missing)


_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """Get TemplateRenderer instance (singleton)."""
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer
