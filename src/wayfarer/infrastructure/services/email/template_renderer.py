"""Jinja2 rendering for transactional emails.

Templates are rendered in a sandboxed environment with autoescaping.
"""

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from wayfarer.core.logging import get_logger

logger = get_logger(__name__)

TEMPLATES: dict[str, dict[str, str]] = {
    "email_verification": {
        "subject": "Verify your Wayfarer email address",
        "html": (
            "<p>Hi {{ name }},</p>"
            "<p>Welcome to Wayfarer! Confirm your email address to start planning trips.</p>"
            '<p><a href="{{ verification_url }}">Verify email</a></p>'
            "<p>This link expires in {{ expire_hours }} hours.</p>"
        ),
        "text": (
            "Hi {{ name }},\n\n"
            "Confirm your email address by opening this link:\n"
            "{{ verification_url }}\n\n"
            "This link expires in {{ expire_hours }} hours.\n"
        ),
    },
    "password_reset": {
        "subject": "Reset your Wayfarer password",
        "html": (
            "<p>Hi {{ name }},</p>"
            "<p>We received a request to reset your password.</p>"
            '<p><a href="{{ reset_url }}">Choose a new password</a></p>'
            "<p>This link expires in {{ expire_minutes }} minutes. "
            "If you did not ask for a reset, you can ignore this email.</p>"
        ),
        "text": (
            "Hi {{ name }},\n\n"
            "Reset your password here:\n"
            "{{ reset_url }}\n\n"
            "This link expires in {{ expire_minutes }} minutes. "
            "If you did not ask for a reset, you can ignore this email.\n"
        ),
    },
}


class TemplateRenderer:
    """Renders named email templates into subject, HTML and text parts."""

    def __init__(self, templates: dict[str, dict[str, str]] | None = None) -> None:
        self.env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.templates = templates or TEMPLATES

    def render(self, template_string: str, variables: dict[str, object]) -> str:
        """Render a template string with variables.

        Raises:
            TemplateError: If the template is invalid or rendering fails.
        """
        try:
            return self.env.from_string(template_string).render(**variables)
        except TemplateError as e:
            logger.error("Template rendering failed", error=str(e))
            raise

    def render_email(self, template_name: str, variables: dict[str, object]) -> tuple[str, str, str]:
        """Render a named template.

        Returns:
            Tuple of (subject, html_body, text_body).

        Raises:
            KeyError: If the template name is unknown.
        """
        template = self.templates[template_name]
        return (
            self.render(template["subject"], variables),
            self.render(template["html"], variables),
            self.render(template["text"], variables),
        )


_template_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """Get the global template renderer instance."""
    global _template_renderer
    if _template_renderer is None:
        _template_renderer = TemplateRenderer()
    return _template_renderer
