"""Email delivery providers and template rendering."""

from wayfarer.infrastructure.services.email.email_provider import (
    EmailDeliveryError,
    EmailProvider,
    LoggingEmailProvider,
)
from wayfarer.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from wayfarer.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)

__all__ = [
    "EmailDeliveryError",
    "EmailProvider",
    "LoggingEmailProvider",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
    "get_template_renderer",
]
