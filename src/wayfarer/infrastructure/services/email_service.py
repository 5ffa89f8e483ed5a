"""Transactional email delivery for the auth flows.

Sending is best-effort: failures are logged and reported as ``False`` so
that flows such as forgot-password can answer identically whether or not
delivery worked.
"""

from functools import lru_cache
from urllib.parse import urlencode

from jinja2 import TemplateError

from wayfarer.core.config import Settings, get_settings
from wayfarer.core.logging import get_logger
from wayfarer.infrastructure.services.email.email_provider import (
    EmailDeliveryError,
    EmailMessage,
    EmailProvider,
    LoggingEmailProvider,
)
from wayfarer.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from wayfarer.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)

logger = get_logger(__name__)


class EmailService:
    """Renders and sends verification and password reset emails."""

    def __init__(
        self,
        provider: EmailProvider,
        settings: Settings,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.renderer = renderer or get_template_renderer()

    def build_link(self, path: str, token: str) -> str:
        """Build a frontend link carrying a token in the query string."""
        return f"{self.settings.frontend_url}{path}?{urlencode({'token': token})}"

    async def send_template_email(
        self, to: str, template_name: str, variables: dict[str, object]
    ) -> bool:
        """Render a template and hand it to the provider.

        Returns:
            True if the provider accepted the message.
        """
        try:
            subject, html_body, text_body = self.renderer.render_email(template_name, variables)
            await self.provider.send(
                EmailMessage(
                    to=to,
                    subject=subject,
                    html_body=html_body,
                    text_body=text_body,
                    from_email=self.settings.email_from_address,
                    from_name=self.settings.email_from_name,
                )
            )
        except (EmailDeliveryError, TemplateError) as e:
            logger.error("Email delivery failed", to=to, template=template_name, error=str(e))
            return False

        logger.info("Email sent", to=to, template=template_name)
        return True

    async def send_verification_email(self, to: str, name: str, token: str) -> bool:
        return await self.send_template_email(
            to,
            "email_verification",
            {
                "name": name,
                "verification_url": self.build_link("/auth/verify-email", token),
                "expire_hours": self.settings.email_verification_expire_hours,
            },
        )

    async def send_password_reset_email(self, to: str, name: str, token: str) -> bool:
        return await self.send_template_email(
            to,
            "password_reset",
            {
                "name": name,
                "reset_url": self.build_link("/auth/reset-password", token),
                "expire_minutes": self.settings.password_reset_expire_minutes,
            },
        )


def create_email_provider(settings: Settings) -> EmailProvider:
    """Instantiate the configured email provider."""
    if settings.email_provider == "smtp":
        return SMTPProvider(
            SMTPSettings(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
            )
        )
    return LoggingEmailProvider()


@lru_cache
def get_email_service() -> EmailService:
    """Get the process-wide email service."""
    settings = get_settings()
    return EmailService(create_email_provider(settings), settings)
