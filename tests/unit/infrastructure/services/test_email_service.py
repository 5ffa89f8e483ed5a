"""Unit tests for EmailService and the email providers."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from wayfarer.core.config import Settings
from wayfarer.infrastructure.services.email import (
    EmailDeliveryError,
    LoggingEmailProvider,
    SMTPProvider,
    SMTPSettings,
    TemplateRenderer,
)
from wayfarer.infrastructure.services.email.email_provider import EmailMessage
from wayfarer.infrastructure.services.email_service import EmailService, create_email_provider


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_access_secret="access-secret",
        jwt_refresh_secret="refresh-secret",
        frontend_url="https://app.wayfarer.test/",
    )


@pytest.mark.asyncio
class TestEmailService:
    """Tests for rendering and delivery."""

    async def test_verification_email(self, settings):
        provider = LoggingEmailProvider()
        service = EmailService(provider, settings)

        sent = await service.send_verification_email("jane@example.com", "Jane", "tok_123")

        assert sent is True
        message = provider.outbox[0]
        assert message.to == "jane@example.com"
        assert message.subject == "Verify your Wayfarer email address"
        assert "https://app.wayfarer.test/auth/verify-email?token=tok_123" in message.text_body
        assert "24 hours" in message.text_body
        assert message.from_email == settings.email_from_address

    async def test_password_reset_email(self, settings):
        provider = LoggingEmailProvider()
        service = EmailService(provider, settings)

        await service.send_password_reset_email("jane@example.com", "Jane", "abc123")

        message = provider.outbox[0]
        assert "https://app.wayfarer.test/auth/reset-password?token=abc123" in message.text_body
        assert "15 minutes" in message.html_body

    async def test_names_are_escaped(self, settings):
        provider = LoggingEmailProvider()
        service = EmailService(provider, settings)

        await service.send_verification_email("jane@example.com", "<script>", "tok")

        assert "<script>" not in provider.outbox[0].html_body

    async def test_delivery_failure_reported_not_raised(self, settings):
        provider = AsyncMock()
        provider.send.side_effect = EmailDeliveryError("connection refused")
        service = EmailService(provider, settings)

        assert await service.send_verification_email("jane@example.com", "Jane", "tok") is False


def test_unknown_template_raises():
    with pytest.raises(KeyError):
        TemplateRenderer().render_email("no_such_template", {})


def test_create_email_provider(settings):
    assert isinstance(create_email_provider(settings), LoggingEmailProvider)

    smtp_settings = settings.model_copy(update={"email_provider": "smtp", "smtp_host": "mail.test"})
    provider = create_email_provider(smtp_settings)
    assert isinstance(provider, SMTPProvider)
    assert provider.settings.host == "mail.test"


@pytest.mark.asyncio
async def test_smtp_failure_wrapped():
    provider = SMTPProvider(SMTPSettings(host="mail.test", port=2525, use_tls=False))
    message = EmailMessage(
        to="jane@example.com",
        subject="Hi",
        html_body="<p>Hi</p>",
        text_body="Hi",
        from_email="no-reply@wayfarer.local",
        from_name="Wayfarer",
    )

    with patch.object(
        aiosmtplib.SMTP, "connect", AsyncMock(side_effect=aiosmtplib.SMTPConnectError("refused"))
    ):
        with pytest.raises(EmailDeliveryError):
            await provider.send(message)
