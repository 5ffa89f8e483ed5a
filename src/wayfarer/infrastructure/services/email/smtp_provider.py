"""SMTP email provider implementation.

Uses aiosmtplib for asynchronous email sending via SMTP.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from wayfarer.core.logging import get_logger
from wayfarer.infrastructure.services.email.email_provider import (
    EmailDeliveryError,
    EmailMessage,
    EmailProvider,
)

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Connection settings for the SMTP provider."""

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    use_ssl: bool = False
    timeout: int = 10


class SMTPProvider(EmailProvider):
    """Sends emails over SMTP via aiosmtplib."""

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    @staticmethod
    def _build_mime(message: EmailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f"{message.from_name} <{message.from_email}>"
        mime["To"] = message.to
        if message.reply_to:
            mime["Reply-To"] = message.reply_to
        mime.attach(MIMEText(message.text_body, "plain"))
        mime.attach(MIMEText(message.html_body, "html"))
        return mime

    async def send(self, message: EmailMessage) -> None:
        """Send a message via SMTP.

        Raises:
            EmailDeliveryError: If the connection, login or send fails.
        """
        try:
            # aiosmtplib's use_tls means implicit TLS on connect
            async with aiosmtplib.SMTP(
                hostname=self.settings.host,
                port=self.settings.port,
                use_tls=self.settings.use_ssl,
                start_tls=self.settings.use_tls and not self.settings.use_ssl,
                timeout=self.settings.timeout,
            ) as smtp:
                if self.settings.username and self.settings.password:
                    await smtp.login(self.settings.username, self.settings.password)
                await smtp.send_message(self._build_mime(message))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise EmailDeliveryError(str(e)) from e
