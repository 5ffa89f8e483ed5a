"""Email provider interface and the development provider."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from wayfarer.core.logging import get_logger

logger = get_logger(__name__)


class EmailDeliveryError(Exception):
    """Raised when a provider fails to hand a message to the transport."""

    pass


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready for delivery."""

    to: str
    subject: str
    html_body: str
    text_body: str
    from_email: str
    from_name: str
    reply_to: str | None = None


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver a message.

        Args:
            message: The rendered email.

        Raises:
            EmailDeliveryError: If delivery fails.
        """


class LoggingEmailProvider(EmailProvider):
    """Writes emails to the log instead of sending them.

    Used in development and tests. Messages are kept in ``outbox`` so tests
    can inspect what would have been sent.
    """

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info(
            "Email captured (not sent)",
            to=message.to,
            subject=message.subject,
            body=message.text_body,
        )
