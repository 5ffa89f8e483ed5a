"""Password reset entity.

A reset token is single-use and short-lived. Only the SHA-256 digest is
persisted; the raw value leaves the process once, inside the reset email.
"""

import hashlib
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from wayfarer.core.clock import utc_now


def hash_reset_token(raw_token: str) -> str:
    """Return the SHA-256 hex digest of a raw reset token."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


@dataclass
class PasswordResetToken:
    """Password reset token entity.

    Attributes:
        id: Unique identifier (UUID string).
        user_id: ID of the user this token is for.
        token_hash: SHA-256 hash of the reset token.
        expires_at: When the token expires.
        created_at: When the token was created.
        used_at: When the token was used or invalidated (None if still usable).
    """

    user_id: str
    token_hash: str
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)
    used_at: datetime | None = None

    @classmethod
    def generate(
        cls, user_id: str, expires_in_minutes: int = 15
    ) -> tuple["PasswordResetToken", str]:
        """Generate a new 256-bit reset token and its entity.

        Args:
            user_id: The ID of the user.
            expires_in_minutes: Token lifetime in minutes.

        Returns:
            A tuple of (PasswordResetToken entity, raw_token_string).
        """
        raw_token = secrets.token_hex(32)
        entity = cls(
            user_id=user_id,
            token_hash=hash_reset_token(raw_token),
            expires_at=utc_now() + timedelta(minutes=expires_in_minutes),
        )
        return entity, raw_token

    def is_expired(self) -> bool:
        return self.expires_at <= utc_now()

    def is_used(self) -> bool:
        return self.used_at is not None

    def is_valid(self) -> bool:
        """Check if the token is valid (not expired and not used)."""
        return not self.is_used() and not self.is_expired()

    def mark_as_used(self) -> None:
        self.used_at = utc_now()
