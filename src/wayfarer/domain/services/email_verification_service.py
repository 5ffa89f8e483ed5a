"""Service for email verification logic.

A user holds at most one verification token at a time, stored as a hash on
the user row with a 24 hour expiry. Generating a new token replaces the
previous one.
"""

import secrets
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import ensure_utc, utc_now
from wayfarer.core.exceptions import BadRequestError, NotFoundError
from wayfarer.core.logging import get_logger
from wayfarer.infrastructure.persistence.models import UserModel
from wayfarer.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)

RESEND_NOT_FOUND_MESSAGE = "If this email is registered, a verification email will be sent"


class EmailVerificationService:
    """Service for handling email verification business logic."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        expire_hours: int = 24,
    ) -> None:
        """Initialize the verification service.

        Args:
            session: SQLAlchemy async session.
            user_repo: Repository for user operations.
            expire_hours: Verification token lifetime.
        """
        self.session = session
        self.user_repo = user_repo
        self.expire_delta = timedelta(hours=expire_hours)

    async def generate(self, user_id: str) -> str:
        """Create a verification token for a user, replacing any prior one.

        Args:
            user_id: The user to verify.

        Returns:
            The raw token, to be delivered by email.

        Raises:
            NotFoundError: If the user does not exist.
        """
        token = secrets.token_urlsafe(32)
        updated = await self.user_repo.set_verification_token(
            user_id, token, utc_now() + self.expire_delta
        )
        if not updated:
            raise NotFoundError("User not found")
        await self.session.commit()
        logger.info("Email verification token generated", user_id=user_id)
        return token

    async def verify(self, token: str | None) -> UserModel | None:
        """Consume a verification token.

        Args:
            token: The raw token from the verification link.

        Returns:
            The verified user, or None when the token is unknown or expired.
            An already verified user is returned as a success.

        Raises:
            BadRequestError: If the token is empty.
        """
        if not token or not token.strip():
            raise BadRequestError("Verification token is required")

        user = await self.user_repo.get_by_verification_token(token.strip())
        if user is None:
            logger.info("Email verification failed: token not found")
            return None

        expires_at = ensure_utc(user.email_verification_expires_at)
        if expires_at is None or expires_at <= utc_now():
            await self.user_repo.clear_verification_token(user.id)
            await self.session.commit()
            logger.info("Email verification failed: token expired", user_id=user.id)
            return None

        if user.email_verified:
            await self.user_repo.clear_verification_token(user.id)
            await self.session.commit()
            logger.info("Email already verified", user_id=user.id)
        else:
            await self.user_repo.mark_email_verified(user.id)
            await self.session.commit()
            logger.info("Email verified successfully", user_id=user.id, email=user.email)

        await self.session.refresh(user)
        return user

    async def resend(self, email: str | None) -> tuple[UserModel, str]:
        """Issue a fresh verification token for an unverified address.

        Args:
            email: The address to verify.

        Returns:
            The user and the new raw token.

        Raises:
            BadRequestError: If the email is empty or already verified.
            NotFoundError: If no user has this email. Callers must not reveal
                this to unauthenticated clients.
        """
        if not email or not email.strip():
            raise BadRequestError("Email is required")

        user = await self.user_repo.get_by_email(email)
        if user is None:
            raise NotFoundError(RESEND_NOT_FOUND_MESSAGE)
        if user.email_verified:
            raise BadRequestError("Email is already verified")

        return user, await self.generate(user.id)

    async def clear_expired(self) -> int:
        """Clear expired, unconsumed verification tokens.

        Returns:
            Number of users whose token was cleared.
        """
        cleared = await self.user_repo.clear_expired_verification_tokens()
        await self.session.commit()
        if cleared:
            logger.info("Expired verification tokens cleared", count=cleared)
        return cleared

    async def has_valid_token(self, user_id: str) -> bool:
        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.email_verification_token_hash is None:
            return False
        expires_at = ensure_utc(user.email_verification_expires_at)
        return expires_at is not None and expires_at > utc_now()
