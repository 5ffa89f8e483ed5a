"""Password reset token lifecycle.

Tokens are 256-bit random values valid for 15 minutes and usable once.
Requesting a new token invalidates every earlier token of the user.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.exceptions import BadRequestError, NotFoundError
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.password_reset import PasswordResetToken
from wayfarer.infrastructure.persistence.models import UserModel
from wayfarer.infrastructure.persistence.repositories.password_reset_repository import (
    PasswordResetRepository,
)
from wayfarer.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class PasswordResetService:
    """Service for generating, validating and consuming reset tokens."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        reset_repo: PasswordResetRepository,
        expire_minutes: int = 15,
    ) -> None:
        """Initialize the password reset service.

        Args:
            session: SQLAlchemy async session.
            user_repo: Repository for user operations.
            reset_repo: Repository for password reset token operations.
            expire_minutes: Token lifetime.
        """
        self.session = session
        self.user_repo = user_repo
        self.reset_repo = reset_repo
        self.expire_minutes = expire_minutes

    async def generate(self, user_id: str) -> str:
        """Create a reset token for a user.

        Args:
            user_id: The user requesting the reset.

        Returns:
            The plaintext token. Only its hash is stored.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        invalidated = await self.reset_repo.invalidate_for_user(user_id)
        entity, raw_token = PasswordResetToken.generate(
            user_id, expires_in_minutes=self.expire_minutes
        )
        await self.reset_repo.create(entity)
        await self.session.commit()

        logger.info(
            "Password reset token generated",
            user_id=user_id,
            invalidated_previous=invalidated,
        )
        return raw_token

    async def _get_token(self, token: str | None) -> PasswordResetToken | None:
        if not token or not token.strip():
            raise BadRequestError("Password reset token is required")
        return await self.reset_repo.get_by_token(token.strip())

    async def validate(self, token: str | None) -> UserModel | None:
        """Resolve a reset token to its user.

        Unknown, expired and used tokens all return None so callers cannot
        tell them apart.

        Raises:
            BadRequestError: If the token is empty.
        """
        entity = await self._get_token(token)
        if entity is None or not entity.is_valid():
            logger.info(
                "Password reset token rejected",
                found=entity is not None,
                expired=entity.is_expired() if entity else None,
                used=entity.is_used() if entity else None,
            )
            return None
        return await self.user_repo.get_by_id(entity.user_id)

    async def mark_used(self, token: str | None, commit: bool = True) -> bool:
        """Consume a reset token.

        Args:
            token: The raw reset token.
            commit: Commit immediately. Pass False to consume the token inside
                the caller's transaction.

        Returns:
            True if this call consumed the token, False if it was already used.

        Raises:
            BadRequestError: If the token is empty.
            NotFoundError: If the token does not exist.
        """
        entity = await self._get_token(token)
        if entity is None:
            raise NotFoundError("Password reset token not found")
        consumed = await self.reset_repo.mark_as_used(entity.id)
        if commit:
            await self.session.commit()
        return consumed

    async def cleanup_expired(self) -> int:
        """Delete reset tokens past their expiry.

        Returns:
            Number of tokens deleted.
        """
        deleted = await self.reset_repo.delete_expired()
        await self.session.commit()
        if deleted:
            logger.info("Expired password reset tokens deleted", count=deleted)
        return deleted

    async def get_valid_token_count(self, user_id: str) -> int:
        return await self.reset_repo.count_valid_for_user(user_id)
