"""Repository for password reset token operations.

Provides database operations for creating, retrieving, and managing reset tokens.
"""

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import ensure_utc, utc_now
from wayfarer.domain.entities.password_reset import PasswordResetToken, hash_reset_token
from wayfarer.infrastructure.persistence.models import PasswordResetTokenModel


class PasswordResetRepository:
    """Repository for password reset token database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_model(self, entity: PasswordResetToken) -> PasswordResetTokenModel:
        return PasswordResetTokenModel(
            id=entity.id,
            user_id=entity.user_id,
            token_hash=entity.token_hash,
            expires_at=entity.expires_at,
            used_at=entity.used_at,
            created_at=entity.created_at,
        )

    def _to_entity(self, model: PasswordResetTokenModel) -> PasswordResetToken:
        return PasswordResetToken(
            id=model.id,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=ensure_utc(model.expires_at),
            created_at=ensure_utc(model.created_at),
            used_at=ensure_utc(model.used_at),
        )

    async def create(self, entity: PasswordResetToken) -> PasswordResetToken:
        """Store a new password reset token.

        Args:
            entity: The PasswordResetToken entity to store.

        Returns:
            The stored entity.
        """
        model = self._to_model(entity)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_by_token(self, token_plain: str) -> PasswordResetToken | None:
        """Look up a reset token by its plain text value.

        Args:
            token_plain: The raw token string.

        Returns:
            The PasswordResetToken entity if found, None otherwise.
        """
        stmt = select(PasswordResetTokenModel).where(
            PasswordResetTokenModel.token_hash == hash_reset_token(token_plain)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def invalidate_for_user(self, user_id: str) -> int:
        """Mark every unconsumed token of a user as used.

        Returns:
            Number of tokens invalidated.
        """
        result = await self._session.execute(
            update(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.user_id == user_id,
                PasswordResetTokenModel.used_at.is_(None),
            )
            .values(used_at=utc_now())
        )
        return result.rowcount

    async def mark_as_used(self, token_id: str) -> bool:
        """Mark a reset token as used.

        Only an unconsumed token is updated, so two concurrent resets with the
        same token cannot both succeed.

        Args:
            token_id: The token's UUID.

        Returns:
            True if the token was updated, False if not found or already used.
        """
        result = await self._session.execute(
            update(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.id == token_id,
                PasswordResetTokenModel.used_at.is_(None),
            )
            .values(used_at=utc_now())
        )
        return result.rowcount > 0

    async def delete_expired(self) -> int:
        """Delete all expired reset tokens.

        Returns:
            Number of tokens deleted.
        """
        result = await self._session.execute(
            delete(PasswordResetTokenModel).where(PasswordResetTokenModel.expires_at < utc_now())
        )
        return result.rowcount

    async def count_valid_for_user(self, user_id: str) -> int:
        """Count tokens of a user that are neither used nor expired."""
        result = await self._session.execute(
            select(func.count())
            .select_from(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.user_id == user_id,
                PasswordResetTokenModel.used_at.is_(None),
                PasswordResetTokenModel.expires_at > utc_now(),
            )
        )
        return result.scalar_one()
