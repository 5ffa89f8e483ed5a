"""Repository for refresh token operations.

Backs the single-active-session model: storing a token for a user removes
every token that user held before.
"""

import hashlib
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import ensure_utc, utc_now
from wayfarer.core.logging import get_logger
from wayfarer.infrastructure.persistence.models import RefreshTokenModel

logger = get_logger(__name__)


class RefreshTokenRepository:
    """Repository for refresh token database operations.

    All methods take the raw rotation id embedded in the refresh token and
    hash it before touching the database. Nothing is committed here; the
    caller owns the transaction so that revoke-then-insert lands as one unit.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    @staticmethod
    def hash_token(token_id: str) -> str:
        """Hash a rotation id using SHA-256.

        Args:
            token_id: The raw rotation id.

        Returns:
            SHA-256 hex digest.
        """
        return hashlib.sha256(token_id.encode()).hexdigest()

    async def store(self, user_id: str, token_id: str, expires_at: datetime) -> RefreshTokenModel:
        """Persist a rotation id as the user's only live refresh token.

        Args:
            user_id: Owner of the token.
            token_id: Raw rotation id.
            expires_at: Expiry of the refresh token.

        Returns:
            The stored model.
        """
        revoked = await self.revoke_all_for_user(user_id)
        model = RefreshTokenModel(
            user_id=user_id,
            token_hash=self.hash_token(token_id),
            expires_at=expires_at,
        )
        self._session.add(model)
        await self._session.flush()
        logger.debug("Refresh token stored", user_id=user_id, revoked_previous=revoked)
        return model

    async def validate(self, token_id: str) -> RefreshTokenModel | None:
        """Look up a live refresh token.

        Expired records are deleted on read.

        Args:
            token_id: Raw rotation id.

        Returns:
            The stored record, or None when absent or expired.
        """
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_hash == self.hash_token(token_id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None

        if ensure_utc(model.expires_at) <= utc_now():
            await self._session.delete(model)
            await self._session.flush()
            logger.debug("Expired refresh token removed on lookup", user_id=model.user_id)
            return None
        return model

    async def revoke(self, token_id: str) -> bool:
        """Delete a refresh token by rotation id.

        Returns:
            True if a token was removed, False if not found.
        """
        result = await self._session.execute(
            delete(RefreshTokenModel).where(
                RefreshTokenModel.token_hash == self.hash_token(token_id)
            )
        )
        return result.rowcount > 0

    async def revoke_all_for_user(self, user_id: str) -> int:
        """Delete every refresh token owned by a user.

        Returns:
            Number of tokens removed.
        """
        result = await self._session.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.user_id == user_id)
        )
        return result.rowcount

    async def cleanup_expired(self) -> int:
        """Delete refresh tokens past their expiry.

        Returns:
            Number of tokens removed.
        """
        result = await self._session.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.expires_at < utc_now())
        )
        return result.rowcount

    async def list_for_user(self, user_id: str) -> list[RefreshTokenModel]:
        result = await self._session.execute(
            select(RefreshTokenModel).where(RefreshTokenModel.user_id == user_id)
        )
        return list(result.scalars().all())
