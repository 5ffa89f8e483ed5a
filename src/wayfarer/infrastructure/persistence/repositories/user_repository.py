"""User repository for database operations."""

import hashlib
from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import utc_now
from wayfarer.infrastructure.persistence.models import UserModel


class UserRepository:
    """Repository for user database operations.

    Emails are normalised to lowercase on write and on lookup.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash a verification token using SHA-256."""
        return hashlib.sha256(token.encode()).hexdigest()

    async def create(self, user: UserModel) -> UserModel:
        """Create a new user.

        Args:
            user: User model to create.

        Returns:
            Created user model.
        """
        user.email = user.email.strip().lower()
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> UserModel | None:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        """Get a user by email address (case-insensitive)."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email_or_username(self, email: str, username: str) -> UserModel | None:
        """Get the first user whose email or username collides with the given pair.

        Args:
            email: Candidate email address.
            username: Candidate username.

        Returns:
            A colliding user, or None when both values are free.
        """
        result = await self.session.execute(
            select(UserModel)
            .where(
                or_(
                    UserModel.email == email.strip().lower(),
                    UserModel.username == username,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def username_exists(self, username: str) -> bool:
        result = await self.session.execute(
            select(UserModel.id).where(UserModel.username == username).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def update_last_login(self, user_id: str) -> None:
        """Update the last_login timestamp for a user."""
        await self.session.execute(
            update(UserModel).where(UserModel.id == user_id).values(last_login=utc_now())
        )

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        """Replace a user's password hash.

        Returns:
            True if the user exists and was updated.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(password_hash=password_hash, updated_at=utc_now())
        )
        return result.rowcount > 0

    async def set_verification_token(
        self, user_id: str, token: str, expires_at: datetime
    ) -> bool:
        """Store the hash of a new verification token, replacing any previous one."""
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                email_verification_token_hash=self.hash_token(token),
                email_verification_expires_at=expires_at,
            )
        )
        return result.rowcount > 0

    async def get_by_verification_token(self, token: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(
                UserModel.email_verification_token_hash == self.hash_token(token)
            )
        )
        return result.scalar_one_or_none()

    async def clear_verification_token(self, user_id: str) -> None:
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(email_verification_token_hash=None, email_verification_expires_at=None)
        )

    async def mark_email_verified(self, user_id: str) -> None:
        """Flag the email as verified and consume the verification token."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                email_verified=True,
                email_verification_token_hash=None,
                email_verification_expires_at=None,
                updated_at=utc_now(),
            )
        )

    async def clear_expired_verification_tokens(self) -> int:
        """Clear verification tokens whose expiry has passed.

        Returns:
            Number of users whose token was cleared.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(
                UserModel.email_verification_token_hash.is_not(None),
                UserModel.email_verification_expires_at < utc_now(),
            )
            .values(email_verification_token_hash=None, email_verification_expires_at=None)
        )
        return result.rowcount

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(UserModel))
        return result.scalar_one()
