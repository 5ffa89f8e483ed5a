"""Repository for failed login attempt counters.

Increments are issued as ``attempt_count = attempt_count + 1`` so
concurrent failures for the same key are never lost.
"""

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import utc_now
from wayfarer.infrastructure.persistence.models import LoginAttemptModel


class LoginAttemptRepository:
    """Repository for login attempt database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    @staticmethod
    def _key(identifier: str, ip_address: str) -> tuple:
        return (
            LoginAttemptModel.identifier == identifier,
            LoginAttemptModel.ip_address == ip_address,
        )

    async def get(self, identifier: str, ip_address: str) -> LoginAttemptModel | None:
        # Counters change through bulk UPDATEs, so reload any cached instance
        result = await self._session.execute(
            select(LoginAttemptModel)
            .where(*self._key(identifier, ip_address))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, identifier: str, ip_address: str) -> LoginAttemptModel:
        """Insert the first failure for a key."""
        now = utc_now()
        model = LoginAttemptModel(
            identifier=identifier,
            ip_address=ip_address,
            attempt_count=1,
            last_attempt=now,
            updated_at=now,
        )
        self._session.add(model)
        await self._session.flush()
        return model

    async def increment(self, identifier: str, ip_address: str) -> bool:
        """Atomically add one failure to an existing counter.

        Returns:
            True if a row existed and was incremented.
        """
        now = utc_now()
        result = await self._session.execute(
            update(LoginAttemptModel)
            .where(*self._key(identifier, ip_address))
            .values(
                attempt_count=LoginAttemptModel.attempt_count + 1,
                last_attempt=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def apply_lockout(
        self,
        identifier: str,
        ip_address: str,
        max_attempts: int,
        blocked_until: datetime,
    ) -> bool:
        """Set or extend the lockout window once the threshold is reached.

        Returns:
            True if the key is now locked.
        """
        result = await self._session.execute(
            update(LoginAttemptModel)
            .where(
                *self._key(identifier, ip_address),
                LoginAttemptModel.attempt_count >= max_attempts,
            )
            .values(blocked_until=blocked_until)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def get_attempt_count(self, identifier: str, ip_address: str) -> int:
        result = await self._session.execute(
            select(LoginAttemptModel.attempt_count).where(*self._key(identifier, ip_address))
        )
        return result.scalar_one_or_none() or 0

    async def delete(self, identifier: str, ip_address: str) -> int:
        result = await self._session.execute(
            delete(LoginAttemptModel).where(*self._key(identifier, ip_address))
        )
        return result.rowcount

    async def delete_stale(self, cutoff: datetime) -> int:
        """Delete counters older than ``cutoff`` that never reached a lockout.

        Returns:
            Number of rows deleted.
        """
        result = await self._session.execute(
            delete(LoginAttemptModel).where(
                LoginAttemptModel.last_attempt < cutoff,
                LoginAttemptModel.blocked_until.is_(None),
            )
        )
        return result.rowcount

    async def get_statistics(self) -> dict[str, float | int]:
        """Aggregate counters for monitoring.

        Returns:
            Dict with total_records, blocked_records and average_attempts.
        """
        totals = await self._session.execute(
            select(
                func.count(LoginAttemptModel.id),
                func.avg(LoginAttemptModel.attempt_count),
            )
        )
        total, average = totals.one()
        blocked = await self._session.execute(
            select(func.count(LoginAttemptModel.id)).where(
                LoginAttemptModel.blocked_until > utc_now()
            )
        )
        return {
            "total_records": total or 0,
            "blocked_records": blocked.scalar_one() or 0,
            "average_attempts": round(float(average or 0), 2),
        }
