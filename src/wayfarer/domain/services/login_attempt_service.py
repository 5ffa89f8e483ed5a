"""Failed-login tracking with escalating lockout.

Each (identifier, ip_address) pair moves through three states:

* clean: no row
* accumulating: fewer than ``max_attempts`` failures, ``blocked_until`` empty
* locked: ``blocked_until`` in the future

Further failures while locked push ``blocked_until`` forward again. A
successful login deletes the row. A lock whose window has passed reads as
unlocked; nothing is written until the next failure.

Storage errors never block a login: ``is_locked`` fails open and the write
paths log and carry on.
"""

import math
from datetime import timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import ensure_utc, utc_now
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.tokens import LockStatus
from wayfarer.infrastructure.persistence.repositories.login_attempt_repository import (
    LoginAttemptRepository,
)

logger = get_logger(__name__)


class LoginAttemptService:
    """Tracks failed logins per identifier and source address."""

    def __init__(
        self,
        session: AsyncSession,
        login_attempt_repo: LoginAttemptRepository,
        max_attempts: int = 5,
        lockout_minutes: int = 15,
        retention_hours: int = 24,
    ) -> None:
        """Initialize the tracker.

        Args:
            session: SQLAlchemy async session; every write commits immediately.
            login_attempt_repo: Repository for attempt counters.
            max_attempts: Failures that trigger a lockout.
            lockout_minutes: Length of the (sliding) lockout window.
            retention_hours: Age after which never-locked counters are purged.
        """
        self.session = session
        self.login_attempt_repo = login_attempt_repo
        self.max_attempts = max_attempts
        self.lockout = timedelta(minutes=lockout_minutes)
        self.retention = timedelta(hours=retention_hours)

    @staticmethod
    def _normalize(identifier: str) -> str:
        return identifier.strip().lower()

    async def record_failure(self, identifier: str, ip_address: str) -> None:
        """Count a failed login and lock the key once the threshold is hit.

        Args:
            identifier: Email or username that was attempted.
            ip_address: Client address.
        """
        identifier = self._normalize(identifier)
        try:
            if not await self.login_attempt_repo.increment(identifier, ip_address):
                try:
                    await self.login_attempt_repo.create(identifier, ip_address)
                except IntegrityError:
                    # A concurrent request created the row first
                    await self.session.rollback()
                    await self.login_attempt_repo.increment(identifier, ip_address)

            locked = await self.login_attempt_repo.apply_lockout(
                identifier,
                ip_address,
                self.max_attempts,
                utc_now() + self.lockout,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to record login attempt",
                identifier=identifier,
                ip_address=ip_address,
                error=str(e),
            )
            return

        if locked:
            logger.warning(
                "Login locked after repeated failures",
                identifier=identifier,
                ip_address=ip_address,
                lockout_minutes=int(self.lockout.total_seconds() // 60),
            )
        else:
            logger.info("Failed login recorded", identifier=identifier, ip_address=ip_address)

    async def is_locked(self, identifier: str, ip_address: str) -> LockStatus:
        """Report the lockout state of a key.

        Returns:
            LockStatus with remaining minutes (rounded up) while locked, or the
            current attempt count otherwise. Storage errors yield unlocked.
        """
        identifier = self._normalize(identifier)
        try:
            attempt = await self.login_attempt_repo.get(identifier, ip_address)
        except SQLAlchemyError as e:
            logger.error(
                "Lockout check failed, allowing attempt",
                identifier=identifier,
                ip_address=ip_address,
                error=str(e),
            )
            return LockStatus(is_locked=False)

        if attempt is None:
            return LockStatus(is_locked=False, attempt_count=0)

        blocked_until = ensure_utc(attempt.blocked_until)
        now = utc_now()
        if blocked_until is not None and blocked_until > now:
            remaining = math.ceil((blocked_until - now).total_seconds() / 60)
            return LockStatus(
                is_locked=True,
                remaining_minutes=remaining,
                attempt_count=attempt.attempt_count,
            )
        return LockStatus(is_locked=False, attempt_count=attempt.attempt_count)

    async def clear_successful(self, identifier: str, ip_address: str) -> None:
        """Reset the key after a successful login."""
        identifier = self._normalize(identifier)
        try:
            deleted = await self.login_attempt_repo.delete(identifier, ip_address)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to clear login attempts",
                identifier=identifier,
                ip_address=ip_address,
                error=str(e),
            )
            return
        if deleted:
            logger.debug("Login attempts cleared", identifier=identifier, ip_address=ip_address)

    async def get_attempt_count(self, identifier: str, ip_address: str) -> int:
        return await self.login_attempt_repo.get_attempt_count(
            self._normalize(identifier), ip_address
        )

    async def cleanup_old(self) -> int:
        """Purge counters older than the retention window that never locked.

        Returns:
            Number of rows removed.
        """
        removed = await self.login_attempt_repo.delete_stale(utc_now() - self.retention)
        await self.session.commit()
        if removed:
            logger.info("Stale login attempts removed", count=removed)
        return removed

    async def get_statistics(self) -> dict[str, float | int]:
        return await self.login_attempt_repo.get_statistics()
