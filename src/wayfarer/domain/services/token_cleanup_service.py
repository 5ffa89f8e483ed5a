"""Scheduled removal of expired credentials.

Hourly: expired refresh tokens, the access token blacklist (coarse, see
``TokenBlacklist.cleanup``) and stale login attempt counters.
Daily: a full blacklist reset plus expired reset and verification tokens.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.config import Settings
from wayfarer.core.logging import get_logger
from wayfarer.domain.services.email_verification_service import EmailVerificationService
from wayfarer.domain.services.login_attempt_service import LoginAttemptService
from wayfarer.domain.services.password_reset_service import PasswordResetService
from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist
from wayfarer.infrastructure.persistence.repositories import (
    LoginAttemptRepository,
    OAuthStateRepository,
    PasswordResetRepository,
    RefreshTokenRepository,
    UserRepository,
)

logger = get_logger(__name__)

HOURLY_BLACKLIST_MAX_AGE_MINUTES = 120


class TokenCleanupService:
    """Runs cleanup passes against one database session."""

    def __init__(self, session: AsyncSession, blacklist: TokenBlacklist, settings: Settings) -> None:
        self.session = session
        self.blacklist = blacklist
        self.refresh_token_repo = RefreshTokenRepository(session)
        self.oauth_state_repo = OAuthStateRepository(session)
        self.login_attempt_service = LoginAttemptService(
            session,
            LoginAttemptRepository(session),
            max_attempts=settings.login_max_attempts,
            lockout_minutes=settings.login_lockout_minutes,
            retention_hours=settings.login_attempt_retention_hours,
        )
        user_repo = UserRepository(session)
        self.password_reset_service = PasswordResetService(
            session, user_repo, PasswordResetRepository(session)
        )
        self.email_verification_service = EmailVerificationService(session, user_repo)

    async def cleanup_refresh_tokens(self) -> int:
        removed = await self.refresh_token_repo.cleanup_expired()
        await self.session.commit()
        return removed

    async def run_hourly_cleanup(self) -> dict[str, int]:
        """Remove short-lived expired state.

        Returns:
            Counts per category.
        """
        results = {
            "refresh_tokens": await self.cleanup_refresh_tokens(),
            "blacklisted_tokens": self.blacklist.cleanup(HOURLY_BLACKLIST_MAX_AGE_MINUTES),
            "login_attempts": await self.login_attempt_service.cleanup_old(),
        }
        logger.info("Hourly token cleanup finished", **results)
        return results

    async def run_daily_cleanup(self) -> dict[str, int]:
        """Reset the blacklist and remove expired single-use tokens.

        Returns:
            Counts per category.
        """
        oauth_states = await self.oauth_state_repo.delete_expired()
        await self.session.commit()
        results = {
            "blacklisted_tokens": self.blacklist.clear_all(),
            "password_reset_tokens": await self.password_reset_service.cleanup_expired(),
            "verification_tokens": await self.email_verification_service.clear_expired(),
            "login_attempts": await self.login_attempt_service.cleanup_old(),
            "oauth_states": oauth_states,
        }
        logger.info("Daily token cleanup finished", **results)
        return results

    async def perform_manual_cleanup(self) -> dict[str, int]:
        """Run every cleanup step once, without resetting the blacklist.

        Returns:
            Counts per category.
        """
        return {
            "refresh_tokens": await self.cleanup_refresh_tokens(),
            "password_reset_tokens": await self.password_reset_service.cleanup_expired(),
            "verification_tokens": await self.email_verification_service.clear_expired(),
            "login_attempts": await self.login_attempt_service.cleanup_old(),
            "blacklisted_tokens": self.blacklist.count(),
        }


SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class CleanupScheduler:
    """Runs the hourly and daily passes as background asyncio tasks."""

    def __init__(
        self,
        session_factory: SessionFactory,
        blacklist: TokenBlacklist,
        settings: Settings,
    ) -> None:
        self.session_factory = session_factory
        self.blacklist = blacklist
        self.settings = settings
        self._tasks: list[asyncio.Task] = []

    async def _run_periodically(self, interval: int, pass_name: str) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                async with self.session_factory() as session:
                    service = TokenCleanupService(session, self.blacklist, self.settings)
                    if pass_name == "daily":
                        await service.run_daily_cleanup()
                    else:
                        await service.run_hourly_cleanup()
            except Exception as e:
                # Retry on the next tick
                logger.error(
                    "Token cleanup failed", cleanup=pass_name, error=str(e), exc_info=True
                )

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self._run_periodically(self.settings.cleanup_interval_seconds, "hourly")
            ),
            asyncio.create_task(
                self._run_periodically(self.settings.cleanup_daily_interval_seconds, "daily")
            ),
        ]
        logger.info("Token cleanup scheduler started")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error("Token cleanup task had failed", error=str(e))
        self._tasks = []
        logger.info("Token cleanup scheduler stopped")
