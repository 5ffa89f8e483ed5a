"""Unit tests for scheduled credential cleanup."""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest

from wayfarer.core.clock import utc_now
from wayfarer.core.config import get_settings
from wayfarer.domain.services.token_cleanup_service import CleanupScheduler, TokenCleanupService
from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist
from wayfarer.infrastructure.persistence.repositories import RefreshTokenRepository


@pytest.fixture
def blacklist() -> TokenBlacklist:
    return TokenBlacklist()


@pytest.fixture
def cleanup_service(db_session, blacklist) -> TokenCleanupService:
    return TokenCleanupService(db_session, blacklist, get_settings())


@pytest.mark.asyncio
class TestTokenCleanupService:
    """Tests for the cleanup passes."""

    async def test_hourly_cleanup(self, cleanup_service, blacklist, db_session, create_user):
        user = await create_user()
        await RefreshTokenRepository(db_session).store(
            user.id, "expired", utc_now() - timedelta(minutes=1)
        )
        await db_session.commit()
        blacklist.blacklist("jti-1")

        results = await cleanup_service.run_hourly_cleanup()

        assert results == {"refresh_tokens": 1, "blacklisted_tokens": 0, "login_attempts": 0}
        assert blacklist.is_blacklisted("jti-1")

    async def test_daily_cleanup_resets_blacklist(self, cleanup_service, blacklist):
        blacklist.blacklist("jti-1")
        blacklist.blacklist("jti-2")

        results = await cleanup_service.run_daily_cleanup()

        assert results["blacklisted_tokens"] == 2
        assert blacklist.count() == 0

    async def test_manual_cleanup_keeps_blacklist(self, cleanup_service, blacklist):
        blacklist.blacklist("jti-1")

        results = await cleanup_service.perform_manual_cleanup()

        assert results["blacklisted_tokens"] == 1
        assert blacklist.is_blacklisted("jti-1")
        assert set(results) == {
            "refresh_tokens",
            "password_reset_tokens",
            "verification_tokens",
            "login_attempts",
            "blacklisted_tokens",
        }


@pytest.mark.asyncio
async def test_scheduler_start_and_stop(db_session, blacklist):
    @asynccontextmanager
    async def session_factory():
        yield db_session

    scheduler = CleanupScheduler(session_factory, blacklist, get_settings())

    scheduler.start()
    scheduler.start()
    assert len(scheduler._tasks) == 2

    await asyncio.sleep(0)
    await scheduler.stop()
    assert scheduler._tasks == []


@pytest.mark.asyncio
async def test_scheduler_survives_unexpected_errors(blacklist):
    """Test that a driver error does not end the periodic loop."""
    calls = []

    @asynccontextmanager
    async def session_factory():
        calls.append(1)
        raise OSError("database file is not reachable")
        yield

    settings = get_settings().model_copy(
        update={"cleanup_interval_seconds": 0, "cleanup_daily_interval_seconds": 0}
    )
    scheduler = CleanupScheduler(session_factory, blacklist, settings)

    scheduler.start()
    for _ in range(10):
        await asyncio.sleep(0)

    assert len(calls) > 2
    assert not any(task.done() for task in scheduler._tasks)

    await scheduler.stop()
    assert scheduler._tasks == []


@pytest.mark.asyncio
async def test_scheduler_stop_tolerates_failed_task(blacklist):
    async def failing():
        raise RuntimeError("boom")

    scheduler = CleanupScheduler(None, blacklist, get_settings())
    scheduler._tasks = [asyncio.create_task(failing())]
    await asyncio.sleep(0)

    await scheduler.stop()

    assert scheduler._tasks == []
