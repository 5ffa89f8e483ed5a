"""Unit tests for LoginAttemptService."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from wayfarer.core.clock import utc_now
from wayfarer.domain.services.login_attempt_service import LoginAttemptService
from wayfarer.infrastructure.persistence.repositories import LoginAttemptRepository

IP = "203.0.113.5"


@pytest.fixture
def tracker(db_session) -> LoginAttemptService:
    return LoginAttemptService(
        db_session,
        LoginAttemptRepository(db_session),
        max_attempts=3,
        lockout_minutes=15,
        retention_hours=24,
    )


@pytest.mark.asyncio
class TestLoginAttemptService:
    """Tests for the failed login tracker against SQLite."""

    async def test_clean_key_is_unlocked(self, tracker):
        status = await tracker.is_locked("alice", IP)

        assert status.is_locked is False
        assert status.attempt_count == 0

    async def test_locks_at_threshold(self, tracker):
        for _ in range(2):
            await tracker.record_failure("alice", IP)
        assert (await tracker.is_locked("alice", IP)).is_locked is False

        await tracker.record_failure("alice", IP)

        status = await tracker.is_locked("alice", IP)
        assert status.is_locked is True
        assert status.remaining_minutes == 15
        assert status.attempt_count == 3

    async def test_identifier_is_case_insensitive(self, tracker):
        for identifier in ("Alice", "ALICE ", "alice"):
            await tracker.record_failure(identifier, IP)

        assert (await tracker.is_locked("aLiCe", IP)).is_locked is True

    async def test_key_includes_address(self, tracker):
        for _ in range(3):
            await tracker.record_failure("alice", IP)

        assert (await tracker.is_locked("alice", "198.51.100.1")).is_locked is False

    async def test_success_clears_counter(self, tracker):
        await tracker.record_failure("alice", IP)
        await tracker.record_failure("alice", IP)

        await tracker.clear_successful("alice", IP)

        assert await tracker.get_attempt_count("alice", IP) == 0

    async def test_failure_while_locked_extends_window(self, tracker, db_session):
        for _ in range(3):
            await tracker.record_failure("alice", IP)
        attempt = await LoginAttemptRepository(db_session).get("alice", IP)
        attempt.blocked_until = utc_now() + timedelta(minutes=2)
        await db_session.commit()

        await tracker.record_failure("alice", IP)

        status = await tracker.is_locked("alice", IP)
        assert status.remaining_minutes == 15
        assert status.attempt_count == 4

    async def test_elapsed_lock_reads_unlocked(self, tracker, db_session):
        for _ in range(3):
            await tracker.record_failure("alice", IP)
        attempt = await LoginAttemptRepository(db_session).get("alice", IP)
        attempt.blocked_until = utc_now() - timedelta(seconds=1)
        await db_session.commit()

        status = await tracker.is_locked("alice", IP)

        assert status.is_locked is False
        assert status.attempt_count == 3

    async def test_remaining_minutes_rounds_up(self, tracker, db_session):
        for _ in range(3):
            await tracker.record_failure("alice", IP)
        attempt = await LoginAttemptRepository(db_session).get("alice", IP)
        attempt.blocked_until = utc_now() + timedelta(seconds=61)
        await db_session.commit()

        assert (await tracker.is_locked("alice", IP)).remaining_minutes == 2

    async def test_cleanup_old(self, tracker, db_session):
        await tracker.record_failure("alice", IP)
        attempt = await LoginAttemptRepository(db_session).get("alice", IP)
        attempt.last_attempt = utc_now() - timedelta(hours=25)
        await db_session.commit()

        assert await tracker.cleanup_old() == 1


@pytest.mark.asyncio
class TestLoginAttemptServiceFailOpen:
    """Tests that storage errors never block a login."""

    @pytest.fixture
    def broken_repo(self):
        repo = AsyncMock(spec=LoginAttemptRepository)
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        repo.get.side_effect = error
        repo.increment.side_effect = error
        repo.delete.side_effect = error
        return repo

    async def test_is_locked_fails_open(self, broken_repo):
        service = LoginAttemptService(AsyncMock(), broken_repo)

        status = await service.is_locked("alice", IP)

        assert status.is_locked is False

    async def test_record_failure_swallows_storage_errors(self, broken_repo):
        session = AsyncMock()
        service = LoginAttemptService(session, broken_repo)

        await service.record_failure("alice", IP)

        session.rollback.assert_awaited_once()

    async def test_clear_successful_swallows_storage_errors(self, broken_repo):
        session = AsyncMock()
        service = LoginAttemptService(session, broken_repo)

        await service.clear_successful("alice", IP)

        session.rollback.assert_awaited_once()
