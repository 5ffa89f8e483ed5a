"""Unit tests for the refresh token store."""

from datetime import timedelta

import pytest

from wayfarer.core.clock import utc_now
from wayfarer.infrastructure.persistence.repositories import RefreshTokenRepository


@pytest.mark.asyncio
class TestRefreshTokenRepository:
    """Tests for RefreshTokenRepository against SQLite."""

    async def test_store_hashes_token_id(self, db_session, create_user):
        user = await create_user()
        repo = RefreshTokenRepository(db_session)

        model = await repo.store(user.id, "raw-rotation-id", utc_now() + timedelta(days=7))

        assert model.token_hash == RefreshTokenRepository.hash_token("raw-rotation-id")
        assert model.token_hash != "raw-rotation-id"
        assert len(model.token_hash) == 64

    async def test_store_replaces_previous_tokens(self, db_session, create_user):
        """Test that a user never holds more than one refresh token."""
        user = await create_user()
        repo = RefreshTokenRepository(db_session)
        expires_at = utc_now() + timedelta(days=7)

        await repo.store(user.id, "first", expires_at)
        await repo.store(user.id, "second", expires_at)
        await db_session.commit()

        tokens = await repo.list_for_user(user.id)
        assert len(tokens) == 1
        assert await repo.validate("first") is None
        assert (await repo.validate("second")).user_id == user.id

    async def test_store_does_not_touch_other_users(self, db_session, create_user):
        alice = await create_user("alice@example.com", "alice")
        bob = await create_user("bob@example.com", "bob")
        repo = RefreshTokenRepository(db_session)
        expires_at = utc_now() + timedelta(days=7)

        await repo.store(alice.id, "alice-token", expires_at)
        await repo.store(bob.id, "bob-token", expires_at)

        assert await repo.validate("alice-token") is not None
        assert await repo.validate("bob-token") is not None

    async def test_validate_deletes_expired(self, db_session, create_user):
        user = await create_user()
        repo = RefreshTokenRepository(db_session)
        await repo.store(user.id, "stale", utc_now() - timedelta(seconds=1))

        assert await repo.validate("stale") is None
        assert await repo.list_for_user(user.id) == []

    async def test_validate_unknown(self, db_session):
        assert await RefreshTokenRepository(db_session).validate("missing") is None

    async def test_revoke(self, db_session, create_user):
        user = await create_user()
        repo = RefreshTokenRepository(db_session)
        await repo.store(user.id, "token", utc_now() + timedelta(days=1))

        assert await repo.revoke("token") is True
        assert await repo.revoke("token") is False

    async def test_cleanup_expired(self, db_session, create_user):
        alice = await create_user("alice@example.com", "alice")
        bob = await create_user("bob@example.com", "bob")
        repo = RefreshTokenRepository(db_session)
        await repo.store(alice.id, "expired", utc_now() - timedelta(hours=1))
        await repo.store(bob.id, "live", utc_now() + timedelta(days=1))

        assert await repo.cleanup_expired() == 1
        assert await repo.validate("live") is not None
