"""Unit tests for EmailVerificationService."""

from datetime import timedelta

import pytest

from wayfarer.core.clock import utc_now
from wayfarer.core.exceptions import BadRequestError, NotFoundError
from wayfarer.domain.services.email_verification_service import EmailVerificationService
from wayfarer.infrastructure.persistence.repositories import UserRepository


@pytest.fixture
def verification_service(db_session) -> EmailVerificationService:
    return EmailVerificationService(db_session, UserRepository(db_session))


@pytest.mark.asyncio
class TestGenerate:
    """Tests for token generation."""

    async def test_stores_only_hash(self, verification_service, create_user):
        user = await create_user()

        token = await verification_service.generate(user.id)

        assert len(token) >= 43
        assert user.email_verification_token_hash == UserRepository.hash_token(token)
        assert await verification_service.has_valid_token(user.id) is True

    async def test_new_token_replaces_previous(self, verification_service, create_user):
        user = await create_user()
        first = await verification_service.generate(user.id)
        second = await verification_service.generate(user.id)

        assert await verification_service.verify(first) is None
        assert (await verification_service.verify(second)).email_verified is True

    async def test_unknown_user(self, verification_service):
        with pytest.raises(NotFoundError):
            await verification_service.generate("missing-user")


@pytest.mark.asyncio
class TestVerify:
    """Tests for token consumption."""

    async def test_marks_user_verified(self, verification_service, create_user):
        user = await create_user()
        token = await verification_service.generate(user.id)

        verified = await verification_service.verify(token)

        assert verified.id == user.id
        assert verified.email_verified is True
        assert verified.email_verification_token_hash is None

    async def test_token_is_single_use(self, verification_service, create_user):
        user = await create_user()
        token = await verification_service.generate(user.id)
        await verification_service.verify(token)

        assert await verification_service.verify(token) is None

    async def test_already_verified_user_succeeds(self, verification_service, create_user):
        """Test that a live token for a verified user is cleared and reported as success."""
        user = await create_user(email_verified=True)
        token = await verification_service.generate(user.id)

        verified = await verification_service.verify(token)

        assert verified.id == user.id
        assert verified.email_verified is True
        assert verified.email_verification_token_hash is None
        assert await verification_service.has_valid_token(user.id) is False
        assert await verification_service.verify(token) is None

    async def test_expired_token(self, verification_service, db_session, create_user):
        user = await create_user()
        token = await verification_service.generate(user.id)
        user.email_verification_expires_at = utc_now() - timedelta(minutes=1)
        await db_session.commit()

        assert await verification_service.verify(token) is None
        await db_session.refresh(user)
        assert user.email_verified is False
        assert user.email_verification_token_hash is None

    async def test_unknown_token(self, verification_service):
        assert await verification_service.verify("no-such-token") is None

    @pytest.mark.parametrize("token", ["", "   ", None])
    async def test_empty_token(self, verification_service, token):
        with pytest.raises(BadRequestError):
            await verification_service.verify(token)


@pytest.mark.asyncio
class TestResend:
    """Tests for resending verification tokens."""

    async def test_issues_new_token(self, verification_service, create_user):
        user = await create_user()

        resent_user, token = await verification_service.resend("TRAVELER@example.com")

        assert resent_user.id == user.id
        assert (await verification_service.verify(token)).email_verified is True

    async def test_unknown_email(self, verification_service):
        with pytest.raises(NotFoundError):
            await verification_service.resend("nobody@example.com")

    async def test_already_verified(self, verification_service, create_user):
        await create_user(email_verified=True)

        with pytest.raises(BadRequestError, match="already verified"):
            await verification_service.resend("traveler@example.com")

    async def test_empty_email(self, verification_service):
        with pytest.raises(BadRequestError):
            await verification_service.resend("")


@pytest.mark.asyncio
async def test_clear_expired(verification_service, db_session, create_user):
    user = await create_user()
    await verification_service.generate(user.id)
    user.email_verification_expires_at = utc_now() - timedelta(hours=1)
    await db_session.commit()

    assert await verification_service.clear_expired() == 1
    assert await verification_service.has_valid_token(user.id) is False
