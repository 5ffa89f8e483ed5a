"""Pytest configuration for all tests."""

import os

# Settings are read on first use, so the environment must be prepared first
os.environ.setdefault("WAYFARER_ENVIRONMENT", "testing")
os.environ.setdefault("WAYFARER_JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("WAYFARER_JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("WAYFARER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("WAYFARER_PASSWORD_TIME_COST", "1")
os.environ.setdefault("WAYFARER_PASSWORD_MEMORY_COST", "1024")
os.environ.setdefault("WAYFARER_PASSWORD_PARALLELISM", "1")
os.environ.setdefault("WAYFARER_CLEANUP_ENABLED", "false")

from typing import AsyncGenerator, Awaitable, Callable  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from wayfarer.core.config import get_settings  # noqa: E402
from wayfarer.domain.services import TokenService  # noqa: E402
from wayfarer.infrastructure.api.middleware import login_rate_limit_storage  # noqa: E402
from wayfarer.infrastructure.auth import JWTService, hash_password, token_blacklist  # noqa: E402
from wayfarer.infrastructure.persistence import models  # noqa: E402, F401
from wayfarer.infrastructure.persistence.database import Base  # noqa: E402
from wayfarer.infrastructure.persistence.models import UserModel  # noqa: E402
from wayfarer.infrastructure.persistence.repositories import (  # noqa: E402
    RefreshTokenRepository,
    UserRepository,
)
from wayfarer.infrastructure.services.email import LoggingEmailProvider  # noqa: E402
from wayfarer.infrastructure.services.email_service import EmailService  # noqa: E402

TEST_PASSWORD = "Str0ng!Passw0rd"


@pytest.fixture(autouse=True)
def reset_process_state():
    """Clear in-memory state shared between requests."""
    token_blacklist.clear_all()
    login_rate_limit_storage.reset()
    yield
    token_blacklist.clear_all()
    login_rate_limit_storage.reset()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(
        access_secret="unit-access-secret",
        refresh_secret="unit-refresh-secret",
        access_expire_minutes=15,
        refresh_expire_days=7,
    )


@pytest.fixture
def token_service(db_session: AsyncSession, jwt_service: JWTService) -> TokenService:
    return TokenService(
        db_session,
        RefreshTokenRepository(db_session),
        jwt_service,
        token_blacklist,
    )


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[UserModel]]:
    """Factory that persists a user with a known password."""

    async def _create_user(
        email: str = "traveler@example.com",
        username: str = "traveler",
        password: str | None = TEST_PASSWORD,
        email_verified: bool = False,
    ) -> UserModel:
        user = UserModel(
            email=email,
            username=username,
            password_hash=hash_password(password) if password else "",
            full_name=username.title(),
            email_verified=email_verified,
        )
        await UserRepository(db_session).create(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def email_provider() -> LoggingEmailProvider:
    return LoggingEmailProvider()


@pytest.fixture
def email_service(email_provider: LoggingEmailProvider) -> EmailService:
    return EmailService(email_provider, get_settings())


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, email_service: EmailService
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database and email dependencies."""
    from wayfarer.infrastructure.api.app import app
    from wayfarer.infrastructure.persistence.database import get_db_session
    from wayfarer.infrastructure.services.email_service import get_email_service

    app.dependency_overrides[get_db_session] = lambda: db_session
    app.dependency_overrides[get_email_service] = lambda: email_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
    if hasattr(app.state, "oauth_registry"):
        del app.state.oauth_registry
