"""FastAPI dependencies for authentication.

Builds the domain services for a request-scoped database session and
extracts the authenticated user from the Authorization header.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.config import Settings, get_settings
from wayfarer.core.exceptions import RateLimitExceededError, UnauthorizedError
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.tokens import AccessTokenPayload
from wayfarer.domain.services import (
    AuthService,
    EmailVerificationService,
    LoginAttemptService,
    OAuthService,
    PasswordResetService,
    TokenService,
)
from wayfarer.infrastructure.api.middleware import get_client_ip, login_rate_limit_storage
from wayfarer.infrastructure.auth import get_jwt_service, token_blacklist
from wayfarer.infrastructure.oauth import OAuthProviderRegistry
from wayfarer.infrastructure.persistence.database import get_db_session
from wayfarer.infrastructure.persistence.repositories import (
    LoginAttemptRepository,
    OAuthProviderRepository,
    PasswordResetRepository,
    RefreshTokenRepository,
    UserRepository,
)
from wayfarer.infrastructure.services.email_service import EmailService, get_email_service

logger = get_logger(__name__)

DBSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_token_service(session: DBSession) -> TokenService:
    return TokenService(
        session,
        RefreshTokenRepository(session),
        get_jwt_service(),
        token_blacklist,
    )


def get_auth_service(
    session: DBSession,
    settings: AppSettings,
    token_service: Annotated[TokenService, Depends(get_token_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> AuthService:
    """Assemble the auth orchestrator for one request."""
    user_repo = UserRepository(session)
    return AuthService(
        session=session,
        user_repo=user_repo,
        token_service=token_service,
        login_attempt_service=LoginAttemptService(
            session,
            LoginAttemptRepository(session),
            max_attempts=settings.login_max_attempts,
            lockout_minutes=settings.login_lockout_minutes,
            retention_hours=settings.login_attempt_retention_hours,
        ),
        email_verification_service=EmailVerificationService(
            session, user_repo, expire_hours=settings.email_verification_expire_hours
        ),
        password_reset_service=PasswordResetService(
            session,
            user_repo,
            PasswordResetRepository(session),
            expire_minutes=settings.password_reset_expire_minutes,
        ),
        email_service=email_service,
        blacklist=token_blacklist,
    )


def get_oauth_service(
    session: DBSession,
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> OAuthService:
    return OAuthService(
        session,
        UserRepository(session),
        OAuthProviderRepository(session),
        token_service,
    )


def get_oauth_registry(request: Request) -> OAuthProviderRegistry:
    """Get the OAuth provider registry from app state.

    Args:
        request: FastAPI request object.

    Returns:
        OAuthProviderRegistry instance.
    """
    # Created lazily when the lifespan did not run (e.g. in tests)
    if not hasattr(request.app.state, "oauth_registry"):
        request.app.state.oauth_registry = OAuthProviderRegistry(get_settings())
    return request.app.state.oauth_registry


async def get_current_user(
    token_service: Annotated[TokenService, Depends(get_token_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> AccessTokenPayload:
    """Extract and validate the current user from the Authorization header.

    Args:
        token_service: Token service used to verify the access token.
        authorization: The Authorization header value (e.g., "Bearer <token>").

    Returns:
        AccessTokenPayload: Verified claims of the access token.

    Raises:
        UnauthorizedError: If the header is missing or malformed, or the
            token is invalid, expired or revoked.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise UnauthorizedError("Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise UnauthorizedError("Invalid Authorization header format")

    return token_service.verify_access(parts[1])


def enforce_login_rate_limit(request: Request, settings: AppSettings) -> str:
    """Apply the per-address login rate limit.

    Returns:
        The client address, reused as part of the lockout key.

    Raises:
        RateLimitExceededError: If the address exceeded its allowance.
    """
    client_ip = get_client_ip(request, settings.trusted_proxies)
    allowed, _, reset_seconds = login_rate_limit_storage.consume(
        f"login:{client_ip}", settings.login_rate_limit_per_minute
    )
    if not allowed:
        logger.warning("Login rate limit exceeded", ip_address=client_ip, retry_after=reset_seconds)
        raise RateLimitExceededError(reset_seconds)
    return client_ip


# Type aliases for dependency injection
AuthenticatedUser = Annotated[AccessTokenPayload, Depends(get_current_user)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
OAuthServiceDep = Annotated[OAuthService, Depends(get_oauth_service)]
OAuthRegistryDep = Annotated[OAuthProviderRegistry, Depends(get_oauth_registry)]
LoginClientIP = Annotated[str, Depends(enforce_login_rate_limit)]
