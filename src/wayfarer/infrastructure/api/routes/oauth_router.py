"""OAuth authentication API routes.

Redirect flow for Google, Facebook and Microsoft:

1. ``GET /{provider}`` stores a single-use state token and redirects to the
   provider's consent page.
2. ``GET /{provider}/callback`` consumes the state, exchanges the code and
   signs the user in.

Sign in with Apple posts the identity token directly to ``POST /apple``.
"""

import secrets
from datetime import timedelta

import httpx
from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse

from wayfarer.core.clock import ensure_utc, utc_now
from wayfarer.core.config import get_settings
from wayfarer.core.exceptions import InternalError, NotFoundError, UnauthorizedError
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.oauth import OAuthAuthenticationResult, OAuthProfile
from wayfarer.infrastructure.api.dependencies import DBSession, OAuthRegistryDep, OAuthServiceDep
from wayfarer.infrastructure.api.schemas import (
    AppleLoginRequest,
    ErrorResponse,
    OAuthLoginResponse,
    UserResponse,
)
from wayfarer.infrastructure.oauth import OAuthProviderError
from wayfarer.infrastructure.persistence.models import OAuthStateModel
from wayfarer.infrastructure.persistence.repositories import OAuthStateRepository

logger = get_logger(__name__)

router = APIRouter()

INVALID_STATE_MESSAGE = "Invalid or expired OAuth state"


def to_login_response(result: OAuthAuthenticationResult, provider: str) -> OAuthLoginResponse:
    return OAuthLoginResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        provider=provider,
        is_new_user=result.is_new_user,
    )


@router.post(
    "/apple",
    response_model=OAuthLoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid identity token"},
        404: {"model": ErrorResponse, "description": "Sign in with Apple not configured"},
    },
)
async def apple_login(
    request: AppleLoginRequest,
    registry: OAuthRegistryDep,
    oauth_service: OAuthServiceDep,
) -> OAuthLoginResponse:
    """Sign in with an Apple identity token.

    The token's signature is verified against Apple's public keys before
    any claim is used.
    """
    if not registry.apple.client_id:
        raise NotFoundError("OAuth provider 'apple' is not configured")

    try:
        profile = await registry.apple.get_profile(request.id_token, request.name)
    except OAuthProviderError as e:
        logger.info("Apple sign-in rejected", error=str(e))
        raise UnauthorizedError(str(e)) from e
    except httpx.HTTPError as e:
        logger.error("Failed to reach Apple", error=str(e))
        raise InternalError("Failed to verify Apple ID token") from e

    result = await oauth_service.authenticate(profile)
    return to_login_response(result, "apple")


@router.get(
    "/{provider}",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    responses={404: {"model": ErrorResponse, "description": "Provider not configured"}},
)
async def authorize(
    provider: str,
    registry: OAuthRegistryDep,
    session: DBSession,
) -> RedirectResponse:
    """Start the OAuth flow by redirecting to the provider."""
    entry = registry.get(provider)
    if entry is None:
        logger.info("OAuth authorize failed: provider not configured", provider=provider)
        raise NotFoundError(f"OAuth provider '{provider}' is not configured")
    handler, config = entry

    state_token = secrets.token_urlsafe(32)
    settings = get_settings()
    await OAuthStateRepository(session).create(
        OAuthStateModel(
            provider=provider,
            state_token=state_token,
            redirect_uri=config.redirect_uri,
            expires_at=utc_now() + timedelta(minutes=settings.oauth_state_expire_minutes),
        )
    )
    await session.commit()

    url = await handler.get_authorization_url(config, state_token)
    logger.info("OAuth flow started", provider=provider)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/{provider}/callback",
    response_model=OAuthLoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Authorization failed"},
        404: {"model": ErrorResponse, "description": "Provider not configured"},
    },
)
async def callback(
    provider: str,
    registry: OAuthRegistryDep,
    oauth_service: OAuthServiceDep,
    session: DBSession,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
) -> OAuthLoginResponse:
    """Complete the OAuth flow and sign the user in.

    Flow:
    1. Reject provider-side errors and missing parameters
    2. Consume the state token (single use, provider bound, unexpired)
    3. Exchange the code and fetch the provider profile
    4. Link or create the local user and issue tokens
    """
    entry = registry.get(provider)
    if entry is None:
        raise NotFoundError(f"OAuth provider '{provider}' is not configured")
    handler, config = entry

    if error:
        logger.info("OAuth authorization denied", provider=provider, error=error)
        raise UnauthorizedError(f"{handler.display_name} authorization failed: {error}")
    if not code or not state:
        raise UnauthorizedError("Authorization code and state are required")

    state_repo = OAuthStateRepository(session)
    stored_state = await state_repo.get_by_token(state)
    if stored_state is None:
        logger.info("OAuth callback failed: unknown state", provider=provider)
        raise UnauthorizedError(INVALID_STATE_MESSAGE)
    await state_repo.delete(stored_state.id)
    await session.commit()
    if stored_state.provider != provider or ensure_utc(stored_state.expires_at) < utc_now():
        logger.info("OAuth callback failed: state mismatch or expired", provider=provider)
        raise UnauthorizedError(INVALID_STATE_MESSAGE)

    try:
        profile: OAuthProfile = await handler.authenticate(config, code)
    except OAuthProviderError as e:
        logger.info("OAuth code exchange rejected", provider=provider, error=str(e))
        raise UnauthorizedError(str(e)) from e
    except httpx.HTTPError as e:
        logger.error("Failed to reach OAuth provider", provider=provider, error=str(e))
        raise InternalError(f"Failed to reach {handler.display_name}") from e

    result = await oauth_service.authenticate(profile)
    return to_login_response(result, provider)
