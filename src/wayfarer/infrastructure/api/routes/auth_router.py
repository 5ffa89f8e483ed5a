"""Authentication API routes.

Provides endpoints for registration, login, token rotation, logout, email
verification, password reset and management of linked OAuth providers.
"""

from fastapi import APIRouter, status

from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.tokens import TokenPair
from wayfarer.domain.services.auth_service import (
    FORGOT_PASSWORD_MESSAGE,
    RESET_PASSWORD_MESSAGE,
)
from wayfarer.domain.services.email_verification_service import RESEND_NOT_FOUND_MESSAGE
from wayfarer.infrastructure.api.dependencies import (
    AuthenticatedUser,
    AuthServiceDep,
    LoginClientIP,
    OAuthServiceDep,
)
from wayfarer.infrastructure.api.schemas import (
    AuthResponse,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    OAuthProviderLinkResponse,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    VerificationResponse,
    VerifyEmailRequest,
)
from wayfarer.infrastructure.auth import get_jwt_service

logger = get_logger(__name__)

router = APIRouter()


def to_token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=get_jwt_service().access_expires_in,
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Email or username already exists"},
    },
)
async def register(request: RegisterRequest, auth_service: AuthServiceDep) -> RegisterResponse:
    """Register a new user.

    Creates the user with an unverified email, signs them in and sends the
    verification email. The verification token is also returned so clients
    without mail access (e.g. mobile onboarding) can complete the flow.
    """
    result = await auth_service.register(
        email=request.email,
        username=request.username,
        password=request.password,
        full_name=request.full_name,
    )
    return RegisterResponse(
        user=UserResponse.model_validate(result.user),
        tokens=to_token_response(result.tokens),
        verification_token=result.verification_token,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Rate limited or locked out"},
    },
)
async def login(
    request: LoginRequest,
    client_ip: LoginClientIP,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Authenticate by email or username and return a token pair.

    Security:
    - All credential failures return the same generic 401 message
    - Password verification always runs, even for unknown users
    - Repeated failures for an identifier and address lock it out
    """
    result = await auth_service.login(request.identifier, request.password, client_ip)
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        tokens=to_token_response(result.tokens),
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid refresh token"}},
)
async def refresh(request: RefreshRequest, auth_service: AuthServiceDep) -> TokenResponse:
    """Rotate a refresh token into a new token pair.

    The presented refresh token stops working once a new pair is issued.
    """
    tokens = await auth_service.refresh(request.refresh_token)
    return to_token_response(tokens)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
    request: LogoutRequest | None = None,
) -> MessageResponse:
    """Revoke the presented access token and the given refresh token."""
    await auth_service.logout(current_user, request.refresh_token if request else None)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/verify-email",
    response_model=VerificationResponse,
    responses={400: {"model": ErrorResponse, "description": "Missing token"}},
)
async def verify_email(
    request: VerifyEmailRequest, auth_service: AuthServiceDep
) -> VerificationResponse:
    """Confirm an email address with a verification token."""
    user = await auth_service.verify_email(request.token)
    if user is None:
        logger.info("Email verification failed: invalid or expired token")
        return VerificationResponse(
            success=False, message="Invalid or expired verification token"
        )
    return VerificationResponse(
        success=True,
        message="Email verified successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    request: ResendVerificationRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """Send a fresh verification email.

    Answers identically whether or not the address is registered.
    """
    await auth_service.resend_verification(request.email)
    return MessageResponse(message=RESEND_NOT_FOUND_MESSAGE)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """Email a password reset link.

    Answers identically whether or not the address is registered.
    """
    await auth_service.forgot_password(request.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired token"}},
)
async def reset_password(
    request: ResetPasswordRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """Set a new password with a reset token and end every session."""
    await auth_service.reset_password(request.token, request.new_password)
    return MessageResponse(message=RESET_PASSWORD_MESSAGE)


@router.get("/profile", response_model=ProfileResponse)
async def profile(current_user: AuthenticatedUser) -> ProfileResponse:
    """Return the claims of the presented access token."""
    return ProfileResponse(
        user_id=current_user.user_id,
        email=current_user.email,
        username=current_user.username,
        issued_at=current_user.issued_at,
        expires_at=current_user.expires_at,
    )


@router.get("/oauth/providers", response_model=list[OAuthProviderLinkResponse])
async def list_linked_providers(
    current_user: AuthenticatedUser, oauth_service: OAuthServiceDep
) -> list[OAuthProviderLinkResponse]:
    links = await oauth_service.list_providers(current_user.user_id)
    return [OAuthProviderLinkResponse.model_validate(link) for link in links]


@router.delete(
    "/oauth/providers/{provider}",
    response_model=MessageResponse,
    responses={409: {"model": ErrorResponse, "description": "Provider not linked"}},
)
async def unlink_provider(
    provider: str, current_user: AuthenticatedUser, oauth_service: OAuthServiceDep
) -> MessageResponse:
    """Remove a linked OAuth provider from the current user."""
    await oauth_service.unlink(current_user.user_id, provider)
    return MessageResponse(message=f"{provider} account unlinked")
