"""API Schemas for request/response validation."""

from wayfarer.infrastructure.api.schemas.auth_schemas import (
    AppleLoginRequest,
    AuthResponse,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    OAuthLoginResponse,
    OAuthProviderLinkResponse,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    ValidationErrorDetail,
    VerificationResponse,
    VerifyEmailRequest,
)

__all__ = [
    "AppleLoginRequest",
    "AuthResponse",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "LogoutRequest",
    "MessageResponse",
    "OAuthLoginResponse",
    "OAuthProviderLinkResponse",
    "ProfileResponse",
    "RefreshRequest",
    "RegisterRequest",
    "RegisterResponse",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UserResponse",
    "ValidationErrorDetail",
    "VerificationResponse",
    "VerifyEmailRequest",
]
