"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from wayfarer.domain.services.password_validator import default_password_validator


def _check_password_strength(value: str) -> str:
    violations = default_password_validator.validate(value)
    if violations:
        raise ValueError("; ".join(v.message for v in violations))
    return value


class RegisterRequest(BaseModel):
    """Request body for user registration."""

    email: EmailStr = Field(..., max_length=255, description="User's email address")
    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Unique username",
    )
    password: str = Field(..., min_length=1, description="User's password")
    full_name: str | None = Field(None, max_length=255, description="Display name")

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)


class LoginRequest(BaseModel):
    """Request body for login by email or username."""

    email: str | None = Field(None, max_length=255, description="Email address")
    username: str | None = Field(None, max_length=50, description="Username")
    password: str = Field(..., min_length=1, description="User's password")

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.email and self.email.strip()) and not (
            self.username and self.username.strip()
        ):
            raise ValueError("Email or username is required")
        return self

    @property
    def identifier(self) -> str:
        """The email if given, otherwise the username."""
        if self.email and self.email.strip():
            return self.email.strip()
        return (self.username or "").strip()


class RefreshRequest(BaseModel):
    """Request body for token refresh."""

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class LogoutRequest(BaseModel):
    """Request body for logout."""

    refresh_token: str | None = Field(None, description="Refresh token to revoke")


class VerifyEmailRequest(BaseModel):
    """Request body for email verification."""

    token: str = Field(..., min_length=1, max_length=128, description="Verification token")


class _EmailRequest(BaseModel):
    email: EmailStr = Field(..., max_length=255, description="User's email address")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ResendVerificationRequest(_EmailRequest):
    """Request body for resending the verification email."""


class ForgotPasswordRequest(_EmailRequest):
    """Request body for starting a password reset."""


class ResetPasswordRequest(BaseModel):
    """Request body for completing a password reset."""

    token: str = Field(
        ...,
        min_length=1,
        max_length=128,
        pattern=r"^[a-zA-Z0-9]+$",
        description="Password reset token from email",
    )
    new_password: str = Field(..., min_length=1, description="New password")

    @field_validator("token", mode="before")
    @classmethod
    def strip_token(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)


class AppleLoginRequest(BaseModel):
    """Request body for Sign in with Apple."""

    id_token: str = Field(..., min_length=1, description="Apple identity token")
    name: str | None = Field(None, max_length=255, description="Name shared on first sign-in")


class UserResponse(BaseModel):
    """User information in auth responses."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    username: str = Field(..., description="Username")
    full_name: str | None = Field(None, description="Display name")
    email_verified: bool = Field(..., description="Whether the email address is verified")
    profile_picture: str | None = Field(None, description="Profile picture URL")
    last_login: datetime | None = Field(None, description="Last successful login")
    created_at: datetime = Field(..., description="When the user was created")
    updated_at: datetime = Field(..., description="When the user was last updated")

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """An access/refresh token pair."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field("bearer", description="Authorization scheme")
    expires_in: int = Field(..., description="Access token expiration time in seconds")


class AuthResponse(BaseModel):
    """Response for successful login."""

    user: UserResponse = Field(..., description="User information")
    tokens: TokenResponse = Field(..., description="Issued tokens")


class RegisterResponse(AuthResponse):
    """Response for successful registration."""

    verification_token: str = Field(..., description="Email verification token")


class VerificationResponse(BaseModel):
    """Outcome of an email verification attempt."""

    success: bool
    message: str
    user: UserResponse | None = None


class MessageResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str


class OAuthLoginResponse(BaseModel):
    """Response for a successful OAuth sign-in."""

    user: UserResponse
    access_token: str
    refresh_token: str
    provider: str
    is_new_user: bool


class OAuthProviderLinkResponse(BaseModel):
    """A provider identity linked to the current user."""

    provider: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    """Claims of the presented access token."""

    user_id: str
    email: str
    username: str
    issued_at: int
    expires_at: int


class ValidationErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: str = Field(..., description="Field name that failed validation")
    message: str = Field(..., description="Human-readable error message")
    code: str | None = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: list[ValidationErrorDetail] | None = Field(None, description="Field errors")
