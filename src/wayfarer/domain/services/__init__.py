"""Domain services for Wayfarer.

Services hold the credential lifecycle logic and receive their
repositories through the constructor.
"""

from wayfarer.domain.services.auth_service import AuthService, LoginResult, RegistrationResult
from wayfarer.domain.services.email_verification_service import EmailVerificationService
from wayfarer.domain.services.login_attempt_service import LoginAttemptService
from wayfarer.domain.services.oauth_service import OAuthService
from wayfarer.domain.services.password_reset_service import PasswordResetService
from wayfarer.domain.services.password_validator import (
    PasswordPolicyViolation,
    PasswordValidator,
    default_password_validator,
)
from wayfarer.domain.services.token_cleanup_service import CleanupScheduler, TokenCleanupService
from wayfarer.domain.services.token_service import TokenService

__all__ = [
    "AuthService",
    "CleanupScheduler",
    "EmailVerificationService",
    "LoginAttemptService",
    "LoginResult",
    "OAuthService",
    "PasswordPolicyViolation",
    "PasswordResetService",
    "PasswordValidator",
    "RegistrationResult",
    "TokenCleanupService",
    "TokenService",
    "default_password_validator",
]
