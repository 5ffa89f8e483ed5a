"""Persistence repositories for database operations."""

from wayfarer.infrastructure.persistence.repositories.login_attempt_repository import (
    LoginAttemptRepository,
)
from wayfarer.infrastructure.persistence.repositories.oauth_provider_repository import (
    OAuthProviderRepository,
    OAuthStateRepository,
)
from wayfarer.infrastructure.persistence.repositories.password_reset_repository import (
    PasswordResetRepository,
)
from wayfarer.infrastructure.persistence.repositories.refresh_token_repository import (
    RefreshTokenRepository,
)
from wayfarer.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)

__all__ = [
    "LoginAttemptRepository",
    "OAuthProviderRepository",
    "OAuthStateRepository",
    "PasswordResetRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
