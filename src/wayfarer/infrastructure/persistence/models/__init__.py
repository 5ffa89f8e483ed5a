"""SQLAlchemy models for the Wayfarer auth tables.

All models inherit from the Base class defined in database.py.
"""

from wayfarer.infrastructure.persistence.models.login_attempt import LoginAttemptModel
from wayfarer.infrastructure.persistence.models.oauth_provider import (
    OAuthProviderModel,
    OAuthStateModel,
)
from wayfarer.infrastructure.persistence.models.password_reset import PasswordResetTokenModel
from wayfarer.infrastructure.persistence.models.refresh_token import RefreshTokenModel
from wayfarer.infrastructure.persistence.models.user import UserModel

__all__ = [
    "LoginAttemptModel",
    "OAuthProviderModel",
    "OAuthStateModel",
    "PasswordResetTokenModel",
    "RefreshTokenModel",
    "UserModel",
]
