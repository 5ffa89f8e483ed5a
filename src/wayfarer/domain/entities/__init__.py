"""Domain entities for Wayfarer.

Entities are plain dataclasses with no dependency on the web framework.
"""

from wayfarer.domain.entities.oauth import OAuthAuthenticationResult, OAuthProfile
from wayfarer.domain.entities.password_reset import PasswordResetToken, hash_reset_token
from wayfarer.domain.entities.tokens import AccessTokenPayload, LockStatus, TokenPair

__all__ = [
    "AccessTokenPayload",
    "LockStatus",
    "OAuthAuthenticationResult",
    "OAuthProfile",
    "PasswordResetToken",
    "TokenPair",
    "hash_reset_token",
]
