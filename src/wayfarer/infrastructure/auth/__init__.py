"""Authentication infrastructure components.

This module provides password hashing, JWT signing and the access token
blacklist.
"""

from wayfarer.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTConfigurationError,
    JWTError,
    JWTService,
    TokenExpiredError,
    get_jwt_service,
)
from wayfarer.infrastructure.auth.password_hasher import (
    hash_password,
    needs_rehash,
    verify_dummy_password,
    verify_password,
)
from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist, token_blacklist

__all__ = [
    "InvalidTokenError",
    "JWTConfigurationError",
    "JWTError",
    "JWTService",
    "TokenBlacklist",
    "TokenExpiredError",
    "get_jwt_service",
    "hash_password",
    "needs_rehash",
    "token_blacklist",
    "verify_dummy_password",
    "verify_password",
]
