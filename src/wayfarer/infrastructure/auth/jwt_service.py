"""JWT token service.

Signs and verifies access and refresh tokens. The two token kinds use
different secrets so a leaked access-token key cannot mint refresh tokens.
"""

import uuid
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any

import jwt

from wayfarer.core.clock import utc_now
from wayfarer.core.config import get_settings


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTConfigurationError(JWTError):
    """Raised when signing secrets are missing or unsafe."""

    pass


class JWTService:
    """Service for creating and validating JWT tokens.

    Access tokens are short-lived and carry the user's identity claims plus a
    ``jti`` used for blacklisting. Refresh tokens carry only the subject and a
    random rotation id that is looked up in the refresh token store.
    """

    ALGORITHM = "HS256"
    ISSUER = "wayfarer"

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_expire_minutes: int = 15,
        refresh_expire_days: int = 7,
    ) -> None:
        """Initialize the JWT service.

        Args:
            access_secret: Secret for signing access tokens.
            refresh_secret: Secret for signing refresh tokens.
            access_expire_minutes: Access token lifetime.
            refresh_expire_days: Refresh token lifetime.

        Raises:
            JWTConfigurationError: If a secret is missing or both secrets match.
        """
        if not access_secret:
            raise JWTConfigurationError("Access token secret is not configured")
        if not refresh_secret:
            raise JWTConfigurationError("Refresh token secret is not configured")
        if access_secret == refresh_secret:
            raise JWTConfigurationError("Access and refresh token secrets must differ")

        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_expire_delta = timedelta(minutes=access_expire_minutes)
        self.refresh_expire_delta = timedelta(days=refresh_expire_days)

    def create_access_token(
        self,
        user_id: str,
        email: str,
        username: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: The user's unique identifier.
            email: The user's email address.
            username: The user's username.
            expires_delta: Custom expiration time. Defaults to config value.

        Returns:
            Encoded JWT access token.
        """
        now = utc_now()
        payload = {
            "iss": self.ISSUER,
            "sub": user_id,
            "email": email,
            "username": username,
            "iat": now,
            "exp": now + (expires_delta or self.access_expire_delta),
            "jti": str(uuid.uuid4()),
            "type": "access",
        }
        return jwt.encode(payload, self._access_secret, algorithm=self.ALGORITHM)

    def create_refresh_token(self, user_id: str, token_id: str, expires_at: datetime) -> str:
        """Create a refresh token.

        Args:
            user_id: The user's unique identifier.
            token_id: Random rotation id, stored hashed server-side.
            expires_at: Absolute expiry of the token.

        Returns:
            Encoded JWT refresh token.
        """
        payload = {
            "iss": self.ISSUER,
            "sub": user_id,
            "token_id": token_id,
            "iat": utc_now(),
            "exp": expires_at,
            "type": "refresh",
        }
        return jwt.encode(payload, self._refresh_secret, algorithm=self.ALGORITHM)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

        if payload.get("type") != expected_type:
            raise InvalidTokenError(f"Not an {expected_type} token")
        return payload

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """Verify an access token and return its claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature, issuer or type is wrong.
        """
        return self._decode(token, self._access_secret, "access")

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        """Verify a refresh token and return its claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature, issuer or type is wrong.
        """
        return self._decode(token, self._refresh_secret, "refresh")

    @staticmethod
    def decode_unverified(token: str) -> dict[str, Any] | None:
        """Read claims without verifying the signature.

        Only for logging and diagnostics, never for authorization.
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_expire_delta.total_seconds())


@lru_cache
def get_jwt_service() -> JWTService:
    """Build the JWT service from settings.

    Called during application startup so a missing refresh secret stops
    the process before it serves requests.
    """
    settings = get_settings()
    return JWTService(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_expire_minutes=settings.access_token_expire_minutes,
        refresh_expire_days=settings.refresh_token_expire_days,
    )
