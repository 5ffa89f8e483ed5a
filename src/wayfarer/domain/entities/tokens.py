"""Token-related value objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenPair:
    """An access token and its companion refresh token."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AccessTokenPayload:
    """Verified claims of an access token.

    Attributes:
        user_id: Subject of the token.
        email: Email address at issue time.
        username: Username at issue time.
        token_id: Unique token identifier (jti), used for blacklisting.
        issued_at: Unix timestamp of issue.
        expires_at: Unix timestamp of expiry.
    """

    user_id: str
    email: str
    username: str
    token_id: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class LockStatus:
    """Lockout state of a (identifier, address) pair."""

    is_locked: bool
    remaining_minutes: int | None = None
    attempt_count: int | None = None
