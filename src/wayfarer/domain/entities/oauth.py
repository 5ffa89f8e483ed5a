"""OAuth identity entities."""

from dataclasses import dataclass
from typing import Any

from wayfarer.domain.entities.tokens import TokenPair


@dataclass
class OAuthProfile:
    """Identity asserted by an external provider.

    Attributes:
        provider: Provider name (google, facebook, microsoft, apple).
        provider_id: Subject identifier assigned by the provider.
        email: Email address, when the provider shares it.
        email_verified: Whether the provider asserts it verified ``email``.
            Only verified addresses may attach to an existing account.
        name: Display name, when available.
        picture: Avatar URL, when available.
        access_token: Provider access token (never persisted).
        refresh_token: Provider refresh token (never persisted).
    """

    provider: str
    provider_id: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None


@dataclass
class OAuthAuthenticationResult:
    """Outcome of an OAuth sign-in."""

    user: Any
    tokens: TokenPair
    is_new_user: bool
