"""Sign in with Apple identity token verification.

Apple's native and JS flows hand the client an ``id_token`` that is posted
to the backend. The token's signature is checked against Apple's published
JSON Web Key Set, and its issuer, audience and expiry are validated before
any claim is trusted.
"""

import time
from typing import Any

import httpx
import jwt

from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.oauth import OAuthProfile
from wayfarer.infrastructure.oauth.oauth_handler import OAuthProviderError

logger = get_logger(__name__)

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_KEYS_URL = "https://appleid.apple.com/auth/keys"


class AppleIdentityTokenVerifier:
    """Verifies Apple identity tokens against Apple's rotating public keys.

    Keys are cached for ``cache_ttl`` seconds. A token signed with an unknown
    key id forces a refetch to pick up rotated keys, at most once every
    ``min_refetch_interval`` seconds.
    """

    ALGORITHMS = ["RS256"]

    def __init__(
        self,
        client_id: str | None,
        keys_url: str = APPLE_KEYS_URL,
        cache_ttl: int = 24 * 3600,
        min_refetch_interval: float = 60.0,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.keys_url = keys_url
        self.cache_ttl = cache_ttl
        self.min_refetch_interval = min_refetch_interval
        self.timeout = timeout
        self._keys: dict[str, jwt.PyJWK] = {}
        self._fetched_at: float | None = None

    @property
    def provider_name(self) -> str:
        return "apple"

    async def _fetch_keys(self) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.keys_url)
        if response.status_code != 200:
            raise OAuthProviderError(f"Failed to fetch Apple public keys: HTTP {response.status_code}")
        try:
            key_set = jwt.PyJWKSet.from_dict(response.json())
        except (ValueError, jwt.PyJWKError, jwt.PyJWKSetError) as e:
            raise OAuthProviderError("Apple returned an invalid key set") from e

        self._keys = {key.key_id: key for key in key_set.keys if key.key_id}
        self._fetched_at = time.monotonic()
        logger.debug("Apple public keys refreshed", key_count=len(self._keys))

    def _should_fetch(self, key_id: str) -> bool:
        if self._fetched_at is None:
            return True
        age = time.monotonic() - self._fetched_at
        if age > self.cache_ttl:
            return True
        # Unknown key ids refetch at most once per interval
        return key_id not in self._keys and age >= self.min_refetch_interval

    async def _get_signing_key(self, key_id: str) -> jwt.PyJWK:
        if self._should_fetch(key_id):
            await self._fetch_keys()
        key = self._keys.get(key_id)
        if key is None:
            raise OAuthProviderError("Apple ID token signed with an unknown key")
        return key

    async def verify(self, id_token: str) -> dict[str, Any]:
        """Verify an identity token and return its claims.

        Raises:
            OAuthProviderError: If the token is malformed, unsigned by Apple,
                expired, or issued for another client.
            httpx.HTTPError: If Apple's key endpoint is unreachable.
        """
        if not self.client_id:
            raise OAuthProviderError("Sign in with Apple is not configured")
        if not id_token:
            raise OAuthProviderError("Apple ID token is required")

        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.DecodeError as e:
            raise OAuthProviderError("Invalid Apple ID token format") from e
        key_id = header.get("kid")
        if not key_id:
            raise OAuthProviderError("Invalid Apple ID token format")

        signing_key = await self._get_signing_key(key_id)
        try:
            return jwt.decode(
                id_token,
                signing_key.key,
                algorithms=self.ALGORITHMS,
                audience=self.client_id,
                issuer=APPLE_ISSUER,
                options={"require": ["exp", "iat", "sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise OAuthProviderError("Apple token has expired") from e
        except jwt.InvalidAudienceError as e:
            raise OAuthProviderError("Invalid Apple token audience") from e
        except jwt.InvalidIssuerError as e:
            raise OAuthProviderError("Invalid Apple token issuer") from e
        except jwt.InvalidTokenError as e:
            raise OAuthProviderError("Invalid Apple ID token") from e

    async def get_profile(self, id_token: str, name: str | None = None) -> OAuthProfile:
        """Verify an identity token and build the sign-in profile.

        Args:
            id_token: Token posted by the client.
            name: Display name Apple shares with the client on first sign-in only.
        """
        claims = await self.verify(id_token)
        return OAuthProfile(
            provider=self.provider_name,
            provider_id=str(claims["sub"]),
            email=claims.get("email"),
            # Apple sends this claim as a string in some token versions
            email_verified=claims.get("email_verified") in (True, "true"),
            name=name,
            access_token=id_token,
        )
