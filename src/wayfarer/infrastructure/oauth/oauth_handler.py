"""OAuth 2.0 provider handler base class.

Every provider implements the same three steps of the authorization code
flow: build the authorization URL, exchange the code for tokens, and fetch
the user's profile.
"""

import abc
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import httpx

from wayfarer.domain.entities.oauth import OAuthProfile


class OAuthProviderError(ValueError):
    """Raised when a provider rejects a request or returns unusable data."""

    pass


@dataclass(frozen=True)
class OAuthProviderConfig:
    """Credentials and callback for one provider."""

    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: list[str] = field(default_factory=list)


class OAuthProviderHandler(abc.ABC):
    """Abstract base class for OAuth 2.0 authentication providers."""

    authorization_endpoint: str = ""
    token_endpoint: str = ""
    default_scopes: tuple[str, ...] = ()

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    @property
    @abc.abstractmethod
    def provider_name(self) -> str:
        """Lowercase provider identifier used in URLs and stored links."""

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable provider name."""

    def _extra_authorization_params(self) -> dict[str, str]:
        return {}

    async def get_authorization_url(self, config: OAuthProviderConfig, state: str) -> str:
        """Generate the URL that sends the user to the provider.

        Args:
            config: Provider credentials.
            state: CSRF state token, echoed back on the callback.

        Returns:
            Complete authorization URL.
        """
        params = {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(config.scopes or self.default_scopes),
            "state": state,
            **self._extra_authorization_params(),
        }
        return f"{self.authorization_endpoint}?{urlencode(params)}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message", "Unknown error")
        return data.get("error_description") or error or "Unknown error"

    async def exchange_code_for_tokens(
        self, config: OAuthProviderConfig, code: str
    ) -> dict[str, Any]:
        """Exchange an authorization code for provider tokens.

        Raises:
            OAuthProviderError: If the provider rejects the code.
            httpx.HTTPError: If the network request fails.
        """
        data = {
            "code": code,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "redirect_uri": config.redirect_uri,
            "grant_type": "authorization_code",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.token_endpoint, data=data, headers={"Accept": "application/json"}
            )
        if response.status_code != 200:
            raise OAuthProviderError(
                f"Failed to exchange {self.display_name} OAuth code: "
                f"{self._error_message(response)}"
            )
        return response.json()

    async def _get_json(self, url: str, access_token: str, params: dict | None = None) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if response.status_code != 200:
            raise OAuthProviderError(
                f"Failed to fetch {self.display_name} user info: "
                f"{self._error_message(response)}"
            )
        return response.json()

    @abc.abstractmethod
    async def get_user_info(self, access_token: str) -> OAuthProfile:
        """Fetch the user's profile with a provider access token.

        Raises:
            OAuthProviderError: If the provider rejects the token.
            httpx.HTTPError: If the network request fails.
        """

    async def authenticate(self, config: OAuthProviderConfig, code: str) -> OAuthProfile:
        """Run the code exchange and profile fetch."""
        tokens = await self.exchange_code_for_tokens(config, code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthProviderError(f"{self.display_name} did not return an access token")

        profile = await self.get_user_info(access_token)
        profile.access_token = access_token
        profile.refresh_token = tokens.get("refresh_token")
        return profile
