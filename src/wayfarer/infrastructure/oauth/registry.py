"""Lookup of configured OAuth providers.

Redirect-flow providers are enabled by setting their client id and secret;
Sign in with Apple needs only the client (services) id.
"""

from wayfarer.core.config import Settings
from wayfarer.infrastructure.oauth.apple import AppleIdentityTokenVerifier
from wayfarer.infrastructure.oauth.facebook import FacebookOAuthHandler
from wayfarer.infrastructure.oauth.google import GoogleOAuthHandler
from wayfarer.infrastructure.oauth.microsoft import MicrosoftOAuthHandler
from wayfarer.infrastructure.oauth.oauth_handler import OAuthProviderConfig, OAuthProviderHandler

REDIRECT_PROVIDERS = ("google", "facebook", "microsoft")


class OAuthProviderRegistry:
    """Holds the handler and credentials of each enabled provider."""

    def __init__(self, settings: Settings) -> None:
        timeout = settings.oauth_http_timeout
        self._handlers: dict[str, OAuthProviderHandler] = {
            "google": GoogleOAuthHandler(timeout=timeout),
            "facebook": FacebookOAuthHandler(timeout=timeout),
            "microsoft": MicrosoftOAuthHandler(
                tenant_id=settings.microsoft_tenant_id, timeout=timeout
            ),
        }
        self._configs: dict[str, OAuthProviderConfig] = {}
        credentials = {
            "google": (
                settings.google_client_id,
                settings.google_client_secret,
                settings.google_callback_url,
            ),
            "facebook": (
                settings.facebook_app_id,
                settings.facebook_app_secret,
                settings.facebook_callback_url,
            ),
            "microsoft": (
                settings.microsoft_client_id,
                settings.microsoft_client_secret,
                settings.microsoft_callback_url,
            ),
        }
        for name, (client_id, client_secret, callback_url) in credentials.items():
            if client_id and client_secret:
                self._configs[name] = OAuthProviderConfig(
                    client_id=client_id,
                    client_secret=client_secret,
                    redirect_uri=callback_url,
                )
        self.apple = AppleIdentityTokenVerifier(settings.apple_client_id, timeout=timeout)

    def get(self, provider: str) -> tuple[OAuthProviderHandler, OAuthProviderConfig] | None:
        """Return the handler and config of an enabled redirect provider."""
        config = self._configs.get(provider)
        if config is None:
            return None
        return self._handlers[provider], config

    @property
    def enabled_providers(self) -> list[str]:
        enabled = list(self._configs)
        if self.apple.client_id:
            enabled.append("apple")
        return enabled
