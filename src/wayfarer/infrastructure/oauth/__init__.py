"""OAuth provider handlers."""

from wayfarer.infrastructure.oauth.apple import AppleIdentityTokenVerifier
from wayfarer.infrastructure.oauth.facebook import FacebookOAuthHandler
from wayfarer.infrastructure.oauth.google import GoogleOAuthHandler
from wayfarer.infrastructure.oauth.microsoft import MicrosoftOAuthHandler
from wayfarer.infrastructure.oauth.oauth_handler import (
    OAuthProviderConfig,
    OAuthProviderError,
    OAuthProviderHandler,
)
from wayfarer.infrastructure.oauth.registry import REDIRECT_PROVIDERS, OAuthProviderRegistry

__all__ = [
    "REDIRECT_PROVIDERS",
    "AppleIdentityTokenVerifier",
    "FacebookOAuthHandler",
    "GoogleOAuthHandler",
    "MicrosoftOAuthHandler",
    "OAuthProviderConfig",
    "OAuthProviderError",
    "OAuthProviderHandler",
    "OAuthProviderRegistry",
]
