"""Google OAuth 2.0 provider handler implementation."""

from wayfarer.domain.entities.oauth import OAuthProfile
from wayfarer.infrastructure.oauth.oauth_handler import OAuthProviderError, OAuthProviderHandler


class GoogleOAuthHandler(OAuthProviderHandler):
    """Google sign-in with offline access and basic profile scopes."""

    authorization_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    userinfo_endpoint = "https://www.googleapis.com/oauth2/v2/userinfo"
    default_scopes = ("openid", "email", "profile")

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def display_name(self) -> str:
        return "Google"

    def _extra_authorization_params(self) -> dict[str, str]:
        return {"access_type": "offline", "prompt": "consent"}

    async def get_user_info(self, access_token: str) -> OAuthProfile:
        data = await self._get_json(self.userinfo_endpoint, access_token)
        if not data.get("id"):
            raise OAuthProviderError("Google user info did not include an id")
        return OAuthProfile(
            provider=self.provider_name,
            provider_id=str(data["id"]),
            email=data.get("email"),
            email_verified=data.get("verified_email") is True,
            name=data.get("name"),
            picture=data.get("picture"),
        )
