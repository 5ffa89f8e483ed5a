"""Facebook Login provider handler implementation."""

from wayfarer.domain.entities.oauth import OAuthProfile
from wayfarer.infrastructure.oauth.oauth_handler import OAuthProviderError, OAuthProviderHandler

GRAPH_API_VERSION = "v19.0"


class FacebookOAuthHandler(OAuthProviderHandler):
    """Facebook Login via the Graph API."""

    authorization_endpoint = f"https://www.facebook.com/{GRAPH_API_VERSION}/dialog/oauth"
    token_endpoint = f"https://graph.facebook.com/{GRAPH_API_VERSION}/oauth/access_token"
    userinfo_endpoint = f"https://graph.facebook.com/{GRAPH_API_VERSION}/me"
    default_scopes = ("email", "public_profile")

    @property
    def provider_name(self) -> str:
        return "facebook"

    @property
    def display_name(self) -> str:
        return "Facebook"

    async def get_user_info(self, access_token: str) -> OAuthProfile:
        data = await self._get_json(
            self.userinfo_endpoint,
            access_token,
            params={"fields": "id,name,email,picture.type(large)"},
        )
        if not data.get("id"):
            raise OAuthProviderError("Facebook user info did not include an id")
        picture = (data.get("picture") or {}).get("data") or {}
        return OAuthProfile(
            provider=self.provider_name,
            provider_id=str(data["id"]),
            # Graph does not report whether the address was confirmed
            email=data.get("email"),
            email_verified=False,
            name=data.get("name"),
            picture=picture.get("url"),
        )
