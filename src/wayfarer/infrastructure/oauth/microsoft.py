"""Microsoft identity platform provider handler implementation."""

from wayfarer.domain.entities.oauth import OAuthProfile
from wayfarer.infrastructure.oauth.oauth_handler import OAuthProviderError, OAuthProviderHandler


class MicrosoftOAuthHandler(OAuthProviderHandler):
    """Microsoft accounts (personal and work/school) via Microsoft Graph."""

    userinfo_endpoint = "https://graph.microsoft.com/v1.0/me"
    default_scopes = ("openid", "email", "profile", "User.Read")

    def __init__(self, tenant_id: str = "common", timeout: float = 10.0) -> None:
        super().__init__(timeout=timeout)
        self.tenant_id = tenant_id
        base = f"https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0"
        self.authorization_endpoint = f"{base}/authorize"
        self.token_endpoint = f"{base}/token"

    @property
    def provider_name(self) -> str:
        return "microsoft"

    @property
    def display_name(self) -> str:
        return "Microsoft"

    def _extra_authorization_params(self) -> dict[str, str]:
        return {"response_mode": "query"}

    async def get_user_info(self, access_token: str) -> OAuthProfile:
        data = await self._get_json(self.userinfo_endpoint, access_token)
        if not data.get("id"):
            raise OAuthProviderError("Microsoft user info did not include an id")
        return OAuthProfile(
            provider=self.provider_name,
            provider_id=str(data["id"]),
            # Tenant admins can set mail and the UPN freely
            email=data.get("mail") or data.get("userPrincipalName"),
            email_verified=False,
            name=data.get("displayName"),
        )
