"""Unit tests for the Microsoft and Facebook OAuth handlers."""

import httpx
import pytest
import respx

from wayfarer.infrastructure.oauth import (
    FacebookOAuthHandler,
    MicrosoftOAuthHandler,
    OAuthProviderError,
)


@pytest.mark.asyncio
class TestMicrosoftUserInfo:
    """Tests for the Microsoft Graph profile mapping."""

    @respx.mock
    async def test_upn_only_is_not_verified(self):
        handler = MicrosoftOAuthHandler()
        respx.get(handler.userinfo_endpoint).mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": "attacker-oid",
                    "mail": None,
                    "userPrincipalName": "victim@example.com",
                    "displayName": "Victim",
                },
            )
        )

        profile = await handler.get_user_info("graph-token")

        assert profile.provider_id == "attacker-oid"
        assert profile.email == "victim@example.com"
        assert profile.email_verified is False

    @respx.mock
    async def test_mail_is_not_verified(self):
        handler = MicrosoftOAuthHandler()
        respx.get(handler.userinfo_endpoint).mock(
            return_value=httpx.Response(200, json={"id": "oid", "mail": "jane@contoso.com"})
        )

        profile = await handler.get_user_info("graph-token")

        assert profile.email == "jane@contoso.com"
        assert profile.email_verified is False

    @respx.mock
    async def test_missing_id(self):
        handler = MicrosoftOAuthHandler()
        respx.get(handler.userinfo_endpoint).mock(
            return_value=httpx.Response(200, json={"mail": "jane@contoso.com"})
        )

        with pytest.raises(OAuthProviderError):
            await handler.get_user_info("graph-token")

    def test_tenant_endpoints(self):
        handler = MicrosoftOAuthHandler(tenant_id="contoso")

        assert handler.authorization_endpoint == (
            "https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize"
        )
        assert handler.token_endpoint.endswith("/contoso/oauth2/v2.0/token")


@pytest.mark.asyncio
class TestFacebookUserInfo:
    """Tests for the Facebook Graph profile mapping."""

    @respx.mock
    async def test_email_is_not_verified(self):
        handler = FacebookOAuthHandler()
        respx.get(url__startswith=handler.userinfo_endpoint).mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": "fb-1",
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                    "picture": {"data": {"url": "https://example.com/jane.png"}},
                },
            )
        )

        profile = await handler.get_user_info("fb-token")

        assert profile.provider_id == "fb-1"
        assert profile.email == "jane@example.com"
        assert profile.email_verified is False
        assert profile.picture == "https://example.com/jane.png"
