"""OAuth identity linking.

Maps an identity asserted by an external provider onto a local account:

1. A known (provider, provider_id) pair signs in its linked user.
2. Otherwise a user with the same email gets the provider linked, but only
   when the provider asserts the address is verified.
3. Otherwise a new user is created with a generated username. Its email
   counts as verified only when the provider verified it.
"""

import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import utc_now
from wayfarer.core.exceptions import ConflictError, UnauthorizedError
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.oauth import OAuthAuthenticationResult, OAuthProfile
from wayfarer.domain.services.token_service import TokenService
from wayfarer.infrastructure.persistence.models import OAuthProviderModel, UserModel
from wayfarer.infrastructure.persistence.repositories.oauth_provider_repository import (
    OAuthProviderRepository,
)
from wayfarer.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_BASE_LENGTH = 40


class OAuthService:
    """Links provider identities to local users and signs them in."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        oauth_repo: OAuthProviderRepository,
        token_service: TokenService,
    ) -> None:
        self.session = session
        self.user_repo = user_repo
        self.oauth_repo = oauth_repo
        self.token_service = token_service

    async def authenticate(self, profile: OAuthProfile) -> OAuthAuthenticationResult:
        """Sign in with a provider profile, linking or creating the user.

        Args:
            profile: Identity asserted by the provider.

        Returns:
            The user, a fresh token pair and whether the user was created.

        Raises:
            UnauthorizedError: If a new account is needed but the provider
                did not share an email address.
            ConflictError: If the email belongs to an existing account but
                the provider did not verify it.
        """
        link = await self.oauth_repo.get_by_provider_id(profile.provider, profile.provider_id)
        if link is not None:
            return await self._sign_in(link.user_id, profile, is_new_user=False)

        if profile.email:
            user = await self.user_repo.get_by_email(profile.email)
            if user is not None:
                if not profile.email_verified:
                    logger.warning(
                        "Refused to link OAuth provider by unverified email",
                        user_id=user.id,
                        provider=profile.provider,
                    )
                    raise ConflictError(
                        "An account with this email already exists. "
                        f"Sign in with your password to link {profile.provider}."
                    )
                if not await self._link(user.id, profile):
                    return await self._resolve_concurrent_link(profile)
                logger.info(
                    "Linked OAuth provider to existing user",
                    user_id=user.id,
                    provider=profile.provider,
                )
                return await self._sign_in(user.id, profile, is_new_user=False)

        if not profile.email:
            raise UnauthorizedError(
                f"Email is required for {profile.provider} authentication but was not provided"
            )

        email_local_part = profile.email.split("@")[0]
        username = await self.generate_unique_username(
            profile.name or email_local_part, profile.provider
        )
        user = UserModel(
            email=profile.email,
            username=username,
            password_hash="",
            full_name=profile.name or email_local_part,
            email_verified=profile.email_verified,
            last_login=utc_now(),
            profile_picture=profile.picture,
        )
        try:
            await self.user_repo.create(user)
        except IntegrityError:
            await self.session.rollback()
            return await self._resolve_concurrent_link(profile)

        if not await self._link(user.id, profile):
            return await self._resolve_concurrent_link(profile)

        logger.info(
            "Created user from OAuth profile",
            user_id=user.id,
            provider=profile.provider,
            username=username,
        )
        return await self._sign_in(user.id, profile, is_new_user=True)

    async def _link(self, user_id: str, profile: OAuthProfile) -> bool:
        try:
            await self.oauth_repo.create(
                OAuthProviderModel(
                    user_id=user_id,
                    provider=profile.provider,
                    provider_id=profile.provider_id,
                    email=profile.email,
                    name=profile.name,
                    picture=profile.picture,
                )
            )
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    async def _resolve_concurrent_link(self, profile: OAuthProfile) -> OAuthAuthenticationResult:
        """Recover when a parallel request created the same link or user first."""
        link = await self.oauth_repo.get_by_provider_id(profile.provider, profile.provider_id)
        if link is None:
            raise ConflictError(
                f"{profile.provider} account could not be linked; "
                "it may already be linked to another user"
            )
        return await self._sign_in(link.user_id, profile, is_new_user=False)

    async def _sign_in(
        self, user_id: str, profile: OAuthProfile, is_new_user: bool
    ) -> OAuthAuthenticationResult:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")

        if not is_new_user:
            await self.user_repo.update_last_login(user.id)
        tokens = await self.token_service.issue_pair(user.id, user.email, user.username)
        await self.session.refresh(user)

        logger.info(
            "OAuth login succeeded",
            user_id=user.id,
            provider=profile.provider,
            is_new_user=is_new_user,
        )
        return OAuthAuthenticationResult(user=user, tokens=tokens, is_new_user=is_new_user)

    async def generate_unique_username(self, base_name: str, provider: str) -> str:
        """Derive a free username from a display name.

        The name is reduced to lowercase letters and digits. Names shorter
        than three characters fall back to ``{provider}user``. A numeric
        suffix starting at 1 is appended until the name is free.
        """
        base = re.sub(r"[^a-z0-9]", "", base_name.lower())[:MAX_USERNAME_BASE_LENGTH]
        if len(base) < MIN_USERNAME_LENGTH:
            base = f"{provider}user"

        candidate = base
        counter = 1
        while await self.user_repo.username_exists(candidate):
            candidate = f"{base}{counter}"
            counter += 1
        return candidate

    async def list_providers(self, user_id: str) -> list[OAuthProviderModel]:
        return await self.oauth_repo.list_for_user(user_id)

    async def unlink(self, user_id: str, provider: str) -> None:
        """Remove a provider link from a user.

        Raises:
            ConflictError: If the provider is not linked to the user.
        """
        removed = await self.oauth_repo.delete_for_user(user_id, provider)
        if removed == 0:
            raise ConflictError(f"{provider} account is not linked to this user")
        await self.session.commit()
        logger.info("OAuth provider unlinked", user_id=user_id, provider=provider)
