"""Repositories for OAuth identity links and redirect-flow state."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import utc_now
from wayfarer.infrastructure.persistence.models import OAuthProviderModel, OAuthStateModel


class OAuthProviderRepository:
    """Repository for provider-link database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def get_by_provider_id(
        self, provider: str, provider_id: str
    ) -> OAuthProviderModel | None:
        """Find the link for a provider subject.

        Args:
            provider: Provider name.
            provider_id: Subject identifier assigned by the provider.

        Returns:
            The link if it exists.
        """
        result = await self._session.execute(
            select(OAuthProviderModel).where(
                OAuthProviderModel.provider == provider,
                OAuthProviderModel.provider_id == provider_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, model: OAuthProviderModel) -> OAuthProviderModel:
        self._session.add(model)
        await self._session.flush()
        return model

    async def list_for_user(self, user_id: str) -> list[OAuthProviderModel]:
        result = await self._session.execute(
            select(OAuthProviderModel)
            .where(OAuthProviderModel.user_id == user_id)
            .order_by(OAuthProviderModel.created_at)
        )
        return list(result.scalars().all())

    async def delete_for_user(self, user_id: str, provider: str) -> int:
        """Remove a user's link to a provider.

        Returns:
            Number of links removed (0 or 1).
        """
        result = await self._session.execute(
            delete(OAuthProviderModel).where(
                OAuthProviderModel.user_id == user_id,
                OAuthProviderModel.provider == provider,
            )
        )
        return result.rowcount


class OAuthStateRepository:
    """Repository for single-use OAuth state tokens."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, model: OAuthStateModel) -> OAuthStateModel:
        self._session.add(model)
        await self._session.flush()
        return model

    async def get_by_token(self, state_token: str) -> OAuthStateModel | None:
        result = await self._session.execute(
            select(OAuthStateModel).where(OAuthStateModel.state_token == state_token)
        )
        return result.scalar_one_or_none()

    async def delete(self, state_id: str) -> None:
        await self._session.execute(delete(OAuthStateModel).where(OAuthStateModel.id == state_id))

    async def delete_expired(self) -> int:
        result = await self._session.execute(
            delete(OAuthStateModel).where(OAuthStateModel.expires_at < utc_now())
        )
        return result.rowcount
