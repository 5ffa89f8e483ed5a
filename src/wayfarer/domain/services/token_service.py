"""Session token issuance, verification and rotation.

Combines the stateless JWT signer with the refresh token store. Issuing a
pair always replaces the user's previous refresh token, so at most one
session per user is live.
"""

import secrets

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.clock import utc_now
from wayfarer.core.exceptions import InternalError, UnauthorizedError
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.tokens import AccessTokenPayload, TokenPair
from wayfarer.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
)
from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist
from wayfarer.infrastructure.persistence.repositories.refresh_token_repository import (
    RefreshTokenRepository,
)

logger = get_logger(__name__)


class TokenService:
    """Issues and rotates access/refresh token pairs."""

    def __init__(
        self,
        session: AsyncSession,
        refresh_token_repo: RefreshTokenRepository,
        jwt_service: JWTService,
        blacklist: TokenBlacklist,
    ) -> None:
        """Initialize the token service.

        Args:
            session: SQLAlchemy async session; each rotation commits once.
            refresh_token_repo: Refresh token store.
            jwt_service: Token signer.
            blacklist: Revoked access token ids.
        """
        self.session = session
        self.refresh_token_repo = refresh_token_repo
        self.jwt_service = jwt_service
        self.blacklist = blacklist

    async def issue_pair(self, user_id: str, email: str, username: str) -> TokenPair:
        """Issue a fresh access/refresh pair for a user.

        The new rotation id is stored and every earlier refresh token of the
        user is deleted in the same transaction.

        Args:
            user_id: Subject of the tokens.
            email: Email claim for the access token.
            username: Username claim for the access token.

        Returns:
            The signed token pair.

        Raises:
            InternalError: If the rotation id cannot be persisted.
        """
        token_id = secrets.token_hex(32)
        expires_at = utc_now() + self.jwt_service.refresh_expire_delta
        try:
            await self.refresh_token_repo.store(user_id, token_id, expires_at)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to store refresh token", user_id=user_id, error=str(e))
            raise InternalError("Failed to generate authentication tokens") from e

        return TokenPair(
            access_token=self.jwt_service.create_access_token(user_id, email, username),
            refresh_token=self.jwt_service.create_refresh_token(user_id, token_id, expires_at),
        )

    def verify_access(self, token: str | None) -> AccessTokenPayload:
        """Verify an access token and return its claims.

        Args:
            token: Encoded access token.

        Returns:
            The verified payload.

        Raises:
            UnauthorizedError: If the token is missing, expired, malformed,
                revoked, or lacks required claims.
        """
        if not token:
            raise UnauthorizedError("Token is required")
        try:
            claims = self.jwt_service.decode_access_token(token)
        except TokenExpiredError as e:
            raise UnauthorizedError("Access token expired") from e
        except InvalidTokenError as e:
            raise UnauthorizedError("Invalid access token") from e

        if not all(claims.get(key) for key in ("sub", "email", "username", "jti")):
            raise UnauthorizedError("Invalid token payload")
        if self.blacklist.is_blacklisted(claims["jti"]):
            raise UnauthorizedError("Token has been revoked")

        return AccessTokenPayload(
            user_id=claims["sub"],
            email=claims["email"],
            username=claims["username"],
            token_id=claims["jti"],
            issued_at=int(claims["iat"]),
            expires_at=int(claims["exp"]),
        )

    def verify_refresh(self, refresh_token: str | None) -> dict:
        """Check a refresh token's signature, expiry and claims.

        Does not consult the store; see ``refresh`` for the full check.

        Raises:
            UnauthorizedError: With a stable message per failure cause.
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token is required")
        try:
            claims = self.jwt_service.decode_refresh_token(refresh_token)
        except TokenExpiredError as e:
            raise UnauthorizedError("Refresh token expired") from e
        except InvalidTokenError as e:
            raise UnauthorizedError("Invalid refresh token") from e

        if not claims.get("sub") or not claims.get("token_id"):
            raise UnauthorizedError("Invalid refresh token payload")
        return claims

    async def refresh(self, refresh_token: str, email: str, username: str) -> TokenPair:
        """Rotate a refresh token into a brand-new pair.

        Args:
            refresh_token: The refresh token presented by the client.
            email: Email claim for the new access token.
            username: Username claim for the new access token.

        Returns:
            A new token pair; the presented token stops working.

        Raises:
            UnauthorizedError: If the token fails any check.
        """
        claims = self.verify_refresh(refresh_token)

        record = await self.refresh_token_repo.validate(claims["token_id"])
        if record is None:
            # validate() may have deleted an expired row
            await self.session.commit()
            raise UnauthorizedError("Refresh token not found or expired")
        if record.user_id != claims["sub"]:
            logger.warning(
                "Refresh token owner mismatch",
                token_subject=claims["sub"],
                record_user_id=record.user_id,
            )
            raise UnauthorizedError("Refresh token user mismatch")

        tokens = await self.issue_pair(claims["sub"], email, username)
        logger.info("Tokens refreshed", user_id=claims["sub"])
        return tokens

    async def revoke(self, refresh_token: str | None) -> bool:
        """Best-effort revocation of a single refresh token.

        Returns:
            True if a stored token was removed; False on any failure.
        """
        try:
            claims = self.verify_refresh(refresh_token)
            revoked = await self.refresh_token_repo.revoke(claims["token_id"])
            await self.session.commit()
        except UnauthorizedError as e:
            logger.debug("Refresh token not revoked", reason=e.message)
            return False
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to revoke refresh token", error=str(e))
            return False
        return revoked

    async def revoke_all(self, user_id: str) -> int:
        """Delete every refresh token owned by a user.

        Returns:
            Number of tokens removed.
        """
        count = await self.refresh_token_repo.revoke_all_for_user(user_id)
        await self.session.commit()
        logger.info("Revoked all refresh tokens", user_id=user_id, count=count)
        return count

    def decode_token(self, token: str) -> dict | None:
        """Unverified claims of any token, for diagnostics only."""
        return self.jwt_service.decode_unverified(token)
