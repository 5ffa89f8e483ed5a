"""Authentication flows.

``AuthService`` is the entry point for the HTTP layer. It composes the
password hasher, token service, login attempt tracker and the verification
and reset token services into the register, login, refresh, logout,
verify-email and password reset flows.
"""

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.core.exceptions import (
    AccountLockedError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from wayfarer.core.logging import get_logger
from wayfarer.domain.entities.tokens import AccessTokenPayload, TokenPair
from wayfarer.domain.services.email_verification_service import EmailVerificationService
from wayfarer.domain.services.login_attempt_service import LoginAttemptService
from wayfarer.domain.services.password_reset_service import PasswordResetService
from wayfarer.domain.services.token_service import TokenService
from wayfarer.infrastructure.auth.password_hasher import (
    hash_password,
    needs_rehash,
    verify_dummy_password,
    verify_password,
)
from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist
from wayfarer.infrastructure.persistence.models import UserModel
from wayfarer.infrastructure.persistence.repositories.user_repository import UserRepository
from wayfarer.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If this email is registered, you will receive a password reset link shortly."
)
RESET_PASSWORD_MESSAGE = (
    "Password has been reset successfully. Please login with your new password."
)
INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired password reset token"


@dataclass
class RegistrationResult:
    """Outcome of a successful registration."""

    user: UserModel
    tokens: TokenPair
    verification_token: str


@dataclass
class LoginResult:
    """Outcome of a successful login."""

    user: UserModel
    tokens: TokenPair


class AuthService:
    """Orchestrates the credential lifecycle flows."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        token_service: TokenService,
        login_attempt_service: LoginAttemptService,
        email_verification_service: EmailVerificationService,
        password_reset_service: PasswordResetService,
        email_service: EmailService,
        blacklist: TokenBlacklist,
    ) -> None:
        self.session = session
        self.user_repo = user_repo
        self.token_service = token_service
        self.login_attempt_service = login_attempt_service
        self.email_verification_service = email_verification_service
        self.password_reset_service = password_reset_service
        self.email_service = email_service
        self.blacklist = blacklist

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        full_name: str | None = None,
    ) -> RegistrationResult:
        """Create an account and sign it in.

        Args:
            email: Email address, compared case-insensitively.
            username: Unique username.
            password: Plaintext password; already checked against the policy.
            full_name: Optional display name, defaults to the username.

        Returns:
            The new user, a token pair and the email verification token.

        Raises:
            ConflictError: If the email or username is taken.
        """
        email = email.strip().lower()
        existing = await self.user_repo.get_by_email_or_username(email, username)
        if existing is not None:
            if existing.email == email:
                raise ConflictError(f"Email '{email}' is already registered")
            raise ConflictError(f"Username '{username}' is already taken")

        user = UserModel(
            email=email,
            username=username,
            password_hash=hash_password(password),
            full_name=full_name or username,
            email_verified=False,
        )
        try:
            await self.user_repo.create(user)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("Email or username is already registered") from e

        tokens = await self.token_service.issue_pair(user.id, user.email, user.username)
        verification_token = await self.email_verification_service.generate(user.id)
        await self.session.refresh(user)

        await self.email_service.send_verification_email(
            user.email, user.full_name or user.username, verification_token
        )
        logger.info("User registered", user_id=user.id, username=user.username)
        return RegistrationResult(user=user, tokens=tokens, verification_token=verification_token)

    async def validate_credentials(self, identifier: str, password: str) -> UserModel | None:
        """Check an email-or-username and password.

        Returns:
            The user when the password matches, otherwise None.
        """
        identifier = identifier.strip()
        user = await self.user_repo.get_by_email(identifier)
        if user is None:
            user = await self.user_repo.get_by_username(identifier)

        if user is None or not user.password_hash:
            verify_dummy_password(password)
            return None
        if not verify_password(password, user.password_hash):
            return None

        if needs_rehash(user.password_hash):
            await self.user_repo.update_password(user.id, hash_password(password))
            logger.info("Password hash upgraded", user_id=user.id)
        await self.user_repo.update_last_login(user.id)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def login(self, identifier: str, password: str, ip_address: str) -> LoginResult:
        """Authenticate a user, enforcing the failed-attempt lockout.

        Args:
            identifier: Email address or username.
            password: Plaintext password.
            ip_address: Client address used for the lockout key.

        Returns:
            The user and a fresh token pair.

        Raises:
            UnauthorizedError: If the identifier is missing or the credentials
                are wrong. The message never says which part was wrong.
            AccountLockedError: If the key is currently locked out.
        """
        if not identifier or not identifier.strip():
            raise UnauthorizedError("Email or username is required")

        lock_status = await self.login_attempt_service.is_locked(identifier, ip_address)
        if lock_status.is_locked:
            logger.warning(
                "Login blocked by lockout",
                identifier=identifier,
                ip_address=ip_address,
                remaining_minutes=lock_status.remaining_minutes,
            )
            raise AccountLockedError(lock_status.remaining_minutes or 1)

        user = await self.validate_credentials(identifier, password)
        if user is None:
            await self.login_attempt_service.record_failure(identifier, ip_address)
            logger.warning("Login failed", identifier=identifier, ip_address=ip_address)
            raise UnauthorizedError("Invalid credentials")

        await self.login_attempt_service.clear_successful(identifier, ip_address)
        tokens = await self.token_service.issue_pair(user.id, user.email, user.username)
        logger.info("Login successful", user_id=user.id)
        return LoginResult(user=user, tokens=tokens)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token using the user's current email and username.

        Raises:
            UnauthorizedError: If the token is invalid or its user is gone.
        """
        claims = self.token_service.verify_refresh(refresh_token)
        user = await self.user_repo.get_by_id(claims["sub"])
        if user is None:
            raise UnauthorizedError("Invalid refresh token")
        return await self.token_service.refresh(refresh_token, user.email, user.username)

    async def logout(self, access_payload: AccessTokenPayload, refresh_token: str | None) -> None:
        """End the current session.

        Both steps are best-effort so a client can always finish logging out.
        """
        self.blacklist.blacklist(access_payload.token_id)
        if refresh_token and not await self.token_service.revoke(refresh_token):
            logger.warning("Refresh token was not revoked on logout", user_id=access_payload.user_id)
        logger.info("User logged out", user_id=access_payload.user_id)

    async def verify_email(self, token: str) -> UserModel | None:
        return await self.email_verification_service.verify(token)

    async def resend_verification(self, email: str) -> bool:
        """Send a new verification email.

        Returns:
            True if an email was sent. Unknown and already verified addresses
            return False; callers answer the same either way.
        """
        try:
            user, token = await self.email_verification_service.resend(email)
        except (NotFoundError, BadRequestError) as e:
            logger.info("Verification resend skipped", email=email, reason=e.message)
            return False
        return await self.email_service.send_verification_email(
            user.email, user.full_name or user.username, token
        )

    async def forgot_password(self, email: str) -> None:
        """Start a password reset.

        Unknown addresses are ignored without any side effect.
        """
        user = await self.user_repo.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = await self.password_reset_service.generate(user.id)
        sent = await self.email_service.send_password_reset_email(
            user.email, user.full_name or user.username, token
        )
        logger.info("Password reset requested", user_id=user.id, email_sent=sent)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        The password change and the token consumption commit together, then
        every refresh token of the user is revoked.

        Raises:
            UnauthorizedError: If the token is invalid, expired or used.
        """
        user = await self.password_reset_service.validate(token)
        if user is None:
            raise UnauthorizedError(INVALID_RESET_TOKEN_MESSAGE)

        new_hash = hash_password(new_password)
        if not await self.user_repo.update_password(user.id, new_hash):
            await self.session.rollback()
            raise UnauthorizedError(INVALID_RESET_TOKEN_MESSAGE)

        if not await self.password_reset_service.mark_used(token, commit=False):
            # Consumed by a concurrent request
            await self.session.rollback()
            raise UnauthorizedError(INVALID_RESET_TOKEN_MESSAGE)
        await self.session.commit()

        revoked = await self.token_service.revoke_all(user.id)
        logger.info("Password reset completed", user_id=user.id, sessions_revoked=revoked)

    async def get_profile(self, user_id: str) -> UserModel:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return user
