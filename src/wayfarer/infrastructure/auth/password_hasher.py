"""Password hashing utility using Argon2.

Provides password hashing and verification using the Argon2id algorithm.
Cost parameters come from settings so they can be raised without a code
change; hashes produced under older parameters are flagged by
``needs_rehash``.
"""

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from wayfarer.core.config import get_settings
from wayfarer.core.exceptions import InvalidInputError


@lru_cache
def _get_hasher() -> PasswordHasher:
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.password_time_cost,
        memory_cost=settings.password_memory_cost,
        parallelism=settings.password_parallelism,
    )


def hash_password(password: str) -> str:
    """Hash a password using Argon2id with a random salt.

    Args:
        password: The plaintext password to hash.

    Returns:
        The hashed password string.

    Raises:
        InvalidInputError: If the password is empty.

    Example:
        >>> hashed = hash_password("Str0ng!Pass")
        >>> hashed.startswith("$argon2id$")
        True
    """
    if not password:
        raise InvalidInputError("Password is required")
    return _get_hasher().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a hash.

    Never raises: empty inputs, mismatches and malformed hashes all
    return False.

    Args:
        password: The plaintext password to verify.
        hashed: The hashed password to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    if not password or not hashed:
        return False
    try:
        return _get_hasher().verify(hashed, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def needs_rehash(hashed: str) -> bool:
    """Check if a password hash was produced with outdated parameters.

    Args:
        hashed: The hashed password to check.

    Returns:
        True if the hash should be updated, False otherwise.
    """
    try:
        return _get_hasher().check_needs_rehash(hashed)
    except InvalidHashError:
        return True


@lru_cache
def _get_dummy_hash() -> str:
    return _get_hasher().hash("wayfarer-timing-equalizer")


def verify_dummy_password(password: str) -> bool:
    """Spend one hash verification without a real account.

    Called when the login identifier does not exist so unknown and known
    identifiers take the same time to reject.

    Returns:
        Always False.
    """
    verify_password(password or "-", _get_dummy_hash())
    return False
