"""In-memory blacklist of revoked access token identifiers.

Entries live for the lifetime of the process. In a multi-instance
deployment a token blacklisted on one instance stays valid on the others
until their own cleanup or restart; replace this with a shared TTL store
(for example Redis) when running more than one instance.
"""

from threading import Lock

from wayfarer.core.logging import get_logger

logger = get_logger(__name__)

# Access tokens live at most this long, so clearing with a shorter max age is safe
COARSE_CLEANUP_THRESHOLD_MINUTES = 15


class TokenBlacklist:
    """Thread-safe set of revoked access token ids (jti claims)."""

    def __init__(self) -> None:
        self._token_ids: set[str] = set()
        self._lock = Lock()

    def blacklist(self, token_id: str | None) -> None:
        """Revoke an access token id. Empty ids are ignored."""
        if not token_id:
            logger.warning("Attempted to blacklist an empty token id")
            return
        with self._lock:
            self._token_ids.add(token_id)
        logger.debug("Access token blacklisted", token_id=token_id)

    def is_blacklisted(self, token_id: str | None) -> bool:
        if not token_id:
            return False
        with self._lock:
            return token_id in self._token_ids

    def cleanup(self, max_age_minutes: int = 60) -> int:
        """Bulk-clear the blacklist.

        Entries carry no timestamps, so cleanup is all or nothing: the set is
        emptied only when ``max_age_minutes`` does not exceed the access token
        lifetime threshold.

        Args:
            max_age_minutes: Age beyond which entries are no longer needed.

        Returns:
            Number of entries removed.
        """
        if max_age_minutes > COARSE_CLEANUP_THRESHOLD_MINUTES:
            return 0
        return self.clear_all()

    def clear_all(self) -> int:
        with self._lock:
            removed = len(self._token_ids)
            self._token_ids.clear()
        if removed:
            logger.info("Token blacklist cleared", removed=removed)
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._token_ids)


# Global instance
token_blacklist = TokenBlacklist()
