"""Unit tests for the in-memory access token blacklist."""

from concurrent.futures import ThreadPoolExecutor

from wayfarer.infrastructure.auth.token_blacklist import TokenBlacklist


class TestTokenBlacklist:
    """Tests for TokenBlacklist."""

    def test_blacklist_and_lookup(self):
        blacklist = TokenBlacklist()

        blacklist.blacklist("jti-1")

        assert blacklist.is_blacklisted("jti-1") is True
        assert blacklist.is_blacklisted("jti-2") is False
        assert blacklist.count() == 1

    def test_empty_ids_ignored(self):
        """Test that empty ids are neither stored nor reported as revoked."""
        blacklist = TokenBlacklist()

        blacklist.blacklist("")
        blacklist.blacklist(None)

        assert blacklist.count() == 0
        assert blacklist.is_blacklisted("") is False
        assert blacklist.is_blacklisted(None) is False

    def test_blacklist_is_idempotent(self):
        blacklist = TokenBlacklist()

        blacklist.blacklist("jti-1")
        blacklist.blacklist("jti-1")

        assert blacklist.count() == 1

    def test_cleanup_within_threshold_clears_everything(self):
        blacklist = TokenBlacklist()
        blacklist.blacklist("jti-1")
        blacklist.blacklist("jti-2")

        assert blacklist.cleanup(max_age_minutes=15) == 2
        assert blacklist.count() == 0

    def test_cleanup_beyond_threshold_keeps_entries(self):
        """Test that a max age above the access token lifetime removes nothing."""
        blacklist = TokenBlacklist()
        blacklist.blacklist("jti-1")

        assert blacklist.cleanup(max_age_minutes=60) == 0
        assert blacklist.is_blacklisted("jti-1") is True

    def test_clear_all(self):
        blacklist = TokenBlacklist()
        blacklist.blacklist("jti-1")

        assert blacklist.clear_all() == 1
        assert blacklist.clear_all() == 0

    def test_concurrent_inserts(self):
        blacklist = TokenBlacklist()

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(blacklist.blacklist, [f"jti-{i}" for i in range(500)]))

        assert blacklist.count() == 500
