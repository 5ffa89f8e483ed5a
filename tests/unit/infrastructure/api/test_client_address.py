"""Unit tests for client address resolution."""

import pytest
from starlette.requests import Request

from wayfarer.infrastructure.api.middleware.client_address import (
    get_client_ip,
    parse_trusted_proxies,
)

PROXIES = ["10.0.0.0/8"]


def make_request(headers: dict[str, str] | None = None, client=("10.0.0.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/auth/login",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestUntrustedPeer:
    """Without a trusted proxy the socket peer is the client."""

    def test_forwarded_for_ignored(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"}, client=("198.51.100.20", 5000))
        assert get_client_ip(request) == "198.51.100.20"

    def test_forwarded_for_ignored_when_peer_not_trusted(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"}, client=("198.51.100.20", 5000))
        assert get_client_ip(request, PROXIES) == "198.51.100.20"

    def test_real_ip_and_cloudflare_ignored(self):
        request = make_request({"X-Real-IP": "198.51.100.4", "CF-Connecting-IP": "192.0.2.9"})
        assert get_client_ip(request) == "10.0.0.1"

    def test_unknown_without_peer(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"}, client=None)
        assert get_client_ip(request, PROXIES) == "unknown"


class TestTrustedProxy:
    """Behind a trusted proxy the right-most untrusted hop is the client."""

    def test_single_hop(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"})
        assert get_client_ip(request, PROXIES) == "203.0.113.7"

    def test_spoofed_left_entry_is_skipped(self):
        request = make_request({"X-Forwarded-For": "1.2.3.4, 203.0.113.7"})
        assert get_client_ip(request, PROXIES) == "203.0.113.7"

    def test_chained_trusted_proxies_are_skipped(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.5, 10.0.0.6"})
        assert get_client_ip(request, PROXIES) == "203.0.113.7"

    def test_all_hops_trusted_uses_left_most(self):
        request = make_request({"X-Forwarded-For": "10.0.0.9, 10.0.0.5"})
        assert get_client_ip(request, PROXIES) == "10.0.0.9"

    def test_real_ip_header(self):
        request = make_request({"X-Real-IP": "198.51.100.4"})
        assert get_client_ip(request, PROXIES) == "198.51.100.4"

    def test_forwarded_for_takes_precedence(self):
        request = make_request({"X-Real-IP": "198.51.100.4", "X-Forwarded-For": "203.0.113.7"})
        assert get_client_ip(request, PROXIES) == "203.0.113.7"

    def test_cloudflare_header(self):
        request = make_request({"CF-Connecting-IP": "192.0.2.9"})
        assert get_client_ip(request, PROXIES) == "192.0.2.9"

    def test_no_headers_falls_back_to_peer(self):
        assert get_client_ip(make_request(), PROXIES) == "10.0.0.1"

    def test_single_address_entry(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"}, client=("192.0.2.1", 5000))
        assert get_client_ip(request, ["192.0.2.1"]) == "203.0.113.7"


def test_parse_trusted_proxies_rejects_garbage():
    with pytest.raises(ValueError):
        parse_trusted_proxies(["not-an-address"])
