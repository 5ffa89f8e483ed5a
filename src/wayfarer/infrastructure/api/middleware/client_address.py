"""Resolution of the client address behind reverse proxies.

Forwarding headers are only honoured when the socket peer is a configured
trusted proxy.
"""

import ipaddress
from collections.abc import Iterable

from fastapi import Request

ProxyNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

SINGLE_VALUE_HEADERS = ("x-real-ip", "cf-connecting-ip")


def parse_trusted_proxies(entries: Iterable[str]) -> list[ProxyNetwork]:
    """Parse addresses and CIDR ranges into networks.

    Raises:
        ValueError: If an entry is not a valid address or network.
    """
    return [ipaddress.ip_network(entry.strip(), strict=False) for entry in entries if entry.strip()]


def _is_trusted(address: str, trusted: list[ProxyNetwork]) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip in network for network in trusted)


def get_client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """Return the originating client address of a request.

    Without trusted proxies this is always the socket peer. When the peer is
    a trusted proxy, ``X-Forwarded-For`` is walked from the right and the
    first hop that is not itself a trusted proxy is the client. ``X-Real-IP``
    and ``CF-Connecting-IP`` are used when no forwarded chain is present.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = parse_trusted_proxies(trusted_proxies)
    if not trusted or not _is_trusted(peer, trusted):
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        for hop in reversed(hops):
            if not _is_trusted(hop, trusted):
                return hop
        if hops:
            return hops[0]

    for header in SINGLE_VALUE_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value
    return peer
