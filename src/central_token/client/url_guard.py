"""SSRF checks for the central instance URL.

The URL is validated before every token exchange, not only when the local
instance is configured, so a changed configuration (or a DNS record that now
points somewhere else) cannot aim the exchange at internal infrastructure.
"""

import asyncio
import ipaddress
import logging
import socket
from typing import TypeAlias
from urllib.parse import urlsplit

from ..errors import InvalidCentralInstanceURLError

logger = logging.getLogger("central_token.url_guard")

IPAddress: TypeAlias = ipaddress.IPv4Address | ipaddress.IPv6Address

ALLOWED_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}


def is_disallowed_address(address: IPAddress) -> bool:
    """Return True for unspecified, loopback, link-local and private addresses.

    IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) are judged by their IPv4 form.
    """
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address.is_unspecified or address.is_loopback or address.is_link_local or address.is_private


async def resolve_host(host: str, port: int) -> list[IPAddress]:
    """Resolve ``host`` through the system resolver without blocking the event loop.

    Raises:
        OSError: If the host cannot be resolved.

    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    addresses: list[IPAddress] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        # Drop the IPv6 zone id ("fe80::1%eth0") before parsing
        raw = str(sockaddr[0]).split("%", 1)[0]
        address = ipaddress.ip_address(raw)
        if address not in addresses:
            addresses.append(address)
    return addresses


async def validate_central_instance_url(url: str | None) -> None:
    """Check that ``url`` is an absolute http(s) URL for a publicly routable host.

    Every address the host resolves to is checked.

    Args:
        url: Candidate central instance URL.

    Raises:
        InvalidCentralInstanceURLError: On the first check that fails.

    """
    if not url:
        msg = "Central instance URL must not be empty"
        raise InvalidCentralInstanceURLError(msg)

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        msg = "Invalid central instance URL"
        raise InvalidCentralInstanceURLError(msg) from exc
    if not parts.scheme:
        msg = "Invalid central instance URL"
        raise InvalidCentralInstanceURLError(msg)

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        msg = "Central instance URL must use http or https scheme"
        raise InvalidCentralInstanceURLError(msg)

    host = parts.hostname
    if not host:
        msg = "Central instance URL must contain a host"
        raise InvalidCentralInstanceURLError(msg)

    try:
        addresses = await resolve_host(host, port or DEFAULT_PORTS[scheme])
    except (OSError, UnicodeError, ValueError) as exc:
        msg = "Cannot resolve central instance URL host"
        raise InvalidCentralInstanceURLError(msg) from exc
    if not addresses:
        msg = "Cannot resolve central instance URL host"
        raise InvalidCentralInstanceURLError(msg)

    blocked = [address for address in addresses if is_disallowed_address(address)]
    if blocked:
        logger.warning("Rejected central instance host %s resolving to %s", host, ", ".join(map(str, blocked)))
        msg = "Central instance URL host is not allowed"
        raise InvalidCentralInstanceURLError(msg)


__all__ = ["is_disallowed_address", "resolve_host", "validate_central_instance_url"]
