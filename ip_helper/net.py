from ipaddress import IPv6Address, ip_address, ip_network
from typing import Any
from urllib.parse import urlsplit

from ip_helper.errors import MalformedAddressError

PRIVATE_NETWORKS = (
    ip_network("10.0.0.0/8"),
    ip_network("172.16.0.0/12"),
    ip_network("192.168.0.0/16"),
)


def is_valid_ip(value: str | None) -> bool:
    """Return True if `value` is an IPv4 or IPv6 literal."""
    if not value:
        return False
    try:
        ip_address(value)
    except ValueError:
        return False
    return True


def is_private(ip: str) -> bool:
    """Return True if `ip` falls in one of the RFC 1918 IPv4 ranges.

    IPv4-mapped IPv6 addresses (``::ffff:10.0.0.1``) are checked against the
    same ranges. IPv6 unique-local addresses (fc00::/7) are not considered
    private here.
    """
    try:
        address = ip_address(ip)
    except ValueError:
        return False

    if isinstance(address, IPv6Address):
        if address.ipv4_mapped is None:
            return False
        address = address.ipv4_mapped

    return any(address in network for network in PRIVATE_NETWORKS)


def strip_port(address: Any) -> str:
    """Return the host part of a transport address.

    Accepts either a ``host:port`` string (IPv6 hosts in brackets) or a socket
    address tuple as reported by asyncio (``(host, port)`` for IPv4,
    ``(host, port, flowinfo, scope_id)`` for IPv6).

    Raises:
        MalformedAddressError: no port separator, empty host, or the host is
            not an IP literal.
    """
    if isinstance(address, tuple):
        if len(address) < 2:
            raise MalformedAddressError(f"Socket address has no port: {address!r}")
        host = str(address[0])
    elif isinstance(address, str):
        host = _split_host_port(address)
    else:
        raise MalformedAddressError(f"Unsupported address type: {address!r}")

    if not is_valid_ip(host):
        raise MalformedAddressError(f"Address host is not an IP literal: {address!r}")
    return host


def _split_host_port(address: str) -> str:
    if address.startswith("["):
        host, sep, port = address[1:].partition("]:")
        if not sep or not port or ":" in port:
            raise MalformedAddressError(f"Missing port in address: {address!r}")
        return host

    host, sep, port = address.rpartition(":")
    if not sep:
        raise MalformedAddressError(f"Missing port in address: {address!r}")
    if ":" in host:
        raise MalformedAddressError(f"Too many colons in address: {address!r}")
    if not host or not port:
        raise MalformedAddressError(f"Missing host or port in address: {address!r}")
    return host


def _netloc(url: str) -> tuple[str, int | None]:
    if "://" not in url:
        url = f"http://{url}"
    parts = urlsplit(url)
    try:
        port = parts.port
    except ValueError:
        port = None
    return parts.hostname or "", port


def get_domain_only(url: str) -> str:
    """Hostname of a configured domain, e.g. ``http://ip.example.com:8080`` -> ``ip.example.com``."""
    host, _ = _netloc(url)
    return host


def get_domain_with_port(url: str) -> str:
    """Hostname plus explicit port, e.g. ``http://ip.example.com:8080`` -> ``ip.example.com:8080``."""
    host, port = _netloc(url)
    if ":" in host:
        host = f"[{host}]"
    if port is None:
        return host
    return f"{host}:{port}"
