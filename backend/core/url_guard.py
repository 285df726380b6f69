"""SSRF protection for workflow nodes that call arbitrary URLs.

Blocks:
- Non-HTTP(S) schemes
- localhost and *.local hostnames
- Private / loopback / link-local IPv4 and IPv6 literals, including
  numeric IPv4 spellings (decimal, hex, octal, short)
- Hosts outside WORKFLOW_HTTP_ALLOWLIST when an allowlist is configured
"""

import ipaddress
import re
import socket
from typing import Iterable, Optional
from urllib.parse import urlparse

from core.exceptions import HttpTargetRejected

_BLOCKED_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "::1/128",
        "fc00::/7",  # unique local (fc.., fd..)
        "fe80::/10",  # link-local
    )
]

_NUMERIC_HOST_RE = re.compile(r"^[0-9a-fx.]+$")


def _parse_ip(hostname: str):
    try:
        return ipaddress.ip_address(hostname)
    except ValueError:
        pass

    # decimal, hex, octal and short forms the system resolver also accepts
    if _NUMERIC_HOST_RE.match(hostname):
        try:
            return ipaddress.IPv4Address(socket.inet_aton(hostname))
        except OSError:
            return None
    return None


def is_private_ip(hostname: str) -> bool:
    """Check if a hostname is an IP literal inside a blocked range.

    Numeric IPv4 spellings such as `2130706433`, `127.1`, `0x7f000001`
    and `0177.0.0.1` are normalised first. Domain names return False;
    they are not resolved here.
    """
    ip = _parse_ip(hostname.lower().rstrip("."))
    if ip is None:
        return False

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        ip = ip.ipv4_mapped

    return any(ip in network for network in _BLOCKED_NETWORKS if ip.version == network.version)


def validate_http_target(url: str, allowlist: Optional[Iterable[str]] = None) -> None:
    """Validate an outbound URL before any network call is attempted.

    Args:
        url: Fully interpolated target URL
        allowlist: Optional hostnames; a host passes on exact match or
            when it is a subdomain of an entry

    Raises:
        HttpTargetRejected: If the URL is malformed or points somewhere unsafe
    """
    if not url:
        raise HttpTargetRejected("HTTP Request node missing URL")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise HttpTargetRejected("Invalid HTTP Request URL")

    if parsed.scheme.lower() not in ("http", "https"):
        raise HttpTargetRejected("Only HTTP/HTTPS requests are allowed")

    if not hostname:
        raise HttpTargetRejected("Invalid HTTP Request URL")

    hostname = hostname.lower().rstrip(".")

    if hostname == "localhost" or hostname.endswith(".local"):
        raise HttpTargetRejected("Localhost requests are not allowed")

    if is_private_ip(hostname):
        raise HttpTargetRejected("Private network targets are not allowed")

    allowed = [entry.strip().lower() for entry in (allowlist or []) if entry.strip()]
    if allowed and not any(
        hostname == entry or hostname.endswith(f".{entry}") for entry in allowed
    ):
        raise HttpTargetRejected("Target host is not in the allowlist")
