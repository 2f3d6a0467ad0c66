"""
Hostname cleaning and resolution for bound service hosts
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)

UNRESOLVED_MARKER = "<unresolved>"


def clean_hostname(raw_host: Optional[str]) -> Optional[str]:
    """
    Strip platform annotations from a raw host string.

    Handles values like ``host/<unresolved>:5678`` or ``host/<unresolved>``.
    Returns None when nothing usable remains.
    """
    if raw_host is None:
        return None

    host = str(raw_host)
    if "/" in host:
        host = host[:host.index("/")]
    host = host.replace(UNRESOLVED_MARKER, "").strip()

    if not host:
        logger.debug(f"Hostname is empty after cleaning: {raw_host!r}")
        return None
    return host


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


async def resolve_hostname(hostname: str, timeout: float = 2.0) -> str:
    """
    Resolve a hostname to an IPv4 address.

    Falls back to the hostname itself when resolution fails or times out,
    leaving the final lookup to the client library at connect time.
    """
    if is_ip_address(hostname):
        return hostname

    loop = asyncio.get_running_loop()
    try:
        resolved = await asyncio.wait_for(
            loop.getaddrinfo(hostname, None, family=socket.AF_INET, type=socket.SOCK_STREAM),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(f"Timed out resolving {hostname} after {timeout}s, using hostname directly")
        return hostname
    except OSError as e:
        logger.warning(
            f"Failed to resolve hostname {hostname}: {e}. "
            "Using hostname directly, DNS may succeed at connection time"
        )
        return hostname

    if not resolved:
        return hostname

    address = resolved[0][4][0]
    logger.info(f"Resolved hostname {hostname} to {address}")
    return address
