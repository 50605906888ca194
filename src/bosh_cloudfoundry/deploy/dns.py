"""Check that the deployment DNS name points at its IP addresses."""

import socket
from typing import List, Sequence

import structlog

logger = structlog.get_logger()


def resolve_addresses(hostname: str) -> List[str]:
    try:
        _, _, addresses = socket.gethostbyname_ex(hostname)
    except OSError:
        return []
    return addresses


def validate_dns_mapping(dns: str, ip_addresses: Sequence[str]) -> bool:
    """Warn when ``api.<dns>`` does not resolve to one of ``ip_addresses``.

    DNS is often configured after the first deploy, so a mismatch is reported
    but does not stop the deployment.
    """
    hostname = f"api.{dns}"
    resolved = resolve_addresses(hostname)
    if not resolved:
        logger.warning("DNS name does not resolve yet", hostname=hostname, expected=list(ip_addresses))
        return False
    if not set(resolved) & set(ip_addresses):
        logger.warning(
            "DNS name resolves to unexpected addresses",
            hostname=hostname,
            resolved=resolved,
            expected=list(ip_addresses),
        )
        return False
    logger.info("DNS mapping validated", hostname=hostname, resolved=resolved)
    return True
