# deploy_scout/crawler/url_guard.py
"""
Safety gate run before any network access: only public http(s) URLs pass.
"""
from __future__ import annotations

from typing import Tuple
from urllib.parse import urlparse

from deploy_scout.logger import logger

ALLOWED_SCHEMES: Tuple[str, ...] = ("http", "https")

BLOCKED_HOST_PREFIXES: Tuple[str, ...] = (
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "::1",
    "169.254.",
    "10.",
    *(f"172.{octet}." for octet in range(16, 32)),
    "192.168.",
)


def validate_url(url: str) -> bool:
    """
    Return True if *url* may be fetched.

    Rejects unparsable input, any scheme other than http/https, and hosts equal
    to or starting with a blocked loopback/private literal. Never raises.
    """
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        scheme = parsed.scheme.lower()
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        logger.debug("Invalid URL format: %r", url)
        return False

    if scheme not in ALLOWED_SCHEMES:
        logger.info("Blocked URL scheme %r: %s", scheme, url)
        return False
    if not hostname:
        logger.debug("URL without hostname: %r", url)
        return False
    for blocked in BLOCKED_HOST_PREFIXES:
        if hostname == blocked or hostname.startswith(blocked):
            logger.warning("Blocked internal/loopback host %s: %s", hostname, url)
            return False
    return True


__all__ = ["validate_url", "BLOCKED_HOST_PREFIXES", "ALLOWED_SCHEMES"]
