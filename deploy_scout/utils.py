# File: deploy_scout/utils.py
"""deploy_scout.utils: URL helpers shared by the crawler, classifier and builder."""

from __future__ import annotations

import posixpath
from typing import Collection, List, Sequence
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse, urlunparse

from deploy_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "extract_hostname",
    "filename_from_url",
    "remove_duplicates",
)


def normalize_url(url: str) -> str:
    """Canonical form used by the visited set: lower-case scheme/host, resolved
    dot segments, sorted query, no fragment."""
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    path = unquote(parsed.path or "/")
    norm = posixpath.normpath(path)
    if parsed.path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    norm = quote(norm, safe="/:@!$&'()*+,;=-._~%")
    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    normalized = urlunparse((scheme, netloc, norm, "", query, ""))
    logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def extract_hostname(url: str) -> str:
    """Lower-cased hostname of *url* (no port); empty string when absent."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def filename_from_url(url: str) -> str:
    """Last non-empty path segment of *url*, percent-decoded; empty when absent."""
    if not url:
        return ""
    try:
        path = urlparse(url.strip()).path
    except ValueError:
        return ""
    segments = [s for s in unquote(path).split("/") if s]
    return segments[-1].strip() if segments else ""


def remove_duplicates(items: Collection[str]) -> List[str]:
    """Remove duplicates while keeping first-seen order."""
    unique = list(dict.fromkeys(items))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate entries", removed)
    return unique
