# deploy_scout/crawler/link_extractor.py
"""
Link discovery for DeployScout: same-host, keyword-relevant documentation links.
"""
from __future__ import annotations

from typing import Collection, List
from urllib.parse import unquote, urlparse

from deploy_scout.crawler.models import CrawledPage
from deploy_scout.logger import logger
from deploy_scout.parser.html_parser import parse_html
from deploy_scout.utils import extract_hostname, normalize_url

MAX_LINKS = 20


def _is_relevant(path: str, anchor_text: str, keywords: Collection[str]) -> bool:
    haystacks = (unquote(path).lower(), anchor_text.lower())
    return any(kw in hay for kw in keywords for hay in haystacks)


def discover(
    page: CrawledPage,
    origin_hostname: str,
    keyword_allowlist: Collection[str],
    limit: int = MAX_LINKS,
) -> List[str]:
    """
    Return normalized links of *page* worth crawling next.

    A link is kept when it uses http(s), points at *origin_hostname*, and its
    path or its anchor text contains one of the keywords (case-insensitive).
    The result is de-duplicated, keeps document order and holds at most *limit* URLs.
    """
    origin = origin_hostname.lower()
    keywords = [k.lower() for k in keyword_allowlist if k]
    try:
        parsed_page = parse_html(page)
    except Exception as exc:  # noqa: BLE001 - a broken page just has no outgoing links
        logger.warning("Link discovery failed on %s: %s", page.url, exc)
        return []

    links: List[str] = []
    seen = {normalize_url(page.url)}
    for absolute, anchor_text in parsed_page.anchors:
        try:
            parsed = urlparse(absolute)
            hostname = extract_hostname(absolute)
        except ValueError:
            continue
        if parsed.scheme not in ("http", "https") or hostname != origin:
            continue
        if not _is_relevant(parsed.path, anchor_text, keywords):
            continue
        normalized = normalize_url(absolute)
        if normalized in seen:
            continue
        seen.add(normalized)
        links.append(normalized)
        if len(links) >= limit:
            break
    logger.debug("Discovered %d relevant links on %s", len(links), page.url)
    return links
