# deploy_scout/crawler/fetcher.py
"""
Fetcher module: retrieves one documentation page with timeout, retry/backoff
and content-type gating. Every failure path returns None.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Tuple

from aiohttp import ClientError, ClientSession, InvalidURL

from deploy_scout.config import ScoutConfig
from deploy_scout.crawler import url_guard
from deploy_scout.crawler.models import CrawledPage
from deploy_scout.logger import logger
from deploy_scout.parser.html_parser import visible_text

HTML_CONTENT_TYPES: Tuple[str, ...] = ("text/html", "application/xhtml+xml")

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class Fetcher:
    """Fetches HTML pages; transient network errors are retried, HTTP errors are not."""

    def __init__(self, session: ClientSession, config: ScoutConfig) -> None:
        self.session = session
        self.config = config
        self.attempts_made = 0

    async def fetch(self, url: str) -> Optional[CrawledPage]:
        """
        Fetch *url* and return a CrawledPage.

        After a redirect the page carries the final URL, so relative links resolve
        against it. Returns None on 4xx/5xx (after one attempt), on non-HTML content, when a
        redirect lands on a blocked host, or once all attempts failed.
        """
        attempt = 0
        while attempt < self.config.max_attempts:
            attempt += 1
            self.attempts_made += 1
            try:
                async with self.session.get(url, allow_redirects=True) as resp:
                    final_url = str(resp.url) if resp.history else url
                    if final_url != url and not url_guard.validate_url(final_url):
                        logger.warning("Redirect of %s to blocked URL %s dropped", url, final_url)
                        return None
                    if resp.status >= 400:
                        logger.info("HTTP %s: %s", resp.status, url)
                        return None
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime not in HTML_CONTENT_TYPES:
                        logger.debug("Skipping non-HTML content (%s): %s", mime or "unknown", url)
                        return None
                    html = await resp.text(errors="replace")
            except InvalidURL as exc:
                logger.warning("Invalid URL %s: %s", url, exc)
                return None
            except (ClientError, asyncio.TimeoutError) as exc:
                if attempt >= self.config.max_attempts:
                    logger.warning("Failed %s after %d attempts: %s", url, attempt, exc or type(exc).__name__)
                    return None
                backoff = self.config.retry_backoff * attempt
                logger.debug(
                    "Retry %d/%d for %s after %.2f s (%s)",
                    attempt, self.config.max_attempts, url, backoff, type(exc).__name__,
                )
                await asyncio.sleep(backoff)
                continue

            logger.info("Fetched %d bytes from %s", len(html), url)
            try:
                text = visible_text(html)
            except Exception as exc:  # noqa: BLE001 - malformed markup keeps the raw page
                logger.warning("Could not extract text from %s: %s", url, exc)
                text = ""
            return CrawledPage(url=final_url, raw_html=html, extracted_text=text)
        return None
