# === FILE: deploy_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque, List, Optional, Set

from aiohttp import ClientSession, ClientTimeout

from deploy_scout.config import ScoutConfig
from deploy_scout.crawler import url_guard
from deploy_scout.crawler.fetcher import BROWSER_HEADERS, Fetcher
from deploy_scout.crawler.link_extractor import discover
from deploy_scout.crawler.models import CrawledPage, CrawlTarget
from deploy_scout.logger import logger
from deploy_scout.utils import extract_hostname, normalize_url

__all__ = ("DocCrawler",)


class DocCrawler:
    """Breadth-first documentation crawler: one fetch at a time, fixed politeness delay.

    One instance serves one analysis; its visited set and counters are never
    shared with another crawl.
    """

    def __init__(self, config: ScoutConfig, *, cancel_event: Optional[asyncio.Event] = None) -> None:
        self.config = config
        self.cancel_event = cancel_event
        self.visited: Set[str] = set()
        self.failed_urls: List[str] = []
        self.rejected_urls: List[str] = []
        self.session: Optional[ClientSession] = None
        self.fetcher: Optional[Fetcher] = None
        self._last_request_ts: Optional[float] = None

    async def __aenter__(self) -> DocCrawler:
        timeout = ClientTimeout(total=self.config.timeout)
        self.session = ClientSession(
            timeout=timeout,
            headers={"User-Agent": self.config.user_agent, **BROWSER_HEADERS},
            raise_for_status=False,
        )
        self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self, target: CrawlTarget) -> List[CrawledPage]:
        """Collect at most ``target.max_pages`` pages reachable from ``target.start_url``.

        Partial results are returned as is; an empty list means the start page
        itself was unreachable.
        """
        if self.fetcher is None:
            raise RuntimeError("DocCrawler must be used as an async context manager")

        logger.info("Crawl started: %s (max %d pages)", target.start_url, target.max_pages)
        start = time.monotonic()
        root = normalize_url(target.start_url)
        origin = extract_hostname(root)
        queue: Deque[str] = deque([root])
        queued: Set[str] = {root}
        pages: List[CrawledPage] = []

        while queue and len(pages) < target.max_pages:
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info("Crawl cancelled after %d pages", len(pages))
                break
            url = queue.popleft()
            if url in self.visited:
                continue
            self.visited.add(url)

            if not url_guard.validate_url(url):
                self.rejected_urls.append(url)
                continue

            await self._wait_politeness()
            page = await self.fetcher.fetch(url)
            self._last_request_ts = time.monotonic()
            if page is None:
                self.failed_urls.append(url)
                continue
            if page.url != url:
                final = normalize_url(page.url)
                if final in self.visited:
                    logger.debug("Redirect of %s lands on already visited %s", url, final)
                    continue
                self.visited.add(final)
                if not pages:
                    # vendor.com -> www.vendor.com: follow the host the start page landed on
                    origin = extract_hostname(final)
            pages.append(page)

            if len(pages) >= target.max_pages:
                break
            for link in discover(page, origin, target.keyword_allowlist, limit=self.config.max_links):
                if link not in self.visited and link not in queued:
                    queued.add(link)
                    queue.append(link)

        duration = time.monotonic() - start
        logger.info(
            "Crawl finished: %d pages in %.2f s (%d failed, %d rejected)",
            len(pages), duration, len(self.failed_urls), len(self.rejected_urls),
        )
        return pages

    async def _wait_politeness(self) -> None:
        """Sleep so a fetch starts at least ``politeness_delay`` after the previous one ended."""
        if self._last_request_ts is not None:
            wait = self.config.politeness_delay - (time.monotonic() - self._last_request_ts)
            if wait > 0:
                await asyncio.sleep(wait)
