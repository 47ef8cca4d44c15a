# File: tests/conftest.py
from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, List

import pytest
import pytest_asyncio
from aiohttp import web

from deploy_scout.config import ScoutConfig
from deploy_scout.crawler import url_guard
from deploy_scout.crawler.models import CrawledPage
from deploy_scout.parser.html_parser import visible_text


@pytest.fixture()
def fast_config() -> ScoutConfig:
    """
    Config for tests against local servers: no politeness pause, one attempt.
    """
    return ScoutConfig(
        max_pages=5,
        timeout=2.0,
        politeness_delay=0.0,
        max_attempts=1,
        retry_backoff=0.0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def allow_loopback(monkeypatch):
    """
    Let the URL guard accept 127.0.0.1 so aiohttp test servers can be crawled.
    Scheme checks stay active.
    """
    monkeypatch.setattr(url_guard, "BLOCKED_HOST_PREFIXES", ())


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """
    Return a coroutine that starts an aiohttp app on a free port and gives its base URL.
    Every started app is cleaned up after the test.
    """
    runners: List[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _start
    for runner in runners:
        await runner.cleanup()


def make_page(html: str, url: str = "https://vendor.example/docs/") -> CrawledPage:
    """Build a CrawledPage the way the fetcher does."""
    return CrawledPage(url=url, raw_html=html, extracted_text=visible_text(html))


@pytest.fixture()
def page_factory() -> Callable[..., CrawledPage]:
    return make_page
