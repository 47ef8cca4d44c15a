# File: deploy_scout/engine.py
"""deploy_scout.engine: orchestration of one installer analysis (validate, crawl, build)."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from deploy_scout.builder import build
from deploy_scout.classifier import classify, resolve_filename
from deploy_scout.config import ScoutConfig, load_config
from deploy_scout.crawler import url_guard
from deploy_scout.crawler.crawler import DocCrawler
from deploy_scout.crawler.models import CrawledPage, CrawlTarget
from deploy_scout.errors import AnalysisTimeoutError, DeployScoutError, InvalidUrlError, NoPagesReachableError
from deploy_scout.logger import logger
from deploy_scout.models import InstallerKind, InstallerLink, PackagingRecommendation
from deploy_scout.parser.extractor import extract_installers

__all__ = ["analyze", "analyze_many", "discover_installers", "Engine", "AnalysisRequest", "AnalysisOutcome"]

# (page_url, installer_url, filename)
AnalysisRequest = Tuple[str, str, Optional[str]]
# one entry per request: the recommendation or the error that stopped it
AnalysisOutcome = Union[PackagingRecommendation, DeployScoutError]

_PREFERRED_KINDS = (InstallerKind.EXE, InstallerKind.MSI)


def _needs_crawl(kind: InstallerKind, config: ScoutConfig) -> bool:
    if kind is InstallerKind.EXE:
        return True
    return kind is InstallerKind.MSI and config.crawl_msi


async def _crawl(page_url: str, config: ScoutConfig, cancel_event: Optional[asyncio.Event]) -> List[CrawledPage]:
    async with DocCrawler(config, cancel_event=cancel_event) as crawler:
        return await crawler.crawl(CrawlTarget.from_config(page_url, config))


def discover_installers(pages: Sequence[CrawledPage]) -> List[InstallerLink]:
    """Safe installer download links across *pages*, first occurrence kept."""
    links: List[InstallerLink] = []
    seen = set()
    for page in pages:
        for link in extract_installers(page):
            if link.url in seen or not url_guard.validate_url(link.url):
                continue
            seen.add(link.url)
            links.append(link)
    return links


def _pick_installer(links: Sequence[InstallerLink]) -> InstallerLink:
    for link in links:
        if link.installer_kind in _PREFERRED_KINDS:
            return link
    return links[0]


async def _analyze_discovered(page_url: str, cfg: ScoutConfig, cancel_event: Optional[asyncio.Event]) -> PackagingRecommendation:
    pages = await _crawl(page_url, cfg, cancel_event)
    if not pages:
        raise NoPagesReachableError(page_url)

    links = discover_installers(pages)
    if not links:
        logger.warning("No installer filename or URL given and no download link found on %s", page_url)
        return build(None, "", pages)

    chosen = _pick_installer(links)
    logger.info("Installer discovered on %s: %s", chosen.source_page_url, chosen.url)
    rec = build(chosen.filename, chosen.url, pages)
    notes = [*rec.notes, f"Installer discovered on {chosen.source_page_url}: {chosen.url}"]
    if len(links) > 1:
        notes.append(f"{len(links)} installer download links found; analyze the others separately.")
    return dataclasses.replace(
        rec,
        notes=tuple(notes),
        version=rec.version or chosen.version,
        discovered_installers=tuple(link.url for link in links),
    )


async def analyze(
    page_url: str,
    installer_url: str = "",
    filename: Optional[str] = None,
    config: Optional[ScoutConfig] = None,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> PackagingRecommendation:
    """
    Analyze one installer against its documentation site.

    With neither *installer_url* nor *filename*, the installer is taken from
    the download links found while crawling.

    Raises InvalidUrlError before any network activity when a URL is unsafe,
    and NoPagesReachableError when a required crawl fetched nothing.
    """
    cfg = config or ScoutConfig()
    if not url_guard.validate_url(page_url):
        raise InvalidUrlError(page_url)
    if installer_url and not url_guard.validate_url(installer_url):
        raise InvalidUrlError(installer_url)

    if not installer_url and not (filename or "").strip():
        logger.info("Analyzing the installer linked from %s", page_url)
        return await _analyze_discovered(page_url, cfg, cancel_event)

    name = resolve_filename(filename, installer_url)
    kind = classify(name).kind
    logger.info("Analyzing %s (%s) using %s", name, kind.value, page_url)

    pages: List[CrawledPage] = []
    if _needs_crawl(kind, cfg):
        pages = await _crawl(page_url, cfg, cancel_event)
        if not pages:
            raise NoPagesReachableError(page_url)
    else:
        logger.info("No documentation crawl needed for %s installers", kind.value)

    return build(name, installer_url, pages)


async def analyze_many(
    requests: Iterable[AnalysisRequest],
    config: Optional[ScoutConfig] = None,
) -> List[AnalysisOutcome]:
    """
    Run independent analyses concurrently; each has its own crawl state.

    A failed request yields its DeployScoutError in place of a recommendation
    and never affects the others. Unexpected exceptions still propagate.
    """
    cfg = config or ScoutConfig()
    batch = list(requests)
    results = await asyncio.gather(
        *(analyze(page, installer, name, cfg) for page, installer, name in batch),
        return_exceptions=True,
    )
    outcomes: List[AnalysisOutcome] = []
    for (page, _installer, _name), result in zip(batch, results):
        if isinstance(result, DeployScoutError):
            logger.warning("Analysis of %s failed: %s", page, result)
        elif isinstance(result, BaseException):
            raise result
        outcomes.append(result)
    return outcomes


class Engine:
    """Synchronous facade for the CLI and tests: config plus a bounded analysis run."""

    @staticmethod
    def load_config(path: Optional[str]) -> ScoutConfig:
        return load_config(path)

    def __init__(self, config: Optional[ScoutConfig] = None) -> None:
        self.config = config or ScoutConfig()

    def run(
        self,
        page_url: str,
        installer_url: str = "",
        filename: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> PackagingRecommendation:
        """Run :func:`analyze` under ``timeout`` (default ``config.analysis_timeout``)."""
        limit = timeout if timeout is not None else self.config.analysis_timeout

        async def _runner() -> PackagingRecommendation:
            cancel_event = asyncio.Event()
            try:
                return await asyncio.wait_for(
                    analyze(page_url, installer_url, filename, self.config, cancel_event=cancel_event),
                    timeout=limit,
                )
            except asyncio.TimeoutError:
                cancel_event.set()
                raise

        try:
            return asyncio.run(_runner())
        except asyncio.TimeoutError as exc:
            logger.error("Analysis did not finish within %s seconds", limit)
            raise AnalysisTimeoutError(limit) from exc

    def run_many(self, requests: Sequence[AnalysisRequest]) -> List[AnalysisOutcome]:
        return asyncio.run(analyze_many(requests, self.config))
