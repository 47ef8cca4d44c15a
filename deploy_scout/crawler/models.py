# deploy_scout/crawler/models.py
"""
Data models for the DeployScout documentation crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet

if TYPE_CHECKING:
    from deploy_scout.config import ScoutConfig


@dataclass(frozen=True, slots=True)
class CrawlTarget:
    """Input of one crawl invocation."""

    start_url: str
    max_pages: int = 8
    keyword_allowlist: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, start_url: str, config: ScoutConfig) -> CrawlTarget:
        return cls(
            start_url=start_url,
            max_pages=config.max_pages,
            keyword_allowlist=frozenset(config.keywords),
        )


@dataclass(frozen=True, slots=True)
class CrawledPage:
    """One fetched HTML page: its URL, the raw markup and the visible text."""

    url: str
    raw_html: str
    extracted_text: str
