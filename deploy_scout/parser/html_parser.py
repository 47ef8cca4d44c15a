# === FILE: deploy_scout/parser/html_parser.py ===
"""HTML parsing utilities for DeployScout.

`parse_html()` turns server-delivered markup into a :class:`ParsedPage` holding
everything the rest of the pipeline reads from a page:

* title: document <title> text or ``""`` if absent.
* anchors: ``(absolute_url, visible_text)`` pairs from <a href="…"> tags.
* download_links: ``(absolute_url, visible_text)`` pairs from ``data-download``/``data-url`` buttons.
* code_blocks: text of <code>/<pre> elements, line breaks preserved.
* prose_blocks: whitespace-collapsed text of paragraphs, list items and cells.
* headings / version_labels: where release numbers are usually printed.
* text: visible text, one stripped string per line.

Script-like elements (script, style, noscript, template) are dropped before any text is collected.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup

__all__: Sequence[str] = ("ParsedPage", "parse_html", "visible_text")

_INVISIBLE_TAGS = ("script", "style", "noscript", "template")
_PROSE_TAGS = ("p", "li", "td", "dd", "dt", "blockquote")
_HEADING_TAGS = ("h1", "h2", "h3")
_VERSION_SELECTORS = ".version, #version, .release, .latest, [class*=version]"
_DOWNLOAD_SELECTORS = "button[data-download], button[data-url], a[data-download]"


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str = ""
    anchors: list[tuple[str, str]] = field(default_factory=list)
    download_links: list[tuple[str, str]] = field(default_factory=list)
    code_blocks: list[str] = field(default_factory=list)
    prose_blocks: list[str] = field(default_factory=list)
    headings: list[str] = field(default_factory=list)
    version_labels: list[str] = field(default_factory=list)
    text: str = ""


def _collapse(text: str) -> str:
    return " ".join(text.split())


def parse_html(page: Any) -> ParsedPage:
    """Parse raw HTML (string) or a :class:`~deploy_scout.crawler.models.CrawledPage`.

    Parameters
    ----------
    page
        Either a *str* (HTML markup) **or** an object with ``url`` and
        ``raw_html`` attributes.
    """
    if hasattr(page, "raw_html") and hasattr(page, "url"):
        html = page.raw_html
        base_url = str(page.url)
    else:
        html = str(page)
        base_url = ""

    soup = BeautifulSoup(html, "html.parser")
    for element in soup(list(_INVISIBLE_TAGS)):
        element.decompose()

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    anchors: list[tuple[str, str]] = []
    for tag in soup.find_all("a", href=True):
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        href = href.strip()
        if not href or href.startswith(("mailto:", "javascript:", "tel:", "#")):
            continue
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            continue
        anchors.append((absolute, _collapse(tag.get_text(" "))))

    download_links: list[tuple[str, str]] = []
    for tag in soup.select(_DOWNLOAD_SELECTORS):
        target = tag.get("data-download") or tag.get("data-url")
        if not isinstance(target, str) or not target.strip():
            continue
        try:
            absolute = urljoin(base_url, target.strip())
        except ValueError:
            continue
        download_links.append((absolute, _collapse(tag.get_text(" "))))

    code_blocks = [tag.get_text() for tag in soup.find_all(["code", "pre"])]
    prose_blocks = [_collapse(tag.get_text(" ")) for tag in soup.find_all(list(_PROSE_TAGS))]
    headings = [_collapse(tag.get_text(" ")) for tag in soup.find_all(list(_HEADING_TAGS))]
    version_labels = [_collapse(tag.get_text(" ")) for tag in soup.select(_VERSION_SELECTORS)]
    text = "\n".join(soup.stripped_strings)

    return ParsedPage(
        url=base_url,
        title=title,
        anchors=anchors,
        download_links=download_links,
        code_blocks=[b for b in code_blocks if b.strip()],
        prose_blocks=[b for b in prose_blocks if b],
        headings=[h for h in headings if h],
        version_labels=[v for v in version_labels if v],
        text=text,
    )


def visible_text(html: str) -> str:
    """Visible text of *html*, one stripped string per line."""
    return parse_html(html).text
