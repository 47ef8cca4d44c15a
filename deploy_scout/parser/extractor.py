# File: deploy_scout/parser/extractor.py
"""deploy_scout.parser.extractor: harvest command candidates from one crawled page.

Text is scanned in priority order: <code>/<pre> blocks, then paragraph/list
text, then the visible page text. The same normalized text found again in a
later stage is dropped, so the first (most code-like) occurrence wins.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from deploy_scout.classifier import classify, version_from_filename
from deploy_scout.crawler.models import CrawledPage
from deploy_scout.logger import logger
from deploy_scout.models import CommandCandidate, InstallerKind, InstallerLink, Role
from deploy_scout.parser.html_parser import ParsedPage, parse_html
from deploy_scout.parser.patterns import (
    GUID_RE,
    PATTERN_FAMILIES,
    PREFIXED_VERSION_RE,
    ROLE_KEYWORD_RE,
    SILENT_CONTEXT_RE,
    STAGE_CODE,
    STAGE_PROSE,
    STAGE_TEXT,
    SWITCH_TOKEN_RE,
    VERSION_RE,
    PatternFamily,
    get_family,
    is_silent_switch,
)
from deploy_scout.utils import filename_from_url

__all__: Sequence[str] = ("extract", "extract_versions", "extract_installers", "infer_role", "MAX_VERSIONS")

ROLE_WINDOW = 80
MAX_VERSIONS = 10
_PATH_FAMILY = "windows_path"
_ARTIFACT_FAMILIES = ("guid", _PATH_FAMILY)
INSTALLER_LINK_EXTENSIONS = (".exe", ".msi", ".msix", ".zip")
MAX_LINK_TEXT = 100


def _segments(parsed: ParsedPage, page: CrawledPage) -> List[Tuple[str, str]]:
    segments = [(STAGE_CODE, block) for block in parsed.code_blocks]
    segments += [(STAGE_PROSE, block) for block in parsed.prose_blocks]
    segments.append((STAGE_TEXT, page.extracted_text or parsed.text))
    return segments


def _clean(raw: str) -> str:
    text = raw.strip().rstrip(".,;:")
    while text.endswith(")") and text.count(")") > text.count("("):
        text = text[:-1].rstrip(".,;:")
    return text


def _keyword_role(text: str) -> Optional[Role]:
    matches = list(ROLE_KEYWORD_RE.finditer(text))
    if not matches:
        return None
    keyword = matches[-1].group(0).lower()
    if keyword.startswith(("unins", "remov", "/x")):
        return Role.UNINSTALL
    return Role.INSTALL


def infer_role(segment: str, start: int, end: int, filename_hint: str = "") -> Role:
    """Role from keywords in the match itself, else the closest one just before it."""
    own = segment[start:end]
    role = _keyword_role(own)
    if role is None:
        role = _keyword_role(segment[max(0, start - ROLE_WINDOW):start])
    if role is None and filename_hint and filename_hint.lower() in own.lower():
        role = Role.INSTALL
    return role or Role.OTHER


def _installer_kind(family: PatternFamily, raw: str) -> InstallerKind:
    if family.installer_kind is not InstallerKind.UNKNOWN:
        return family.installer_kind
    lower = raw.lower()
    if "msiexec" in lower or ".msi" in lower:
        return InstallerKind.MSI
    if ".exe" in lower:
        return InstallerKind.EXE
    return InstallerKind.UNKNOWN


def _scan_segment(stage: str, text: str, page_url: str, filename_hint: str) -> Iterator[CommandCandidate]:
    path_regex = get_family(_PATH_FAMILY).regex
    taken: List[Tuple[int, int]] = []
    for family in PATTERN_FAMILIES:
        if stage not in family.stages:
            continue
        if family.requires_silent_context and not SILENT_CONTEXT_RE.search(text):
            continue
        for match in family.regex.finditer(text):
            raw = _clean(match.group(0))
            if not raw:
                continue
            start = match.start() + (len(match.group(0)) - len(match.group(0).lstrip()))
            end = start + len(raw)
            if any(start < t_end and t_start < end for t_start, t_end in taken):
                continue
            if family.name in _ARTIFACT_FAMILIES:
                switches: Tuple[str, ...] = ()
            else:
                switches = tuple(SWITCH_TOKEN_RE.findall(raw))
            if family.requires_silent_switch and not any(is_silent_switch(s) for s in switches):
                continue
            taken.append((start, end))
            if family.name == _PATH_FAMILY:
                paths = frozenset({raw})
            else:
                paths = frozenset(_clean(p) for p in path_regex.findall(raw))
            yield CommandCandidate(
                raw_text=raw,
                installer_kind=_installer_kind(family, raw),
                inferred_role=family.role or infer_role(text, start, end, filename_hint),
                switches=switches,
                file_paths=paths,
                source_page_url=page_url,
                family=family.name,
                guids=tuple(GUID_RE.findall(raw)),
            )


def extract(page: CrawledPage, installer_filename_hint: str = "") -> List[CommandCandidate]:
    """
    Return the command/path/GUID candidates found on *page*.

    Pure function of its input. A page whose markup cannot be parsed yields
    an empty list instead of an exception.
    """
    try:
        parsed = parse_html(page)
        segments = _segments(parsed, page)
        candidates: List[CommandCandidate] = []
        seen = set()
        for stage, text in segments:
            for candidate in _scan_segment(stage, text, page.url, installer_filename_hint):
                key = (candidate.family in _ARTIFACT_FAMILIES, candidate.normalized)
                if key in seen:
                    continue
                seen.add(key)
                candidates.append(candidate)
    except Exception as exc:  # noqa: BLE001 - one malformed page must not stop the analysis
        logger.warning("Malformed page %s skipped: %s", page.url, exc)
        return []
    logger.debug("Extracted %d candidates from %s", len(candidates), page.url)
    return candidates


def extract_versions(page: CrawledPage) -> List[str]:
    """Version strings from headings, version-labelled elements, then body text (first 10)."""
    try:
        parsed = parse_html(page)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Version scan failed on %s: %s", page.url, exc)
        return []
    found: List[str] = []
    for text in [*parsed.headings, *parsed.version_labels]:
        found.extend(m.group(1) for m in VERSION_RE.finditer(text))
    found.extend(m.group(1) for m in PREFIXED_VERSION_RE.finditer(page.extracted_text or parsed.text))
    return list(dict.fromkeys(found))[:MAX_VERSIONS]


def _installer_link(url: str, text: str, page_url: str, any_target: bool) -> Optional[InstallerLink]:
    if not url.lower().startswith(("http://", "https://")):
        return None
    filename = filename_from_url(url)
    if not any_target and not filename.lower().endswith(INSTALLER_LINK_EXTENSIONS):
        return None
    version_match = VERSION_RE.search(text)
    version = version_match.group(1) if version_match else version_from_filename(filename)
    return InstallerLink(
        url=url,
        filename=filename or "installer",
        installer_kind=classify(filename).kind,
        source_page_url=page_url,
        version=version,
        link_text=text[:MAX_LINK_TEXT],
    )


def extract_installers(page: CrawledPage) -> List[InstallerLink]:
    """
    Installer download links on *page*, in document order.

    Anchors count when their path ends in an installer extension; buttons
    carrying ``data-download``/``data-url`` count whatever their target.
    """
    try:
        parsed = parse_html(page)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Installer link scan failed on %s: %s", page.url, exc)
        return []
    links: List[InstallerLink] = []
    seen = set()
    targets = [(url, text, False) for url, text in parsed.anchors]
    targets += [(url, text, True) for url, text in parsed.download_links]
    for url, text, any_target in targets:
        if url in seen:
            continue
        link = _installer_link(url, text, page.url, any_target)
        if link is None:
            continue
        seen.add(url)
        links.append(link)
    logger.debug("Found %d installer links on %s", len(links), page.url)
    return links
