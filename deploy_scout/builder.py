# File: deploy_scout/builder.py
"""deploy_scout.builder: assemble the final PackagingRecommendation."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from deploy_scout.classifier import classify, resolve_filename, version_from_filename
from deploy_scout.crawler.models import CrawledPage
from deploy_scout.logger import logger
from deploy_scout.models import CommandCandidate, InstallerKind, PackagingRecommendation
from deploy_scout.parser.extractor import extract, extract_versions
from deploy_scout.ranker import (
    RankResult,
    combine,
    rank,
    select_uninstall,
    standard_msi_install,
    synthesize_detection,
)
from deploy_scout.utils import remove_duplicates

__all__: Sequence[str] = ("build", "KIND_NOTES")

KIND_NOTES: Dict[InstallerKind, Tuple[str, ...]] = {
    InstallerKind.MSI: (
        "MSI installers follow standard Windows Installer semantics.",
        "/qn gives a fully silent install with no user interface.",
        "/norestart prevents an automatic reboot after installation.",
        "Always test before deployment.",
    ),
    InstallerKind.EXE: (
        "EXE installer switches depend on the packaging technology (NSIS, Inno Setup, "
        "InstallShield, WiX Burn) and are not interchangeable.",
        "Always test the silent install command on a test machine before deployment.",
    ),
    InstallerKind.ARCHIVE: (
        "Archive files are not installers; extract the contents before packaging.",
        "Portable applications need a deployment script that copies the files and creates shortcuts.",
        "If the archive wraps a setup.exe or .msi, analyze that installer instead.",
        "Check for a README or INSTALL file inside the archive.",
    ),
    InstallerKind.UNKNOWN: (
        "Cannot determine install commands: the file type is not recognised from its extension.",
        "Manual investigation required: identify the installer technology, then re-run the "
        "analysis with the correct filename.",
    ),
}


def _candidates(pages: Iterable[CrawledPage], filename: str) -> List[CommandCandidate]:
    collected: List[CommandCandidate] = []
    for page in pages:
        collected.extend(extract(page, filename))
    return collected


def _documented_versions(pages: Iterable[CrawledPage]) -> List[str]:
    return remove_duplicates([v for page in pages for v in extract_versions(page)])


def build(
    filename: Optional[str],
    installer_url: str,
    crawled_pages: Optional[Sequence[CrawledPage]],
) -> PackagingRecommendation:
    """
    Turn crawled documentation into a packaging recommendation.

    Never raises for missing data: whatever cannot be found is replaced by a
    fallback that carries at least one warning.
    """
    name = resolve_filename(filename, installer_url)
    kind = classify(name).kind
    pages = list(crawled_pages or [])

    candidates = _candidates(pages, name) if kind in (InstallerKind.MSI, InstallerKind.EXE) else []
    if kind is InstallerKind.MSI:
        ranked: RankResult = combine(
            standard_msi_install(name),
            select_uninstall(candidates, name, kind),
            synthesize_detection(candidates, name, kind),
        )
    else:
        ranked = rank(candidates, name, kind)

    documented = _documented_versions(pages) if kind is not InstallerKind.ARCHIVE else []
    version = version_from_filename(name) or (documented[0] if documented else None)
    notes = list(KIND_NOTES[kind])
    if documented:
        notes.append(f"Versions mentioned in documentation: {', '.join(documented)}")
    notes.extend(n for n in ranked.notes if n not in notes)

    recommendation = PackagingRecommendation(
        filename=name,
        installer_kind=kind,
        silent_install_command=ranked.best_install,
        uninstall_command=ranked.best_uninstall,
        detection_rule=ranked.detection_rule,
        confidence=ranked.confidence,
        warnings=ranked.warnings,
        source_pages=ranked.source_pages,
        notes=tuple(notes),
        install_confidence=ranked.install.confidence,
        uninstall_confidence=ranked.uninstall.confidence,
        detection_confidence=ranked.detection.confidence,
        version=version,
        installer_url=installer_url or "",
        pages_crawled=len(pages),
    )
    logger.info(
        "Recommendation for %s (%s): confidence=%s, %d warnings",
        name, kind.value, recommendation.confidence.value, len(recommendation.warnings),
    )
    return recommendation
