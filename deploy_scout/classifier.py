# File: deploy_scout/classifier.py
"""deploy_scout.classifier: installer kind from the file extension."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from deploy_scout.logger import logger
from deploy_scout.models import InstallerKind
from deploy_scout.utils import filename_from_url

__all__ = ("Classification", "EXTENSION_KINDS", "classify", "resolve_filename", "version_from_filename")

DEFAULT_FILENAME = "installer"

# Compound extensions first: they are matched as one unit.
COMPOUND_EXTENSIONS: Tuple[str, ...] = (".tar.gz", ".tar.bz2")

EXTENSION_KINDS: Dict[str, InstallerKind] = {
    ".msi": InstallerKind.MSI,
    ".exe": InstallerKind.EXE,
    ".zip": InstallerKind.ARCHIVE,
    ".7z": InstallerKind.ARCHIVE,
    ".rar": InstallerKind.ARCHIVE,
    ".tgz": InstallerKind.ARCHIVE,
    ".tar.gz": InstallerKind.ARCHIVE,
    ".tar.bz2": InstallerKind.ARCHIVE,
}

KIND_DISPLAY_NAMES: Dict[InstallerKind, str] = {
    InstallerKind.MSI: "Windows Installer (MSI)",
    InstallerKind.EXE: "Executable Installer",
    InstallerKind.ARCHIVE: "Archive",
    InstallerKind.UNKNOWN: "Unknown",
}

_VERSION_IN_NAME = re.compile(r"(?<![0-9A-Za-z])v?(\d+(?:[._-]\d+){1,3})(?![\d])", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Classification:
    kind: InstallerKind
    extension: str
    base_name: str

    @property
    def filename(self) -> str:
        return f"{self.base_name}{self.extension}"

    @property
    def display_name(self) -> str:
        return KIND_DISPLAY_NAMES[self.kind]


def resolve_filename(filename: Optional[str], installer_url: Optional[str] = None) -> str:
    """Caller-supplied filename, else the last path segment of *installer_url*."""
    name = (filename or "").strip()
    if not name and installer_url:
        name = filename_from_url(installer_url)
        if name:
            logger.info("Filename derived from installer URL: %s", name)
    return name or DEFAULT_FILENAME


def classify(filename: str) -> Classification:
    """Split *filename* into base name and extension and look the extension up."""
    name = (filename or "").strip() or DEFAULT_FILENAME
    lower = name.lower()
    extension = ""
    for compound in COMPOUND_EXTENSIONS:
        if lower.endswith(compound) and len(name) > len(compound):
            extension = name[-len(compound):]
            break
    if not extension and "." in name.lstrip("."):
        extension = name[name.rindex("."):]
    base_name = name[: len(name) - len(extension)] if extension else name
    kind = EXTENSION_KINDS.get(extension.lower(), InstallerKind.UNKNOWN)
    return Classification(kind=kind, extension=extension, base_name=base_name)


def version_from_filename(filename: str) -> Optional[str]:
    """Version embedded in the base name (``app-1.2.3.msi`` → ``1.2.3``)."""
    base_name = classify(filename).base_name
    match = _VERSION_IN_NAME.search(base_name)
    if not match:
        return None
    return re.sub(r"[_-]", ".", match.group(1))
