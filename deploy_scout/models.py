# File: deploy_scout/models.py
"""deploy_scout.models: domain types of an installer analysis.

The closed enums below are the only representation of installer kind, command
role and confidence used anywhere in the package; raw strings coming from
callers are normalised once via :meth:`Confidence.parse` /
:meth:`InstallerKind.parse`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple, Union

__all__ = (
    "InstallerKind",
    "Role",
    "Confidence",
    "CommandCandidate",
    "InstallerLink",
    "MsiProductCodeRule",
    "FilePathRule",
    "RegistryKeyRule",
    "ArchiveGuidanceRule",
    "DetectionRule",
    "PackagingRecommendation",
    "NOT_APPLICABLE_COMMAND",
    "MANUAL_INVESTIGATION",
    "PRODUCT_CODE_PLACEHOLDER",
)

NOT_APPLICABLE_COMMAND = "N/A"
MANUAL_INVESTIGATION = "MANUAL INVESTIGATION REQUIRED"
PRODUCT_CODE_PLACEHOLDER = "{PRODUCT-CODE-GOES-HERE}"


class InstallerKind(str, Enum):
    MSI = "MSI"
    EXE = "EXE"
    ARCHIVE = "ARCHIVE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> InstallerKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Role(str, Enum):
    INSTALL = "install"
    UNINSTALL = "uninstall"
    OTHER = "other"


class Confidence(str, Enum):
    """Trust level of a derived command or rule."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NOT_APPLICABLE = "NotApplicable"

    @property
    def rank(self) -> int:
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}.get(self.value, 0)

    @classmethod
    def parse(cls, value: Any) -> Confidence:
        """Accept enum members or loose strings (``"high"``, ``"n/a"``...)."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("_", "").replace(" ", "")
        if text in ("high", "medium", "low"):
            return cls(text.upper())
        if text in ("n/a", "na", "notapplicable", "none", ""):
            return cls.NOT_APPLICABLE
        raise ValueError(f"Unknown confidence value: {value!r}")

    @classmethod
    def lowest(cls, *values: Confidence) -> Confidence:
        """Minimum of the applicable values; NOT_APPLICABLE when none applies."""
        applicable = [v for v in values if v is not cls.NOT_APPLICABLE]
        if not applicable:
            return cls.NOT_APPLICABLE
        return min(applicable, key=lambda c: c.rank)


@dataclass(frozen=True, slots=True)
class CommandCandidate:
    """One pattern match harvested from a documentation page."""

    raw_text: str
    installer_kind: InstallerKind
    inferred_role: Role
    switches: Tuple[str, ...]
    file_paths: FrozenSet[str]
    source_page_url: str
    family: str
    guids: Tuple[str, ...] = ()

    @property
    def normalized(self) -> str:
        return self.raw_text.strip().lower()


@dataclass(frozen=True, slots=True)
class InstallerLink:
    """Download link for an installer found on a documentation page."""

    url: str
    filename: str
    installer_kind: InstallerKind
    source_page_url: str
    version: Optional[str] = None
    link_text: str = ""


# --------------------------------------------------------------------------- #
# Detection rules                                                             #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class MsiProductCodeRule:
    product_code: Optional[str] = None
    kind: ClassVar[str] = "msiProductCode"


@dataclass(frozen=True, slots=True)
class FilePathRule:
    path: str
    heuristic: bool = False
    kind: ClassVar[str] = "filePath"


@dataclass(frozen=True, slots=True)
class RegistryKeyRule:
    hive: str
    key_path: str
    kind: ClassVar[str] = "registryKey"


@dataclass(frozen=True, slots=True)
class ArchiveGuidanceRule:
    note: str
    kind: ClassVar[str] = "archiveGuidance"


DetectionRule = Union[MsiProductCodeRule, FilePathRule, RegistryKeyRule, ArchiveGuidanceRule]


def rule_to_dict(rule: DetectionRule) -> Dict[str, Any]:
    return {"kind": rule.kind, **asdict(rule)}


# --------------------------------------------------------------------------- #
# Final record                                                                #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class PackagingRecommendation:
    """Packaging metadata for one installer; returned to the caller as is."""

    filename: str
    installer_kind: InstallerKind
    silent_install_command: str
    uninstall_command: str
    detection_rule: DetectionRule
    confidence: Confidence
    warnings: Tuple[str, ...] = ()
    source_pages: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    install_confidence: Confidence = Confidence.NOT_APPLICABLE
    uninstall_confidence: Confidence = Confidence.NOT_APPLICABLE
    detection_confidence: Confidence = Confidence.NOT_APPLICABLE
    version: Optional[str] = None
    installer_url: str = ""
    pages_crawled: int = 0
    discovered_installers: Tuple[str, ...] = ()

    @property
    def heuristic_detection(self) -> bool:
        return isinstance(self.detection_rule, FilePathRule) and self.detection_rule.heuristic

    @property
    def placeholder_product_code(self) -> bool:
        return PRODUCT_CODE_PLACEHOLDER in self.uninstall_command

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "installer_url": self.installer_url,
            "installer_kind": self.installer_kind.value,
            "silent_install_command": self.silent_install_command,
            "uninstall_command": self.uninstall_command,
            "detection_rule": rule_to_dict(self.detection_rule),
            "confidence": self.confidence.value,
            "install_confidence": self.install_confidence.value,
            "uninstall_confidence": self.uninstall_confidence.value,
            "detection_confidence": self.detection_confidence.value,
            "version": self.version,
            "warnings": list(self.warnings),
            "source_pages": list(self.source_pages),
            "notes": list(self.notes),
            "pages_crawled": self.pages_crawled,
            "discovered_installers": list(self.discovered_installers),
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation for the CLI and the JSON report."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
