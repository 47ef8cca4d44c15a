# File: deploy_scout/ranker.py
"""deploy_scout.ranker: choose commands and a detection rule from extracted candidates.

Any real documented candidate is preferred over a synthesized fallback. Every
fallback carries warnings; nothing returned here is ever ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from deploy_scout.classifier import classify
from deploy_scout.logger import logger
from deploy_scout.models import (
    MANUAL_INVESTIGATION,
    NOT_APPLICABLE_COMMAND,
    PRODUCT_CODE_PLACEHOLDER,
    ArchiveGuidanceRule,
    CommandCandidate,
    Confidence,
    DetectionRule,
    FilePathRule,
    InstallerKind,
    MsiProductCodeRule,
    RegistryKeyRule,
    Role,
)
from deploy_scout.parser.patterns import COMMAND_FAMILIES, is_silent_switch

__all__: Sequence[str] = (
    "Selection",
    "Detection",
    "RankResult",
    "deduplicate",
    "select_install",
    "select_uninstall",
    "synthesize_detection",
    "standard_msi_install",
    "combine",
    "rank",
    "infer_app_name",
)

INSTALL_FALLBACKS: Dict[InstallerKind, str] = {
    InstallerKind.MSI: 'msiexec /i "{filename}" /qn /norestart',
    InstallerKind.EXE: '"{filename}" /S',
}
EXE_SWITCH_ALTERNATIVES: Tuple[str, ...] = ("/SILENT", "/VERYSILENT", "/quiet")
MSI_SWITCH_ALTERNATIVES: Tuple[str, ...] = ("/quiet", "/passive")
MSI_UNINSTALL_TEMPLATE = "msiexec /x {product_code} /qn /norestart"
EXE_UNINSTALL_FALLBACK = 'Check "Programs and Features" or the registry Uninstall key for the UninstallString'
UNINSTALL_KEY_PATH = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
REGISTRY_HIVE = "HKEY_LOCAL_MACHINE"

ARCHIVE_NOTE = (
    "This is an archive, not an installer. Extract it and re-classify its contents: "
    "portable applications need a custom deployment script, wrapped installers "
    "(setup.exe / .msi) should be analyzed on their own."
)
MSI_AUTODERIVE_NOTE = (
    "No ProductCode was documented. Intune and ConfigMgr typically derive the MSI "
    "ProductCode from the package itself, so no file-based detection is required."
)

WARN_FILENAME_NOT_CONFIRMED = (
    "Command found in documentation but filename not explicitly mentioned; "
    "confirm the switches apply to {filename}."
)
WARN_SWITCHES_NOT_CONFIRMED = (
    "Command found but silent switches not confirmed; test it interactively before deployment."
)
WARN_UNINSTALL_SWITCHES = (
    "Uninstall command found but silent switches not confirmed; it may show a user interface."
)

_ARCH_MARKERS = frozenset({"x64", "x86", "win32", "win64", "amd64", "arm64", "64bit", "32bit"})
_INSTALLER_WORDS = frozenset({"setup", "install", "installer"})
_VERSION_WORD = re.compile(r"v?\d+", re.IGNORECASE)
_MSI_VERBS = frozenset({"/i", "/package", "/x"})
_NON_INSTALL_PATH_RE = re.compile(r"%te?mp%|\\te?mp\\|\.(?:log|txt|ini)$", re.IGNORECASE)
_SWITCH_VALUE_RE = re.compile(r"(/?[\w-]+)=\"?$")
_INSTALL_DIR_SWITCHES = frozenset({"/D", "/DIR", "INSTALLDIR", "TARGETDIR", "INSTALLLOCATION", "APPLICATIONFOLDER"})


@dataclass(frozen=True)
class Selection:
    command: str
    confidence: Confidence
    warnings: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Detection:
    rule: DetectionRule
    confidence: Confidence
    warnings: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RankResult:
    install: Selection
    uninstall: Selection
    detection: Detection
    confidence: Confidence
    warnings: Tuple[str, ...]
    notes: Tuple[str, ...]
    source_pages: Tuple[str, ...]

    @property
    def best_install(self) -> str:
        return self.install.command

    @property
    def best_uninstall(self) -> str:
        return self.uninstall.command

    @property
    def detection_rule(self) -> DetectionRule:
        return self.detection.rule


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(i for i in items if i))


def _has_silent_switch(candidate: CommandCandidate) -> bool:
    return any(is_silent_switch(s) for s in candidate.switches)


def _mentions(candidate: CommandCandidate, filename: str) -> bool:
    """True when *filename* appears as a whole token, so ``app.exe`` never matches ``myapp.exe``."""
    if not filename:
        return False
    token = re.compile(rf"(?<![\w.-]){re.escape(filename)}(?![\w.])", re.IGNORECASE)
    return token.search(candidate.raw_text) is not None


def deduplicate(candidates: Iterable[CommandCandidate]) -> List[CommandCandidate]:
    """Merge candidates by normalized text, keeping the first-seen one."""
    merged: Dict[str, CommandCandidate] = {}
    for candidate in candidates:
        merged.setdefault(candidate.normalized, candidate)
    return list(merged.values())


def infer_app_name(filename: str) -> str:
    """``Notepad-Plus_8.6_x64-setup.exe`` → ``Notepad Plus``."""
    base_name = classify(filename).base_name
    words = []
    for word in re.split(r"[\s._-]+", base_name):
        lower = word.lower()
        if not word or _VERSION_WORD.fullmatch(lower) or lower in _ARCH_MARKERS or lower in _INSTALLER_WORDS:
            continue
        words.append(word[:1].upper() + word[1:])
    return " ".join(words) or "Application"


def _product_code(candidates: Sequence[CommandCandidate]) -> Tuple[Optional[str], Optional[CommandCandidate]]:
    for candidate in candidates:
        if candidate.inferred_role is Role.UNINSTALL and candidate.guids:
            return candidate.guids[0], candidate
    return None, None


def _retarget(candidate: CommandCandidate, filename: str, kind: InstallerKind) -> str:
    """Rebuild a documented command around the installer being analyzed."""
    switches = [s for s in candidate.switches if s.lower() not in _MSI_VERBS]
    if kind is InstallerKind.MSI:
        return " ".join([f'msiexec /i "{filename}"', *switches])
    return " ".join([f'"{filename}"', *switches])


def _install_compatible(candidate: CommandCandidate, kind: InstallerKind) -> bool:
    if candidate.family not in COMMAND_FAMILIES or candidate.inferred_role is Role.UNINSTALL:
        return False
    if kind is InstallerKind.EXE:
        return candidate.installer_kind in (InstallerKind.EXE, InstallerKind.UNKNOWN)
    if kind is InstallerKind.MSI:
        return candidate.installer_kind in (InstallerKind.MSI, InstallerKind.UNKNOWN)
    return True


# --------------------------------------------------------------------------- #
# Selection                                                                   #
# --------------------------------------------------------------------------- #


def _install_fallback(filename: str, kind: InstallerKind) -> Selection:
    if kind is InstallerKind.MSI:
        return Selection(
            command=INSTALL_FALLBACKS[kind].format(filename=filename),
            confidence=Confidence.LOW,
            warnings=(
                "No silent install command found in documentation; using the standard "
                "Windows Installer fallback (/qn /norestart).",
                f"Documented alternatives: {', '.join(MSI_SWITCH_ALTERNATIVES)}.",
            ),
        )
    if kind is InstallerKind.EXE:
        return Selection(
            command=INSTALL_FALLBACKS[kind].format(filename=filename),
            confidence=Confidence.LOW,
            warnings=(
                "No silent install command found in documentation; using generic fallback /S "
                "(NSIS and Inno Setup default).",
                "This may not work for every EXE installer; documented alternatives to try: "
                f"{', '.join(EXE_SWITCH_ALTERNATIVES)}.",
            ),
        )
    return Selection(
        command=MANUAL_INVESTIGATION,
        confidence=Confidence.LOW,
        warnings=(
            "Installer type could not be determined; no install command was guessed. "
            "Manual investigation required.",
        ),
    )


def select_install(candidates: Sequence[CommandCandidate], filename: str, kind: InstallerKind) -> Selection:
    """Best silent install command, in decreasing order of evidence."""
    if kind is InstallerKind.ARCHIVE:
        return Selection(
            command=NOT_APPLICABLE_COMMAND,
            confidence=Confidence.NOT_APPLICABLE,
            warnings=("Archive file: there is no install command. Extract it and analyze its contents.",),
        )

    pool = [c for c in deduplicate(candidates) if _install_compatible(c, kind)]
    pool.sort(key=lambda c: c.inferred_role is not Role.INSTALL)
    switched = [c for c in pool if _has_silent_switch(c)]

    for candidate in switched:
        if _mentions(candidate, filename):
            return Selection(candidate.raw_text, Confidence.HIGH, sources=(candidate.source_page_url,))

    if switched:
        candidate = switched[0]
        command = _retarget(candidate, filename, kind)
        return Selection(
            command=command,
            confidence=Confidence.MEDIUM,
            warnings=(WARN_FILENAME_NOT_CONFIRMED.format(filename=filename),),
            notes=(f"Documented command: {candidate.raw_text}",) if command != candidate.raw_text else (),
            sources=(candidate.source_page_url,),
        )

    if pool:
        candidate = pool[0]
        confidence = Confidence.MEDIUM if _mentions(candidate, filename) else Confidence.LOW
        return Selection(
            candidate.raw_text, confidence, warnings=(WARN_SWITCHES_NOT_CONFIRMED,), sources=(candidate.source_page_url,)
        )

    return _install_fallback(filename, kind)


def standard_msi_install(filename: str) -> Selection:
    """Windows Installer install command; needs no documentation."""
    return Selection(
        command=INSTALL_FALLBACKS[InstallerKind.MSI].format(filename=filename),
        confidence=Confidence.HIGH,
    )


def _uninstall_fallback(filename: str, kind: InstallerKind) -> Selection:
    if kind is InstallerKind.MSI:
        return Selection(
            command=MSI_UNINSTALL_TEMPLATE.format(product_code=PRODUCT_CODE_PLACEHOLDER),
            confidence=Confidence.MEDIUM,
            warnings=(
                f"ProductCode could not be determined; replace {PRODUCT_CODE_PLACEHOLDER} "
                "with the MSI ProductCode before deployment.",
                "Open the MSI in Orca (Property table, ProductCode) or install it once with "
                f'msiexec /i "{filename}" /qn /l*v install.log and read the ProductCode from the log.',
                "The ProductCode format is {XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX}.",
            ),
        )
    if kind is InstallerKind.EXE:
        return Selection(
            command=EXE_UNINSTALL_FALLBACK,
            confidence=Confidence.LOW,
            warnings=(
                "Uninstall command not found in documentation.",
                f"Check HKLM\\{UNINSTALL_KEY_PATH} (and WOW6432Node) for the "
                "UninstallString or QuietUninstallString after a test installation.",
            ),
        )
    return Selection(
        command=MANUAL_INVESTIGATION,
        confidence=Confidence.LOW,
        warnings=("Uninstall command cannot be determined for an unknown installer type.",),
    )


def select_uninstall(candidates: Sequence[CommandCandidate], filename: str, kind: InstallerKind) -> Selection:
    """Best silent uninstall command; MSI prefers a documented ProductCode."""
    if kind is InstallerKind.ARCHIVE:
        return Selection(NOT_APPLICABLE_COMMAND, Confidence.NOT_APPLICABLE)

    unique = deduplicate(candidates)
    pool = [
        c for c in unique
        if c.family in COMMAND_FAMILIES and c.family != "bare_switches" and c.inferred_role is Role.UNINSTALL
    ]

    if kind is InstallerKind.MSI:
        for candidate in pool:
            if candidate.family == "msi_uninstall" and candidate.guids:
                return Selection(candidate.raw_text, Confidence.HIGH, sources=(candidate.source_page_url,))
        product_code, source = _product_code(unique)
        if product_code and source is not None:
            return Selection(
                command=MSI_UNINSTALL_TEMPLATE.format(product_code=product_code),
                confidence=Confidence.HIGH,
                notes=(f"ProductCode {product_code} found in documentation.",),
                sources=(source.source_page_url,),
            )

    switched = [c for c in pool if _has_silent_switch(c)]
    if switched:
        candidate = switched[0]
        return Selection(candidate.raw_text, Confidence.HIGH, sources=(candidate.source_page_url,))
    if pool:
        candidate = pool[0]
        return Selection(
            candidate.raw_text, Confidence.MEDIUM, warnings=(WARN_UNINSTALL_SWITCHES,), sources=(candidate.source_page_url,)
        )
    return _uninstall_fallback(filename, kind)


# --------------------------------------------------------------------------- #
# Detection                                                                   #
# --------------------------------------------------------------------------- #


def _switch_value_of(raw_text: str, path: str) -> Optional[str]:
    """Name of the switch whose value is *path* (``/LOG``, ``INSTALLDIR``), if any."""
    index = raw_text.find(path)
    if index < 0:
        return None
    match = _SWITCH_VALUE_RE.search(raw_text[:index])
    return match.group(1).upper() if match else None


def _detection_path_allowed(path: str, candidate: CommandCandidate) -> bool:
    if _NON_INSTALL_PATH_RE.search(path.rstrip("\\")):
        return False
    if candidate.family == "windows_path":
        return True
    switch = _switch_value_of(candidate.raw_text, path)
    return switch is None or switch in _INSTALL_DIR_SWITCHES


def _documented_path(candidates: Sequence[CommandCandidate], filename: str) -> Tuple[Optional[str], Optional[CommandCandidate]]:
    found: List[Tuple[str, CommandCandidate]] = []
    for candidate in candidates:
        if candidate.inferred_role is Role.UNINSTALL:
            continue
        for path in sorted(candidate.file_paths):
            lower = path.lower()
            if "unins" in lower or lower.rstrip("\\").endswith(filename.lower()):
                continue
            if not _detection_path_allowed(path, candidate):
                continue
            found.append((path, candidate))
    if not found:
        return None, None
    # standalone paths before paths lifted out of commands, executables first
    found.sort(key=lambda item: (item[1].family != "windows_path", not item[0].lower().endswith(".exe")))
    return found[0]


def _path_matches_app(path: str, filename: str) -> bool:
    lower = path.lower()
    tokens = [t.lower() for t in infer_app_name(filename).split() if len(t) > 1]
    return any(t in lower for t in tokens)


def synthesize_detection(candidates: Sequence[CommandCandidate], filename: str, kind: InstallerKind) -> Detection:
    """Detection rule by kind: ProductCode for MSI, documented path, registry key, heuristic path."""
    if kind is InstallerKind.ARCHIVE:
        return Detection(ArchiveGuidanceRule(note=ARCHIVE_NOTE), Confidence.NOT_APPLICABLE, notes=(ARCHIVE_NOTE,))

    unique = deduplicate(candidates)
    product_code, code_source = _product_code(unique)

    if kind is InstallerKind.MSI:
        if product_code and code_source is not None:
            return Detection(
                MsiProductCodeRule(product_code=product_code),
                Confidence.HIGH,
                sources=(code_source.source_page_url,),
            )
        return Detection(MsiProductCodeRule(product_code=None), Confidence.NOT_APPLICABLE, notes=(MSI_AUTODERIVE_NOTE,))

    path, path_source = _documented_path(unique, filename)
    if path and path_source is not None:
        if _path_matches_app(path, filename):
            return Detection(FilePathRule(path=path, heuristic=False), Confidence.HIGH, sources=(path_source.source_page_url,))
        return Detection(
            FilePathRule(path=path, heuristic=False),
            Confidence.MEDIUM,
            warnings=(f"Documented path {path} does not name {infer_app_name(filename)}; confirm it belongs to this product.",),
            sources=(path_source.source_page_url,),
        )

    if product_code and code_source is not None:
        return Detection(
            RegistryKeyRule(hive=REGISTRY_HIVE, key_path=f"{UNINSTALL_KEY_PATH}\\{product_code}"),
            Confidence.MEDIUM,
            notes=(f"Detection uses the Uninstall registry key of documented ProductCode {product_code}.",),
            sources=(code_source.source_page_url,),
        )

    app_name = infer_app_name(filename)
    heuristic_path = f"%ProgramFiles%\\{app_name}\\{app_name}.exe"
    return Detection(
        FilePathRule(path=heuristic_path, heuristic=True),
        Confidence.LOW,
        warnings=(
            f"Detection rule is a heuristic guess ({heuristic_path}) without documentary evidence; "
            "verify the installed file path after a test installation before production use.",
        ),
    )


# --------------------------------------------------------------------------- #
# Entry points                                                                #
# --------------------------------------------------------------------------- #


def combine(install: Selection, uninstall: Selection, detection: Detection) -> RankResult:
    """Merge the three parts; overall confidence never exceeds the weakest of install/detection."""
    return RankResult(
        install=install,
        uninstall=uninstall,
        detection=detection,
        confidence=Confidence.lowest(install.confidence, detection.confidence),
        warnings=_unique([*install.warnings, *uninstall.warnings, *detection.warnings]),
        notes=_unique([*install.notes, *uninstall.notes, *detection.notes]),
        source_pages=_unique([*install.sources, *uninstall.sources, *detection.sources]),
    )


def rank(candidates: Sequence[CommandCandidate], installer_filename: str, installer_kind: InstallerKind) -> RankResult:
    """Select install/uninstall commands and a detection rule for one installer."""
    kind = InstallerKind.parse(installer_kind)
    result = combine(
        select_install(candidates, installer_filename, kind),
        select_uninstall(candidates, installer_filename, kind),
        synthesize_detection(candidates, installer_filename, kind),
    )
    logger.debug(
        "Ranked %d candidates for %s: install=%s (%s), confidence=%s",
        len(candidates), installer_filename, result.best_install, result.install.confidence.value,
        result.confidence.value,
    )
    return result
