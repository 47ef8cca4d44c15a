# File: deploy_scout/parser/patterns.py
"""deploy_scout.parser.patterns: the regex library used by the extractor.

Every family is data: a name, a compiled expression, the text stages it may
scan, an optional fixed role, and a few example strings it must match
(``tests/test_patterns.py`` checks them). Supporting a new vendor format means
adding or editing an entry here; ranking code does not change.

Bump :data:`PATTERN_LIBRARY_VERSION` whenever a family changes behaviour.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional, Pattern, Tuple

from deploy_scout.models import InstallerKind, Role

__all__ = (
    "PATTERN_LIBRARY_VERSION",
    "PatternFamily",
    "PATTERN_FAMILIES",
    "COMMAND_FAMILIES",
    "SILENT_SWITCHES",
    "GUID_RE",
    "VERSION_RE",
    "PREFIXED_VERSION_RE",
    "SWITCH_TOKEN_RE",
    "SILENT_CONTEXT_RE",
    "ROLE_KEYWORD_RE",
    "is_silent_switch",
    "get_family",
)

PATTERN_LIBRARY_VERSION = "1.0"

STAGE_CODE = "code"
STAGE_PROSE = "prose"
STAGE_TEXT = "text"
ALL_STAGES: FrozenSet[str] = frozenset({STAGE_CODE, STAGE_PROSE, STAGE_TEXT})

SILENT_SWITCHES: FrozenSet[str] = frozenset(
    {"/s", "/silent", "/verysilent", "/quiet", "/qn", "/passive", "--silent"}
)

# --------------------------------------------------------------------------- #
# Building blocks                                                             #
# --------------------------------------------------------------------------- #

_GUID = r"\{[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}\}"
_SILENT = r"(?:/VERYSILENT|/SILENT|/quiet|/qn|/passive|--silent|/S)(?![\w-])"
_QUOTED_EXE = r'"[^"\r\n]{0,200}?\.exe"'
_BARE_EXE = r"(?<![\w\\%.-])[\w%\\:.+-]*?[\w-]\.exe(?![\w.])"
_EXE = rf"(?:{_QUOTED_EXE}|{_BARE_EXE})"
_ARG = (
    r"(?:[ \t]+(?:"
    r"/[\w:=.\\%{}-]+"                      # /NORESTART, /D=C:\App, /LOG=x.log
    r"|--?[A-Za-z][\w-]*(?:=(?:\"[^\"\r\n]*\"|[^\s\"]+))?"  # --silent, -ms, --mode=unattended
    r"|[A-Z][A-Z0-9_]*=(?:\"[^\"\r\n]*\"|[^\s\"]+)"          # ALLUSERS=1, INSTALLDIR="..."
    r"))"
)
_MSI_TARGET = r"(?:\"[^\"\r\n]+\"|[^\s\"]+)"

GUID_RE: Pattern[str] = re.compile(_GUID)
SWITCH_TOKEN_RE: Pattern[str] = re.compile(r"(?<![^\s\"])(?:/|--?)[A-Za-z?][^\s\"]*")
VERSION_RE: Pattern[str] = re.compile(r"\bv?(\d+\.\d+(?:\.\d+)?(?:\.\d+)?)\b", re.IGNORECASE)
PREFIXED_VERSION_RE: Pattern[str] = re.compile(
    r"\b(?:version|ver\.?|v)\s*(\d+\.\d+(?:\.\d+)?(?:\.\d+)?)\b", re.IGNORECASE
)
SILENT_CONTEXT_RE: Pattern[str] = re.compile(r"silent|quiet|unattended", re.IGNORECASE)
ROLE_KEYWORD_RE: Pattern[str] = re.compile(
    r"uninstall|remov(?:e|al|ing)|/x\b|install|setup", re.IGNORECASE
)


def is_silent_switch(token: str) -> bool:
    return token.strip().lower() in SILENT_SWITCHES


@dataclass(frozen=True)
class PatternFamily:
    """One named extraction pattern."""

    name: str
    regex: Pattern[str]
    stages: FrozenSet[str] = ALL_STAGES
    role: Optional[Role] = None
    installer_kind: InstallerKind = InstallerKind.UNKNOWN
    requires_silent_switch: bool = False
    requires_silent_context: bool = False
    examples: Tuple[str, ...] = ()
    description: str = ""


PATTERN_FAMILIES: Tuple[PatternFamily, ...] = (
    PatternFamily(
        name="msi_uninstall",
        regex=re.compile(rf"msiexec(?:\.exe)?[ \t]+/x[ \t]*(?:{_GUID}|{_MSI_TARGET}){_ARG}*", re.IGNORECASE),
        role=Role.UNINSTALL,
        installer_kind=InstallerKind.MSI,
        examples=(
            "msiexec /x {A1B2C3D4-0000-1111-2222-333344445555} /qn",
            'msiexec.exe /X "product.msi" /quiet /norestart',
        ),
        description="Windows Installer removal by ProductCode or package.",
    ),
    PatternFamily(
        name="msi_install",
        regex=re.compile(rf"msiexec(?:\.exe)?[ \t]+/(?:i|package)[ \t]+{_MSI_TARGET}{_ARG}*", re.IGNORECASE),
        role=Role.INSTALL,
        installer_kind=InstallerKind.MSI,
        requires_silent_switch=True,
        examples=(
            'msiexec /i "app-1.2.3.msi" /qn /norestart',
            "msiexec.exe /i App.msi /quiet ALLUSERS=1",
        ),
        description="Windows Installer install with a quiet or passive switch.",
    ),
    PatternFamily(
        name="exe_uninstall",
        regex=re.compile(
            rf"(?:\"[^\"\r\n]{{0,200}}?(?:unins|remove)[^\"\r\n]{{0,200}}?\.exe\""
            rf"|(?<![\w\\%.-])[\w%\\:.+-]*?(?:unins|remove)[\w%\\:.+-]*?\.exe(?![\w.])){_ARG}+",
            re.IGNORECASE,
        ),
        role=Role.UNINSTALL,
        installer_kind=InstallerKind.EXE,
        examples=(
            '"C:\\Program Files\\App\\uninstall.exe" /S',
            "unins000.exe /VERYSILENT /NORESTART",
        ),
        description="Vendor uninstaller executable followed by switches.",
    ),
    PatternFamily(
        name="exe_uninstall_switch",
        regex=re.compile(rf"{_EXE}{_ARG}*?[ \t]+(?:/|--?)(?:uninstall|remove)\b{_ARG}*", re.IGNORECASE),
        role=Role.UNINSTALL,
        installer_kind=InstallerKind.EXE,
        examples=("setup.exe --uninstall --silent", "AppSetup.exe /remove /quiet"),
        description="Installer executable invoked in removal mode.",
    ),
    PatternFamily(
        name="exe_silent",
        regex=re.compile(rf"{_EXE}{_ARG}*?[ \t]+{_SILENT}{_ARG}*", re.IGNORECASE),
        installer_kind=InstallerKind.EXE,
        requires_silent_switch=True,
        examples=(
            '"setup-app.exe" /VERYSILENT /NORESTART',
            "npp.8.6.Installer.x64.exe /S",
            "AppSetup.exe --silent --accept-eula",
        ),
        description="Executable followed by a recognised silent switch.",
    ),
    PatternFamily(
        name="exe_invocation",
        regex=re.compile(rf"{_EXE}{_ARG}+", re.IGNORECASE),
        stages=frozenset({STAGE_CODE}),
        installer_kind=InstallerKind.EXE,
        examples=("setup.exe INSTALLDIR=C:\\Apps\\Tool", "AppSetup.exe /norestart"),
        description="Executable with arguments in a code block, silent switch not confirmed.",
    ),
    PatternFamily(
        name="bare_switches",
        regex=re.compile(rf"(?<![\w/\\:.-]){_SILENT}(?:[ \t]+(?:/|--?)[A-Za-z][\w=:.-]*)*", re.IGNORECASE),
        stages=frozenset({STAGE_CODE, STAGE_PROSE}),
        requires_silent_context=True,
        examples=("/S /SILENT", "/VERYSILENT /SUPPRESSMSGBOXES"),
        description="Silent switches documented without an executable name.",
    ),
    PatternFamily(
        name="guid",
        regex=re.compile(_GUID),
        examples=("{A1B2C3D4-0000-1111-2222-333344445555}",),
        description="Canonical GUID, e.g. an MSI ProductCode.",
    ),
    PatternFamily(
        name="windows_path",
        regex=re.compile(
            r"(?<![\w%])(?:[A-Za-z]:\\|%[A-Za-z][\w()]*%\\)"
            r"(?:[^\\/:*?\"<>|\r\n]+\\)*[^\\/:*?\"<>|\r\n\s]+"
        ),
        examples=(
            "C:\\Program Files\\App\\app.exe",
            "%ProgramFiles(x86)%\\Vendor\\Tool\\tool.exe",
        ),
        description="Absolute or environment-rooted Windows path.",
    ),
)

COMMAND_FAMILIES: FrozenSet[str] = frozenset(
    {"msi_uninstall", "msi_install", "exe_uninstall", "exe_uninstall_switch", "exe_silent", "exe_invocation", "bare_switches"}
)


def get_family(name: str) -> PatternFamily:
    for family in PATTERN_FAMILIES:
        if family.name == name:
            return family
    raise KeyError(name)
