# File: tests/test_builder.py
import json

import pytest

from deploy_scout.builder import build
from deploy_scout.models import (
    MANUAL_INVESTIGATION,
    NOT_APPLICABLE_COMMAND,
    PRODUCT_CODE_PLACEHOLDER,
    ArchiveGuidanceRule,
    Confidence,
    FilePathRule,
    InstallerKind,
    MsiProductCodeRule,
)

GUID = "{A1B2C3D4-0000-1111-2222-333344445555}"

SILENT_DOC = """
<html><body>
  <h1>App deployment</h1>
  <p>Silent installation:</p>
  <pre>"setup-app.exe" /VERYSILENT /NORESTART</pre>
  <p>Files are installed to C:\\Program Files\\App\\app.exe</p>
</body></html>
"""


def test_documented_filename_gives_high(page_factory):
    rec = build("setup-app.exe", "", [page_factory(SILENT_DOC)])
    assert rec.installer_kind is InstallerKind.EXE
    assert rec.silent_install_command == '"setup-app.exe" /VERYSILENT /NORESTART'
    assert rec.install_confidence is Confidence.HIGH
    assert rec.detection_rule == FilePathRule(path="C:\\Program Files\\App\\app.exe", heuristic=False)
    assert rec.confidence is Confidence.HIGH
    assert rec.source_pages == ("https://vendor.example/docs/",)
    assert rec.pages_crawled == 1


def test_other_filename_gives_medium(page_factory):
    rec = build("other.exe", "", [page_factory(SILENT_DOC)])
    assert rec.silent_install_command == '"other.exe" /VERYSILENT /NORESTART'
    assert rec.confidence is Confidence.MEDIUM
    assert any("filename not explicitly mentioned" in w for w in rec.warnings)


def test_exe_without_documentation_falls_back(page_factory):
    rec = build("tool.exe", "", [page_factory("<p>Welcome to Tool.</p>")])
    assert rec.silent_install_command == '"tool.exe" /S'
    assert rec.confidence is Confidence.LOW
    assert rec.warnings
    assert rec.heuristic_detection
    assert rec.source_pages == ()


def test_msi_short_circuit():
    rec = build("app-1.2.3.msi", "", [])
    assert rec.silent_install_command == 'msiexec /i "app-1.2.3.msi" /qn /norestart'
    assert rec.install_confidence is Confidence.HIGH
    assert rec.uninstall_command == f"msiexec /x {PRODUCT_CODE_PLACEHOLDER} /qn /norestart"
    assert rec.placeholder_product_code
    assert rec.detection_rule == MsiProductCodeRule(product_code=None)
    assert rec.confidence is Confidence.HIGH
    assert rec.version == "1.2.3"
    assert any("/qn" in n for n in rec.notes)


def test_msi_documented_guid_uninstall_verbatim(page_factory):
    page = page_factory(f"<p>To remove it run</p><pre>msiexec /x {GUID} /qn</pre>")
    rec = build("app.msi", "", [page])
    assert rec.uninstall_command == f"msiexec /x {GUID} /qn"
    assert rec.uninstall_confidence is Confidence.HIGH
    assert rec.detection_rule == MsiProductCodeRule(product_code=GUID)
    assert rec.source_pages == ("https://vendor.example/docs/",)


def test_archive_recommendation():
    rec = build("bundle.zip", "", [])
    assert rec.installer_kind is InstallerKind.ARCHIVE
    assert rec.silent_install_command == NOT_APPLICABLE_COMMAND
    assert rec.uninstall_command == NOT_APPLICABLE_COMMAND
    assert isinstance(rec.detection_rule, ArchiveGuidanceRule)
    assert rec.confidence is Confidence.NOT_APPLICABLE
    assert any("extract" in n.lower() for n in rec.notes)


def test_unknown_kind_requires_manual_investigation():
    rec = build("readme.txt", "", [])
    assert rec.silent_install_command == MANUAL_INVESTIGATION
    assert rec.confidence is Confidence.LOW
    assert any("Cannot determine" in n for n in rec.notes)


def test_filename_derived_from_installer_url():
    rec = build(None, "https://cdn.vendor.example/files/app-2.0.msi", [])
    assert rec.filename == "app-2.0.msi"
    assert rec.installer_url == "https://cdn.vendor.example/files/app-2.0.msi"
    assert rec.installer_kind is InstallerKind.MSI


def test_version_from_documentation(page_factory):
    rec = build("setup.exe", "", [page_factory("<h1>Release 3.4.1</h1><p>Silent: setup.exe /S</p>")])
    assert rec.version == "3.4.1"
    assert any("3.4.1" in n for n in rec.notes)


@pytest.mark.parametrize("filename", ["tool.exe", "tool.msi", "tool.zip", "tool.bin"])
def test_every_field_is_populated(filename):
    rec = build(filename, "", [])
    assert rec.silent_install_command
    assert rec.uninstall_command
    assert rec.detection_rule is not None
    assert rec.warnings or rec.confidence is Confidence.NOT_APPLICABLE


def test_json_serialization():
    data = json.loads(build("app-1.2.3.msi", "", []).json())
    assert data["installer_kind"] == "MSI"
    assert data["confidence"] == "HIGH"
    assert data["detection_rule"] == {"kind": "msiProductCode", "product_code": None}
    assert data["detection_confidence"] == "NotApplicable"
