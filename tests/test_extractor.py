# File: tests/test_extractor.py
from deploy_scout.models import InstallerKind, Role
from deploy_scout.parser.extractor import MAX_VERSIONS, extract, extract_installers, extract_versions, infer_role

DOC = """
<html><head><title>Deployment guide</title></head><body>
  <h1>App 4.2.1 deployment</h1>
  <p>For a silent installation run the following command:</p>
  <pre>setup-app.exe /VERYSILENT /NORESTART</pre>
  <p>To remove the product, run
     <code>"C:\\Program Files\\App\\unins000.exe" /VERYSILENT</code>.</p>
  <p>The main executable is installed to C:\\Program Files\\App\\app.exe</p>
  <p>MSI users: msiexec /x {A1B2C3D4-0000-1111-2222-333344445555} /qn</p>
</body></html>
"""


def by_family(candidates, family):
    return [c for c in candidates if c.family == family]


def test_extracts_install_command_from_code(page_factory):
    candidates = extract(page_factory(DOC), "setup-app.exe")
    silent = by_family(candidates, "exe_silent")
    assert [c.raw_text for c in silent] == ["setup-app.exe /VERYSILENT /NORESTART"]
    assert silent[0].inferred_role is Role.INSTALL
    assert silent[0].installer_kind is InstallerKind.EXE
    assert silent[0].switches == ("/VERYSILENT", "/NORESTART")
    assert silent[0].source_page_url == "https://vendor.example/docs/"


def test_extracts_uninstaller_with_path(page_factory):
    candidates = extract(page_factory(DOC))
    uninstall = by_family(candidates, "exe_uninstall")
    assert len(uninstall) == 1
    assert uninstall[0].raw_text == '"C:\\Program Files\\App\\unins000.exe" /VERYSILENT'
    assert uninstall[0].inferred_role is Role.UNINSTALL
    assert uninstall[0].file_paths == frozenset({"C:\\Program Files\\App\\unins000.exe"})


def test_extracts_msi_product_code(page_factory):
    candidates = extract(page_factory(DOC))
    msi = by_family(candidates, "msi_uninstall")
    assert [c.raw_text for c in msi] == ["msiexec /x {A1B2C3D4-0000-1111-2222-333344445555} /qn"]
    assert msi[0].guids == ("{A1B2C3D4-0000-1111-2222-333344445555}",)
    assert msi[0].installer_kind is InstallerKind.MSI


def test_extracts_documented_path(page_factory):
    candidates = extract(page_factory(DOC))
    paths = {c.raw_text for c in by_family(candidates, "windows_path")}
    assert "C:\\Program Files\\App\\app.exe" in paths


def test_no_duplicates_across_stages(page_factory):
    candidates = extract(page_factory(DOC))
    keys = [(c.family in ("guid", "windows_path"), c.normalized) for c in candidates]
    assert len(keys) == len(set(keys))


def test_extract_is_idempotent(page_factory):
    page = page_factory(DOC)
    assert extract(page, "setup-app.exe") == extract(page, "setup-app.exe")


def test_bare_switches_need_silent_context(page_factory):
    with_context = page_factory("<p>Silent install: pass /S to the installer.</p>")
    without_context = page_factory("<p>Use /S to skip the prompt.</p>")
    assert [c.raw_text for c in by_family(extract(with_context), "bare_switches")] == ["/S"]
    assert by_family(extract(without_context), "bare_switches") == []


def test_page_without_commands(page_factory):
    assert extract(page_factory("<html><body><p>Welcome to our product.</p></body></html>")) == []


def test_malformed_page_returns_empty_list(page_factory, monkeypatch):
    from deploy_scout.parser import extractor

    def broken(_):
        raise ValueError("unparsable")

    monkeypatch.setattr(extractor, "parse_html", broken)
    assert extract(page_factory("<p>x</p>")) == []


def test_infer_role_prefers_nearest_keyword():
    text = "To install run A. To uninstall the product run B"
    start = text.index("B")
    assert infer_role(text, start, start + 1) is Role.UNINSTALL
    start = text.index("A")
    assert infer_role(text, start, start + 1) is Role.INSTALL


def test_infer_role_defaults_to_other():
    assert infer_role("run foo.exe /S", 4, 11) is Role.OTHER
    assert infer_role("run foo.exe /S", 4, 11, "foo.exe") is Role.INSTALL


def test_extract_versions(page_factory):
    page = page_factory(
        '<h2>Release 5.1</h2><span class="version">v5.0.3</span><p>Requires version 4.8 or later.</p>'
    )
    assert extract_versions(page) == ["5.1", "5.0.3", "4.8"]


def test_extract_versions_capped(page_factory):
    body = "".join(f"<h3>Version {i}.0</h3>" for i in range(15))
    assert len(extract_versions(page_factory(body))) == MAX_VERSIONS


DOWNLOADS = """
<html><body>
  <a href="/dl/App-Setup-4.2.1-x64.exe">Download App 4.2.1 (64-bit)</a>
  <a href="https://cdn.vendor.example/files/app.msi">MSI package</a>
  <a href="/dl/App-Setup-4.2.1-x64.exe">Mirror</a>
  <a href="/docs/install.html">Install guide</a>
  <a href="/dl/app.dmg">macOS</a>
  <button data-download="/get?id=42">Get the portable build</button>
  <a href="ftp://vendor.example/app.exe">FTP</a>
</body></html>
"""


def test_extract_installers(page_factory):
    links = extract_installers(page_factory(DOWNLOADS, url="https://vendor.example/download/"))
    assert [link.url for link in links] == [
        "https://vendor.example/dl/App-Setup-4.2.1-x64.exe",
        "https://cdn.vendor.example/files/app.msi",
        "https://vendor.example/get?id=42",
    ]
    exe, msi, button = links
    assert exe.filename == "App-Setup-4.2.1-x64.exe"
    assert exe.installer_kind is InstallerKind.EXE
    assert exe.version == "4.2.1"
    assert exe.source_page_url == "https://vendor.example/download/"
    assert msi.installer_kind is InstallerKind.MSI
    assert msi.version is None
    assert button.filename == "get"
    assert button.installer_kind is InstallerKind.UNKNOWN
    assert button.link_text == "Get the portable build"


def test_extract_installers_without_links(page_factory):
    assert extract_installers(page_factory(DOC)) == []
