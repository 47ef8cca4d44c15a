# File: tests/test_reports.py
import dataclasses
import json

from deploy_scout.builder import build
from deploy_scout.report import render_html, render_json


def test_render_json_writes_full_record(tmp_path):
    rec = build("app-1.2.3.msi", "https://cdn.example/app-1.2.3.msi", [])
    path = render_json(rec, tmp_path / "nested" / "app.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == rec.to_dict()
    assert data["installer_url"] == "https://cdn.example/app-1.2.3.msi"
    assert data["version"] == "1.2.3"


def test_render_html_flags_placeholder_product_code(tmp_path):
    rec = build("app.msi", "", [])
    html = render_html(rec, tmp_path / "app.html").read_text(encoding="utf-8")
    assert "app.msi" in html
    assert "placeholder ProductCode" in html
    assert "heuristic guess" not in html


def test_render_html_flags_heuristic_detection(tmp_path):
    rec = build("tool.exe", "", [])
    html = render_html(rec, tmp_path / "tool.html").read_text(encoding="utf-8")
    assert "This detection rule is a heuristic guess" in html
    assert "&#34;tool.exe&#34; /S" in html


def test_render_html_custom_template_dir(tmp_path):
    templates = tmp_path / "tpl"
    templates.mkdir()
    (templates / "report.html.j2").write_text("<p>{{ rec.filename }} {{ rec.confidence }}</p>", encoding="utf-8")
    rec = build("bundle.zip", "", [])
    out = render_html(rec, tmp_path / "out.html", template_dir=templates)
    assert out.read_text(encoding="utf-8") == "<p>bundle.zip NotApplicable</p>"


def test_render_html_lists_discovered_installers(tmp_path):
    rec = dataclasses.replace(
        build("setup.exe", "https://vendor.example/dl/setup.exe", []),
        discovered_installers=("https://vendor.example/dl/setup.exe", "https://vendor.example/dl/setup.msi"),
    )
    html = render_html(rec, tmp_path / "setup.html").read_text(encoding="utf-8")
    assert "Installer downloads found" in html
    assert "https://vendor.example/dl/setup.msi" in html


def test_render_html_without_discovered_installers(tmp_path):
    html = render_html(build("setup.exe", "", []), tmp_path / "setup.html").read_text(encoding="utf-8")
    assert "Installer downloads found" not in html
