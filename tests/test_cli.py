# File: tests/test_cli.py
"""Tests for the CLI (`deploy_scout.cli`) using click.testing.CliRunner.
They cover the `analyze` and `config` commands, `--version` and error handling.
"""
import asyncio
import importlib
import json

import pytest
from click.testing import CliRunner

from deploy_scout.builder import build
from deploy_scout.errors import InvalidUrlError
from deploy_scout.logger import init_logging

cli_module = importlib.import_module("deploy_scout.cli")
cli = cli_module.cli


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    init_logging(level="WARNING")


@pytest.fixture()
def fake_analyze(monkeypatch):
    """Replace analyze so no network access happens; records the call."""
    calls = []

    async def _fake(page_url, installer_url, filename, cfg):
        calls.append((page_url, installer_url, filename, cfg))
        return build(filename, installer_url, [])

    monkeypatch.setattr(cli_module, "analyze", _fake)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "DeployScout" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "default.yaml"
    cfg_file.write_text("max_pages: 4\npoliteness_delay: 1.5\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_pages"] == 4
    assert data["politeness_delay"] == 1.5


def test_max_pages_override(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["--max-pages", "3", "config"])
    assert result.exit_code == 0
    assert json.loads(result.output)["max_pages"] == 3


def test_max_pages_out_of_range():
    runner = CliRunner()
    result = runner.invoke(cli, ["--max-pages", "11", "config"])
    assert result.exit_code == 2


def test_invalid_config_file(tmp_path):
    cfg_file = tmp_path / "bad.yaml"
    cfg_file.write_text("max_pages: 99\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_analyze_stdout(fake_analyze):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["analyze", "https://vendor.example/docs", "--filename", "app-1.2.3.msi", "--pretty"]
    )
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["silent_install_command"] == 'msiexec /i "app-1.2.3.msi" /qn /norestart'
    assert fake_analyze[0][:3] == ("https://vendor.example/docs", "", "app-1.2.3.msi")


def test_analyze_installer_url(fake_analyze):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["analyze", "https://vendor.example/docs", "--installer-url", "https://cdn.example/tool.zip"]
    )
    assert result.exit_code == 0
    assert json.loads(result.output)["filename"] == "tool.zip"


def test_analyze_saves_reports(fake_analyze, tmp_path):
    json_path = tmp_path / "out" / "report.json"
    html_path = tmp_path / "out" / "report.html"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "analyze", "https://vendor.example/docs", "-f", "setup.exe",
            "--json", str(json_path), "--html", str(html_path),
        ],
    )
    assert result.exit_code == 0
    assert f"JSON report: {json_path}" in result.output
    assert f"HTML report: {html_path}" in result.output
    assert json.loads(json_path.read_text(encoding="utf-8"))["filename"] == "setup.exe"
    assert "setup.exe" in html_path.read_text(encoding="utf-8")


def test_analyze_error_exit_code(monkeypatch):
    async def failing(page_url, installer_url, filename, cfg):
        raise InvalidUrlError(page_url)

    monkeypatch.setattr(cli_module, "analyze", failing)
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "file:///etc/passwd", "-f", "setup.exe"])
    assert result.exit_code == 1
    assert "Invalid or unsafe URL" in result.output


def test_analyze_timeout(monkeypatch):
    async def slow(page_url, installer_url, filename, cfg):
        await asyncio.sleep(5)

    monkeypatch.setattr(cli_module, "analyze", slow)
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "https://vendor.example/", "-f", "setup.exe", "--timeout", "0.05"])
    assert result.exit_code == 1
    assert "did not finish" in result.output
