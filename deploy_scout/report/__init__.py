# File: deploy_scout/report/__init__.py
"""deploy_scout.report: JSON and HTML reports used by the CLI and tests."""

from deploy_scout.report.html_report import render_html
from deploy_scout.report.json_report import render_json

__all__ = ["render_json", "render_html"]
