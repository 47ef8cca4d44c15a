# File: deploy_scout/report/html_report.py
"""deploy_scout.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from deploy_scout.models import PackagingRecommendation

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    recommendation: PackagingRecommendation,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Render the recommendation with ``report.html.j2`` and save it.

    Args:
        recommendation: result of an analysis.
        output_path: path of the resulting HTML file.
        template_dir: directory holding ``report.html.j2``; the packaged
            template is used when omitted.

    Returns:
        Path of the saved HTML file.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "rec": recommendation.to_dict(),
        "heuristic_detection": recommendation.heuristic_detection,
        "placeholder_product_code": recommendation.placeholder_product_code,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
