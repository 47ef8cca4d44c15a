# deploy_scout/report/json_report.py

"""
JSON report for DeployScout.

Serializes a PackagingRecommendation to a file.
"""
import json
from pathlib import Path

from deploy_scout.models import PackagingRecommendation


def render_json(recommendation: PackagingRecommendation, output_path: Path | str) -> Path:
    """
    Save *recommendation* as JSON at *output_path*.

    :param recommendation: result of an analysis
    :param output_path: path of the JSON file
    :return: Path of the saved file

    Example:
    ```python
    from deploy_scout.report.json_report import render_json
    report_path = render_json(recommendation, 'reports/app.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(recommendation.to_dict(), f, ensure_ascii=False, indent=2)

    return output
