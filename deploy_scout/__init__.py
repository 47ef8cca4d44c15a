# deploy_scout/__init__.py
"""
DeployScout package initializer.
Defines the package version and exposes the analysis API and the CLI.
"""
__version__ = "0.1.0"

from deploy_scout.engine import Engine, analyze, analyze_many
from deploy_scout.cli import cli

__all__ = ["__version__", "Engine", "analyze", "analyze_many", "cli"]
