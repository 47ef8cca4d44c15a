#!/usr/bin/env python3
"""
Command-line entry point of DeployScout.

Commands:
  analyze   Analyze an installer against its documentation site
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml when present)
  --max-pages INT     Page budget of the crawl (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr when omitted)
  --log-format FORMAT Logging format string

analyze options:
  --installer-url URL Direct download URL of the installer
  --filename NAME     Installer filename (derived from --installer-url when omitted)
  --json PATH         Save the JSON report to a file
  --html PATH         Save the HTML report to a file
  --template DIR      Directory with the Jinja2 report template
  --pretty            Indent JSON output
  --timeout SEC       Timeout of the whole analysis (seconds)

Example:
  deploy-scout analyze https://vendor.example/docs --filename setup-app.exe --pretty
"""
import asyncio
import sys
from pathlib import Path

import click

from deploy_scout import __version__
from deploy_scout.config import ScoutConfig, load_config
from deploy_scout.engine import analyze
from deploy_scout.errors import AnalysisTimeoutError, DeployScoutError
from deploy_scout.logger import init_logging
from deploy_scout.report.html_report import render_html
from deploy_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='DeployScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON configuration file.'
)
@click.option(
    '--max-pages', '-m', 'max_pages',
    type=click.IntRange(1, 10),
    default=None,
    help='Page budget of the documentation crawl (overrides max_pages).'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (stderr when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, max_pages, log_level, log_file, log_format):
    """DeployScout: silent install, uninstall and detection metadata for Windows installers."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
        if max_pages is not None:
            cfg = ScoutConfig(**{**cfg.model_dump(), 'max_pages': max_pages})
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('analyze', context_settings=CONTEXT_SETTINGS)
@click.argument('page_url')
@click.option('--installer-url', '-u', 'installer_url', default='', help='Direct download URL of the installer; found on the crawled pages when neither this nor --filename is given')
@click.option('--filename', '-f', 'filename', default=None, help='Installer filename, e.g. setup-app.exe')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with the report.html.j2 template (packaged template by default)'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.option('--timeout', 'timeout', type=float, default=None, help='Timeout of the whole analysis (seconds)')
@click.pass_context
def analyze_command(ctx, page_url, installer_url, filename, json_output, html_output, template_dir, pretty, timeout):
    """Analyze one installer using the documentation at PAGE_URL."""
    cfg = ctx.obj['config']
    limit = timeout if timeout is not None else cfg.analysis_timeout
    try:
        recommendation = asyncio.run(
            asyncio.wait_for(analyze(page_url, installer_url, filename, cfg), timeout=limit)
        )
    except asyncio.TimeoutError:
        print_error(str(AnalysisTimeoutError(limit)))
    except DeployScoutError as e:
        print_error(f'Analysis failed: {e}')

    if not json_output and not html_output:
        click.echo(recommendation.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(recommendation, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            saved_html = render_html(recommendation, html_output, template_dir)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


# expose these names at module level for test monkey-patching
cli.analyze = analyze
cli.render_json = render_json
cli.render_html = render_html

if __name__ == "__main__":
    cli()
