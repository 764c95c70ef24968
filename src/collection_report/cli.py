"""
Command-line interface for collection run reports.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import LOG_LEVELS, REPORT_FORMATS, ConfigurationError, ReporterConfig, load_config, validate_config
from .events import RunEmitter
from .exceptions import RunDataError, TemplateLoadError
from .ingest import load_run_file, replay_events
from .models import RunSummary
from .reporter import HTMLExtraReporter

logger = logging.getLogger(__name__)


def _run_dry_run(reporter_config: ReporterConfig, summary: RunSummary) -> None:
    """Print what would be reported without rendering or writing anything."""
    refs = {e.cursor.ref for e in summary.run.executions}
    click.echo("Dry-run mode: validating configuration and run data only.")
    click.echo(f"  Collection   : {summary.collection.name}")
    click.echo(f"  Executions   : {len(summary.run.executions)}")
    click.echo(f"  Requests     : {len(refs)} distinct")
    click.echo(f"  Failures     : {len(summary.run.failures)}")
    click.echo(f"  Report format: {reporter_config.report_format}")
    click.echo(f"  Template     : {reporter_config.template or 'default'}")
    click.echo(f"  Export path  : {reporter_config.export or 'default'}")
    click.echo("\nDry-run passed. Configuration and run data are valid.")
    sys.exit(0)


@click.command()
@click.option(
    "--input",
    "input_file",
    required=True,
    type=click.Path(),
    help="Exported run summary (JSON) to build the report from",
)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--report-format",
    type=click.Choice(REPORT_FORMATS),
    help="Report format (overrides config)",
)
@click.option(
    "--template",
    type=click.Path(),
    help="Custom HTML template (overrides config)",
)
@click.option(
    "--output",
    type=click.Path(),
    help="Output file for report (overrides config export path)",
)
@click.option(
    "--runner-version",
    default=__version__,
    show_default=True,
    help="Version of the runner shown in the report",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default=None,
    help="Logging level (overrides config, default INFO)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Validate configuration and run data without writing a report.",
)
def main(
    input_file: str,
    config: Optional[str],
    report_format: Optional[str],
    template: Optional[str],
    output: Optional[str],
    runner_version: str,
    log_level: Optional[str],
    dry_run: bool,
) -> None:
    """
    Collection Run Report - Build dashboards from exported collection runs.

    Examples:

      # HTML dashboard next to the run
      run-report --input newman-run.json

      # Custom template and output path
      run-report --input run.json --template custom.html --output reports/run.html

      # Plain-text summary on stdout
      run-report --input run.json --report-format console
    """
    logging.basicConfig(
        level=getattr(logging, log_level or "INFO"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        logger.info("Loading configuration...")
        reporter_config = load_config(config)

        if report_format:
            reporter_config.report_format = report_format
        if template:
            reporter_config.template = template
        if output:
            reporter_config.export = output
        if log_level:
            reporter_config.log_level = log_level

        errors = validate_config(reporter_config)
        if errors:
            click.echo("Configuration errors:", err=True)
            for error in errors:
                click.echo(f"  - {error}", err=True)
            sys.exit(1)

        logging.getLogger().setLevel(reporter_config.log_level)

        summary = load_run_file(input_file)

        if dry_run:
            _run_dry_run(reporter_config, summary)
            return

        emitter = RunEmitter(summary)
        HTMLExtraReporter(emitter, reporter_config, version=runner_version)
        replay_events(emitter)

        if emitter.warnings:
            logger.warning("%d handler error(s) during the run", len(emitter.warnings))

        if not emitter.exports:
            reason = emitter.warnings[-1] if emitter.warnings else "no report was produced"
            click.echo(f"Report generation failed: {reason}", err=True)
            sys.exit(1)

        export = emitter.exports[0]
        if export.path is None and reporter_config.report_format == "console":
            click.echo(export.content)
        else:
            output_path = Path(export.path or export.default)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(export.content, encoding="utf-8")
            click.echo(f"Report written to: {output_path}")

        logger.info(
            "Report complete: %d requests, %d failures",
            len({e.cursor.ref for e in summary.run.executions}),
            len(summary.run.failures),
        )

    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except (RunDataError, TemplateLoadError) as e:
        logger.error("%s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
