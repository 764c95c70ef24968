"""
Reporter wiring: subscribes collectors to a run and registers the report export.
"""

import logging
from typing import Optional

from .collectors import ConsoleLogCollector, SkippedTestCollector
from .config import ReporterConfig
from .events import ASSERTION, BEFORE_DONE, CONSOLE, RunEmitter
from .exceptions import ReportRenderError
from .models import ReportExport
from .report import build_report_model
from .reporting import ConsoleReporter, HTMLReporter, JSONReporter, ReportGenerator, load_template

logger = logging.getLogger(__name__)

EXPORT_NAME = "html-reporter-htmlextra"


def create_generator(config: ReporterConfig) -> ReportGenerator:
    """
    Create the renderer for the configured report format.

    Raises:
        TemplateLoadError: If the html template cannot be read
    """
    if config.report_format == "json":
        return JSONReporter()
    if config.report_format == "console":
        return ConsoleReporter(title=config.title)
    return HTMLReporter(template=load_template(config.template), title=config.title)


class HTMLExtraReporter:
    """
    Collects run events and renders the report once the run is done.

    The renderer (and its template) is created up front, so a missing
    template fails before any event is handled.
    """

    def __init__(
        self,
        emitter: RunEmitter,
        config: Optional[ReporterConfig] = None,
        version: str = "",
        generator: Optional[ReportGenerator] = None,
    ):
        self.emitter = emitter
        self.config = config or ReporterConfig()
        self.version = version
        self.generator = generator or create_generator(self.config)

        self.skipped_collector = SkippedTestCollector(emitter.summary)
        self.console_collector = ConsoleLogCollector(emitter.summary)

        emitter.on(ASSERTION, self.skipped_collector.on_assertion)
        emitter.on(CONSOLE, self.console_collector.on_console)
        emitter.on(BEFORE_DONE, self._on_before_done)

    def _on_before_done(self, error: Optional[Exception] = None, payload: object = None) -> None:
        summary = self.emitter.summary
        logger.info(
            "Building %s report from %d executions",
            self.config.report_format,
            len(summary.run.executions),
        )
        model = build_report_model(summary, self.version)
        try:
            content = self.generator.generate(model)
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            raise ReportRenderError(self.config.report_format, str(e)) from e

        export = ReportExport(
            name=EXPORT_NAME,
            default=self.generator.default_filename,
            path=self.config.export,
            content=content,
        )
        self.emitter.exports.append(export)
