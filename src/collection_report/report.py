"""
Report model finalization.
"""

import logging
from datetime import datetime
from typing import List, Optional

from .assembler import assemble_groups
from .formatting import filesize, pretty_ms
from .models import Group, ReportModel, ReportSummary, RunSummary
from .results import reduce_executions

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%a %b %d %Y %H:%M:%S %Z"


def build_groups(summary: RunSummary) -> List[Group]:
    """Run the reducer and the assembler over the run's executions."""
    executions = summary.run.executions
    aggregates = reduce_executions(executions)
    return assemble_groups(aggregates, executions)


def build_report_model(
    summary: RunSummary,
    version: str,
    groups: Optional[List[Group]] = None,
    timestamp: Optional[str] = None,
) -> ReportModel:
    """
    Assemble the report model for a finished run.

    Args:
        summary: Run-scoped summary with executions, stats and collected logs
        version: Version of the tool that produced the run
        groups: Pre-built groups (built from the summary when omitted)
        timestamp: Report timestamp (current local time when omitted)

    Returns:
        ReportModel ready to be rendered
    """
    if groups is None:
        groups = build_groups(summary)
    if timestamp is None:
        timestamp = datetime.now().astimezone().strftime(TIMESTAMP_FORMAT)

    run = summary.run
    report_summary = ReportSummary(
        stats=run.stats,
        collection=summary.collection,
        failures=run.failures,
        response_total=filesize(run.transfers.response_total),
        response_average=pretty_ms(run.timings.response_average),
        duration=pretty_ms(run.timings.completed - run.timings.started),
        globals=summary.globals,
        environment=summary.environment,
        skipped_tests=summary.skipped_tests or None,
        console_logs=summary.console_logs or None,
    )

    logger.info(
        "Built report model: %d groups, %d requests",
        len(groups),
        sum(len(g.executions) for g in groups),
    )
    return ReportModel(
        timestamp=timestamp,
        version=version,
        groups=groups,
        summary=report_summary,
    )
