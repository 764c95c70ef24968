"""
Side-channel collectors for skipped assertions and console output.
"""

import logging
from typing import Any, Optional

from .events import as_assertion_event, as_console_event
from .models import ConsoleLog, Cursor, ItemRef, RunSummary, SkippedTest

logger = logging.getLogger(__name__)


def _copy_cursor(cursor: Cursor) -> Cursor:
    return Cursor(ref=cursor.ref, iteration=cursor.iteration, script_id=cursor.script_id)


class SkippedTestCollector:
    """Records every skipped assertion onto ``summary.skipped_tests``."""

    def __init__(self, summary: RunSummary):
        self.summary = summary

    def on_assertion(self, error: Optional[Exception], outcome: Any) -> None:
        if error is not None:
            logger.debug("Dropping assertion event with channel error: %s", error)
            return

        event = as_assertion_event(outcome)
        if not event.skipped:
            return

        if self.summary.skipped_tests is None:
            self.summary.skipped_tests = []

        self.summary.skipped_tests.append(
            SkippedTest(
                cursor=_copy_cursor(event.cursor),
                assertion=event.assertion,
                skipped=bool(event.skipped),
                error=event.error,
                item=ItemRef(id=event.item.id, name=event.item.name),
            )
        )


class ConsoleLogCollector:
    """Records console output onto ``summary.console_logs``."""

    def __init__(self, summary: RunSummary):
        self.summary = summary

    def on_console(self, error: Optional[Exception], outcome: Any) -> None:
        if error is not None:
            logger.debug("Dropping console event with channel error: %s", error)
            return

        event = as_console_event(outcome)
        if self.summary.console_logs is None:
            self.summary.console_logs = []

        self.summary.console_logs.append(
            ConsoleLog(
                cursor=_copy_cursor(event.cursor),
                level=event.level,
                messages=list(event.messages),
            )
        )
