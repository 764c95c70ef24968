"""Tests for skipped-test and console-log collectors."""

from collection_report.collectors import ConsoleLogCollector, SkippedTestCollector
from collection_report.events import AssertionEvent, ConsoleEvent
from collection_report.models import AssertionFailure, Cursor, ItemRef, RunSummary


def _assertion_event(skipped=True, ref="r1", error=None):
    return AssertionEvent(
        cursor=Cursor(ref=ref, iteration=1, script_id="script-1"),
        assertion="status is 200",
        item=ItemRef(id="item-1", name="Get order"),
        skipped=skipped,
        error=error,
    )


class TestSkippedTestCollector:
    """Tests for SkippedTestCollector."""

    def test_list_absent_until_first_skip(self):
        summary = RunSummary()
        collector = SkippedTestCollector(summary)
        collector.on_assertion(None, _assertion_event(skipped=False))
        assert summary.skipped_tests is None

    def test_records_skipped_assertion(self):
        summary = RunSummary()
        collector = SkippedTestCollector(summary)
        error = AssertionFailure(message="skipped")
        collector.on_assertion(None, _assertion_event(error=error))

        assert len(summary.skipped_tests) == 1
        entry = summary.skipped_tests[0]
        assert entry.cursor == Cursor(ref="r1", iteration=1, script_id="script-1")
        assert entry.assertion == "status is 200"
        assert entry.skipped is True
        assert entry.error is error
        assert entry.item == ItemRef(id="item-1", name="Get order")

    def test_channel_error_dropped(self):
        summary = RunSummary()
        SkippedTestCollector(summary).on_assertion(RuntimeError("bad event"), _assertion_event())
        assert summary.skipped_tests is None

    def test_arrival_order_kept(self):
        summary = RunSummary()
        collector = SkippedTestCollector(summary)
        for ref in ("r3", "r1", "r2"):
            collector.on_assertion(None, _assertion_event(ref=ref))
        assert [e.cursor.ref for e in summary.skipped_tests] == ["r3", "r1", "r2"]

    def test_accepts_mapping_payload(self):
        summary = RunSummary()
        SkippedTestCollector(summary).on_assertion(
            None,
            {
                "cursor": {"ref": "r9", "iteration": 2, "scriptId": "abc"},
                "assertion": "has body",
                "skipped": True,
                "item": {"id": "i9", "name": "List orders"},
            },
        )
        entry = summary.skipped_tests[0]
        assert entry.cursor == Cursor(ref="r9", iteration=2, script_id="abc")
        assert entry.error is None
        assert entry.item.name == "List orders"


class TestConsoleLogCollector:
    """Tests for ConsoleLogCollector."""

    def test_records_console_output(self):
        summary = RunSummary()
        collector = ConsoleLogCollector(summary)
        collector.on_console(
            None, ConsoleEvent(cursor=Cursor("r1", 0, "s"), level="warn", messages=["slow", 42])
        )
        assert len(summary.console_logs) == 1
        log = summary.console_logs[0]
        assert log.level == "warn"
        assert log.messages == ["slow", 42]
        assert log.cursor.ref == "r1"

    def test_channel_error_dropped(self):
        summary = RunSummary()
        ConsoleLogCollector(summary).on_console(
            ValueError("broken"), ConsoleEvent(cursor=Cursor("r1"), level="log")
        )
        assert summary.console_logs is None

    def test_does_not_touch_skipped_tests(self):
        summary = RunSummary()
        ConsoleLogCollector(summary).on_console(
            None, {"cursor": {"ref": "r1"}, "level": "info", "messages": ["x"]}
        )
        assert summary.skipped_tests is None
        assert summary.console_logs[0].cursor.iteration == 0
