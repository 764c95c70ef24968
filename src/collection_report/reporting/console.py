"""
Console reporter for run report models.
"""

import os
import sys
from typing import List

from ..formatting import percent, total_tests
from ..models import ReportModel, ReportNode
from .base import ReportGenerator


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    # Explicit opt-in / opt-out via environment variable
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Non-TTY output (e.g. piped to a file) should not use colour
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return sys.platform != "win32"


def _response_line(node: ReportNode) -> str:
    response = node.response
    if isinstance(response, dict):
        return f"{response.get('code')} {response.get('status') or ''}".strip()
    if response is not None:
        return f"{getattr(response, 'code', '?')} {getattr(response, 'status', '')}".strip()
    if node.request_error:
        return f"request error: {node.request_error.get('message', node.request_error)}"
    return "no response"


class ConsoleReporter(ReportGenerator):
    """Generate a coloured plain-text dashboard."""

    default_filename = "newman-run-report.txt"

    def __init__(self, title: str = "Collection Run Report") -> None:
        self.title = title
        color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.BLUE = "\033[94m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def generate(self, model: ReportModel) -> str:
        """Generate console report."""
        summary = model.summary
        stats = summary.stats
        skipped_count = len(summary.skipped_tests or [])
        executed = total_tests(stats.assertions.total, skipped_count)
        passed = executed - stats.assertions.failed

        lines: List[str] = []

        # Header
        lines.append(f"\n{self.BOLD}{self.title}{self.RESET}")
        lines.append("=" * 60)
        lines.append(f"  Collection: {summary.collection.name}")
        lines.append(f"  Generated: {model.timestamp} (version {model.version})")

        # Summary statistics
        lines.append(f"\n{self.BOLD}Summary:{self.RESET}")
        lines.append(f"  Iterations: {stats.iterations.total}")
        lines.append(f"  Requests: {stats.requests.total} ({stats.requests.failed} failed)")
        lines.append(f"  Total Assertions: {executed}")
        lines.append(f"  {self.GREEN}Passed: {passed}{self.RESET}")
        lines.append(f"  {self.RED}Failed: {stats.assertions.failed}{self.RESET}")
        lines.append(f"  {self.YELLOW}Skipped: {skipped_count}{self.RESET}")
        lines.append(f"  Pass Rate: {percent(passed, stats.assertions.failed)}%")
        lines.append(f"  Duration: {summary.duration}")
        lines.append(f"  Data Received: {summary.response_total}")
        lines.append(f"  Average Response Time: {summary.response_average}")

        if not summary.failures:
            lines.append(f"\n{self.GREEN}{self.BOLD}✓ ALL ASSERTIONS PASSED{self.RESET}")
        else:
            lines.append(f"\n{self.RED}{self.BOLD}✗ {len(summary.failures)} FAILURES{self.RESET}")

        # Requests grouped by folder
        for group in model.groups:
            heading = group.parent.full_name or summary.collection.name
            lines.append(
                f"\n{self.BLUE}❏ {heading}{self.RESET} (iteration {group.parent.iteration + 1})"
            )
            for node in group.executions:
                counts = node.cumulative_tests
                lines.append(
                    f"  ↳ {node.item.name} [{_response_line(node)}, "
                    f"{node.mean.time}, {node.mean.size}] "
                    f"{counts.passed}/{counts.failed}/{counts.skipped}"
                )
                for tally in node.assertions:
                    if tally.failed:
                        symbol = f"{self.RED}✗{self.RESET}"
                    elif tally.skipped and not tally.passed:
                        symbol = f"{self.YELLOW}○{self.RESET}"
                    else:
                        symbol = f"{self.GREEN}✓{self.RESET}"
                    lines.append(
                        f"    {symbol} {tally.name} "
                        f"(passed {tally.passed}, failed {tally.failed}, skipped {tally.skipped})"
                    )

        if summary.failures:
            lines.append(f"\n{self.BOLD}Failures:{self.RESET}")
            for index, failure in enumerate(summary.failures):
                error = failure.error
                lines.append(
                    f"  {index + 1}. {error.get('name', 'Error')}: {error.get('message', '')}"
                )
                if failure.source:
                    lines.append(f"     at {failure.source}")

        if summary.console_logs:
            lines.append(f"\n{self.BOLD}Console Logs:{self.RESET}")
            for log in summary.console_logs:
                messages = " ".join(str(m) for m in log.messages)
                lines.append(f"  [{log.level}] {messages}")

        lines.append("")  # Empty line at end
        return "\n".join(lines)
