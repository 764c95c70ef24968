"""
HTML reporter: renders a report model into a page template.

The page template is plain HTML with ``string.Template`` placeholders.
Unknown placeholders are left untouched.

Sections, rendered to HTML fragments here:
    ``$summary``, ``$groups``, ``$skipped``, ``$console``

Single values, already escaped:
    ``$title``, ``$timestamp``, ``$version``, ``$collection``,
    ``$duration``, ``$response_total``, ``$response_average``,
    ``$pass_rate``, ``$failure_count``

Templates have no loops or helpers of their own. A template that lays out
per-request data itself reads ``$report_json``, the whole report model as
JSON (safe to place inside a ``<script>`` element), and does the work in
its own script.
"""

import html
import json
import logging
from pathlib import Path
from string import Template
from typing import Any, List, Optional

from ..exceptions import TemplateLoadError
from ..formatting import inc, percent, total_tests
from ..models import Group, ReportModel, ReportNode, ReportSummary
from .base import ReportGenerator

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = Path(__file__).resolve().parent.parent / "templates" / "dashboard.html"

# Longest response body shown inline
MAX_BODY_CHARS = 10_000


def load_template(path: Optional[str] = None) -> str:
    """
    Read the page template.

    Args:
        path: Custom template path (the bundled dashboard is used when None)

    Returns:
        Template text

    Raises:
        TemplateLoadError: If the template cannot be read
    """
    template_path = Path(path) if path else DEFAULT_TEMPLATE
    logger.debug("Loading report template from %s", template_path)
    try:
        return template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateLoadError(str(template_path), e)


def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def _request_line(node: ReportNode) -> str:
    request = node.request or node.item.request or {}
    method = request.get("method", "")
    url = request.get("url", "")
    return f"{method} {url}".strip()


def _body_text(response: Any) -> Optional[str]:
    if not isinstance(response, dict) or "body" not in response:
        return None
    body = response["body"]
    if len(body) > MAX_BODY_CHARS:
        return body[:MAX_BODY_CHARS] + "\n… (truncated)"
    return body


def _pass_rate(summary: ReportSummary) -> str:
    assertions = summary.stats.assertions
    executed = total_tests(assertions.total, len(summary.skipped_tests or []))
    return percent(executed - assertions.failed, assertions.failed)


def _script_json(model: ReportModel) -> str:
    data = json.dumps(model.to_dict(), default=str)
    return data.replace("</", "<\\/")


class HTMLReporter(ReportGenerator):
    """Generate a standalone HTML dashboard."""

    default_filename = "newman-run-report-htmlextra.html"

    def __init__(self, template: Optional[str] = None, title: str = "Collection Run Report"):
        self.template = Template(template if template is not None else load_template())
        self.title = title

    def generate(self, model: ReportModel) -> str:
        """Generate HTML report."""
        summary = model.summary
        return self.template.safe_substitute(
            title=_e(self.title),
            timestamp=_e(model.timestamp),
            version=_e(model.version),
            collection=_e(summary.collection.name),
            duration=_e(summary.duration),
            response_total=_e(summary.response_total),
            response_average=_e(summary.response_average),
            pass_rate=_pass_rate(summary),
            failure_count=len(summary.failures),
            report_json=_script_json(model),
            summary=self._render_summary(summary),
            groups="\n".join(
                self._render_group(group, summary.collection.name) for group in model.groups
            ),
            skipped=self._render_skipped(summary),
            console=self._render_console(summary),
        )

    def _render_summary(self, summary: ReportSummary) -> str:
        stats = summary.stats
        skipped_count = len(summary.skipped_tests or [])
        executed = total_tests(stats.assertions.total, skipped_count)
        rows = [
            ("Iterations", stats.iterations.total, stats.iterations.failed),
            ("Requests", stats.requests.total, stats.requests.failed),
            ("Prerequest Scripts", stats.prerequest_scripts.total, stats.prerequest_scripts.failed),
            ("Test Scripts", stats.test_scripts.total, stats.test_scripts.failed),
            ("Assertions", executed, stats.assertions.failed),
            ("Skipped Tests", skipped_count, 0),
        ]
        body = "\n".join(
            f"<tr><td>{_e(label)}</td><td>{total}</td><td>{failed}</td></tr>"
            for label, total, failed in rows
        )
        return (
            f'<section class="summary">\n'
            f"<h2>{_e(summary.collection.name)}</h2>\n"
            f'<p class="pass-rate">{_pass_rate(summary)}% passed</p>\n'
            f"<table><thead><tr><th>Summary</th><th>Total</th><th>Failed</th></tr></thead>\n"
            f"<tbody>\n{body}\n</tbody></table>\n"
            f"<ul>"
            f"<li>Total run duration: {_e(summary.duration)}</li>"
            f"<li>Total data received: {_e(summary.response_total)}</li>"
            f"<li>Average response time: {_e(summary.response_average)}</li>"
            f"<li>Total failures: {len(summary.failures)}</li>"
            f"</ul>\n"
            f"{self._render_failures(summary)}"
            f"</section>"
        )

    def _render_failures(self, summary: ReportSummary) -> str:
        if not summary.failures:
            return ""
        items = []
        for index, failure in enumerate(summary.failures):
            error = failure.error
            items.append(
                f"<li><strong>{inc(index)}. {_e(error.get('name', 'Error'))}</strong> "
                f"{_e(error.get('message', ''))} <em>{_e(failure.source)}</em></li>"
            )
        return '<ol class="failures">' + "".join(items) + "</ol>\n"

    def _render_group(self, group: Group, collection_name: str) -> str:
        parent = group.parent
        heading = parent.full_name or collection_name
        description = (
            f'<p class="description">{_e(parent.description)}</p>' if parent.description else ""
        )
        nodes = "\n".join(self._render_node(node) for node in group.executions)
        return (
            f'<section class="group" data-parent-id="{_e(parent.id)}">\n'
            f"<h3>{_e(heading)} <small>Iteration {inc(parent.iteration)}</small></h3>\n"
            f"{description}\n{nodes}\n</section>"
        )

    def _render_node(self, node: ReportNode) -> str:
        counts = node.cumulative_tests
        status = "failed" if counts.failed or node.request_error else "passed"
        response = node.response
        if isinstance(response, dict):
            code = f"{_e(response.get('code'))} {_e(response.get('status'))}"
        elif response is not None:
            code = f"{_e(getattr(response, 'code', ''))} {_e(getattr(response, 'status', ''))}"
        else:
            code = "No response"

        assertions: List[str] = []
        for tally in node.assertions:
            assertions.append(
                f"<tr><td>{_e(tally.name)}</td><td>{tally.passed}</td>"
                f"<td>{tally.failed}</td><td>{tally.skipped}</td></tr>"
            )
        table = ""
        if assertions:
            table = (
                "<table><thead><tr><th>Test</th><th>Pass</th><th>Fail</th><th>Skip</th>"
                "</tr></thead><tbody>" + "".join(assertions) + "</tbody></table>"
            )

        error = ""
        if node.request_error:
            error = f'<p class="request-error">{_e(json.dumps(node.request_error, default=str))}</p>'

        body = _body_text(response)
        body_html = f"<pre class=\"body\">{_e(body)}</pre>" if body else ""

        return (
            f'<article class="request {status}">\n'
            f"<h4>{_e(node.item.name)}</h4>\n"
            f'<p class="request-line"><code>{_e(_request_line(node))}</code></p>\n'
            f'<p class="response">{code} &middot; mean time {_e(node.mean.time)} '
            f"&middot; mean size {_e(node.mean.size)}</p>\n"
            f'<p class="counts">Passed {counts.passed} &middot; Failed {counts.failed} '
            f"&middot; Skipped {counts.skipped}</p>\n"
            f"{error}{table}{body_html}\n</article>"
        )

    def _render_skipped(self, summary: ReportSummary) -> str:
        if not summary.skipped_tests:
            return ""
        rows = "".join(
            f"<tr><td>{inc(test.cursor.iteration)}</td><td>{_e(test.item.name)}</td>"
            f"<td>{_e(test.assertion)}</td></tr>"
            for test in summary.skipped_tests
        )
        return (
            '<section class="skipped"><h2>Skipped Tests</h2><table><thead><tr>'
            "<th>Iteration</th><th>Request</th><th>Test</th></tr></thead>"
            f"<tbody>{rows}</tbody></table></section>"
        )

    def _render_console(self, summary: ReportSummary) -> str:
        if not summary.console_logs:
            return ""
        rows = "".join(
            f'<li class="{_e(log.level)}"><code>[{_e(log.level)}]</code> '
            f"{_e(' '.join(str(m) for m in log.messages))}</li>"
            for log in summary.console_logs
        )
        return f'<section class="console"><h2>Console Logs</h2><ul>{rows}</ul></section>'
