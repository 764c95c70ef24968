"""
Execution reduction: per-request assertion tallies and timing/size means.
"""

import logging
from typing import Any, Iterable, Optional

from .models import (
    AssertionOutcome,
    AssertionStatus,
    AssertionTally,
    ExecutionAggregates,
    ExecutionMeans,
    ExecutionRecord,
    ExecutionSnapshot,
    TestCounts,
)

logger = logging.getLogger(__name__)


def classify_assertion(outcome: AssertionOutcome) -> Optional[AssertionStatus]:
    """
    Classify a single assertion outcome.

    Args:
        outcome: AssertionOutcome to classify

    Returns:
        FAILED when an error is present and the outcome is not skipped,
        SKIPPED when skipped is truthy, PASSED when there is no error and
        skipped is explicitly False. None for anything else (an outcome
        with ``skipped`` unset and no error is not counted).
    """
    is_error = outcome.error is not None
    if is_error and outcome.skipped is not True:
        return AssertionStatus.FAILED
    if outcome.skipped:
        return AssertionStatus.SKIPPED
    if not is_error and outcome.skipped is False:
        return AssertionStatus.PASSED
    return None


def _response_value(response: Any, name: str) -> float:
    """Read a timing/size field from a response object or mapping, 0 if absent."""
    if response is None:
        return 0
    if isinstance(response, dict):
        value = response.get(name)
    else:
        value = getattr(response, name, None)
    return value or 0


def _normalize_response(response: Any) -> Any:
    """Replace a response by its serializable form with the body decoded."""
    to_json = getattr(response, "to_json", None)
    if response is None or not callable(to_json):
        return response
    data = to_json()
    stream = data.get("stream") or b""
    data["body"] = bytes(stream).decode("utf-8", errors="replace")
    return data


def _snapshot(execution: ExecutionRecord) -> ExecutionSnapshot:
    return ExecutionSnapshot(
        cursor=execution.cursor,
        item=execution.item,
        request=execution.request,
        response=_normalize_response(execution.response),
        request_error=execution.request_error,
    )


def reduce_executions(executions: Iterable[ExecutionRecord]) -> ExecutionAggregates:
    """
    Fold all execution records of a run into per-ref aggregates.

    Records are visited once, in arrival order. The first record of each
    ref supplies its canonical snapshot; every record contributes a time and
    a size sample (0 when the response is missing) and its assertion
    outcomes.

    Args:
        executions: Execution records in arrival order

    Returns:
        ExecutionAggregates keyed by cursor ref
    """
    aggregates = ExecutionAggregates()

    for execution in executions:
        ref = execution.cursor.ref

        if ref not in aggregates.items:
            aggregates.result[ref] = {}
            aggregates.net_counts[ref] = TestCounts()
            aggregates.means[ref] = ExecutionMeans()
            aggregates.items[ref] = _snapshot(execution)

        means = aggregates.means[ref]
        means.time.add(_response_value(execution.response, "response_time"))
        means.size.add(_response_value(execution.response, "response_size"))

        tallies = aggregates.result[ref]
        for outcome in execution.assertions:
            tally = tallies.get(outcome.assertion)
            if tally is None:
                tally = AssertionTally(name=outcome.assertion)
                tallies[outcome.assertion] = tally

            status = classify_assertion(outcome)
            if status is None:
                continue
            tally.increment(status)
            aggregates.net_counts[ref].increment(status)

    logger.debug("Reduced executions into %d distinct requests", len(aggregates.items))
    return aggregates
