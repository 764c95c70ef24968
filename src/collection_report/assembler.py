"""
Report assembly: merge aggregates into nodes and group them by parent.
"""

from typing import List, Sequence, Set

from .formatting import filesize, pretty_ms
from .models import (
    ExecutionAggregates,
    ExecutionRecord,
    Group,
    GroupParent,
    MeanValues,
    ReportNode,
)


def _merge_node(aggregates: ExecutionAggregates, ref: str) -> ReportNode:
    snapshot = aggregates.items[ref]
    means = aggregates.means[ref]
    return ReportNode(
        cursor=snapshot.cursor,
        item=snapshot.item,
        request=snapshot.request,
        response=snapshot.response,
        request_error=snapshot.request_error,
        assertions=list(aggregates.result[ref].values()),
        mean=MeanValues(
            time=pretty_ms(means.time.mean()),
            size=filesize(means.size.mean()),
        ),
        cumulative_tests=aggregates.net_counts[ref],
    )


def assemble_groups(
    aggregates: ExecutionAggregates, executions: Sequence[ExecutionRecord]
) -> List[Group]:
    """
    Build the ordered group list for a run.

    Each distinct ref yields one node, placed at its first occurrence. A node
    joins the last group when that group has the same parent id; otherwise a
    new group is opened. Grouping follows run-order adjacency, so the same
    parent can appear in several groups.

    Args:
        aggregates: Output of reduce_executions for the same executions
        executions: Execution records in arrival order

    Returns:
        List of Group objects in emission order
    """
    groups: List[Group] = []
    emitted: Set[str] = set()

    for execution in executions:
        ref = execution.cursor.ref
        if ref in emitted:
            continue
        emitted.add(ref)
        node = _merge_node(aggregates, ref)

        parent = execution.item.parent
        previous = groups[-1] if groups else None

        if previous is not None and previous.parent.id == parent.id:
            previous.executions.append(node)
        else:
            groups.append(
                Group(
                    parent=GroupParent(
                        id=parent.id,
                        full_name=parent.full_name,
                        description=parent.description,
                        iteration=execution.cursor.iteration,
                    ),
                    executions=[node],
                )
            )

    return groups
