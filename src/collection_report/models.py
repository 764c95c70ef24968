"""
Data models for collection run reports.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AssertionStatus(Enum):
    """Classification of a single assertion outcome."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Cursor:
    """Identity of one request execution within a run."""

    ref: str
    iteration: int = 0
    script_id: str = ""


@dataclass
class ParentInfo:
    """Owning folder (or collection root) of an item, resolved at ingestion."""

    id: str
    full_name: str = ""
    description: Optional[str] = None


@dataclass
class ItemInfo:
    """Request descriptor together with its precomputed parent."""

    id: str
    name: str
    parent: ParentInfo
    request: Optional[Dict[str, Any]] = None


@dataclass
class AssertionFailure:
    """Error attached to a failed assertion."""

    name: str = "AssertionError"
    message: str = ""
    stack: Optional[str] = None


@dataclass
class AssertionOutcome:
    """
    One pass/fail/skip judgment attached to an execution.

    ``skipped`` is tri-state: ``None`` means the runner did not report it.
    """

    assertion: str
    error: Optional[AssertionFailure] = None
    skipped: Optional[bool] = None


@dataclass
class HttpResponse:
    """Response captured by the runner for one execution."""

    code: int
    status: str = ""
    headers: List[Dict[str, str]] = field(default_factory=list)
    stream: bytes = b""
    response_time: Optional[float] = None
    response_size: Optional[int] = None
    id: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        """Return a plain serializable form of the response."""
        data = {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "headers": [dict(h) for h in self.headers],
            "stream": bytes(self.stream),
            "response_time": self.response_time,
            "response_size": self.response_size,
        }
        return data


@dataclass
class ExecutionRecord:
    """One observed request/response cycle."""

    cursor: Cursor
    item: ItemInfo
    request: Optional[Dict[str, Any]] = None
    response: Optional[Any] = None
    request_error: Optional[Dict[str, Any]] = None
    assertions: List[AssertionOutcome] = field(default_factory=list)


@dataclass
class TestCounts:
    """Net passed/failed/skipped counters."""

    # Not a pytest test class
    __test__ = False

    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def increment(self, status: AssertionStatus) -> None:
        setattr(self, status.value, getattr(self, status.value) + 1)

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped


@dataclass
class AssertionTally(TestCounts):
    """Counters for a single assertion name across iterations."""

    name: str = ""


@dataclass
class SampleSum:
    """Running sum and sample count for a mean."""

    sum: float = 0
    count: int = 0

    def add(self, value: float) -> None:
        self.sum += value
        self.count += 1

    def mean(self) -> float:
        if self.count <= 0:
            return 0
        return self.sum / self.count


@dataclass
class ExecutionMeans:
    """Timing and size accumulators for one ref."""

    time: SampleSum = field(default_factory=SampleSum)
    size: SampleSum = field(default_factory=SampleSum)


@dataclass
class ExecutionSnapshot:
    """Canonical request/response details captured on first occurrence of a ref."""

    cursor: Cursor
    item: ItemInfo
    request: Optional[Dict[str, Any]] = None
    response: Optional[Any] = None
    request_error: Optional[Dict[str, Any]] = None


@dataclass
class ExecutionAggregates:
    """Output of the execution reducer, every mapping keyed by cursor ref."""

    result: Dict[str, Dict[str, AssertionTally]] = field(default_factory=dict)
    net_counts: Dict[str, TestCounts] = field(default_factory=dict)
    means: Dict[str, ExecutionMeans] = field(default_factory=dict)
    items: Dict[str, ExecutionSnapshot] = field(default_factory=dict)


@dataclass
class MeanValues:
    """Formatted mean response time and size."""

    time: str
    size: str


@dataclass
class ReportNode:
    """Finalized entry for one distinct ref."""

    cursor: Cursor
    item: ItemInfo
    request: Optional[Dict[str, Any]]
    response: Optional[Any]
    request_error: Optional[Dict[str, Any]]
    assertions: List[AssertionTally]
    mean: MeanValues
    cumulative_tests: TestCounts


@dataclass
class GroupParent:
    """Parent suite details seeding a group."""

    id: str
    full_name: str
    description: Optional[str]
    iteration: int


@dataclass
class Group:
    """Run-order adjacent report nodes sharing a parent id."""

    parent: GroupParent
    executions: List[ReportNode] = field(default_factory=list)


@dataclass
class StatEntry:
    total: int = 0
    pending: int = 0
    failed: int = 0


@dataclass
class RunStats:
    """Run-level totals reported by the runner."""

    iterations: StatEntry = field(default_factory=StatEntry)
    items: StatEntry = field(default_factory=StatEntry)
    scripts: StatEntry = field(default_factory=StatEntry)
    prerequests: StatEntry = field(default_factory=StatEntry)
    requests: StatEntry = field(default_factory=StatEntry)
    tests: StatEntry = field(default_factory=StatEntry)
    assertions: StatEntry = field(default_factory=StatEntry)
    test_scripts: StatEntry = field(default_factory=StatEntry)
    prerequest_scripts: StatEntry = field(default_factory=StatEntry)


@dataclass
class RunTimings:
    started: float = 0
    completed: float = 0
    response_average: float = 0
    response_min: float = 0
    response_max: float = 0


@dataclass
class RunTransfers:
    response_total: int = 0


@dataclass
class RunFailure:
    """A failure recorded by the runner at run level."""

    source: Optional[str]
    error: Dict[str, Any]
    at: Optional[str] = None
    cursor: Optional[Cursor] = None
    parent: Optional[str] = None


@dataclass
class RunData:
    stats: RunStats = field(default_factory=RunStats)
    executions: List[ExecutionRecord] = field(default_factory=list)
    failures: List[RunFailure] = field(default_factory=list)
    timings: RunTimings = field(default_factory=RunTimings)
    transfers: RunTransfers = field(default_factory=RunTransfers)


@dataclass
class CollectionInfo:
    id: str = ""
    name: str = ""
    description: Optional[str] = None


@dataclass
class VariableScope:
    """Globals or environment variables active during the run."""

    name: Optional[str] = None
    values: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ItemRef:
    id: str
    name: str


@dataclass
class SkippedTest:
    cursor: Cursor
    assertion: str
    skipped: bool
    error: Optional[AssertionFailure]
    item: ItemRef


@dataclass
class ConsoleLog:
    cursor: Cursor
    level: str
    messages: List[Any]


@dataclass
class RunSummary:
    """
    Run-scoped state container.

    Created at run start, handed to every collector and to the finalize
    step, and discarded after the report is emitted.
    """

    run: RunData = field(default_factory=RunData)
    collection: CollectionInfo = field(default_factory=CollectionInfo)
    globals: Optional[VariableScope] = None
    environment: Optional[VariableScope] = None
    skipped_tests: Optional[List[SkippedTest]] = None
    console_logs: Optional[List[ConsoleLog]] = None


@dataclass
class ReportSummary:
    """Summary block of the report model. ``None`` marks an absent field."""

    stats: RunStats
    collection: CollectionInfo
    failures: List[RunFailure]
    response_total: str
    response_average: str
    duration: str
    globals: Optional[VariableScope] = None
    environment: Optional[VariableScope] = None
    skipped_tests: Optional[List[SkippedTest]] = None
    console_logs: Optional[List[ConsoleLog]] = None


@dataclass
class ReportModel:
    """Complete structure handed to the render collaborator."""

    timestamp: str
    version: str
    groups: List[Group]
    summary: ReportSummary

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain dict, leaving out absent optional summary fields."""
        return _drop_none_summary(asdict(self))


@dataclass
class ReportExport:
    """A rendered report registered for writing by the host."""

    name: str
    default: str
    content: str
    path: Optional[str] = None


def _drop_none_summary(data: Dict[str, Any]) -> Dict[str, Any]:
    summary = data["summary"]
    for key in ("globals", "environment", "skipped_tests", "console_logs"):
        if summary.get(key) is None:
            summary.pop(key, None)
    return _jsonable(data)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, Enum):
        return value.value
    return value
