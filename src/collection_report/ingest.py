"""
Ingestion of exported run summaries and runner responses.

An exported run is the JSON document a collection runner writes at the end
of a run (``collection``, ``environment``, ``globals`` and ``run``). Items
are resolved against the collection tree once, so every execution record
carries its parent folder without back-references.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from .events import (
    ASSERTION,
    BEFORE_DONE,
    AssertionEvent,
    RunEmitter,
    cursor_from_mapping,
    failure_from_mapping,
)
from .exceptions import RunDataError
from .models import (
    AssertionOutcome,
    CollectionInfo,
    ExecutionRecord,
    HttpResponse,
    ItemInfo,
    ItemRef,
    ParentInfo,
    RunData,
    RunFailure,
    RunStats,
    RunSummary,
    RunTimings,
    RunTransfers,
    StatEntry,
    VariableScope,
)

logger = logging.getLogger(__name__)

FULL_NAME_SEPARATOR = " / "

# Exported stats key -> RunStats field
_STAT_FIELDS = {
    "iterations": "iterations",
    "items": "items",
    "scripts": "scripts",
    "prerequests": "prerequests",
    "requests": "requests",
    "tests": "tests",
    "assertions": "assertions",
    "testScripts": "test_scripts",
    "prerequestScripts": "prerequest_scripts",
}


def _description(value: Any) -> Optional[str]:
    """Descriptions are either plain strings or ``{"content": ...}`` objects."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("content")
    return str(value)


def _stream_bytes(stream: Any) -> bytes:
    if stream is None:
        return b""
    if isinstance(stream, dict):
        stream = stream.get("data") or []
    if isinstance(stream, str):
        return stream.encode("utf-8")
    if isinstance(stream, (bytes, bytearray)):
        return bytes(stream)
    try:
        return bytes(stream)
    except (TypeError, ValueError) as e:
        raise RunDataError(f"response stream is not a byte sequence: {e}")


def _url_to_string(url: Any) -> str:
    if url is None:
        return ""
    if isinstance(url, str):
        return url
    if url.get("raw"):
        return url["raw"]

    host = url.get("host") or []
    host = ".".join(host) if isinstance(host, list) else str(host)
    text = f"{url['protocol']}://{host}" if url.get("protocol") else host
    if url.get("port"):
        text += f":{url['port']}"
    path = url.get("path") or []
    if isinstance(path, list):
        path = "/".join(str(p) for p in path)
    if path:
        text += "/" + str(path).lstrip("/")
    query = [q for q in url.get("query") or [] if not q.get("disabled")]
    if query:
        text += "?" + "&".join(f"{q.get('key', '')}={q.get('value') or ''}" for q in query)
    return text


def _request(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if data is None:
        return None
    if isinstance(data, str):
        return {"method": "GET", "url": data, "header": [], "body": None}
    return {
        "method": data.get("method", "GET"),
        "url": _url_to_string(data.get("url")),
        "header": list(data.get("header") or []),
        "body": data.get("body"),
    }


def _response(data: Optional[Dict[str, Any]]) -> Optional[HttpResponse]:
    if data is None:
        return None
    return HttpResponse(
        id=data.get("id"),
        code=int(data.get("code") or 0),
        status=data.get("status", ""),
        headers=list(data.get("header") or []),
        stream=_stream_bytes(data.get("stream")),
        response_time=data.get("responseTime"),
        response_size=data.get("responseSize"),
    )


def build_parent_index(collection: Dict[str, Any]) -> Dict[str, ParentInfo]:
    """
    Map every item id in a collection tree to its owning folder.

    Items at the top level belong to the collection root, whose full name
    is empty. A folder's full name is its folder chain joined by " / ".

    Args:
        collection: Exported collection document

    Returns:
        Dictionary of item id to ParentInfo (the root is stored under its own id)
    """
    info = collection.get("info") or {}
    root = ParentInfo(
        id=str(info.get("_postman_id") or collection.get("id") or ""),
        full_name="",
        description=_description(info.get("description", collection.get("description"))),
    )
    index: Dict[str, ParentInfo] = {root.id: root}

    def walk(items: Iterable[Dict[str, Any]], parent: ParentInfo, chain: List[str]) -> None:
        for item in items:
            item_id = str(item.get("id") or item.get("_postman_id") or "")
            if item_id:
                index[item_id] = parent
            if "item" in item:
                name = item.get("name") or item_id
                folder = ParentInfo(
                    id=item_id,
                    full_name=FULL_NAME_SEPARATOR.join(chain + [name]),
                    description=_description(item.get("description")),
                )
                walk(item["item"], folder, chain + [name])

    walk(collection.get("item") or [], root, [])
    return index


def _execution(
    data: Dict[str, Any], parents: Dict[str, ParentInfo], root: ParentInfo
) -> ExecutionRecord:
    cursor_data = data.get("cursor") or {}
    if not cursor_data.get("ref"):
        raise RunDataError("execution is missing cursor.ref")

    item = data.get("item") or {}
    item_id = str(item.get("id") or "")
    item_info = ItemInfo(
        id=item_id,
        name=item.get("name", ""),
        parent=parents.get(item_id, root),
        request=_request(item.get("request")),
    )

    assertions = [
        AssertionOutcome(
            assertion=a.get("assertion", ""),
            error=failure_from_mapping(a.get("error")),
            skipped=a.get("skipped"),
        )
        for a in data.get("assertions") or []
    ]

    return ExecutionRecord(
        cursor=cursor_from_mapping(cursor_data),
        item=item_info,
        request=_request(data.get("request")),
        response=_response(data.get("response")),
        request_error=data.get("requestError"),
        assertions=assertions,
    )


def _stats(data: Dict[str, Any]) -> RunStats:
    stats = RunStats()
    for key, attr in _STAT_FIELDS.items():
        entry = data.get(key) or {}
        setattr(
            stats,
            attr,
            StatEntry(
                total=int(entry.get("total") or 0),
                pending=int(entry.get("pending") or 0),
                failed=int(entry.get("failed") or 0),
            ),
        )
    return stats


def _failure(data: Dict[str, Any]) -> RunFailure:
    source = data.get("source") or {}
    parent = data.get("parent") or {}
    cursor = data.get("cursor")
    return RunFailure(
        source=source.get("name") if isinstance(source, dict) else source,
        error=data.get("error") or {},
        at=data.get("at"),
        cursor=cursor_from_mapping(cursor) if cursor else None,
        parent=parent.get("name") if isinstance(parent, dict) else parent,
    )


def _scope(data: Any) -> Optional[VariableScope]:
    if not isinstance(data, dict):
        return None
    return VariableScope(name=data.get("name"), values=list(data.get("values") or []))


def load_run_summary(data: Any, source: str = "<run>") -> RunSummary:
    """
    Build a RunSummary from an exported run document.

    Args:
        data: Parsed JSON document
        source: Name used in error messages

    Returns:
        RunSummary with executions in their exported order

    Raises:
        RunDataError: If the document or one of its executions is malformed
    """
    if not isinstance(data, dict):
        raise RunDataError(f"expected a JSON object, got {type(data).__name__}", source)

    collection = data.get("collection") or {}
    info = collection.get("info") or {}
    parents = build_parent_index(collection)
    root = parents[str(info.get("_postman_id") or collection.get("id") or "")]

    run = data.get("run") or {}
    timings = run.get("timings") or {}

    try:
        executions = [_execution(e, parents, root) for e in run.get("executions") or []]
    except RunDataError as e:
        raise RunDataError(e.message, source)

    summary = RunSummary(
        run=RunData(
            stats=_stats(run.get("stats") or {}),
            executions=executions,
            failures=[_failure(f) for f in run.get("failures") or []],
            timings=RunTimings(
                started=timings.get("started") or 0,
                completed=timings.get("completed") or 0,
                response_average=timings.get("responseAverage") or 0,
                response_min=timings.get("responseMin") or 0,
                response_max=timings.get("responseMax") or 0,
            ),
            transfers=RunTransfers(
                response_total=(run.get("transfers") or {}).get("responseTotal") or 0
            ),
        ),
        collection=CollectionInfo(
            id=root.id,
            name=info.get("name") or collection.get("name") or "",
            description=root.description,
        ),
        globals=_scope(data.get("globals")),
        environment=_scope(data.get("environment")),
    )
    logger.info("Loaded run with %d executions from %s", len(executions), source)
    return summary


def load_run_file(path: str) -> RunSummary:
    """
    Read an exported run from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        RunDataError: If the file is not valid JSON or not a run document
    """
    logger.info("Reading exported run from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RunDataError(f"invalid JSON: {e}", path)
    return load_run_summary(data, source=path)


def replay_events(emitter: RunEmitter) -> None:
    """Emit the assertion events of an ingested run, then ``before_done``."""
    for execution in emitter.summary.run.executions:
        for outcome in execution.assertions:
            emitter.emit(
                ASSERTION,
                None,
                AssertionEvent(
                    cursor=execution.cursor,
                    assertion=outcome.assertion,
                    item=ItemRef(id=execution.item.id, name=execution.item.name),
                    skipped=outcome.skipped,
                    error=outcome.error,
                ),
            )
    emitter.emit(BEFORE_DONE)


def response_from_requests(response: requests.Response) -> HttpResponse:
    """
    Adapt a ``requests`` response into an HttpResponse.

    Public API for host runners built on ``requests``: the result is the
    ``response`` of an ExecutionRecord, so such a host can feed a live run
    into RunEmitter without going through an exported run file. The
    ``run-report`` command itself only reads exported runs.

    Args:
        response: Response returned by a requests session

    Returns:
        HttpResponse with elapsed time in milliseconds and body size in bytes
    """
    content = response.content or b""
    return HttpResponse(
        code=response.status_code,
        status=response.reason or "",
        headers=[{"key": k, "value": v} for k, v in response.headers.items()],
        stream=content,
        response_time=response.elapsed.total_seconds() * 1000,
        response_size=len(content),
    )
