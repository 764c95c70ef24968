"""
Run event channel: typed event payloads and a synchronous emitter.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, List, Optional, Union

from .models import AssertionFailure, Cursor, ItemRef, ReportExport, RunSummary

logger = logging.getLogger(__name__)

ASSERTION = "assertion"
CONSOLE = "console"
BEFORE_DONE = "before_done"

EventHandler = Callable[[Optional[Exception], Any], None]


@dataclass
class AssertionEvent:
    """Payload of an ``assertion`` event."""

    cursor: Cursor
    assertion: str
    item: ItemRef
    skipped: Optional[bool] = None
    error: Optional[AssertionFailure] = None


@dataclass
class ConsoleEvent:
    """Payload of a ``console`` event."""

    cursor: Cursor
    level: str
    messages: List[Any] = field(default_factory=list)


def cursor_from_mapping(data: dict) -> Cursor:
    return Cursor(
        ref=str(data.get("ref", "")),
        iteration=int(data.get("iteration") or 0),
        script_id=str(data.get("scriptId", data.get("script_id", "")) or ""),
    )


def failure_from_mapping(data: Optional[dict]) -> Optional[AssertionFailure]:
    if data is None:
        return None
    return AssertionFailure(
        name=data.get("name", "AssertionError"),
        message=data.get("message", ""),
        stack=data.get("stack"),
    )


def as_assertion_event(payload: Union[AssertionEvent, dict]) -> AssertionEvent:
    """Accept either an AssertionEvent or its exported mapping form."""
    if isinstance(payload, AssertionEvent):
        return payload
    item = payload.get("item") or {}
    return AssertionEvent(
        cursor=cursor_from_mapping(payload.get("cursor") or {}),
        assertion=payload.get("assertion", ""),
        item=ItemRef(id=item.get("id", ""), name=item.get("name", "")),
        skipped=payload.get("skipped"),
        error=failure_from_mapping(payload.get("error")),
    )


def as_console_event(payload: Union[ConsoleEvent, dict]) -> ConsoleEvent:
    """Accept either a ConsoleEvent or its exported mapping form."""
    if isinstance(payload, ConsoleEvent):
        return payload
    return ConsoleEvent(
        cursor=cursor_from_mapping(payload.get("cursor") or {}),
        level=payload.get("level", "log"),
        messages=list(payload.get("messages") or []),
    )


class RunEmitter:
    """
    Dispatches run events to subscribed handlers.

    Holds the run-scoped summary and the list of report exports. A handler
    that raises does not abort the run: the failure is logged and kept in
    ``warnings``.
    """

    def __init__(self, summary: Optional[RunSummary] = None) -> None:
        self.summary = summary if summary is not None else RunSummary()
        self.exports: List[ReportExport] = []
        self.warnings: List[Exception] = []
        self._handlers: DefaultDict[str, List[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, error: Optional[Exception] = None, payload: Any = None) -> None:
        for handler in self._handlers.get(event, []):
            try:
                handler(error, payload)
            except Exception as e:
                logger.warning("Handler for '%s' event failed: %s", event, e, exc_info=True)
                self.warnings.append(e)
