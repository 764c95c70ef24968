"""
Human-readable formatting helpers used by the report model and renderers.
"""

import math
from typing import Optional, Union

Number = Union[int, float]

# Durations below this are shown as whole milliseconds
_PLAIN_MS_LIMIT = 1998

_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def _as_number(value: Optional[Number]) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or number < 0:
        return 0.0
    return number


def _trim(number: float, digits: int) -> str:
    text = f"{number:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def pretty_ms(ms: Optional[Number]) -> str:
    """
    Format a duration in milliseconds.

    Args:
        ms: Duration in milliseconds (None and negatives are treated as 0)

    Returns:
        "<n>ms" for short durations, otherwise compound units such as
        "1m 35.5s" or "2d 3h".
    """
    value = _as_number(ms)
    if value < _PLAIN_MS_LIMIT:
        return f"{int(value)}ms"

    days = int(value // 86_400_000)
    hours = int(value // 3_600_000) % 24
    minutes = int(value // 60_000) % 60
    # Floor seconds to one decimal place
    seconds = math.floor(((value / 1000) % 60) * 10 + 1e-7) / 10

    parts = []
    for amount, unit in ((days, "d"), (hours, "h"), (minutes, "m")):
        if amount:
            parts.append(f"{amount}{unit}")
    if seconds:
        parts.append(f"{_trim(seconds, 1)}s")
    return " ".join(parts) or "0ms"


def filesize(size: Optional[Number]) -> str:
    """
    Format a byte count using base-1024 units and no spacer, e.g. "1.5KB".

    Args:
        size: Number of bytes (None and negatives are treated as 0)
    """
    value = _as_number(size)
    exponent = 0
    if value >= 1:
        exponent = min(int(math.log(value, 1024)), len(_SIZE_UNITS) - 1)
    scaled = value / (1024**exponent)
    # log() can land just under a boundary, e.g. 1023.9999 -> "1024KB"
    if round(scaled, 2) >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
        scaled = value / (1024**exponent)
    return f"{_trim(round(scaled, 2), 2)}{_SIZE_UNITS[exponent]}"


def percent(passed: Number, failed: Number) -> str:
    """Pass percentage rounded to a whole number."""
    total = passed + failed
    if not total:
        return "0"
    return str(int(passed * 100 / total + 0.5))


def inc(value: Union[int, str]) -> int:
    """Turn a zero-based index into a one-based position."""
    return int(value) + 1


def total_tests(assertions: Union[int, str], skipped_tests: Optional[Union[int, str]] = None) -> int:
    """Number of assertions that actually ran (assertions minus skipped)."""
    if skipped_tests:
        return int(assertions) - int(skipped_tests)
    return int(assertions)
