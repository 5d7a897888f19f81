"""
Temporal Normalization
======================

Every adapter converts its store's native timestamp encoding into one
normalized form: ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC, millisecond precision).
Sorting and date-range filtering operate on this string form only, so all
stores must agree on it.

Native encodings seen in the backing stores:
- ISO-8601 strings (with "Z", with an offset, naive, or date-only)
- Epoch milliseconds (int/float)
- Structured {"seconds"|"_seconds", "nanos"|"_nanoseconds"} mappings
- Timestamp objects exposing ``seconds``/``nanos`` attributes
- datetime instances (the Firestore SDK returns DatetimeWithNanoseconds)
"""

from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

import structlog

log = structlog.get_logger()

EMPTY = ""


def format_iso(value: datetime) -> str:
    """Format a datetime in the normalized UTC form."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _from_epoch_seconds(seconds: float, nanos: int = 0) -> str:
    try:
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        if nanos:
            dt = dt.replace(microsecond=int(nanos) // 1000)
    except (OverflowError, ValueError, OSError) as e:
        # beyond the platform's datetime range, or nanos outside [0, 1e9)
        log.warning(f"Epoch timestamp out of range: {seconds!r}", error=str(e))
        return EMPTY
    return format_iso(dt)


def _seconds_pair(value: Mapping) -> Optional[tuple]:
    seconds = value.get("_seconds", value.get("seconds"))
    if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
        return None
    nanos = value.get("_nanoseconds", value.get("nanoseconds", value.get("nanos", 0))) or 0
    return seconds, nanos


def to_iso(value: Any) -> str:
    """
    Normalize any supported native timestamp to the canonical ISO string.

    Args:
        value: Native timestamp value

    Returns:
        Normalized ISO string, or "" for empty / unparseable values

    Example:
        >>> to_iso({"_seconds": 1700000000, "_nanoseconds": 0})
        '2023-11-14T22:13:20.000Z'
        >>> to_iso(1700000000000)
        '2023-11-14T22:13:20.000Z'
    """
    if value is None or value == "" or isinstance(value, bool):
        return EMPTY

    if isinstance(value, datetime):
        return format_iso(value)

    if isinstance(value, date):
        return format_iso(datetime.combine(value, time.min))

    if isinstance(value, (int, float)):
        return _from_epoch_seconds(value / 1000.0)

    if isinstance(value, Mapping):
        pair = _seconds_pair(value)
        if pair is None:
            log.warning("Unrecognized timestamp mapping", keys=sorted(value.keys()))
            return EMPTY
        return _from_epoch_seconds(*pair)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return EMPTY
        try:
            return format_iso(datetime.fromisoformat(text))
        except ValueError:
            log.warning(f"Unparseable timestamp string: {text[:40]}")
            return EMPTY

    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)):
        return _from_epoch_seconds(seconds, getattr(value, "nanos", 0) or 0)

    log.warning(f"Unsupported timestamp type: {type(value).__name__}")
    return EMPTY


def is_date_only(value: str) -> bool:
    """True for a bare YYYY-MM-DD value."""
    try:
        date.fromisoformat(value.strip())
        return True
    except ValueError:
        return False


def date_bound(value: Optional[str], end: bool = False) -> str:
    """
    Normalize a date-range filter bound.

    A date-only end bound is widened to the last millisecond of that day,
    so "end_date=2025-03-01" includes everything submitted on March 1st.

    Raises:
        ValueError: If the bound cannot be parsed
    """
    if not value:
        return EMPTY
    text = value.strip()
    if end and is_date_only(text):
        day = date.fromisoformat(text)
        return format_iso(datetime.combine(day, time(23, 59, 59, 999000)))
    try:
        return format_iso(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Invalid date bound: {value!r}")


def date_part(value: str) -> str:
    """Return the YYYY-MM-DD part of a normalized timestamp ('' if empty)."""
    return value[:10] if value else EMPTY


def now_iso() -> str:
    """Current time in the normalized form."""
    return format_iso(datetime.now(timezone.utc))
