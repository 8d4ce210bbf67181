"""
factionhub.engine.timestamps — Fail-soft timestamp parsing
===========================================================

War logs arrive from the database, from JSON request bodies and from the
dashboard.  Every engine function funnels them through
:func:`parse_timestamp` so a malformed value is simply ignored instead of
crashing a page render.
"""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = ["parse_timestamp", "utcnow"]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Coerce *value* into an aware UTC :class:`datetime`, or ``None``.

    Accepts datetimes (naive ones are assumed to be UTC), ISO-8601 strings
    (a trailing ``Z`` is allowed) and epoch seconds.  Anything else,
    including empty strings and out-of-range numbers, yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError:
        # e.g. 9999-12-31T23:59-01:00 has no UTC representation
        return None
