"""
factionhub.engine.heat — War heat classification
=================================================

A war is **hot** when it has seen at least :data:`HEAT_MIN_ENCOUNTERS`
encounters in the past week *and* at least one of them happened in the
last 36 hours.  The dashboard uses this to flag wars that are escalating.

Pure and deterministic: the caller supplies ``now``.  Logs may be ORM
rows, dicts, ISO strings or datetimes; entries whose timestamp is missing
or unparseable are ignored and do not count toward the threshold.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from factionhub.constants import HEAT_LOOKBACK, HEAT_MIN_ENCOUNTERS, HEAT_RECENCY
from factionhub.engine.timestamps import parse_timestamp

__all__ = ["encounter_time", "recent_encounters", "is_war_hot"]

_TIME_KEYS = ("date_time", "occurred_at")


def encounter_time(log: object) -> datetime | None:
    """Extract the occurrence time of a single encounter log, or ``None``."""
    if isinstance(log, (str, datetime, int, float)):
        return parse_timestamp(log)
    for key in _TIME_KEYS:
        if isinstance(log, dict):
            raw = log.get(key)
        else:
            raw = getattr(log, key, None)
        if raw is not None:
            return parse_timestamp(raw)
    return None


def _window_start(now: datetime, span: timedelta) -> datetime:
    try:
        return now - span
    except OverflowError:
        return datetime.min.replace(tzinfo=UTC)


def recent_encounters(
    logs: Iterable[object] | None, now: datetime
) -> list[datetime]:
    """Return parsed timestamps of logs within the heat lookback of *now*."""
    if not logs:
        return []
    cutoff = _window_start(now, HEAT_LOOKBACK)
    recent = []
    for log in logs:
        ts = encounter_time(log)
        if ts is not None and ts >= cutoff:
            recent.append(ts)
    return recent


def is_war_hot(logs: Iterable[object] | None, now: datetime) -> bool:
    """Classify a war as hot (``True``) or not from its encounter logs.

    Parameters
    ----------
    logs:
        The war's encounter logs in any order.  ``None`` or empty → ``False``.
    now:
        Reference instant.  Naive datetimes are treated as UTC.
    """
    reference = parse_timestamp(now)
    if reference is None:
        return False

    recent = recent_encounters(logs, reference)
    if len(recent) < HEAT_MIN_ENCOUNTERS:
        return False

    hot_cutoff = _window_start(reference, HEAT_RECENCY)
    return any(ts >= hot_cutoff for ts in recent)
