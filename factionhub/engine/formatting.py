"""
factionhub.engine.formatting — Server-time display strings
===========================================================

The game server runs on London time, so log times are shown as
``"14 Dec 2025 at 11:32 pm"`` in that zone.  The zone is always passed
in explicitly (usually ``cfg.server_timezone``); there is no module-level
"current timezone" to toggle.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from factionhub.engine.timestamps import parse_timestamp

DEFAULT_SERVER_TIMEZONE = "Europe/London"


def _zone(tz: str | ZoneInfo) -> ZoneInfo:
    if isinstance(tz, ZoneInfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {tz!r}") from exc


def format_server_time(
    value: datetime | str | None,
    tz: str | ZoneInfo = DEFAULT_SERVER_TIMEZONE,
    *,
    separator: str = " at ",
) -> str:
    """Format *value* as ``"14 Dec 2025 at 11:32 pm"`` in *tz*.

    Returns ``"Unknown time"`` for ``None``/empty input and
    ``"Invalid date"`` when the value can't be parsed.
    """
    if value is None or value == "":
        return "Unknown time"
    dt = parse_timestamp(value)
    if dt is None:
        return "Invalid date"

    zone = _zone(tz)
    try:
        local = dt.astimezone(zone)
    except OverflowError:
        return "Invalid date"
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    date_part = f"{local.day} {local.strftime('%b')} {local.year}"
    return f"{date_part}{separator}{hour}:{local.minute:02d} {meridiem}"
