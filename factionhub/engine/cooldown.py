"""
factionhub.engine.cooldown — Attack cooldown countdown
=======================================================

After an encounter, war regulations forbid attacking the same faction
again for ``attacking_cooldown_hours``.  :func:`compute_cooldown` turns
the last encounter time into the countdown the dashboard shows.

The dashboard re-renders once a second; this module keeps no state and
is simply called again with a fresh ``now``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from factionhub.constants import COOLDOWN_READY, COOLDOWN_READY_COMPACT
from factionhub.engine.timestamps import parse_timestamp

__all__ = ["CooldownStatus", "compute_cooldown", "describe_cooldown", "format_remaining"]


@dataclass(frozen=True, slots=True)
class CooldownStatus:
    """Result of a cooldown computation.

    ``remaining_seconds`` is whole seconds left, ``0`` once expired.
    """

    is_expired: bool
    display: str
    remaining_seconds: int = 0

    def to_dict(self) -> dict:
        return {
            "is_expired": self.is_expired,
            "display": self.display,
            "remaining_seconds": self.remaining_seconds,
        }


def _ready(compact: bool) -> CooldownStatus:
    return CooldownStatus(
        is_expired=True,
        display=COOLDOWN_READY_COMPACT if compact else COOLDOWN_READY,
    )


def format_remaining(total_seconds: int, *, compact: bool = False) -> str:
    """Render whole seconds as ``"3h 5m"`` / ``"5m 9s"`` or in full words."""
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if compact:
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m {seconds}s"
    if hours > 0:
        return f"{hours} hours {minutes} minutes {seconds} seconds"
    return f"{minutes} minutes {seconds} seconds"


def compute_cooldown(
    last_encounter_time: object,
    cooldown_hours: float,
    now: datetime,
    *,
    compact: bool = False,
) -> CooldownStatus:
    """Compute the remaining cooldown after *last_encounter_time*.

    Parameters
    ----------
    last_encounter_time:
        Timestamp of the latest encounter (datetime, ISO string, or
        ``None``).  Absent or unparseable means there is nothing to wait for.
    cooldown_hours:
        Configured cooldown window.  Zero, negative or non-finite values
        expire immediately.
    now:
        Reference instant.
    compact:
        Use the short ``"Hh Mm"`` form for banners and badges.
    """
    last = parse_timestamp(last_encounter_time)
    reference = parse_timestamp(now)
    if last is None or reference is None:
        return _ready(compact)

    try:
        hours = float(cooldown_hours)
    except (TypeError, ValueError):
        return _ready(compact)
    if not math.isfinite(hours) or hours <= 0:
        return _ready(compact)

    # plain seconds: last + cooldown can lie beyond datetime.max
    remaining = round(hours * 3600, 6) - (reference - last).total_seconds()
    if not math.isfinite(remaining) or remaining <= 0:
        return _ready(compact)

    # floor to whole seconds; a sub-second remainder still counts as active
    total_seconds = int(remaining)
    return CooldownStatus(
        is_expired=False,
        display=format_remaining(total_seconds, compact=compact),
        remaining_seconds=total_seconds,
    )


def describe_cooldown(status: CooldownStatus) -> str:
    """Sentence shown next to the war header."""
    if status.is_expired:
        return "Expired. You can attack now."
    return f"In effect for {status.display}"
