"""
factionhub.engine.pk_list — Player-kill list
=============================================

The PK list names every player a war has put on the board: enemy players
we killed (``ENEMY``) and our own players caught up in encounters
(``FRIEND``).  It is derived from the encounter logs, never stored.

Each entry carries how many encounters put the player there and when
the latest one happened.  With a ``DAYS`` PK cooldown an entry drops off
the list ``pk_cooldown_days`` after that latest encounter; ``PERMANENT``
entries stay until staff clear them.  A clearance hides an entry until
the player turns up in a newer encounter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from factionhub.engine.heat import encounter_time
from factionhub.engine.timestamps import parse_timestamp

__all__ = ["PkEntry", "clean_player_name", "compute_pk_list", "pk_entry_id", "parse_pk_entry_id"]

Faction = Literal["ENEMY", "FRIEND"]

# log field → which side of the list its names land on
_SOURCES: tuple[tuple[str, Faction], ...] = (
    ("enemies_killed", "ENEMY"),
    ("friends_involved", "FRIEND"),
)


@dataclass(frozen=True, slots=True)
class PkEntry:
    player_name: str
    faction: Faction
    kill_count: int
    last_killed_at: datetime
    expires_at: datetime | None = None

    @property
    def id(self) -> str:
        return pk_entry_id(self.faction, self.player_name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "player_name": self.player_name,
            "faction": self.faction,
            "kill_count": self.kill_count,
            "last_killed_at": self.last_killed_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


def clean_player_name(name: object) -> str:
    """Strip whitespace and a leading Discord-style ``@``."""
    text = str(name or "").strip()
    if text.startswith("@"):
        text = text[1:].strip()
    return text


def pk_entry_id(faction: str, player_name: str) -> str:
    return f"{faction}:{player_name}"


def parse_pk_entry_id(entry_id: str) -> tuple[Faction, str]:
    """Split ``"ENEMY:Ryder"`` back into ``("ENEMY", "Ryder")``."""
    faction, sep, name = entry_id.partition(":")
    faction = faction.upper()
    if not sep or faction not in ("ENEMY", "FRIEND") or not name:
        raise ValueError(f"Invalid PK entry id: {entry_id!r}")
    return faction, name  # type: ignore[return-value]


def _field(log: object, key: str):
    if isinstance(log, dict):
        return log.get(key)
    return getattr(log, key, None)


def _expiry(last: datetime, days: float | None) -> datetime | None:
    if days is None:
        return None
    try:
        return last + timedelta(days=days)
    except OverflowError:
        return None


def compute_pk_list(
    logs: Iterable[object] | None,
    *,
    pk_cooldown_days: float | None = None,
    now: datetime | None = None,
    cleared: Mapping[tuple[str, str], object] | None = None,
) -> list[PkEntry]:
    """Derive the PK list from a war's encounter logs.

    Parameters
    ----------
    logs:
        Encounter logs (dicts or rows).  Logs without a parseable
        ``date_time`` are skipped.
    pk_cooldown_days:
        Days an entry stays listed after its latest encounter.  ``None``
        means permanent.
    now:
        Reference instant for expiry.  Without it nothing expires.
    cleared:
        ``(faction, player_name) → cleared_at`` from staff clearances.

    Returns entries with the most encounters first; ties go to the most
    recent encounter.
    """
    reference = parse_timestamp(now)
    counts: dict[tuple[Faction, str], int] = {}
    latest: dict[tuple[Faction, str], datetime] = {}

    for log in logs or ():
        occurred = encounter_time(log)
        if occurred is None:
            continue
        for field_name, faction in _SOURCES:
            for raw in _field(log, field_name) or ():
                name = clean_player_name(raw)
                if not name:
                    continue
                key = (faction, name)
                counts[key] = counts.get(key, 0) + 1
                if key not in latest or occurred > latest[key]:
                    latest[key] = occurred

    entries = []
    for key, count in counts.items():
        last = latest[key]
        cleared_at = parse_timestamp((cleared or {}).get(key))
        if cleared_at is not None and last <= cleared_at:
            continue
        expires_at = _expiry(last, pk_cooldown_days)
        if reference is not None and expires_at is not None and expires_at <= reference:
            continue
        entries.append(
            PkEntry(
                player_name=key[1],
                faction=key[0],
                kill_count=count,
                last_killed_at=last,
                expires_at=expires_at,
            )
        )

    entries.sort(key=lambda e: (e.kill_count, e.last_killed_at), reverse=True)
    return entries
