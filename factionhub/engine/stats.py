"""
factionhub.engine.stats — Per-war statistics
=============================================

Aggregates a war's encounter logs into the numbers shown on the war
page: log counts by type, who died most, who submits the most logs, and
which side is ahead on kills.

Each log is a mapping (or object) with:

* ``log_type``        — ``ATTACK`` / ``DEFENSE`` / ``OTHER``
* ``friends_killed``  — our members who died in the encounter
* ``enemies_killed``  — enemy players we killed
* ``submitted_by``    — display name of the submitter
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

__all__ = ["WarStats", "compute_war_stats", "filter_top_kills"]

Side = Literal["FRIEND", "ENEMY"]
Winner = Literal["FRIEND", "ENEMY", "DRAW"]

TOP_SUBMITTERS = 3


@dataclass(frozen=True, slots=True)
class WarStats:
    log_counts: dict[str, int] = field(default_factory=dict)
    top_kills: list[tuple[str, int, Side]] = field(default_factory=list)
    top_submitters: list[tuple[str, int]] = field(default_factory=list)
    winner: Winner = "DRAW"
    friend_kills: int = 0
    enemy_kills: int = 0

    def to_dict(self) -> dict:
        return {
            "log_counts": dict(self.log_counts),
            "top_kills": [list(entry) for entry in self.top_kills],
            "top_submitters": [list(entry) for entry in self.top_submitters],
            "winner": self.winner,
            "friend_kills": self.friend_kills,
            "enemy_kills": self.enemy_kills,
        }


def _field(log: object, key: str, default=None):
    if isinstance(log, dict):
        return log.get(key, default)
    return getattr(log, key, default)


def _names(value) -> list[str]:
    if not value:
        return []
    return [str(name).strip() for name in value if name and str(name).strip()]


def compute_war_stats(logs: Iterable[object] | None) -> WarStats:
    """Aggregate *logs* into a :class:`WarStats`."""
    log_counts: Counter[str] = Counter()
    deaths: dict[tuple[str, Side], int] = {}
    submitters: Counter[str] = Counter()
    friend_kills = 0
    enemy_kills = 0

    for log in logs or ():
        log_type = _field(log, "log_type") or "OTHER"
        log_counts[str(log_type)] += 1

        ours = _names(_field(log, "friends_killed"))
        theirs = _names(_field(log, "enemies_killed"))
        enemy_kills += len(ours)
        friend_kills += len(theirs)

        # dict preserves first-seen order, used as the tie-breaker below
        for name in ours:
            deaths[(name, "FRIEND")] = deaths.get((name, "FRIEND"), 0) + 1
        for name in theirs:
            deaths[(name, "ENEMY")] = deaths.get((name, "ENEMY"), 0) + 1

        submitter = _field(log, "submitted_by")
        if submitter:
            submitters[str(submitter)] += 1

    top_kills = sorted(
        ((name, count, side) for (name, side), count in deaths.items()),
        key=lambda entry: -entry[1],
    )

    if friend_kills > enemy_kills:
        winner: Winner = "FRIEND"
    elif enemy_kills > friend_kills:
        winner = "ENEMY"
    else:
        winner = "DRAW"

    return WarStats(
        log_counts=dict(log_counts),
        top_kills=top_kills,
        top_submitters=submitters.most_common(TOP_SUBMITTERS),
        winner=winner,
        friend_kills=friend_kills,
        enemy_kills=enemy_kills,
    )


def filter_top_kills(
    stats: WarStats, mode: str = "ALL", limit: int = 3
) -> list[tuple[str, int, Side]]:
    """Top *limit* deaths for the ``ALL`` / ``FRIEND`` / ``ENEMY`` view."""
    mode = mode.upper()
    if mode not in ("ALL", "FRIEND", "ENEMY"):
        raise ValueError(f"Invalid kill view: {mode!r}")
    entries = stats.top_kills
    if mode != "ALL":
        entries = [entry for entry in entries if entry[2] == mode]
    return entries[:limit]
