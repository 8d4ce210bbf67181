"""
factionhub.services.war_service — War & encounter log persistence
==================================================================

Synchronous service functions over an :class:`~sqlalchemy.Engine`.  Route
handlers call them directly; the background Discord announcement reaches
:func:`record_discord_message` through
:func:`~factionhub.database.engine.run_db`.

Wars are addressed by UUID or by slug everywhere.  Every function returns
plain JSON-ready dicts; ORM objects never leave this module.

Errors:
  * :class:`WarNotFoundError` / :class:`WarLogNotFoundError` /
    :class:`RegulationsNotFoundError` / :class:`PkEntryNotFoundError` —
    lookups that found nothing.
  * :class:`ValueError` — invalid input (bad status, unparseable time…).
  * :class:`PermissionError` — editing someone else's log without staff role.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session, selectinload

from factionhub.database.engine import get_session
from factionhub.database.models import (
    LogType,
    PkCooldownType,
    User,
    War,
    WarLevel,
    WarLog,
    WarPkClearance,
    WarRegulations,
    WarStatus,
    WarType,
)
from factionhub.engine.cooldown import compute_cooldown, describe_cooldown
from factionhub.engine.heat import is_war_hot
from factionhub.engine.pk_list import compute_pk_list, parse_pk_entry_id
from factionhub.engine.slug import create_war_slug, is_uuid
from factionhub.engine.stats import compute_war_stats, filter_top_kills
from factionhub.engine.timestamps import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_HOURS = 24.0

REGULATION_FIELDS: tuple[str, ...] = (
    "attacking_cooldown_hours",
    "pk_cooldown_type",
    "pk_cooldown_days",
    "max_participants",
    "max_assault_rifles",
    "weapon_restrictions",
)

EDITABLE_LOG_FIELDS: tuple[str, ...] = (
    "log_type",
    "date_time",
    "members_involved",
    "friends_involved",
    "friends_killed",
    "enemies_killed",
    "notes",
    "evidence_url",
)

_ENCOUNTER_TYPES = (LogType.ATTACK, LogType.DEFENSE)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class WarNotFoundError(LookupError):
    """No war matches the given id or slug."""


class WarLogNotFoundError(LookupError):
    """No log with that id belongs to the war."""


class RegulationsNotFoundError(LookupError):
    """The war_regulations table is empty."""


class PkEntryNotFoundError(LookupError):
    """The player is not on the war's PK list."""


@dataclass(frozen=True, slots=True)
class LogReceipt:
    """What :func:`add_war_log` hands back for the Discord announcement."""

    log: dict
    war: dict
    is_first_encounter: bool
    war_level_changed_to_lethal: bool = False


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def _iso(value: datetime | None) -> str | None:
    dt = parse_timestamp(value)
    return dt.isoformat() if dt else None


def _user_ref(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "discord_id": str(user.id),
        "username": user.username,
        "avatar": user.avatar_hash,
    }


def _war_dict(war: War) -> dict:
    return {
        "id": war.id,
        "slug": war.slug,
        "enemy_faction": war.enemy_faction,
        "status": war.status,
        "war_type": war.war_type,
        "war_level": war.war_level,
        "regulations": war.regulations,
        "started_at": _iso(war.started_at),
        "ended_at": _iso(war.ended_at),
        "started_by": str(war.started_by) if war.started_by else None,
    }


def _log_dict(log: WarLog) -> dict:
    return {
        "id": log.id,
        "war_id": log.war_id,
        "log_type": log.log_type,
        "date_time": _iso(log.date_time),
        "members_involved": log.members_involved or [],
        "friends_involved": log.friends_involved or [],
        "friends_killed": log.friends_killed or [],
        "enemies_killed": log.enemies_killed or [],
        "notes": log.notes,
        "evidence_url": log.evidence_url,
        "discord_message_id": log.discord_message_id,
        "submitted_by_user": _user_ref(log.submitted_by_user),
        "edited_by_user": _user_ref(log.edited_by_user),
        "edited_at": _iso(log.edited_at),
        "created_at": _iso(log.created_at),
    }


def _regulations_dict(regs: WarRegulations) -> dict:
    out: dict[str, Any] = {name: getattr(regs, name) for name in REGULATION_FIELDS}
    out["id"] = regs.id
    out["updated_by"] = str(regs.updated_by) if regs.updated_by else None
    out["updated_at"] = _iso(regs.updated_at)
    return out


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def ensure_user(session: Session, actor: dict) -> User:
    """Get or create the :class:`User` for a JWT payload, refreshing its name."""
    try:
        user_id = int(actor["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Actor has no valid Discord id") from exc

    user = session.get(User, user_id)
    username = actor.get("username") or "Unknown"
    if user is None:
        user = User(
            id=user_id,
            username=username,
            avatar_hash=actor.get("avatar"),
            role=actor.get("role") or "MEMBER",
        )
        session.add(user)
        session.flush()
    else:
        user.username = username
        if actor.get("avatar"):
            user.avatar_hash = actor["avatar"]
        if actor.get("role"):
            user.role = actor["role"]
    return user


def _resolve_war(session: Session, id_or_slug: str) -> War:
    if is_uuid(id_or_slug):
        war = session.get(War, id_or_slug)
    else:
        war = session.scalar(select(War).where(War.slug == id_or_slug))
    if war is None:
        raise WarNotFoundError(id_or_slug)
    return war


def _resolve_log(session: Session, war: War, log_id: str) -> WarLog:
    log = session.get(WarLog, log_id)
    if log is None or log.war_id != war.id:
        raise WarLogNotFoundError(log_id)
    return log


def _latest_regulations(session: Session) -> WarRegulations | None:
    return session.scalar(
        select(WarRegulations)
        .order_by(WarRegulations.updated_at.desc(), WarRegulations.id.desc())
        .limit(1)
    )


def _cooldown_hours(war: War, default: float) -> float:
    regs = war.regulations or {}
    value = regs.get("attacking_cooldown_hours")
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(
            "War %s has a malformed cooldown %r; using default", war.id, value
        )
        return default


def _last_encounter(logs: list[WarLog]) -> datetime | None:
    times = [
        parse_timestamp(log.date_time)
        for log in logs
        if log.log_type in _ENCOUNTER_TYPES
    ]
    times = [t for t in times if t is not None]
    return max(times) if times else None


def _parse_log_time(value: object) -> datetime:
    dt = parse_timestamp(value)
    if dt is None:
        raise ValueError(f"Invalid date_time: {value!r}")
    return dt


def _validate_choice(value: str, choices: type, label: str) -> str:
    try:
        return choices(value).value
    except ValueError as exc:
        allowed = ", ".join(c.value for c in choices)
        raise ValueError(f"Invalid {label} {value!r}; expected one of {allowed}") from exc


def _non_negative_number(value: object, label: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be a number") from exc
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"{label} must be a finite, non-negative number")
    return number


def _check_regulations(regs: dict) -> None:
    """Reject regulation values the cooldown and PK calculations can't use."""
    for key in ("attacking_cooldown_hours", "pk_cooldown_days"):
        if regs.get(key) is not None:
            _non_negative_number(regs[key], key)
    if regs.get("pk_cooldown_type") is not None:
        _validate_choice(regs["pk_cooldown_type"], PkCooldownType, "pk_cooldown_type")


def _name_list(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError("Expected a list of player names")
    return [str(name).strip() for name in value if str(name).strip()]


# ---------------------------------------------------------------------------
# Wars
# ---------------------------------------------------------------------------
def list_wars(
    engine: Engine,
    status: str | None = None,
    *,
    now: datetime | None = None,
    default_cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
) -> list[dict]:
    """Return wars (newest first) with log count, heat and compact cooldown."""
    reference = parse_timestamp(now) or utcnow()
    stmt = select(War).options(selectinload(War.logs)).order_by(
        War.started_at.desc(), War.created_at.desc()
    )
    if status:
        stmt = stmt.where(War.status == _validate_choice(status, WarStatus, "status"))

    with get_session(engine) as session:
        wars = session.scalars(stmt).all()
        summaries = []
        for war in wars:
            cooldown = compute_cooldown(
                _last_encounter(war.logs),
                _cooldown_hours(war, default_cooldown_hours),
                reference,
                compact=True,
            )
            summary = _war_dict(war)
            summary["log_count"] = len(war.logs)
            summary["is_hot"] = is_war_hot(war.logs, reference)
            summary["cooldown"] = cooldown.to_dict()
            summaries.append(summary)
        return summaries


def get_war(engine: Engine, id_or_slug: str) -> dict:
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        out = _war_dict(war)
        out["started_by_user"] = _user_ref(war.started_by_user)
        return out


def resolve_war_id(engine: Engine, id_or_slug: str) -> str:
    """Map a slug (or id) to the war's UUID."""
    with get_session(engine) as session:
        return _resolve_war(session, id_or_slug).id


def create_war(
    engine: Engine,
    actor: dict,
    enemy_faction: str,
    *,
    war_type: str | None = None,
    war_level: str | None = None,
    regulations: dict | None = None,
    now: datetime | None = None,
) -> dict:
    """Start a new ACTIVE war.

    UNCONTROLLED wars (the default) snapshot the current global
    regulations.  CONTROLLED wars keep the negotiated *regulations* and
    fall back to the globals only when none are given.
    """
    enemy_faction = (enemy_faction or "").strip()
    if not enemy_faction:
        raise ValueError("Enemy faction is required")
    war_type = _validate_choice(war_type or WarType.UNCONTROLLED, WarType, "war_type")
    if war_level is not None:
        war_level = _validate_choice(war_level, WarLevel, "war_level")
    if regulations:
        _check_regulations(regulations)
    started_at = parse_timestamp(now) or utcnow()

    with get_session(engine) as session:
        user = ensure_user(session, actor)

        war_regs = regulations
        if war_type == WarType.UNCONTROLLED or not war_regs:
            globals_row = _latest_regulations(session)
            if globals_row is not None:
                war_regs = {name: getattr(globals_row, name) for name in REGULATION_FIELDS}

        counter = 0
        slug = create_war_slug(enemy_faction, started_at)
        while session.scalar(select(func.count()).select_from(War).where(War.slug == slug)):
            counter += 1
            slug = create_war_slug(enemy_faction, started_at, counter)

        war = War(
            slug=slug,
            enemy_faction=enemy_faction,
            status=WarStatus.ACTIVE,
            war_type=war_type,
            war_level=war_level,
            regulations=war_regs,
            started_at=started_at,
            started_by=user.id,
        )
        session.add(war)
        session.flush()
        logger.info(
            "War %s started against %r by %s", war.slug, enemy_faction, user.username
        )
        return _war_dict(war)


def update_war(
    engine: Engine,
    id_or_slug: str,
    *,
    status: str | None = None,
    war_level: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Change a war's status and/or level.  ``ENDED`` stamps ``ended_at``."""
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        if status:
            war.status = _validate_choice(status, WarStatus, "status")
            if war.status == WarStatus.ENDED:
                war.ended_at = parse_timestamp(now) or utcnow()
        if war_level:
            war.war_level = _validate_choice(war_level, WarLevel, "war_level")
        session.flush()
        logger.info("War %s updated → status=%s level=%s", war.slug, war.status, war.war_level)
        return _war_dict(war)


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------
def list_war_logs(engine: Engine, id_or_slug: str) -> list[dict]:
    """Return a war's logs, most recent encounter first."""
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        logs = session.scalars(
            select(WarLog)
            .options(
                selectinload(WarLog.submitted_by_user),
                selectinload(WarLog.edited_by_user),
            )
            .where(WarLog.war_id == war.id)
            .order_by(WarLog.date_time.desc())
        ).all()
        return [_log_dict(log) for log in logs]


def add_war_log(
    engine: Engine,
    id_or_slug: str,
    actor: dict,
    *,
    log_type: str,
    date_time: object,
    members_involved: list[str] | None = None,
    friends_involved: list[str] | None = None,
    friends_killed: list[str] | None = None,
    enemies_killed: list[str] | None = None,
    notes: str | None = None,
    evidence_url: str | None = None,
    war_level: str | None = None,
) -> LogReceipt:
    """Record an encounter against a war.

    *war_level* lets the submitter report that the encounter changed the
    war's level; moving to ``LETHAL`` is flagged on the receipt so the
    announcement can say so.
    """
    log_type = _validate_choice(log_type, LogType, "log_type")
    occurred_at = _parse_log_time(date_time)
    if war_level is not None:
        war_level = _validate_choice(war_level, WarLevel, "war_level")

    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        user = ensure_user(session, actor)
        escalated = war_level == WarLevel.LETHAL and war.war_level != WarLevel.LETHAL
        if war_level is not None and war_level != war.war_level:
            logger.info("War %s level %s → %s", war.slug, war.war_level, war_level)
            war.war_level = war_level
        previous = session.scalar(
            select(func.count()).select_from(WarLog).where(WarLog.war_id == war.id)
        ) or 0

        log = WarLog(
            war_id=war.id,
            log_type=log_type,
            date_time=occurred_at,
            members_involved=_name_list(members_involved),
            friends_involved=_name_list(friends_involved),
            friends_killed=_name_list(friends_killed),
            enemies_killed=_name_list(enemies_killed),
            notes=notes or None,
            evidence_url=evidence_url or None,
            submitted_by=user.id,
        )
        session.add(log)
        session.flush()
        session.refresh(log)
        logger.info("%s log %s added to war %s by %s", log_type, log.id, war.slug, user.username)
        return LogReceipt(
            log=_log_dict(log),
            war=_war_dict(war),
            is_first_encounter=previous == 0,
            war_level_changed_to_lethal=escalated,
        )


def update_war_log(
    engine: Engine,
    id_or_slug: str,
    log_id: str,
    actor: dict,
    *,
    is_staff: bool = False,
    now: datetime | None = None,
    **fields: Any,
) -> dict:
    """Edit a log.  Only its submitter or staff may do so."""
    unknown = set(fields) - set(EDITABLE_LOG_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log fields: {', '.join(sorted(unknown))}")

    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        log = _resolve_log(session, war, log_id)
        user = ensure_user(session, actor)
        if not is_staff and log.submitted_by != user.id:
            raise PermissionError("Only the submitter or staff can edit this log")

        for key, value in fields.items():
            if value is None:
                continue
            if key == "log_type":
                value = _validate_choice(value, LogType, "log_type")
            elif key == "date_time":
                value = _parse_log_time(value)
            elif key in ("members_involved", "friends_involved", "friends_killed", "enemies_killed"):
                value = _name_list(value)
            setattr(log, key, value)

        log.edited_by = user.id
        log.edited_at = parse_timestamp(now) or utcnow()
        session.flush()
        session.refresh(log)
        return _log_dict(log)


def delete_war_log(engine: Engine, id_or_slug: str, log_id: str) -> None:
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        log = _resolve_log(session, war, log_id)
        session.delete(log)
        logger.info("Log %s deleted from war %s", log_id, war.slug)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------
def get_war_cooldown(
    engine: Engine,
    id_or_slug: str,
    *,
    now: datetime | None = None,
    compact: bool = False,
    default_cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
) -> dict:
    """Current attack cooldown for a war, computed from its latest encounter."""
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        last = _last_encounter(war.logs)
        hours = _cooldown_hours(war, default_cooldown_hours)

    status = compute_cooldown(last, hours, now or utcnow(), compact=compact)
    out = status.to_dict()
    out.update({
        "war_id": war.id,
        "last_encounter_at": _iso(last),
        "cooldown_hours": hours,
        "message": describe_cooldown(status),
    })
    return out


def get_war_stats(engine: Engine, id_or_slug: str, *, view: str | None = None) -> dict:
    """Kill/submitter statistics.  *view* narrows ``top_kills`` to the top
    three ``ALL`` / ``FRIEND`` / ``ENEMY`` deaths."""
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        logs = session.scalars(
            select(WarLog)
            .options(selectinload(WarLog.submitted_by_user))
            .where(WarLog.war_id == war.id)
            .order_by(WarLog.date_time.asc())
        ).all()
        entries = [
            {
                "log_type": log.log_type,
                "friends_killed": log.friends_killed,
                "enemies_killed": log.enemies_killed,
                "submitted_by": log.submitted_by_user.username
                if log.submitted_by_user else None,
            }
            for log in logs
        ]
        war_id = war.id

    stats = compute_war_stats(entries)
    out = stats.to_dict()
    if view is not None:
        out["top_kills"] = [list(entry) for entry in filter_top_kills(stats, view)]
        out["view"] = view.upper()
    out["war_id"] = war_id
    return out


def get_pk_list(
    engine: Engine, id_or_slug: str, *, now: datetime | None = None
) -> dict:
    """The war's PK list, honouring its PK cooldown and staff clearances."""
    reference = parse_timestamp(now) or utcnow()
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        entries = _pk_entries(session, war, reference)
        return {"war_id": war.id, "pk_list": [entry.to_dict() for entry in entries]}


def clear_pk_entry(
    engine: Engine,
    id_or_slug: str,
    entry_id: str,
    actor: dict,
    *,
    now: datetime | None = None,
) -> None:
    """Take a player off the PK list until their next encounter."""
    faction, name = parse_pk_entry_id(entry_id)
    reference = parse_timestamp(now) or utcnow()
    with get_session(engine) as session:
        war = _resolve_war(session, id_or_slug)
        listed = {(e.faction, e.player_name): e for e in _pk_entries(session, war, reference)}
        entry = listed.get((faction, name))
        if entry is None:
            raise PkEntryNotFoundError(entry_id)
        user = ensure_user(session, actor)
        session.add(
            WarPkClearance(
                war_id=war.id,
                faction=faction,
                player_name=name,
                # clear through the latest encounter even if it is future-dated
                cleared_at=max(reference, entry.last_killed_at),
                cleared_by=user.id,
            )
        )
        logger.info("%s removed %s from the PK list of war %s", user.username, entry_id, war.slug)


def _pk_entries(session: Session, war: War, reference: datetime):
    regs = war.regulations or {}
    days = None
    if str(regs.get("pk_cooldown_type") or PkCooldownType.DAYS).upper() == PkCooldownType.DAYS:
        raw_days = regs.get("pk_cooldown_days")
        try:
            days = float(raw_days) if raw_days is not None else None
        except (TypeError, ValueError):
            logger.warning("War %s has a malformed PK cooldown %r", war.id, raw_days)
        if days is not None and not math.isfinite(days):
            days = None

    cleared: dict[tuple[str, str], datetime] = {}
    for row in session.scalars(
        select(WarPkClearance).where(WarPkClearance.war_id == war.id)
    ):
        key = (row.faction, row.player_name)
        at = parse_timestamp(row.cleared_at)
        if at is not None and (key not in cleared or at > cleared[key]):
            cleared[key] = at

    logs = session.scalars(
        select(WarLog).where(WarLog.war_id == war.id).order_by(WarLog.date_time.desc())
    ).all()
    return compute_pk_list(
        logs, pk_cooldown_days=days, now=reference, cleared=cleared
    )


def record_discord_message(engine: Engine, log_id: str, message_id: str) -> bool:
    """Store the Discord message id of a log's announcement.

    Returns ``False`` when the log has since been deleted.
    """
    with get_session(engine) as session:
        log = session.get(WarLog, log_id)
        if log is None:
            return False
        log.discord_message_id = message_id
        return True


# ---------------------------------------------------------------------------
# Regulations
# ---------------------------------------------------------------------------
def get_regulations(engine: Engine) -> dict:
    with get_session(engine) as session:
        regs = _latest_regulations(session)
        if regs is None:
            raise RegulationsNotFoundError("No regulations found")
        return _regulations_dict(regs)


def update_regulations(engine: Engine, actor: dict, **fields: Any) -> dict:
    """Patch the global regulations row.  ``None`` values are left unchanged."""
    unknown = set(fields) - set(REGULATION_FIELDS)
    if unknown:
        raise ValueError(f"Unknown regulation fields: {', '.join(sorted(unknown))}")
    _check_regulations(fields)

    with get_session(engine) as session:
        regs = _latest_regulations(session)
        if regs is None:
            raise RegulationsNotFoundError("No regulations found")
        user = ensure_user(session, actor)
        for key, value in fields.items():
            if value is not None:
                setattr(regs, key, value)
        regs.updated_by = user.id
        regs.updated_at = utcnow()
        session.flush()
        logger.info("War regulations updated by %s", user.username)
        return _regulations_dict(regs)
