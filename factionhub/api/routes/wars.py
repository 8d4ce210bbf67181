"""
factionhub.api.routes.wars — Wars, encounter logs, cooldown, stats & PK list
=============================================================================

Every endpoint needs a hub token; writes additionally need the member or
staff role.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from factionhub.api.deps import (
    get_config,
    get_current_member,
    get_current_staff,
    get_current_user,
    get_engine,
    is_staff,
)
from factionhub.config import HubConfig
from factionhub.services import war_service
from factionhub.services.webhook_service import announce_encounter

router = APIRouter(prefix="/wars", tags=["wars"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class WarCreate(BaseModel):
    enemy_faction: str
    war_type: str | None = None
    war_level: str | None = None
    regulations: dict | None = None


class WarUpdate(BaseModel):
    status: str | None = None
    war_level: str | None = None


class WarLogCreate(BaseModel):
    log_type: str
    date_time: str
    members_involved: list[str] = Field(default_factory=list)
    friends_involved: list[str] = Field(default_factory=list)
    friends_killed: list[str] = Field(default_factory=list)
    enemies_killed: list[str] = Field(default_factory=list)
    notes: str | None = None
    evidence_url: str | None = None
    # set when the encounter changed the war's level
    war_level: str | None = None


class WarLogUpdate(BaseModel):
    log_type: str | None = None
    date_time: str | None = None
    members_involved: list[str] | None = None
    friends_involved: list[str] | None = None
    friends_killed: list[str] | None = None
    enemies_killed: list[str] | None = None
    notes: str | None = None
    evidence_url: str | None = None


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service-layer exceptions into HTTP errors."""
    try:
        yield
    except war_service.WarNotFoundError as exc:
        raise HTTPException(404, "War not found") from exc
    except war_service.WarLogNotFoundError as exc:
        raise HTTPException(404, "Log not found") from exc
    except war_service.RegulationsNotFoundError as exc:
        raise HTTPException(404, "No regulations found") from exc
    except war_service.PkEntryNotFoundError as exc:
        raise HTTPException(404, "Player not on PK list") from exc
    except PermissionError as exc:
        raise HTTPException(403, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


# ---------------------------------------------------------------------------
# Wars
# ---------------------------------------------------------------------------
@router.get("")
def list_wars(
    status: str | None = Query(None),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: HubConfig = Depends(get_config),
):
    """All wars, newest first, each with heat and a compact cooldown."""
    with service_errors():
        wars = war_service.list_wars(
            engine, status, default_cooldown_hours=cfg.default_cooldown_hours
        )
    return {"wars": wars}


@router.post("", status_code=201)
def create_war(
    body: WarCreate,
    staff: dict = Depends(get_current_staff),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        war = war_service.create_war(
            engine,
            staff,
            body.enemy_faction,
            war_type=body.war_type,
            war_level=body.war_level,
            regulations=body.regulations,
        )
    return {"war": war}


@router.get("/{war_id}")
def get_war(
    war_id: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        return {"war": war_service.get_war(engine, war_id)}


@router.patch("/{war_id}")
def update_war(
    war_id: str,
    body: WarUpdate,
    staff: dict = Depends(get_current_staff),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        war = war_service.update_war(
            engine, war_id, status=body.status, war_level=body.war_level
        )
    return {"war": war}


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------
@router.get("/{war_id}/logs")
def list_logs(
    war_id: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        return {"logs": war_service.list_war_logs(engine, war_id)}


@router.post("/{war_id}/logs", status_code=201)
def add_log(
    war_id: str,
    body: WarLogCreate,
    background: BackgroundTasks,
    member: dict = Depends(get_current_member),
    engine: Engine = Depends(get_engine),
    cfg: HubConfig = Depends(get_config),
):
    """Record an encounter and announce it in Discord after responding."""
    with service_errors():
        receipt = war_service.add_war_log(engine, war_id, member, **body.model_dump())
    background.add_task(announce_encounter, cfg, receipt, engine=engine)
    return {"log": receipt.log, "is_first_encounter": receipt.is_first_encounter}


@router.patch("/{war_id}/logs/{log_id}")
def update_log(
    war_id: str,
    log_id: str,
    body: WarLogUpdate,
    member: dict = Depends(get_current_member),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        log = war_service.update_war_log(
            engine,
            war_id,
            log_id,
            member,
            is_staff=is_staff(member),
            **body.model_dump(exclude_none=True),
        )
    return {"log": log}


@router.delete("/{war_id}/logs/{log_id}", status_code=204)
def delete_log(
    war_id: str,
    log_id: str,
    staff: dict = Depends(get_current_staff),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        war_service.delete_war_log(engine, war_id, log_id)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------
@router.get("/{war_id}/cooldown")
def get_cooldown(
    war_id: str,
    compact: bool = Query(False),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: HubConfig = Depends(get_config),
):
    """Remaining attack cooldown; the dashboard polls this or recomputes locally."""
    with service_errors():
        return war_service.get_war_cooldown(
            engine,
            war_id,
            compact=compact,
            default_cooldown_hours=cfg.default_cooldown_hours,
        )


@router.get("/{war_id}/stats")
def get_stats(
    war_id: str,
    view: str | None = Query(None, description="ALL, FRIEND or ENEMY top kills"),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        return war_service.get_war_stats(engine, war_id, view=view)


@router.get("/{war_id}/pk-list")
def get_pk_list(
    war_id: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Players on the war's PK list, derived from its encounter logs."""
    with service_errors():
        return war_service.get_pk_list(engine, war_id)


@router.delete("/{war_id}/pk-list/{entry_id}", status_code=204)
def clear_pk_entry(
    war_id: str,
    entry_id: str,
    staff: dict = Depends(get_current_staff),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        war_service.clear_pk_entry(engine, war_id, entry_id, staff)
