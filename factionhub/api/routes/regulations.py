"""
factionhub.api.routes.regulations — Global war regulations
===========================================================

Mounted before :mod:`factionhub.api.routes.wars` so ``/wars/regulations``
is not captured by ``/wars/{war_id}``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from factionhub.api.deps import get_current_staff, get_current_user, get_engine
from factionhub.api.routes.wars import service_errors
from factionhub.services import war_service

router = APIRouter(prefix="/wars/regulations", tags=["regulations"])


class RegulationsUpdate(BaseModel):
    attacking_cooldown_hours: float | None = Field(None, ge=0, allow_inf_nan=False)
    pk_cooldown_type: str | None = None
    pk_cooldown_days: int | None = Field(None, ge=0)
    max_participants: int | None = Field(None, ge=1)
    max_assault_rifles: int | None = Field(None, ge=0)
    weapon_restrictions: list[str] | None = None


@router.get("")
def get_regulations(
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        return {"regulations": war_service.get_regulations(engine)}


@router.patch("")
def update_regulations(
    body: RegulationsUpdate,
    staff: dict = Depends(get_current_staff),
    engine: Engine = Depends(get_engine),
):
    with service_errors():
        regs = war_service.update_regulations(
            engine, staff, **body.model_dump(exclude_none=True)
        )
    return {"regulations": regs}
