"""
factionhub.database.seed — Default Regulations Seeder
======================================================

A fresh database has no ``war_regulations`` row, which would leave new
UNCONTROLLED wars without a cooldown.  Seed one with the community's
standing rules.

Idempotent — does nothing once any regulations row exists.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from factionhub.database.models import WarRegulations

logger = logging.getLogger(__name__)


DEFAULT_REGULATIONS: dict[str, object] = {
    "attacking_cooldown_hours": 24.0,
    "pk_cooldown_type": "DAYS",
    "pk_cooldown_days": 3,
    "max_participants": 10,
    "max_assault_rifles": 2,
    "weapon_restrictions": [],
}


def seed_default_regulations(engine: Engine) -> bool:
    """Insert the default regulations row if the table is empty.

    Returns ``True`` when a row was inserted.
    """
    session = Session(engine)
    try:
        existing = session.scalar(select(func.count()).select_from(WarRegulations)) or 0
        if existing:
            return False
        session.add(WarRegulations(**DEFAULT_REGULATIONS))
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Seeded default war regulations.")
    return True
