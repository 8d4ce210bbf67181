"""
factionhub.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- users            — Faction members (Discord snowflake PK)
- faction_wars     — Wars against enemy factions
- war_logs         — Encounter logs, one per clash
- war_regulations  — Global rules (cooldowns, participant caps)
- war_pk_clearances — Staff removals from a war's PK list
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Faction Hub ORM models."""


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class WarStatus(enum.StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    CANCELLED = "CANCELLED"


class WarType(enum.StrEnum):
    """CONTROLLED wars carry negotiated regulations; UNCONTROLLED use the globals."""
    CONTROLLED = "CONTROLLED"
    UNCONTROLLED = "UNCONTROLLED"


class WarLevel(enum.StrEnum):
    NON_LETHAL = "NON_LETHAL"
    LETHAL = "LETHAL"


class LogType(enum.StrEnum):
    ATTACK = "ATTACK"
    DEFENSE = "DEFENSE"
    OTHER = "OTHER"


class PkCooldownType(enum.StrEnum):
    """How long a player stays on a war's PK list."""
    DAYS = "DAYS"
    PERMANENT = "PERMANENT"


# ---------------------------------------------------------------------------
# Users — one row per Discord member who has touched a war
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_hash: Mapped[str | None] = mapped_column(String(100), default=None)
    role: Mapped[str] = mapped_column(String(20), default="MEMBER")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.username!r} role={self.role}>"


# ---------------------------------------------------------------------------
# War — a conflict with one enemy faction
# ---------------------------------------------------------------------------
class War(Base):
    __tablename__ = "faction_wars"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    enemy_faction: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=WarStatus.ACTIVE)
    war_type: Mapped[str] = mapped_column(String(20), default=WarType.UNCONTROLLED)
    war_level: Mapped[str | None] = mapped_column(String(20), default=None)
    # Snapshot of the regulations in force for this war
    regulations: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    started_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    logs: Mapped[list[WarLog]] = relationship(
        back_populates="war", cascade="all, delete-orphan"
    )
    started_by_user: Mapped[User | None] = relationship()

    __table_args__ = (
        Index("ix_faction_wars_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<War id={self.id} enemy={self.enemy_faction!r} status={self.status}>"


# ---------------------------------------------------------------------------
# WarLog — one recorded encounter
# ---------------------------------------------------------------------------
class WarLog(Base):
    __tablename__ = "war_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    war_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faction_wars.id", ondelete="CASCADE"), nullable=False
    )
    log_type: Mapped[str] = mapped_column(String(20), nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    members_involved: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    friends_involved: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    friends_killed: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    enemies_killed: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    evidence_url: Mapped[str | None] = mapped_column(Text, default=None)
    # Set once the Discord announcement went through; NULL means pending
    discord_message_id: Mapped[str | None] = mapped_column(String(32), default=None)
    submitted_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    edited_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    war: Mapped[War] = relationship(back_populates="logs")
    submitted_by_user: Mapped[User | None] = relationship(foreign_keys=[submitted_by])
    edited_by_user: Mapped[User | None] = relationship(foreign_keys=[edited_by])

    __table_args__ = (
        Index("ix_war_logs_war_time", "war_id", "date_time"),
    )

    def __repr__(self) -> str:
        return f"<WarLog id={self.id} war={self.war_id} type={self.log_type}>"


# ---------------------------------------------------------------------------
# WarRegulations — global rules; the most recently updated row wins
# ---------------------------------------------------------------------------
class WarRegulations(Base):
    __tablename__ = "war_regulations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attacking_cooldown_hours: Mapped[float] = mapped_column(Float, default=24.0)
    pk_cooldown_type: Mapped[str] = mapped_column(String(20), default="DAYS")
    pk_cooldown_days: Mapped[int] = mapped_column(Integer, default=3)
    max_participants: Mapped[int] = mapped_column(Integer, default=10)
    max_assault_rifles: Mapped[int] = mapped_column(Integer, default=2)
    weapon_restrictions: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    updated_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<WarRegulations id={self.id} cooldown={self.attacking_cooldown_hours}h>"


# ---------------------------------------------------------------------------
# WarPkClearance — staff removed a player from a war's PK list
# ---------------------------------------------------------------------------
class WarPkClearance(Base):
    __tablename__ = "war_pk_clearances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    war_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faction_wars.id", ondelete="CASCADE"), nullable=False
    )
    faction: Mapped[str] = mapped_column(String(10), nullable=False)  # ENEMY / FRIEND
    player_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Encounters at or before this instant no longer list the player
    cleared_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cleared_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_war_pk_clearances_war", "war_id"),
    )

    def __repr__(self) -> str:
        return f"<WarPkClearance war={self.war_id} {self.faction}:{self.player_name}>"
