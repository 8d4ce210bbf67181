"""
factionhub.constants — Shared Constants
========================================

Single source of truth for roles, war vocabulary and the heat thresholds.
Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

from datetime import timedelta

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
ROLE_ADMIN = "ADMIN"
ROLE_LEADER = "LEADER"
ROLE_MODERATOR = "MODERATOR"
ROLE_MEMBER = "MEMBER"
ROLE_GUEST = "GUEST"

STAFF_ROLES: frozenset[str] = frozenset({ROLE_ADMIN, ROLE_LEADER, ROLE_MODERATOR})
MEMBER_ROLES: frozenset[str] = STAFF_ROLES | {ROLE_MEMBER}


# ---------------------------------------------------------------------------
# War heat — a war is "hot" with 6+ encounters this week and one in 36h
# ---------------------------------------------------------------------------
HEAT_MIN_ENCOUNTERS = 6
HEAT_LOOKBACK = timedelta(days=7)
HEAT_RECENCY = timedelta(hours=36)


# ---------------------------------------------------------------------------
# Cooldown display strings
# ---------------------------------------------------------------------------
COOLDOWN_READY = "Now"
COOLDOWN_READY_COMPACT = "Ready"


# ---------------------------------------------------------------------------
# Discord embed presentation
# ---------------------------------------------------------------------------
ENCOUNTER_EMBED_COLOR = 0x252B32
SKULL = "\u2620\ufe0f"  # skull and crossbones
NAME_INDENT = "\u200b\u2002"  # zero-width space + en space
