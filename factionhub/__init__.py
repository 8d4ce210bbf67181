"""
Faction Hub — War Tracking for a Roleplay Faction Community
=============================================================
Tracks wars against enemy factions, the encounter logs members submit,
and the regulations that govern attacks.  The dashboard reads war "heat"
and attack cooldowns from here and renders them live.

Package layout::

    factionhub/
    ├── __main__.py        # ``python -m factionhub`` → uvicorn
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Roles, statuses, heat thresholds
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # Users, wars, war logs, regulations
    │   └── seed.py        # Default global regulations
    ├── engine/
    │   ├── timestamps.py  # Fail-soft timestamp parsing
    │   ├── heat.py        # Is this war "hot"?
    │   ├── cooldown.py    # Attack cooldown countdown
    │   ├── stats.py       # Per-war kill / submitter statistics
    │   ├── slug.py        # Human-readable war slugs
    │   └── formatting.py  # Server-time display strings
    ├── services/
    │   ├── war_service.py     # War + log persistence
    │   ├── embeds.py          # Discord embed builders
    │   └── webhook_service.py # Encounter announcements via webhook
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT + role guards
        └── routes/        # Wars, logs, regulations
"""

__version__ = "0.1.0"
