"""
factionhub.config — YAML Configuration Loader
==============================================

**Why this file exists:**
This module reads ``config.yaml`` for the community's identity and
display settings (guild, server timezone, default cooldown).  Secrets and
connection strings stay in the environment (``.env``); war regulations
live in the ``war_regulations`` table, editable from the dashboard.

Usage::

    from factionhub.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.community_name)    # "83 Hoover"
    print(cfg.server_timezone)   # "Europe/London"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HubConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Webhook URLs are read from the environment, never from YAML, so the
    config file can be committed safely.
    """

    # Identity
    community_name: str
    guild_id: int  # Discord guild snowflake

    # Display
    server_timezone: str  # IANA name, e.g. "Europe/London"

    # Wars
    default_cooldown_hours: float  # Used when a war has no regulations

    # Optional
    site_url: str | None = None  # Public dashboard origin, for war links
    attack_webhook_url: str | None = None
    defense_webhook_url: str | None = None

    def webhook_for(self, log_type: str) -> str | None:
        """Return the Discord webhook URL for an ``ATTACK``/``DEFENSE`` log."""
        if log_type == "ATTACK":
            return self.attack_webhook_url
        if log_type == "DEFENSE":
            return self.defense_webhook_url
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> HubConfig:
    """Read *path* and return a :class:`HubConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    site_url = raw.get("site_url") or os.getenv("SITE_URL") or None

    return HubConfig(
        community_name=raw["community_name"],
        guild_id=int(raw["guild_id"]),
        server_timezone=raw.get("server_timezone", "Europe/London"),
        default_cooldown_hours=float(raw.get("default_cooldown_hours", 24)),
        site_url=site_url.rstrip("/") if site_url else None,
        attack_webhook_url=os.getenv("DISCORD_ATTACK_LOGS_WEBHOOK") or None,
        defense_webhook_url=os.getenv("DISCORD_DEFENSE_LOGS_WEBHOOK") or None,
    )
