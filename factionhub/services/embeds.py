"""
factionhub.services.embeds — Discord embed builders for encounter logs
=======================================================================

All embed construction lives here so the webhook service only needs to
supply data — no layout concerns.
"""

from __future__ import annotations

import re

import discord

from factionhub.constants import ENCOUNTER_EMBED_COLOR, NAME_INDENT, SKULL
from factionhub.engine.formatting import DEFAULT_SERVER_TIMEZONE, format_server_time
from factionhub.engine.timestamps import parse_timestamp, utcnow

_IMAGE_RE = re.compile(
    r"(\.(jpg|jpeg|png|gif|webp|bmp)(\?.*)?$|imgur\.com/[a-zA-Z0-9]+(\.[a-zA-Z]{3,4})?)",
    re.IGNORECASE,
)

# Discord rejects embed field values longer than this
_FIELD_LIMIT = 1024


def _format_names(names: list[str]) -> str:
    if not names:
        return " "
    return "\n".join(f"{NAME_INDENT}{name}" for name in names)[:_FIELD_LIMIT]


def members_with_deaths(members: list[str], killed: list[str]) -> list[str]:
    """Mark dead members with a skull and move them to the bottom.

    The sort is stable, so members keep their submitted order otherwise.
    """
    dead = set(killed)
    ordered = sorted(members, key=lambda name: name in dead)
    return [f"{name} {SKULL}" if name in dead else name for name in ordered]


def split_evidence(evidence_url: str | None) -> list[str]:
    """Evidence is stored as one comma-separated string."""
    if not evidence_url:
        return []
    return [url.strip() for url in evidence_url.split(",") if url.strip()]


def first_image_url(urls: list[str]) -> str | None:
    for url in urls:
        if _IMAGE_RE.search(url):
            return url
    return None


def build_encounter_embed(
    log: dict,
    *,
    war_name: str | None = None,
    war_url: str | None = None,
    war_level: str | None = None,
    is_first_encounter: bool = False,
    war_level_changed_to_lethal: bool = False,
    author_name: str = "System",
    author_avatar_url: str | None = None,
    tz: str = DEFAULT_SERVER_TIMEZONE,
) -> discord.Embed:
    """Build the embed posted to the attack/defense log channel."""
    log_type = log.get("log_type", "ATTACK")
    description = f"{'Attack' if log_type == 'ATTACK' else 'Defense'} cooldown triggered."
    if is_first_encounter and war_level:
        level = "Lethal" if war_level == "LETHAL" else "Non lethal"
        description += f"\nLevel: {level}"
    if war_level_changed_to_lethal:
        description += "\nWar level changed to Lethal"

    embed = discord.Embed(
        title=f"New encounter with {war_name or 'Unknown Faction'}",
        url=war_url,
        description=description,
        color=ENCOUNTER_EMBED_COLOR,
    )
    if author_name:
        embed.set_author(name=author_name, icon_url=author_avatar_url)

    members = log.get("members_involved") or log.get("friends_involved") or []
    embed.add_field(
        name="`MEMBERS INVOLVED`",
        value=_format_names(members_with_deaths(members, log.get("friends_killed") or [])),
        inline=True,
    )
    enemies = log.get("enemies_killed") or []
    embed.add_field(
        name="`ENEMY DEATHS`",
        value=_format_names(enemies) if enemies else "None",
        inline=True,
    )

    if log.get("notes"):
        embed.add_field(name="`NOTES`", value=log["notes"][:_FIELD_LIMIT], inline=False)

    evidence = split_evidence(log.get("evidence_url"))
    if evidence:
        links = "\n".join(f"[Evidence {i}]({url})" for i, url in enumerate(evidence, 1))
        embed.add_field(name="`EVIDENCE`", value=links[:_FIELD_LIMIT], inline=False)
        image = first_image_url(evidence)
        if image:
            embed.set_image(url=image)

    occurred = parse_timestamp(log.get("date_time")) or utcnow()
    embed.set_footer(text=format_server_time(occurred, tz, separator=" "))
    return embed
