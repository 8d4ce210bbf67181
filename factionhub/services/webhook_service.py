"""
factionhub.services.webhook_service — Encounter announcements
==============================================================

Posts new encounter logs to the faction's Discord channels through
incoming webhooks (one for attacks, one for defenses).  Announcing is a
side effect of logging an encounter, so nothing here raises: failures
are logged and reported back as a :class:`WebhookResult`.

A delivered announcement stamps the log's ``discord_message_id``; logs
whose id is still ``NULL`` are the ones Discord never received.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import discord
import httpx
from sqlalchemy import Engine

from factionhub.config import HubConfig
from factionhub.database.engine import run_db
from factionhub.services import war_service
from factionhub.services.embeds import build_encounter_embed
from factionhub.services.war_service import LogReceipt

logger = logging.getLogger(__name__)

_WEBHOOK_TOKEN_RE = re.compile(r"webhooks/([^/]+)/[^/?]+")


@dataclass(frozen=True, slots=True)
class WebhookResult:
    ok: bool
    error: str | None = None
    message_id: str | None = None


def _redact(url: str) -> str:
    return _WEBHOOK_TOKEN_RE.sub(r"webhooks/\1/***", url)


def _avatar_url(discord_id: str | None, avatar_hash: str | None) -> str | None:
    if not discord_id or not avatar_hash:
        return None
    ext = "gif" if avatar_hash.startswith("a_") else "png"
    return f"https://cdn.discordapp.com/avatars/{discord_id}/{avatar_hash}.{ext}"


async def send_embed(
    webhook_url: str,
    embed: discord.Embed,
    *,
    username: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WebhookResult:
    """POST *embed* to a Discord webhook and return the outcome."""
    payload: dict = {"embeds": [embed.to_dict()]}
    if username:
        payload["username"] = username

    transport = transport or httpx.AsyncHTTPTransport(retries=1)
    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            resp = await client.post(webhook_url, params={"wait": "true"}, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("Discord webhook %s unreachable: %s", _redact(webhook_url), exc)
        return WebhookResult(ok=False, error=str(exc))

    if resp.status_code >= 300:
        logger.warning(
            "Discord webhook %s rejected embed (%d): %s",
            _redact(webhook_url), resp.status_code, resp.text[:200],
        )
        return WebhookResult(ok=False, error=f"HTTP {resp.status_code}")

    message_id = None
    if resp.status_code == 200:
        try:
            message_id = resp.json().get("id")
        except ValueError:
            logger.debug("Discord webhook returned a non-JSON body")
    return WebhookResult(ok=True, message_id=message_id)


async def announce_encounter(
    cfg: HubConfig,
    receipt: LogReceipt,
    *,
    engine: Engine | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WebhookResult:
    """Announce a freshly added log in the matching Discord channel.

    With an *engine*, the returned Discord message id is saved on the log.
    """
    log = receipt.log
    log_type = log.get("log_type")
    webhook_url = cfg.webhook_for(log_type)
    if not webhook_url:
        logger.info("No webhook configured for %s logs; skipping announcement", log_type)
        return WebhookResult(ok=False, error=f"No webhook URL configured for {log_type} logs")

    war = receipt.war
    war_url = f"{cfg.site_url}/wars/{war['slug']}" if cfg.site_url else None
    author = log.get("submitted_by_user") or {}

    try:
        embed = build_encounter_embed(
            log,
            war_name=war.get("enemy_faction"),
            war_url=war_url,
            war_level=war.get("war_level"),
            is_first_encounter=receipt.is_first_encounter,
            war_level_changed_to_lethal=receipt.war_level_changed_to_lethal,
            author_name=author.get("username") or "System",
            author_avatar_url=_avatar_url(author.get("discord_id"), author.get("avatar")),
            tz=cfg.server_timezone,
        )
    except Exception:
        logger.exception("Failed to build encounter embed for log %s", log.get("id"))
        return WebhookResult(ok=False, error="embed build failed")

    result = await send_embed(
        webhook_url, embed, username=cfg.community_name, transport=transport
    )
    if not result.ok:
        return result
    logger.info("Announced %s log %s to Discord", log_type, log.get("id"))

    if engine is not None and result.message_id:
        try:
            await run_db(
                war_service.record_discord_message, engine, log["id"], str(result.message_id)
            )
        except Exception:
            logger.exception(
                "Failed to store Discord message id for log %s", log.get("id")
            )
    return result
