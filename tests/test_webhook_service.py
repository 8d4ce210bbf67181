"""
tests/test_webhook_service.py — Discord webhook announcements
==============================================================

Uses ``httpx.MockTransport`` so no request leaves the process.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json

import discord
import httpx
import pytest

from factionhub.config import HubConfig
from factionhub.services import war_service
from factionhub.services.war_service import LogReceipt
from factionhub.services.webhook_service import (
    _avatar_url,
    _redact,
    announce_encounter,
    send_embed,
)

ATTACK_HOOK = "https://discord.test/api/webhooks/111/attack-token"
DEFENSE_HOOK = "https://discord.test/api/webhooks/222/defense-token"
LEADER = {"sub": "1001", "username": "Leader", "role": "LEADER"}


# Helper to run async tests without pytest-asyncio
def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class _Recorder:
    """Mock transport handler that records requests and replies with *status*."""

    def __init__(self, status: int = 200, body: dict | None = None):
        self.status = status
        self.body = body if body is not None else {"id": "987654321"}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def cfg():
    return HubConfig(
        community_name="Test Faction",
        guild_id=1,
        server_timezone="Europe/London",
        default_cooldown_hours=24.0,
        site_url="https://hub.test",
        attack_webhook_url=ATTACK_HOOK,
        defense_webhook_url=DEFENSE_HOOK,
    )


@pytest.fixture
def receipt():
    return LogReceipt(
        log={
            "id": "log-1",
            "log_type": "ATTACK",
            "date_time": "2025-12-14T23:32:00+00:00",
            "members_involved": ["Tony"],
            "friends_killed": [],
            "enemies_killed": ["Ryder"],
            "notes": None,
            "evidence_url": None,
            "submitted_by_user": {
                "discord_id": "2002",
                "username": "Grunt",
                "avatar": "a_abc",
            },
        },
        war={"slug": "ballas-202512", "enemy_faction": "Ballas", "war_level": "LETHAL"},
        is_first_encounter=True,
    )


class TestSendEmbed:
    def test_success_returns_message_id(self):
        recorder = _Recorder()
        embed = discord.Embed(title="hello")
        result = _run(
            send_embed(ATTACK_HOOK, embed, username="Hub", transport=recorder.transport)
        )
        assert result.ok is True
        assert result.message_id == "987654321"

        (request,) = recorder.requests
        assert request.method == "POST"
        assert request.url.params["wait"] == "true"
        payload = json.loads(request.content)
        assert payload["username"] == "Hub"
        assert payload["embeds"][0]["title"] == "hello"

    def test_no_content_is_ok(self):
        recorder = _Recorder(status=204, body={})
        result = _run(
            send_embed(ATTACK_HOOK, discord.Embed(title="x"), transport=recorder.transport)
        )
        assert result.ok is True
        assert result.message_id is None

    def test_rejected(self):
        recorder = _Recorder(status=400, body={"message": "Invalid Form Body"})
        result = _run(
            send_embed(ATTACK_HOOK, discord.Embed(title="x"), transport=recorder.transport)
        )
        assert result.ok is False
        assert result.error == "HTTP 400"

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = _run(
            send_embed(
                ATTACK_HOOK, discord.Embed(title="x"), transport=httpx.MockTransport(handler)
            )
        )
        assert result.ok is False
        assert "connection refused" in result.error


class TestAnnounceEncounter:
    def test_posts_to_attack_channel(self, cfg, receipt):
        recorder = _Recorder()
        result = _run(announce_encounter(cfg, receipt, transport=recorder.transport))
        assert result.ok is True

        (request,) = recorder.requests
        assert str(request.url).startswith(ATTACK_HOOK)
        embed = json.loads(request.content)["embeds"][0]
        assert embed["title"] == "New encounter with Ballas"
        assert embed["url"] == "https://hub.test/wars/ballas-202512"
        assert embed["description"] == "Attack cooldown triggered.\nLevel: Lethal"
        assert embed["author"]["name"] == "Grunt"
        assert embed["author"]["icon_url"].endswith("/2002/a_abc.gif")

    def test_defense_uses_defense_channel(self, cfg, receipt):
        receipt.log["log_type"] = "DEFENSE"
        recorder = _Recorder()
        _run(announce_encounter(cfg, receipt, transport=recorder.transport))
        assert str(recorder.requests[0].url).startswith(DEFENSE_HOOK)

    def test_missing_webhook_skips(self, receipt):
        bare = HubConfig(
            community_name="Test Faction",
            guild_id=1,
            server_timezone="Europe/London",
            default_cooldown_hours=24.0,
        )
        recorder = _Recorder()
        result = _run(announce_encounter(bare, receipt, transport=recorder.transport))
        assert result.ok is False
        assert result.error == "No webhook URL configured for ATTACK logs"
        assert recorder.requests == []

    def test_other_logs_are_not_announced(self, cfg, receipt):
        receipt.log["log_type"] = "OTHER"
        recorder = _Recorder()
        result = _run(announce_encounter(cfg, receipt, transport=recorder.transport))
        assert result.ok is False
        assert recorder.requests == []

    def test_escalation_line(self, cfg, receipt):
        escalated = dataclasses.replace(receipt, war_level_changed_to_lethal=True)
        recorder = _Recorder()
        _run(announce_encounter(cfg, escalated, transport=recorder.transport))
        embed = json.loads(recorder.requests[0].content)["embeds"][0]
        assert embed["description"].endswith("\nWar level changed to Lethal")


class TestMessageIdStored:
    @pytest.fixture
    def stored(self, seeded_engine):
        war = war_service.create_war(seeded_engine, LEADER, "Ballas")
        return war_service.add_war_log(
            seeded_engine,
            war["slug"],
            LEADER,
            log_type="ATTACK",
            date_time="2025-12-14T23:32:00Z",
            enemies_killed=["Ryder"],
        )

    def _logs(self, engine, receipt):
        return war_service.list_war_logs(engine, receipt.war["slug"])

    def test_sent_message_id_saved(self, cfg, seeded_engine, stored):
        recorder = _Recorder()
        result = _run(
            announce_encounter(
                cfg, stored, engine=seeded_engine, transport=recorder.transport
            )
        )
        assert result.ok is True
        (log,) = self._logs(seeded_engine, stored)
        assert log["discord_message_id"] == "987654321"

    def test_failed_send_stays_pending(self, cfg, seeded_engine, stored):
        recorder = _Recorder(status=500, body={})
        _run(
            announce_encounter(
                cfg, stored, engine=seeded_engine, transport=recorder.transport
            )
        )
        (log,) = self._logs(seeded_engine, stored)
        assert log["discord_message_id"] is None

    def test_log_deleted_before_send(self, cfg, seeded_engine, stored):
        war_service.delete_war_log(seeded_engine, stored.war["slug"], stored.log["id"])
        result = _run(
            announce_encounter(
                cfg, stored, engine=seeded_engine, transport=_Recorder().transport
            )
        )
        assert result.ok is True

class TestHelpers:
    def test_redact_hides_token(self):
        assert _redact(ATTACK_HOOK) == "https://discord.test/api/webhooks/111/***"

    def test_avatar_url(self):
        assert _avatar_url("1", "abc").endswith("/1/abc.png")
        assert _avatar_url("1", None) is None
