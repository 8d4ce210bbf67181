"""
tests/test_embeds.py — Encounter embed layout
==============================================
"""

from __future__ import annotations

import pytest

from factionhub.constants import ENCOUNTER_EMBED_COLOR, SKULL
from factionhub.services.embeds import (
    build_encounter_embed,
    first_image_url,
    members_with_deaths,
    split_evidence,
)


@pytest.fixture
def log():
    return {
        "id": "log-1",
        "log_type": "ATTACK",
        "date_time": "2025-12-14T23:32:00Z",
        "members_involved": ["Tony", "Paulie", "Silvio"],
        "friends_killed": ["Tony"],
        "enemies_killed": ["Ryder"],
        "notes": "Drive-by on Grove Street",
        "evidence_url": "https://youtu.be/abc, https://i.imgur.com/xyz.png",
    }


def _fields(embed) -> dict[str, str]:
    return {field.name: field.value for field in embed.fields}


class TestMembersWithDeaths:
    def test_dead_sorted_last_with_skull(self):
        result = members_with_deaths(["Tony", "Paulie", "Silvio"], ["Tony"])
        assert result == ["Paulie", "Silvio", f"Tony {SKULL}"]

    def test_nobody_died(self):
        assert members_with_deaths(["A", "B"], []) == ["A", "B"]


class TestEvidence:
    def test_split(self):
        assert split_evidence("a, b,,c ") == ["a", "b", "c"]
        assert split_evidence(None) == []

    @pytest.mark.parametrize(
        "urls, expected",
        [
            (["https://x.test/clip.mp4", "https://x.test/shot.PNG"], "https://x.test/shot.PNG"),
            (["https://imgur.com/AbC123"], "https://imgur.com/AbC123"),
            (["https://x.test/a.jpg?size=large"], "https://x.test/a.jpg?size=large"),
            (["https://youtu.be/abc"], None),
        ],
    )
    def test_first_image(self, urls, expected):
        assert first_image_url(urls) == expected


class TestBuildEncounterEmbed:
    def test_layout(self, log):
        embed = build_encounter_embed(
            log,
            war_name="Ballas",
            war_url="https://hub.test/wars/ballas-202512",
            author_name="Grunt",
        )
        assert embed.title == "New encounter with Ballas"
        assert embed.url == "https://hub.test/wars/ballas-202512"
        assert embed.description == "Attack cooldown triggered."
        assert embed.colour.value == ENCOUNTER_EMBED_COLOR
        assert embed.author.name == "Grunt"

        fields = _fields(embed)
        assert fields["`MEMBERS INVOLVED`"].splitlines()[-1].endswith(f"Tony {SKULL}")
        assert "Ryder" in fields["`ENEMY DEATHS`"]
        assert fields["`NOTES`"] == "Drive-by on Grove Street"
        assert "[Evidence 2](https://i.imgur.com/xyz.png)" in fields["`EVIDENCE`"]

        assert embed.image.url == "https://i.imgur.com/xyz.png"
        assert embed.footer.text == "14 Dec 2025 11:32 pm"

    def test_defense_first_encounter_shows_level(self, log):
        log["log_type"] = "DEFENSE"
        embed = build_encounter_embed(
            log, war_name="Ballas", war_level="LETHAL", is_first_encounter=True
        )
        assert embed.description == "Defense cooldown triggered.\nLevel: Lethal"

    def test_level_hidden_after_first_encounter(self, log):
        embed = build_encounter_embed(log, war_level="NON_LETHAL")
        assert embed.description == "Attack cooldown triggered."

    def test_non_lethal_label(self, log):
        embed = build_encounter_embed(log, war_level="NON_LETHAL", is_first_encounter=True)
        assert embed.description.endswith("Level: Non lethal")

    def test_escalation_to_lethal(self, log):
        embed = build_encounter_embed(log, war_level="LETHAL", war_level_changed_to_lethal=True)
        assert embed.description == "Attack cooldown triggered.\nWar level changed to Lethal"

    def test_first_encounter_escalation_follows_level(self, log):
        embed = build_encounter_embed(
            log,
            war_level="LETHAL",
            is_first_encounter=True,
            war_level_changed_to_lethal=True,
        )
        assert embed.description.splitlines() == [
            "Attack cooldown triggered.",
            "Level: Lethal",
            "War level changed to Lethal",
        ]

    def test_minimal_log(self):
        embed = build_encounter_embed(
            {"log_type": "ATTACK", "date_time": "2025-07-01T12:05:00Z"}
        )
        fields = _fields(embed)
        assert embed.title == "New encounter with Unknown Faction"
        assert fields["`ENEMY DEATHS`"] == "None"
        assert "`NOTES`" not in fields
        assert "`EVIDENCE`" not in fields
        assert embed.footer.text == "1 Jul 2025 1:05 pm"

    def test_timezone_override(self, log):
        embed = build_encounter_embed(log, tz="America/New_York")
        assert embed.footer.text == "14 Dec 2025 6:32 pm"
