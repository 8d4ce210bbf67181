"""
tests/test_stats.py — Per-war statistics
=========================================
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from factionhub.engine.stats import WarStats, compute_war_stats, filter_top_kills


@pytest.fixture
def logs():
    return [
        {
            "log_type": "ATTACK",
            "friends_killed": ["Tony"],
            "enemies_killed": ["Big Smoke", "Ryder"],
            "submitted_by": "Leader",
        },
        {
            "log_type": "DEFENSE",
            "friends_killed": ["Tony", "Paulie"],
            "enemies_killed": ["Ryder"],
            "submitted_by": "Grunt",
        },
        {
            "log_type": "ATTACK",
            "friends_killed": [],
            "enemies_killed": ["Ryder", ""],
            "submitted_by": "Leader",
        },
        {"log_type": "OTHER", "submitted_by": "Scout"},
    ]


class TestComputeWarStats:
    def test_empty(self):
        assert compute_war_stats([]) == WarStats()
        assert compute_war_stats(None).winner == "DRAW"

    def test_log_counts(self, logs):
        stats = compute_war_stats(logs)
        assert stats.log_counts == {"ATTACK": 2, "DEFENSE": 1, "OTHER": 1}

    def test_kill_totals_skip_blank_names(self, logs):
        stats = compute_war_stats(logs)
        assert stats.friend_kills == 4
        assert stats.enemy_kills == 3

    def test_winner(self, logs):
        assert compute_war_stats(logs).winner == "FRIEND"

    def test_enemy_ahead(self):
        stats = compute_war_stats([{"friends_killed": ["A", "B"], "enemies_killed": ["X"]}])
        assert stats.winner == "ENEMY"

    def test_top_kills_ordering(self, logs):
        stats = compute_war_stats(logs)
        assert stats.top_kills == [
            ("Ryder", 3, "ENEMY"),
            ("Tony", 2, "FRIEND"),
            ("Big Smoke", 1, "ENEMY"),
            ("Paulie", 1, "FRIEND"),
        ]

    def test_same_name_on_both_sides_kept_apart(self):
        stats = compute_war_stats(
            [{"friends_killed": ["Alex"], "enemies_killed": ["Alex"]}]
        )
        assert ("Alex", 1, "FRIEND") in stats.top_kills
        assert ("Alex", 1, "ENEMY") in stats.top_kills

    def test_top_submitters(self, logs):
        stats = compute_war_stats(logs)
        assert stats.top_submitters[0] == ("Leader", 2)
        assert len(stats.top_submitters) == 3

    def test_accepts_objects(self):
        row = SimpleNamespace(
            log_type="ATTACK", friends_killed=None, enemies_killed=["X"], submitted_by=None
        )
        stats = compute_war_stats([row])
        assert stats.friend_kills == 1
        assert stats.top_submitters == []

    def test_to_dict(self, logs):
        data = compute_war_stats(logs).to_dict()
        assert data["top_kills"][0] == ["Ryder", 3, "ENEMY"]
        assert data["winner"] == "FRIEND"


class TestFilterTopKills:
    def test_all(self, logs):
        stats = compute_war_stats(logs)
        assert [e[0] for e in filter_top_kills(stats)] == ["Ryder", "Tony", "Big Smoke"]

    def test_friend(self, logs):
        stats = compute_war_stats(logs)
        assert filter_top_kills(stats, "friend") == [
            ("Tony", 2, "FRIEND"),
            ("Paulie", 1, "FRIEND"),
        ]

    def test_enemy_limit(self, logs):
        stats = compute_war_stats(logs)
        assert filter_top_kills(stats, "ENEMY", limit=1) == [("Ryder", 3, "ENEMY")]

    def test_invalid_mode(self, logs):
        with pytest.raises(ValueError):
            filter_top_kills(compute_war_stats(logs), "BOTH")
