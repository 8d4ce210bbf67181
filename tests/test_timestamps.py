"""
tests/test_timestamps.py — Timestamp parsing
=============================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from factionhub.engine.timestamps import parse_timestamp, utcnow

EXPECTED = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "value",
        [
            "2025-01-01T12:00:00Z",
            "2025-01-01T12:00:00+00:00",
            "2025-01-01T13:00:00+01:00",
            "2025-01-01T12:00:00",
            datetime(2025, 1, 1, 12, 0),
            datetime(2025, 1, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5))),
            EXPECTED.timestamp(),
            int(EXPECTED.timestamp()),
        ],
    )
    def test_accepted_forms(self, value):
        assert parse_timestamp(value) == EXPECTED

    def test_result_is_utc(self):
        parsed = parse_timestamp("2025-01-01T13:00:00+01:00")
        assert parsed.tzinfo == UTC

    @pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", True, [], {}])
    def test_rejected_forms(self, value):
        assert parse_timestamp(value) is None

    def test_out_of_range_epoch(self):
        assert parse_timestamp(10**20) is None

    @pytest.mark.parametrize(
        "value", ["9999-12-31T23:59:59-01:00", "0001-01-01T00:00:00+01:00"]
    )
    def test_offset_outside_utc_range(self, value):
        assert parse_timestamp(value) is None


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
