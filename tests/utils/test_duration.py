"""Tests for duration parsing and formatting."""

import math

import pytest

from edutrack.utils.duration import (
    format_duration_label,
    parse_duration,
    split_hours_minutes,
)


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("12:30", 750),
            ("1:02:03", 3723),
            ("90", 90),
            ("90.9", 90),
            (95.7, 95),
            (120, 120),
            (None, 0),
            (-3, 0),
            (math.nan, 0),
            ("abc", 0),
            ("xx:30", 30),
        ],
    )
    def test_parse(self, value, expected: int) -> None:
        assert parse_duration(value) == expected


class TestSplitHoursMinutes:
    def test_split(self) -> None:
        assert split_hours_minutes(5159) == (1, 25)
        assert split_hours_minutes(59) == (0, 0)
        assert split_hours_minutes(-10) == (0, 0)

    def test_label(self) -> None:
        assert format_duration_label(8100) == "2h 15m"
