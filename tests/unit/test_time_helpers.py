"""Unit tests for clock-time helpers"""
import pytest
from datetime import datetime

from sleepcore.utils.time_helpers import (
    bedtime_from_wake_time,
    circular_mean_time,
    duration_minutes,
    minutes_to_time,
    minutes_until,
    round_half_up,
    time_difference_minutes,
    time_to_minutes,
)


def test_time_round_trip_and_wrap():
    """Test conversion and modulo-day wrapping"""
    assert time_to_minutes("23:30") == 1410
    assert minutes_to_time(1410) == "23:30"
    assert minutes_to_time(-30) == "23:30"
    assert minutes_to_time(1470) == "00:30"


@pytest.mark.parametrize("value", ["24:00", "7am", "", "12:60"])
def test_invalid_time(value):
    """Test malformed times raise ValueError"""
    with pytest.raises(ValueError):
        time_to_minutes(value)


def test_durations():
    """Test durations and circular differences cross midnight"""
    assert duration_minutes("23:00", "07:00") == 480
    assert duration_minutes("01:00", "07:00") == 360
    assert time_difference_minutes("23:50", "00:10") == 20
    assert bedtime_from_wake_time("06:00", 420) == "23:00"


def test_minutes_until_wraps_only_far_past():
    """Test targets more than 12 hours back count as tomorrow"""
    assert minutes_until("23:30", datetime(2026, 1, 5, 23, 15)) == 15
    assert minutes_until("23:30", datetime(2026, 1, 5, 23, 45)) == -15
    assert minutes_until("00:30", datetime(2026, 1, 5, 23, 45)) == 45


def test_circular_mean():
    """Test averaging across midnight"""
    assert circular_mean_time(["23:30", "00:30"]) == "00:00"
    assert circular_mean_time(["06:00", "07:00"]) == "06:30"
    assert circular_mean_time([]) == "07:00"


@pytest.mark.parametrize("value,expected", [(2.5, 3), (-2.5, -2), (17.4, 17), (-0.6, -1)])
def test_round_half_up(value, expected):
    """Test halves round towards positive infinity"""
    assert round_half_up(value) == expected
