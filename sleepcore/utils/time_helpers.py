"""
Clock-time helpers for sleep schedules

All schedule times are "HH:MM" strings on a 24-hour clock. Arithmetic is done
in minutes-of-day (0-1439) and wrapped modulo one day.
"""

import logging
import math
from datetime import datetime, time as dt_time
from typing import List

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440


def time_to_minutes(value: str) -> int:
    """
    Convert an "HH:MM" string to minutes after midnight

    Raises:
        ValueError: If the string is not a valid 24-hour time
    """
    try:
        parsed = dt_time.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid time format: '{value}'. Must be HH:MM (e.g., '23:00')")
    return parsed.hour * 60 + parsed.minute


def minutes_to_time(minutes: int) -> str:
    """Convert minutes after midnight to "HH:MM", wrapping into one day"""
    normalized = minutes % MINUTES_PER_DAY
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def duration_minutes(start: str, end: str) -> int:
    """Minutes from start to end, crossing midnight when end is earlier"""
    duration = time_to_minutes(end) - time_to_minutes(start)
    if duration < 0:
        duration += MINUTES_PER_DAY
    return duration


def time_difference_minutes(a: str, b: str) -> int:
    """Shortest distance between two clock times on the 24h circle"""
    diff = abs(time_to_minutes(a) - time_to_minutes(b))
    return min(diff, MINUTES_PER_DAY - diff)


def bedtime_from_wake_time(wake_time: str, tib_minutes: int) -> str:
    """Bedtime that leaves exactly tib_minutes before wake_time"""
    return minutes_to_time(time_to_minutes(wake_time) - tib_minutes)


def minutes_until(target: str, now: datetime) -> int:
    """
    Minutes from now until the next occurrence of target

    Negative values mean target has passed within the last 12 hours;
    anything further back is treated as tomorrow's occurrence.
    """
    current = now.hour * 60 + now.minute
    diff = time_to_minutes(target) - current
    if diff < -720:
        diff += MINUTES_PER_DAY
    return diff


def circular_mean_time(times: List[str], default: str = "07:00") -> str:
    """
    Average clock time, handling the midnight wrap

    Each time is mapped onto the unit circle so 23:30 and 00:30 average
    to 00:00 rather than 12:00.
    """
    if not times:
        return default

    sin_sum = 0.0
    cos_sum = 0.0
    for value in times:
        angle = time_to_minutes(value) / MINUTES_PER_DAY * 2 * math.pi
        sin_sum += math.sin(angle)
        cos_sum += math.cos(angle)

    mean_angle = math.atan2(sin_sum, cos_sum)
    mean_minutes = mean_angle / (2 * math.pi) * MINUTES_PER_DAY
    if mean_minutes < 0:
        mean_minutes += MINUTES_PER_DAY
    return minutes_to_time(round_half_up(mean_minutes))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity"""
    return int(math.floor(value + 0.5))
