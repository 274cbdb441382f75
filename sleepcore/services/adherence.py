"""Prescription adherence scoring from nightly diary metrics"""

import logging
from typing import List

from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.utils.time_helpers import time_difference_minutes

logger = logging.getLogger(__name__)

# A deviation of this many minutes scores zero for a factor
TOLERANCE_MINUTES = 30


def _factor(deviation_minutes: float) -> float:
    return max(0.0, 1 - deviation_minutes / TOLERANCE_MINUTES)


def night_adherence(prescription: Prescription, night: SleepMetrics) -> float:
    """
    Adherence for one night, 0-1

    Mean of the TIB, bedtime and wake-time factors the night reports;
    each factor is 1 - deviation / 30 floored at 0. A night that reports
    none of them scores 0.
    """
    factors = []
    if night.time_in_bed_minutes is not None:
        factors.append(_factor(abs(night.time_in_bed_minutes - prescription.tib_minutes)))
    if night.bedtime is not None:
        factors.append(_factor(time_difference_minutes(night.bedtime, prescription.bedtime)))
    if night.wake_time is not None:
        factors.append(_factor(time_difference_minutes(night.wake_time, prescription.wake_time)))

    if not factors:
        return 0.0
    return sum(factors) / len(factors)


def calculate_adherence(prescription: Prescription, nights: List[SleepMetrics]) -> float:
    """Average adherence over the given nights; 0 when there are none"""
    if not nights:
        return 0.0
    return sum(night_adherence(prescription, night) for night in nights) / len(nights)


def adherence_history(prescription: Prescription, nights: List[SleepMetrics]) -> List[float]:
    """Per-night adherence scores, oldest first"""
    return [night_adherence(prescription, night) for night in nights]
