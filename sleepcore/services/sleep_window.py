"""
Personalized initial sleep window

Starts sleep restriction with time in bed equal to the average total sleep
time of the baseline diary, anchored on a fixed wake time, then fine-tunes it
from the sleep profile when one exists.
"""

import logging
from typing import List, Optional

from sleepcore.config import EngineConfig
from sleepcore.exceptions import InsufficientDataError
from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.models.profile import SleepProfile
from sleepcore.observability import metrics
from sleepcore.utils.time_helpers import circular_mean_time, round_half_up

logger = logging.getLogger(__name__)

LONG_SLEEPER_BONUS = 30
SHORT_SLEEPER_CUT = 15
# Long sleepers are still restricted to this share of their estimated need
LONG_SLEEPER_NEED_CAP = 0.9


def average_total_sleep(history: List[SleepMetrics]) -> float:
    """Mean total sleep time, derived from TIB x SE where TST is not reported"""
    values = []
    for night in history:
        if night.total_sleep_minutes is not None:
            values.append(night.total_sleep_minutes)
        elif night.time_in_bed_minutes is not None:
            values.append(night.time_in_bed_minutes * night.sleep_efficiency / 100)
    if not values:
        raise InsufficientDataError(
            message="Baseline diary has no total sleep or time-in-bed values",
            required=1,
            available=0,
            operation="initial_prescription"
        )
    return sum(values) / len(values)


def initial_prescription(
    history: List[SleepMetrics],
    config: Optional[EngineConfig] = None,
    profile: Optional[SleepProfile] = None,
    preferred_wake_time: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Prescription:
    """
    First-week prescription

    Wake time comes from, in order: the explicit preference, the profile's
    optimal wake time, the circular mean of baseline wake times.

    Raises:
        InsufficientDataError: Fewer baseline nights than config.min_data_days
    """
    config = config or EngineConfig()

    if len(history) < config.min_data_days:
        metrics.record_insufficient_data("initial_prescription")
        raise InsufficientDataError(
            message=(
                f"Initial sleep window needs {config.min_data_days} nights of baseline data "
                f"(got {len(history)})"
            ),
            required=config.min_data_days,
            available=len(history),
            user_id=user_id,
            operation="initial_prescription"
        )

    if preferred_wake_time is not None:
        wake_time = preferred_wake_time
    elif profile is not None:
        wake_time = profile.optimal_wake_time
    else:
        wake_time = circular_mean_time([n.wake_time for n in history if n.wake_time is not None])

    tib = float(max(config.min_tib_minutes, min(config.max_tib_minutes, average_total_sleep(history))))

    if profile is not None:
        if profile.sleep_need_category == "long_sleeper":
            tib = min(
                tib + LONG_SLEEPER_BONUS,
                profile.sleep_need_minutes * LONG_SLEEPER_NEED_CAP,
                config.max_tib_minutes,
            )
        elif profile.sleep_need_category == "short_sleeper":
            tib = max(tib - SHORT_SLEEPER_CUT, config.min_tib_minutes)

    tib_minutes = max(config.min_tib_minutes, min(config.max_tib_minutes, round_half_up(tib)))
    prescription = Prescription.from_wake_time(wake_time=wake_time, tib_minutes=tib_minutes, week=1)

    logger.info(
        f"Initial prescription for user {user_id}: {prescription.bedtime}-{prescription.wake_time} "
        f"({prescription.tib_minutes} min)"
    )
    return prescription
