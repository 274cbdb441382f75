"""
Sleep Profile Estimation

Derives a chronotype and an individual sleep need from the onboarding
questionnaire. The result is a pure function of the responses: the same
answers always yield the same profile, which keeps personalization
reproducible.

Scoring follows a reduced Morningness-Eveningness (MEQ) scale, 16-86,
higher = more morning-type:
- base 50
- free-day wake time band: <06:00 +15, <07:00 +10, <08:00 +5, <09:00 0,
  <10:00 -5, <12:00 -10, later -15
- 4 x (morning alertness - 3)
- -3 x (waking difficulty - 3)
- peak performance time: early morning +12 ... night -12
- 2 x (sleep onset ease at 23:00 - 3)
"""

import logging
from typing import Dict, Optional, Tuple

from sleepcore.models.profile import (
    Chronotype,
    SleepNeedCategory,
    SleepNeedQuestionnaire,
    SleepProfile,
    SocialJetLagSeverity,
)
from sleepcore.utils.time_helpers import (
    duration_minutes,
    minutes_to_time,
    round_half_up,
    time_to_minutes,
)

logger = logging.getLogger(__name__)

MIN_CHRONOTYPE_SCORE = 16
MAX_CHRONOTYPE_SCORE = 86

MIN_SLEEP_NEED = 300
MAX_SLEEP_NEED = 600

# Realistic wake window for sleep restriction (05:00-10:00)
EARLIEST_WAKE = 300
LATEST_WAKE = 600

# (upper bound in minutes-of-day, score contribution)
WAKE_TIME_BANDS: Tuple[Tuple[int, int], ...] = (
    (360, 15),   # before 06:00
    (420, 10),   # 06:00-07:00
    (480, 5),    # 07:00-08:00
    (540, 0),    # 08:00-09:00
    (600, -5),   # 09:00-10:00
    (720, -10),  # 10:00-12:00
)
LATE_WAKE_SCORE = -15

PEAK_PERFORMANCE_SCORES: Dict[str, int] = {
    "early_morning": 12,
    "late_morning": 6,
    "afternoon": 0,
    "evening": -6,
    "night": -12,
}

CHRONOTYPE_WAKE_OFFSETS: Dict[str, int] = {
    "definite_morning": -60,
    "moderate_morning": -30,
    "intermediate": 0,
    "moderate_evening": 30,
    "definite_evening": 60,
}

SUBJECTIVE_WEIGHT = 0.4
BEHAVIORAL_WEIGHT = 0.6


def calculate_chronotype_score(responses: SleepNeedQuestionnaire) -> int:
    """MEQ-equivalent chronotype score, clamped to 16-86"""
    score = 50

    wake_minutes = time_to_minutes(responses.free_wake_time)
    for upper_bound, contribution in WAKE_TIME_BANDS:
        if wake_minutes < upper_bound:
            score += contribution
            break
    else:
        score += LATE_WAKE_SCORE

    score += (responses.morning_alertness - 3) * 4
    score -= (responses.waking_difficulty - 3) * 3
    score += PEAK_PERFORMANCE_SCORES.get(responses.peak_performance_time, 0)
    score += (responses.sleep_onset_ease - 3) * 2

    return max(MIN_CHRONOTYPE_SCORE, min(MAX_CHRONOTYPE_SCORE, score))


def classify_chronotype(score: int) -> Chronotype:
    if score >= 70:
        return "definite_morning"
    if score >= 59:
        return "moderate_morning"
    if score >= 42:
        return "intermediate"
    if score >= 31:
        return "moderate_evening"
    return "definite_evening"


def estimate_sleep_need(responses: SleepNeedQuestionnaire) -> int:
    """
    Individual sleep need in minutes

    Blends the subjective estimate (adjusted for fatigue and weekend
    catch-up sleep) with the observed free-day sleep duration.
    """
    subjective = responses.subjective_sleep_need * 60

    if responses.daytime_fatigue >= 4:
        subjective += 30
    elif responses.daytime_fatigue <= 2:
        subjective -= 15

    # Significant catch-up sleep suggests unmet need
    if responses.weekend_oversleep and responses.social_jet_lag > 60:
        subjective += min(responses.social_jet_lag / 2, 45)

    free_day_sleep = duration_minutes(responses.free_bedtime, responses.free_wake_time)
    estimate = subjective * SUBJECTIVE_WEIGHT + free_day_sleep * BEHAVIORAL_WEIGHT

    return max(MIN_SLEEP_NEED, min(MAX_SLEEP_NEED, round_half_up(estimate)))


def categorize_sleep_need(need_minutes: int) -> SleepNeedCategory:
    hours = need_minutes / 60
    if hours < 6.5:
        return "short_sleeper"
    if hours > 9:
        return "long_sleeper"
    return "average"


def calculate_optimal_times(chronotype: Chronotype, sleep_need: int, free_wake_time: str) -> Tuple[str, str]:
    """
    Optimal (wake time, bedtime) for a chronotype

    Wake time is the free-day preference shifted by the chronotype offset and
    kept within 05:00-10:00; bedtime leaves exactly the sleep need before it.
    """
    wake_minutes = time_to_minutes(free_wake_time) + CHRONOTYPE_WAKE_OFFSETS[chronotype]
    wake_minutes = max(EARLIEST_WAKE, min(LATEST_WAKE, wake_minutes))
    return minutes_to_time(wake_minutes), minutes_to_time(wake_minutes - sleep_need)


def estimate_sleep_debt(responses: SleepNeedQuestionnaire) -> int:
    """Rough weekly debt: five workdays of half the weekend oversleep"""
    if not responses.weekend_oversleep:
        return 0
    return round_half_up(responses.social_jet_lag * 2.5)


def classify_social_jet_lag(minutes: int) -> SocialJetLagSeverity:
    if minutes < 30:
        return "none"
    if minutes < 60:
        return "mild"
    if minutes < 120:
        return "moderate"
    return "severe"


def from_questionnaire(responses: SleepNeedQuestionnaire, user_id: Optional[str] = None) -> SleepProfile:
    """
    Build a sleep profile from questionnaire responses

    Args:
        responses: Validated questionnaire answers
        user_id: Optional owner of the profile

    Returns:
        SleepProfile; identical inputs always give an identical profile
    """
    score = calculate_chronotype_score(responses)
    chronotype = classify_chronotype(score)
    sleep_need = estimate_sleep_need(responses)
    wake_time, bedtime = calculate_optimal_times(chronotype, sleep_need, responses.free_wake_time)

    profile = SleepProfile(
        user_id=user_id,
        chronotype=chronotype,
        chronotype_score=score,
        sleep_need_minutes=sleep_need,
        sleep_need_category=categorize_sleep_need(sleep_need),
        optimal_wake_time=wake_time,
        optimal_bedtime=bedtime,
        social_jet_lag=responses.social_jet_lag,
        social_jet_lag_severity=classify_social_jet_lag(responses.social_jet_lag),
        accumulated_sleep_debt=estimate_sleep_debt(responses),
    )

    logger.info(
        f"Built sleep profile for user {user_id}: {chronotype} (score {score}), "
        f"need {sleep_need} min, window {bedtime}-{wake_time}"
    )
    return profile
