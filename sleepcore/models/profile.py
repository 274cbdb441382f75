"""Pydantic models for the onboarding sleep-need questionnaire and derived profile"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional

from sleepcore.utils.time_helpers import time_to_minutes


Chronotype = Literal[
    "definite_morning",
    "moderate_morning",
    "intermediate",
    "moderate_evening",
    "definite_evening",
]

SleepNeedCategory = Literal["short_sleeper", "average", "long_sleeper"]

PeakPerformanceTime = Literal["early_morning", "late_morning", "afternoon", "evening", "night"]

SocialJetLagSeverity = Literal["none", "mild", "moderate", "severe"]


class SleepNeedQuestionnaire(BaseModel):
    """Responses to the one-time chronotype / sleep-need questionnaire"""

    free_wake_time: str  # preferred wake time on free days without alarm, "HH:MM"
    free_bedtime: str  # preferred bedtime on free days, "HH:MM"
    subjective_sleep_need: float = Field(ge=3, le=14)  # hours to feel fully rested
    morning_alertness: int = Field(ge=1, le=5)
    waking_difficulty: int = Field(ge=1, le=5)
    peak_performance_time: PeakPerformanceTime
    sleep_onset_ease: int = Field(ge=1, le=5)  # falling asleep at 23:00
    daytime_fatigue: int = Field(default=3, ge=1, le=5)
    weekend_oversleep: bool = False
    social_jet_lag: int = Field(default=0, ge=0, le=720)  # extra minutes slept on free days

    @field_validator('free_wake_time', 'free_bedtime')
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        """Ensure HH:MM format and valid time"""
        time_to_minutes(v)
        return v


class SleepProfile(BaseModel):
    """Chronotype and sleep-need profile; re-created only by a new questionnaire"""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    chronotype: Chronotype
    chronotype_score: int = Field(ge=16, le=86)  # MEQ-equivalent, higher = more morning
    sleep_need_minutes: int = Field(ge=300, le=600)
    sleep_need_category: SleepNeedCategory
    optimal_wake_time: str
    optimal_bedtime: str
    social_jet_lag: int  # minutes
    social_jet_lag_severity: SocialJetLagSeverity
    accumulated_sleep_debt: int  # minutes

    @property
    def is_evening_type(self) -> bool:
        return self.chronotype in ("moderate_evening", "definite_evening")
