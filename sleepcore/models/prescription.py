"""Sleep window prescription and nightly metrics models"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional

from sleepcore.config import ABSOLUTE_MIN_TIB, ABSOLUTE_MAX_TIB
from sleepcore.utils.time_helpers import time_to_minutes, bedtime_from_wake_time


def _validate_clock_time(v: Optional[str]) -> Optional[str]:
    if v is not None:
        time_to_minutes(v)
    return v


class Prescription(BaseModel):
    """
    Prescribed sleep window for one treatment week

    Invariants checked on every construction:
    - 300 <= tib_minutes <= 540
    - bedtime == (wake_time - tib_minutes) mod 24h
    """

    model_config = ConfigDict(frozen=True)

    tib_minutes: int = Field(ge=ABSOLUTE_MIN_TIB, le=ABSOLUTE_MAX_TIB)
    bedtime: str  # "HH:MM"
    wake_time: str  # "HH:MM"
    week: int = Field(default=1, ge=1)

    @field_validator('bedtime', 'wake_time')
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        """Ensure HH:MM format and valid time"""
        return _validate_clock_time(v)

    @model_validator(mode='after')
    def validate_window(self) -> "Prescription":
        expected = bedtime_from_wake_time(self.wake_time, self.tib_minutes)
        if time_to_minutes(self.bedtime) != time_to_minutes(expected):
            raise ValueError(
                f"Bedtime {self.bedtime} does not match wake time {self.wake_time} "
                f"minus {self.tib_minutes} minutes (expected {expected})"
            )
        return self

    @classmethod
    def from_wake_time(cls, wake_time: str, tib_minutes: int, week: int = 1) -> "Prescription":
        """Build a prescription anchored on a fixed wake time"""
        return cls(
            tib_minutes=tib_minutes,
            bedtime=bedtime_from_wake_time(wake_time, tib_minutes),
            wake_time=wake_time,
            week=week,
        )


class SleepMetrics(BaseModel):
    """One night of derived diary metrics"""

    sleep_efficiency: float = Field(ge=0, le=100)
    time_in_bed_minutes: Optional[int] = Field(None, ge=0, le=1440)
    total_sleep_minutes: Optional[int] = Field(None, ge=0, le=1440)
    bedtime: Optional[str] = None
    wake_time: Optional[str] = None

    @field_validator('bedtime', 'wake_time')
    @classmethod
    def validate_time_format(cls, v: Optional[str]) -> Optional[str]:
        return _validate_clock_time(v)
