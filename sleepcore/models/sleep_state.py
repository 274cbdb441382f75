"""Pydantic models for the latent sleep state and daily observations"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Literal


ObservationSource = Literal["diary", "wearable", "hybrid"]


class LatentSleepState(BaseModel):
    """
    Smoothed belief about a user's sleep state

    Frozen: every update produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    sleep_efficiency: float = Field(ge=0, le=100)  # %
    isi_score: float = Field(ge=0, le=28)  # Insomnia Severity Index
    sol_minutes: float = Field(ge=0)  # sleep onset latency
    waso_minutes: float = Field(ge=0)  # wake after sleep onset
    pre_sleep_arousal: float = Field(ge=0, le=1)
    sleep_anxiety: float = Field(ge=0, le=1)
    circadian_deviation: float  # hours, signed
    treatment_adherence: float = Field(ge=0, le=1)
    treatment_week: int = Field(ge=1)


class Observation(BaseModel):
    """One noisy daily measurement; any latent field may be missing"""

    timestamp: datetime
    source: ObservationSource = "diary"

    sleep_efficiency: Optional[float] = Field(None, ge=0, le=100)
    isi_score: Optional[float] = Field(None, ge=0, le=28)  # collected periodically
    sol_minutes: Optional[float] = Field(None, ge=0, le=300)
    waso_minutes: Optional[float] = Field(None, ge=0, le=600)
    pre_sleep_arousal: Optional[float] = Field(None, ge=0, le=1)
    sleep_anxiety: Optional[float] = Field(None, ge=0, le=1)
    circadian_deviation: Optional[float] = Field(None, ge=-12, le=12)
    adherence: Optional[float] = Field(None, ge=0, le=1)
    followed_prescription: Optional[bool] = None
    treatment_week: Optional[int] = Field(None, ge=1)

    subjective_quality: Optional[int] = Field(None, ge=1, le=10)
    morning_mood: Optional[int] = Field(None, ge=1, le=10)

    def observed_adherence(self) -> Optional[float]:
        """Adherence score if reported, else derived from the prescription flag"""
        if self.adherence is not None:
            return self.adherence
        if self.followed_prescription is not None:
            return 1.0 if self.followed_prescription else 0.0
        return None
