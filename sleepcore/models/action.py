"""Intervention catalogue and Thompson Sampling statistics"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Literal, get_args


SleepAction = Literal[
    "adjust_sleep_window",     # sleep restriction: expand/contract TIB
    "enforce_wake_time",       # sleep restriction: strict wake time
    "leave_bed_reminder",      # stimulus control: get up if not sleeping
    "bed_restriction",         # stimulus control: bed only for sleep
    "challenge_belief",        # cognitive restructuring: Socratic questioning
    "behavioral_experiment",   # cognitive restructuring: test a belief
    "caffeine_education",      # sleep hygiene
    "environment_advice",      # sleep hygiene: bedroom optimization
    "relaxation_pmr",          # progressive muscle relaxation
    "relaxation_breathing",
    "relaxation_imagery",
    "no_intervention",         # wait and observe
]

ALL_ACTIONS: tuple = get_args(SleepAction)

NO_INTERVENTION = "no_intervention"

# Fixed iteration and tie-break order: lexicographic by action id
ACTION_PRIORITY: tuple = tuple(sorted(ALL_ACTIONS))


class ActionStatistic(BaseModel):
    """Beta posterior parameters for one intervention"""

    model_config = ConfigDict(frozen=True)

    action: SleepAction
    alpha: float = Field(gt=0)  # successes + prior
    beta: float = Field(gt=0)  # failures + prior
    last_updated: Optional[datetime] = None

    @property
    def trials(self) -> float:
        return self.alpha + self.beta

    @property
    def mean(self) -> float:
        """Posterior mean success probability"""
        return self.alpha / (self.alpha + self.beta)
