"""Serializable state of one user's engine"""
from pydantic import BaseModel, Field
from typing import List, Optional

from sleepcore.config import EngineConfig
from sleepcore.models.action import ActionStatistic, SleepAction
from sleepcore.models.decision import Decision
from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.models.profile import SleepProfile
from sleepcore.models.sleep_state import LatentSleepState


class EngineSnapshot(BaseModel):
    """
    Everything needed to resume a user's engine

    The random generator is not part of the snapshot; the caller supplies
    one on restore so replays are reproducible from a known seed.
    """

    user_id: str
    belief: Optional[LatentSleepState] = None
    action_stats: List[ActionStatistic]
    config: EngineConfig
    pending_action: Optional[SleepAction] = None
    profile: Optional[SleepProfile] = None
    prescription: Optional[Prescription] = None

    # Diary history kept for adherence and weekly titration
    nights: List[SleepMetrics] = Field(default_factory=list)
    nights_since_adjustment: int = Field(default=0, ge=0)
    adherence_scores: List[float] = Field(default_factory=list)

    # Scheduling audit trail, oldest first
    decisions: List[Decision] = Field(default_factory=list)
    decisions_recorded: int = Field(default=0, ge=0)
