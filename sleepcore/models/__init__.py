"""
Data models for the sleep decision engine

Every model is a pydantic BaseModel so range checks happen at the boundary
where collaborators hand data to the engine.
"""

from sleepcore.models.action import ActionStatistic, SleepAction, ALL_ACTIONS, NO_INTERVENTION
from sleepcore.models.decision import AdjustmentBasis, Decision, TailoringVariables, TIBAdjustment
from sleepcore.models.prediction import PredictionSignal
from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.models.profile import SleepNeedQuestionnaire, SleepProfile
from sleepcore.models.snapshot import EngineSnapshot
from sleepcore.models.sleep_state import LatentSleepState, Observation

__all__ = [
    "ActionStatistic",
    "SleepAction",
    "ALL_ACTIONS",
    "NO_INTERVENTION",
    "AdjustmentBasis",
    "Decision",
    "TailoringVariables",
    "TIBAdjustment",
    "PredictionSignal",
    "Prescription",
    "SleepMetrics",
    "SleepNeedQuestionnaire",
    "SleepProfile",
    "EngineSnapshot",
    "LatentSleepState",
    "Observation",
]
