"""Audit records produced by the engine: JITAI decisions and TIB adjustments"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from sleepcore.models.prediction import Trend


DecisionType = Literal["reminder", "adjustment", "encouragement", "warning", "no_op"]

# Which branch of the scheduling cascade produced the decision
DecisionRule = Literal["bedtime_window", "free_day", "trend", "default"]


class TailoringVariables(BaseModel):
    """Context snapshot captured at a decision point"""

    model_config = ConfigDict(frozen=True)

    minutes_to_bedtime: int
    predicted_se: float
    prediction_confidence: float
    recent_adherence: float
    days_in_treatment: int
    trend: Trend
    is_free_day: bool
    social_jet_lag: Optional[int] = None


class Decision(BaseModel):
    """Append-only record of one just-in-time scheduling decision"""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    timestamp: datetime
    decision_type: DecisionType
    rule: DecisionRule
    tailoring_variables: TailoringVariables
    selected_intervention: str
    intervention_options: List[str]
    selection_reason: str


class AdjustmentBasis(str, Enum):
    """Which path produced a time-in-bed recommendation"""

    RULE = "rule"
    MODEL = "model"
    HYBRID = "hybrid"
    SAFETY_OVERRIDE = "safety_override"


class TIBAdjustment(BaseModel):
    """Recommended weekly change to the prescribed time in bed"""

    model_config = ConfigDict(frozen=True)

    delta: int  # minutes, positive = more time in bed
    current_tib: int
    proposed_tib: int
    confidence: float = Field(ge=0.0, le=1.0)
    basis: AdjustmentBasis
    source_basis: AdjustmentBasis  # path that produced the raw delta, before any safety clamp
    predicted_se: float
    predicted_se_lower: float
    predicted_se_upper: float
    explanation: str
    risk_factors: List[str] = Field(default_factory=list)
    protective_factors: List[str] = Field(default_factory=list)

    @property
    def safety_clamped(self) -> bool:
        return self.basis == AdjustmentBasis.SAFETY_OVERRIDE
