"""Optional forecast supplied by an external sleep-efficiency model"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Literal


Trend = Literal["improving", "stable", "declining", "critical"]


class PredictionSignal(BaseModel):
    """Predicted sleep efficiency for the coming nights"""

    point_estimate: float = Field(ge=0, le=100)  # predicted SE %
    lower95: float = Field(ge=0, le=100)
    upper95: float = Field(ge=0, le=100)
    trend: Trend = "stable"
    confidence: float = Field(ge=0.0, le=1.0)
    early_warnings: List[str] = Field(default_factory=list)  # high-severity messages only

    @model_validator(mode='after')
    def validate_interval(self) -> "PredictionSignal":
        if not (self.lower95 <= self.point_estimate <= self.upper95):
            raise ValueError(
                f"Prediction interval [{self.lower95}, {self.upper95}] "
                f"must contain the point estimate {self.point_estimate}"
            )
        return self
