"""Configuration management"""
import os
import logging
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from sleepcore.exceptions import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Belief state estimation
KALMAN_GAIN: float = float(os.getenv("KALMAN_GAIN", "0.3"))

# Thompson Sampling
PRIOR_STRENGTH: float = float(os.getenv("PRIOR_STRENGTH", "1"))
EXPLORATION_BONUS: float = float(os.getenv("EXPLORATION_BONUS", "0.1"))

# Time-in-bed personalization
ENABLE_MODEL_ADJUSTMENT: bool = os.getenv("ENABLE_MODEL_ADJUSTMENT", "true").lower() == "true"
MIN_PREDICTION_CONFIDENCE: float = float(os.getenv("MIN_PREDICTION_CONFIDENCE", "0.6"))
CONSERVATIVE_MODE: bool = os.getenv("CONSERVATIVE_MODE", "true").lower() == "true"
MIN_DATA_DAYS: int = int(os.getenv("MIN_DATA_DAYS", "7"))
MIN_TIB_MINUTES: int = int(os.getenv("MIN_TIB_MINUTES", "300"))
MAX_TIB_MINUTES: int = int(os.getenv("MAX_TIB_MINUTES", "540"))

# Audit trail: decisions kept in memory before being handed back for persistence
DECISION_LOG_RETENTION: int = int(os.getenv("DECISION_LOG_RETENTION", "500"))

# Monitoring
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true"

# Hard bounds for any prescribed time in bed
ABSOLUTE_MIN_TIB = 300
ABSOLUTE_MAX_TIB = 540


class RewardWeights(BaseModel):
    """Weights of the reward components; must sum to 1"""

    sleep_efficiency: float = Field(default=0.35, ge=0.0)
    isi_reduction: float = Field(default=0.35, ge=0.0)
    sol_reduction: float = Field(default=0.15, ge=0.0)
    adherence: float = Field(default=0.15, ge=0.0)

    @model_validator(mode='after')
    def validate_total(self) -> "RewardWeights":
        total = self.sleep_efficiency + self.isi_reduction + self.sol_reduction + self.adherence
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Reward weights must sum to 1 (got {total:.3f})")
        return self


class EngineConfig(BaseModel):
    """
    Per-user engine configuration

    Defaults come from the environment. Every field is validated when the
    model is built so a bad value never reaches observation processing.
    """

    model_config = ConfigDict(validate_default=True)

    kalman_gain: float = Field(default=KALMAN_GAIN, gt=0.0, le=1.0)
    prior_strength: float = Field(default=PRIOR_STRENGTH, gt=0.0)
    exploration_bonus: float = Field(default=EXPLORATION_BONUS, ge=0.0)
    reward_weights: RewardWeights = Field(default_factory=RewardWeights)

    enable_model_adjustment: bool = ENABLE_MODEL_ADJUSTMENT
    min_prediction_confidence: float = Field(default=MIN_PREDICTION_CONFIDENCE, ge=0.0, le=1.0)
    conservative_mode: bool = CONSERVATIVE_MODE
    min_data_days: int = Field(default=MIN_DATA_DAYS, ge=1)
    min_tib_minutes: int = MIN_TIB_MINUTES
    max_tib_minutes: int = MAX_TIB_MINUTES

    free_days: list[int] = Field(default_factory=lambda: [5, 6])  # Monday=0
    decision_log_retention: int = Field(default=DECISION_LOG_RETENTION, ge=1)

    @model_validator(mode='after')
    def validate_tib_bounds(self) -> "EngineConfig":
        if self.min_tib_minutes > self.max_tib_minutes:
            raise ValueError(
                f"min_tib_minutes ({self.min_tib_minutes}) must not exceed "
                f"max_tib_minutes ({self.max_tib_minutes})"
            )
        if self.min_tib_minutes < ABSOLUTE_MIN_TIB or self.max_tib_minutes > ABSOLUTE_MAX_TIB:
            raise ValueError(
                f"TIB bounds must stay within {ABSOLUTE_MIN_TIB}-{ABSOLUTE_MAX_TIB} minutes"
            )
        for day in self.free_days:
            if day < 0 or day > 6:
                raise ValueError(f"Invalid free day: {day}. Days must be 0-6 (Monday=0, Sunday=6)")
        return self


def load_engine_config(**overrides: Any) -> EngineConfig:
    """
    Build an EngineConfig, turning validation failures into ConfigurationError

    Args:
        **overrides: Field values that replace the environment defaults

    Raises:
        ConfigurationError: If any value is invalid
    """
    try:
        return EngineConfig(**overrides)
    except PydanticValidationError as e:
        errors = e.errors()
        config_key = ".".join(str(part) for part in errors[0]["loc"]) if errors and errors[0]["loc"] else None
        raise ConfigurationError(
            message=f"Invalid engine configuration: {e.error_count()} error(s)",
            config_key=config_key,
            operation="load_engine_config",
            cause=e
        )


# Validation
def validate_config() -> None:
    """Validate environment-level configuration"""
    if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(f"LOG_LEVEL must be a standard logging level (got {LOG_LEVEL})")
    load_engine_config()
    logger.debug("Environment configuration validated")
