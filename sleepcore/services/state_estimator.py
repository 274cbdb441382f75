"""
Belief state estimation

Fuses each daily observation into the running belief with a fixed-gain
filter: new = prior + k * (observed - prior). Fields the observation does not
carry (ISI is only collected periodically) keep their prior value.
"""

import logging
from typing import Dict, Optional

from sleepcore.exceptions import ConfigurationError
from sleepcore.models.sleep_state import LatentSleepState, Observation

logger = logging.getLogger(__name__)

DEFAULT_GAIN = 0.3

# Values used for fields a cold-start observation does not carry
COLD_START_DEFAULTS: Dict[str, float] = {
    "sleep_efficiency": 85.0,
    "isi_score": 0.0,
    "sol_minutes": 0.0,
    "waso_minutes": 0.0,
    "pre_sleep_arousal": 0.5,
    "sleep_anxiety": 0.5,
    "circadian_deviation": 0.0,
    "treatment_adherence": 0.7,
}

BLENDED_FIELDS = (
    "sleep_efficiency",
    "isi_score",
    "sol_minutes",
    "waso_minutes",
    "pre_sleep_arousal",
    "sleep_anxiety",
    "circadian_deviation",
    "treatment_adherence",
)


def _observed_values(observation: Observation) -> Dict[str, Optional[float]]:
    values = {
        "sleep_efficiency": observation.sleep_efficiency,
        "isi_score": observation.isi_score,
        "sol_minutes": observation.sol_minutes,
        "waso_minutes": observation.waso_minutes,
        "pre_sleep_arousal": observation.pre_sleep_arousal,
        "sleep_anxiety": observation.sleep_anxiety,
        "circadian_deviation": observation.circadian_deviation,
        "treatment_adherence": observation.observed_adherence(),
    }
    return values


class StateEstimator:
    """Fixed-gain belief filter; holds no per-user state"""

    def __init__(self, gain: float = DEFAULT_GAIN):
        if not 0 < gain <= 1:
            raise ConfigurationError(
                message=f"Filter gain must be in (0, 1] (got {gain})",
                config_key="kalman_gain"
            )
        self.gain = gain

    def update(self, prior: Optional[LatentSleepState], observation: Observation) -> LatentSleepState:
        """
        Return the belief after seeing observation

        Args:
            prior: Current belief, or None before the first observation
            observation: New (possibly partial) measurement

        Returns:
            A new LatentSleepState; the prior is never modified
        """
        observed = _observed_values(observation)

        if prior is None:
            missing = [name for name, value in observed.items() if value is None]
            if missing:
                logger.debug(f"Cold start with defaults for: {', '.join(missing)}")
            fields = {
                name: value if value is not None else COLD_START_DEFAULTS[name]
                for name, value in observed.items()
            }
            fields["treatment_week"] = observation.treatment_week or 1
            return LatentSleepState(**fields)

        fields = {}
        for name in BLENDED_FIELDS:
            prior_value = getattr(prior, name)
            value = observed[name]
            if value is None:
                fields[name] = prior_value
            else:
                fields[name] = prior_value + self.gain * (value - prior_value)

        fields["treatment_week"] = observation.treatment_week or prior.treatment_week
        return LatentSleepState(**fields)
