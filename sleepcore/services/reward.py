"""Reward for a belief-state transition"""

import logging
from dataclasses import dataclass
from typing import Optional

from sleepcore.config import RewardWeights
from sleepcore.models.sleep_state import LatentSleepState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardResult:
    """Weighted reward plus whether one could be computed at all"""
    value: float
    computed: bool
    efficiency_component: float = 0.0
    isi_component: float = 0.0
    sol_component: float = 0.0
    adherence_component: float = 0.0

    @property
    def no_reward(self) -> bool:
        return not self.computed


NO_REWARD = RewardResult(value=0.0, computed=False)


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def compute_reward(
    previous: Optional[LatentSleepState],
    current: Optional[LatentSleepState],
    weights: Optional[RewardWeights] = None,
) -> RewardResult:
    """
    Score the transition from previous to current belief

    Components, each clamped to [-1, 1] before weighting:
    - sleep efficiency gain / 100
    - ISI decrease / 28
    - min(1, SOL decrease / 30)
    - current adherence

    Returns NO_REWARD when either belief is missing.
    """
    if previous is None or current is None:
        logger.debug("Reward skipped: transition needs both a previous and a current belief")
        return NO_REWARD

    weights = weights or RewardWeights()

    efficiency = _clamp_unit((current.sleep_efficiency - previous.sleep_efficiency) / 100)
    isi = _clamp_unit((previous.isi_score - current.isi_score) / 28)
    sol = _clamp_unit(min(1.0, (previous.sol_minutes - current.sol_minutes) / 30))
    adherence = _clamp_unit(current.treatment_adherence)

    value = (
        weights.sleep_efficiency * efficiency
        + weights.isi_reduction * isi
        + weights.sol_reduction * sol
        + weights.adherence * adherence
    )

    return RewardResult(
        value=value,
        computed=True,
        efficiency_component=efficiency,
        isi_component=isi,
        sol_component=sol,
        adherence_component=adherence,
    )
