"""
Action value model for Thompson Sampling

Keeps one Beta(alpha, beta) posterior per intervention. Outcomes are
binarized at exactly zero: a positive reward counts as a success, anything
else as a failure.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sleepcore.exceptions import ConfigurationError, ValidationError
from sleepcore.models.action import ActionStatistic, ALL_ACTIONS

logger = logging.getLogger(__name__)


class ActionValueModel:
    """Per-user success/failure counters for every known intervention"""

    def __init__(self, prior_strength: float = 1.0, actions: Iterable[str] = ALL_ACTIONS):
        if prior_strength <= 0:
            raise ConfigurationError(
                message=f"Prior strength must be positive (got {prior_strength})",
                config_key="prior_strength"
            )
        self.prior_strength = prior_strength
        self._stats: Dict[str, ActionStatistic] = {
            action: ActionStatistic(action=action, alpha=prior_strength, beta=prior_strength)
            for action in actions
        }

    @property
    def actions(self) -> List[str]:
        return list(self._stats)

    def get(self, action: str) -> ActionStatistic:
        """Get the statistic for an action"""
        stat = self._stats.get(action)
        if stat is None:
            raise ValidationError(message=f"Unknown action '{action}'", field="action", value=action)
        return stat

    def record_outcome(self, action: str, reward: float, at: Optional[datetime] = None) -> ActionStatistic:
        """
        Count one outcome for an action

        Args:
            action: Intervention that was delivered
            reward: Transition reward; > 0 is a success, <= 0 a failure
            at: Time of the outcome (defaults to now, UTC)

        Returns:
            The updated statistic
        """
        stat = self.get(action)
        if reward > 0:
            updated = stat.model_copy(update={"alpha": stat.alpha + 1, "last_updated": at or datetime.now(timezone.utc)})
        else:
            updated = stat.model_copy(update={"beta": stat.beta + 1, "last_updated": at or datetime.now(timezone.utc)})

        self._stats[action] = updated
        logger.debug(
            f"Recorded {'success' if reward > 0 else 'failure'} for {action}: "
            f"alpha={updated.alpha}, beta={updated.beta}"
        )
        return updated

    def snapshot(self) -> List[ActionStatistic]:
        """Export statistics in a stable order for persistence"""
        return [self._stats[action] for action in sorted(self._stats)]

    def restore(self, snapshot: List[ActionStatistic]) -> None:
        """
        Replace all statistics with a previously exported snapshot

        Raises:
            ValidationError: If the snapshot names an unknown action or repeats one
        """
        restored: Dict[str, ActionStatistic] = {}
        for stat in snapshot:
            if stat.action not in self._stats:
                raise ValidationError(
                    message=f"Snapshot contains unknown action '{stat.action}'",
                    field="action",
                    value=stat.action
                )
            if stat.action in restored:
                raise ValidationError(
                    message=f"Snapshot contains duplicate action '{stat.action}'",
                    field="action",
                    value=stat.action
                )
            restored[stat.action] = stat

        # Actions absent from an older snapshot start from the prior
        for action in self._stats:
            if action not in restored:
                restored[action] = ActionStatistic(
                    action=action, alpha=self.prior_strength, beta=self.prior_strength
                )

        self._stats = {action: restored[action] for action in self._stats}
        logger.info(f"Restored statistics for {len(snapshot)} actions")
