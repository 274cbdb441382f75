"""
Intervention selection with Thompson Sampling

For every action the current belief allows, a success probability is drawn
from the action's Beta posterior and a deterministic context bonus is added.
The action with the highest adjusted sample is delivered.

Actions are always visited in ACTION_PRIORITY order (lexicographic by id).
That order fixes both how the random stream is consumed and how ties are
broken: a later action must be strictly better to replace an earlier one.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

import numpy as np

from sleepcore.models.action import ACTION_PRIORITY, NO_INTERVENTION
from sleepcore.models.sleep_state import LatentSleepState
from sleepcore.services.action_values import ActionValueModel
from sleepcore.utils.sampling import sample_beta

logger = logging.getLogger(__name__)

ValidActionsFn = Callable[[LatentSleepState], Iterable[str]]
ContextBonusFn = Callable[[str, LatentSleepState], float]

# Thresholds gating which interventions make sense for a belief
LOW_EFFICIENCY_THRESHOLD = 85.0
LONG_SOL_THRESHOLD = 20.0
ANXIETY_THRESHOLD = 0.4
AROUSAL_THRESHOLD = 0.4

# Context bonuses
HIGH_ANXIETY_LEVEL = 0.6
HIGH_ANXIETY_BONUS = 0.15
VERY_LOW_EFFICIENCY_LEVEL = 80.0
RESTRICTION_BONUS = 0.10
VERY_LONG_SOL_LEVEL = 30.0
LEAVE_BED_BONUS = 0.15
UNDER_SAMPLED_TRIALS = 5


def default_valid_actions(belief: LatentSleepState) -> set:
    """Interventions appropriate for the current belief"""
    actions = {"enforce_wake_time", "bed_restriction", "caffeine_education", "environment_advice", NO_INTERVENTION}

    if belief.sleep_efficiency < LOW_EFFICIENCY_THRESHOLD:
        actions.add("adjust_sleep_window")

    if belief.sol_minutes > LONG_SOL_THRESHOLD:
        actions.add("leave_bed_reminder")

    if belief.sleep_anxiety > ANXIETY_THRESHOLD:
        actions.update({"challenge_belief", "behavioral_experiment"})

    if belief.pre_sleep_arousal > AROUSAL_THRESHOLD:
        actions.update({"relaxation_pmr", "relaxation_breathing", "relaxation_imagery"})

    return actions


def make_context_bonus(action_model: ActionValueModel, exploration_bonus: float = 0.1) -> ContextBonusFn:
    """
    Build the default context bonus for a user's action model

    The returned function is deterministic for a given belief and set of
    statistics.
    """

    def context_bonus(action: str, belief: LatentSleepState) -> float:
        bonus = 0.0

        # High anxiety favours relaxation and cognitive challenge
        if belief.sleep_anxiety > HIGH_ANXIETY_LEVEL:
            if action.startswith("relaxation_") or action.startswith("challenge_"):
                bonus += HIGH_ANXIETY_BONUS

        if belief.sleep_efficiency < VERY_LOW_EFFICIENCY_LEVEL:
            if action in ("adjust_sleep_window", "enforce_wake_time"):
                bonus += RESTRICTION_BONUS

        if belief.sol_minutes > VERY_LONG_SOL_LEVEL and action == "leave_bed_reminder":
            bonus += LEAVE_BED_BONUS

        # Exploration for under-sampled actions
        if action_model.get(action).trials < UNDER_SAMPLED_TRIALS:
            bonus += exploration_bonus

        return bonus

    return context_bonus


class PolicySelector:
    """Thompson Sampling over one user's action statistics"""

    def __init__(self, action_model: ActionValueModel, rng: np.random.Generator, exploration_bonus: float = 0.1):
        self.action_model = action_model
        self.rng = rng
        self.exploration_bonus = exploration_bonus

    def score_actions(
        self,
        belief: LatentSleepState,
        valid_actions_fn: ValidActionsFn = default_valid_actions,
        context_bonus_fn: Optional[ContextBonusFn] = None,
    ) -> Dict[str, float]:
        """
        Draw one adjusted posterior sample per valid action

        Returns:
            Ordered mapping action -> sample + bonus, in priority order
        """
        if context_bonus_fn is None:
            context_bonus_fn = make_context_bonus(self.action_model, self.exploration_bonus)

        valid = set(valid_actions_fn(belief))
        unknown = valid.difference(self.action_model.actions)
        if unknown:
            logger.warning(f"Ignoring unknown actions from valid-action predicate: {sorted(unknown)}")

        scores: Dict[str, float] = {}
        for action in ACTION_PRIORITY:
            if action not in valid or action not in self.action_model.actions:
                continue
            stat = self.action_model.get(action)
            sample = sample_beta(stat.alpha, stat.beta, self.rng)
            scores[action] = sample + context_bonus_fn(action, belief)

        return scores

    def select_action(
        self,
        belief: Optional[LatentSleepState],
        valid_actions_fn: ValidActionsFn = default_valid_actions,
        context_bonus_fn: Optional[ContextBonusFn] = None,
    ) -> str:
        """
        Choose the next intervention

        Args:
            belief: Current belief; None before any observation
            valid_actions_fn: Pure predicate giving the allowed actions for a belief
            context_bonus_fn: Deterministic bonus per (action, belief)

        Returns:
            The chosen action id; NO_INTERVENTION when nothing is valid
        """
        if belief is None:
            logger.debug("No belief yet, selecting no_intervention")
            return NO_INTERVENTION

        scores = self.score_actions(belief, valid_actions_fn, context_bonus_fn)
        if not scores:
            logger.debug("No valid actions for current belief, selecting no_intervention")
            return NO_INTERVENTION

        best_action = NO_INTERVENTION
        best_score = -np.inf
        for action, score in scores.items():
            if score > best_score:
                best_score = score
                best_action = action

        logger.debug(f"Selected {best_action} (adjusted sample {best_score:.3f}) from {len(scores)} candidates")
        return best_action
