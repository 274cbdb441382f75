"""
Per-user sleep engine

Composition root for one user: owns the belief, the action statistics, the
profile, the current prescription and the decision log, and wires the
stateless components together. Observation processing (belief update,
reward, credit to the pending intervention) runs as one unit under the
engine's lock, as does every other change to per-user state.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import numpy as np

from sleepcore.config import EngineConfig
from sleepcore.exceptions import ValidationError
from sleepcore.models.action import NO_INTERVENTION
from sleepcore.models.decision import Decision, TIBAdjustment
from sleepcore.models.prediction import PredictionSignal
from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.models.profile import SleepNeedQuestionnaire, SleepProfile
from sleepcore.models.sleep_state import LatentSleepState, Observation
from sleepcore.models.snapshot import EngineSnapshot
from sleepcore.observability import metrics
from sleepcore.services.action_values import ActionValueModel
from sleepcore.services.adherence import night_adherence
from sleepcore.services.decision_log import DecisionLog
from sleepcore.services.jitai_scheduler import JITAIScheduler, ReminderSlot, reminder_timetable
from sleepcore.services.policy_selector import PolicySelector
from sleepcore.services.reward import RewardResult, compute_reward
from sleepcore.services.sleep_profile import from_questionnaire
from sleepcore.services.sleep_window import initial_prescription
from sleepcore.services.state_estimator import StateEstimator
from sleepcore.services.tib_advisor import TIBAdjustmentAdvisor, apply_adjustment
from sleepcore.utils.sampling import make_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObservationResult:
    """Outcome of fusing one observation"""
    belief: LatentSleepState
    reward: RewardResult
    credited_action: Optional[str] = None


class SleepEngine:
    """
    Adaptive intervention engine for a single user

    Example:
        engine = SleepEngine("user-1", rng=make_rng(42))
        engine.process_observation(Observation(timestamp=now, sleep_efficiency=78))
        action = engine.select_action()
    """

    def __init__(
        self,
        user_id: str,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.user_id = user_id
        self.config = config or EngineConfig()
        self.rng = rng if rng is not None else make_rng()

        self.estimator = StateEstimator(self.config.kalman_gain)
        self.action_model = ActionValueModel(self.config.prior_strength)
        self.selector = PolicySelector(self.action_model, self.rng, self.config.exploration_bonus)
        self.advisor = TIBAdjustmentAdvisor(self.config)
        self.decision_log = DecisionLog(self.config.decision_log_retention)
        self.scheduler = JITAIScheduler(self.config, self.decision_log)

        self.belief: Optional[LatentSleepState] = None
        self.pending_action: Optional[str] = None
        self.profile: Optional[SleepProfile] = None
        self.prescription: Optional[Prescription] = None

        self.nights: List[SleepMetrics] = []
        self.nights_since_adjustment = 0
        self.adherence_scores: List[float] = []

        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Belief and intervention loop
    # ------------------------------------------------------------------

    def process_observation(self, observation: Observation) -> ObservationResult:
        """
        Fuse an observation and credit the intervention delivered before it

        The reward for the transition old belief -> new belief is credited
        to the pending action, which is then cleared. The first observation
        only seeds the belief.
        """
        with self._lock:
            previous = self.belief
            current = self.estimator.update(previous, observation)
            reward = compute_reward(previous, current, self.config.reward_weights)

            credited = None
            if self.pending_action is not None and reward.computed:
                self.action_model.record_outcome(self.pending_action, reward.value, at=observation.timestamp)
                metrics.record_reward(reward.value)
                credited = self.pending_action
                self.pending_action = None

            self.belief = current

        metrics.record_observation(observation.source)
        logger.debug(
            f"User {self.user_id}: belief SE={current.sleep_efficiency:.1f}, "
            f"reward={reward.value:.3f}, credited={credited}"
        )
        return ObservationResult(belief=current, reward=reward, credited_action=credited)

    def select_action(self) -> str:
        """Choose the next intervention and remember it for crediting"""
        with self._lock:
            if self.belief is None:
                return NO_INTERVENTION

            action = self.selector.select_action(self.belief)
            if self.pending_action is not None:
                logger.warning(
                    f"User {self.user_id}: intervention {self.pending_action} was never credited; "
                    f"replacing it with {action}"
                )
            self.pending_action = action

        metrics.record_action(action)
        logger.info(f"User {self.user_id}: selected intervention {action}")
        return action

    # ------------------------------------------------------------------
    # Profile and prescription
    # ------------------------------------------------------------------

    def set_profile(self, responses: SleepNeedQuestionnaire) -> SleepProfile:
        profile = from_questionnaire(responses, user_id=self.user_id)
        with self._lock:
            self.profile = profile
        return profile

    def record_night(self, night: SleepMetrics) -> Optional[float]:
        """
        Add one night of diary metrics

        Returns:
            The night's adherence score, or None before a prescription exists
        """
        with self._lock:
            self.nights.append(night)
            self.nights_since_adjustment += 1
            if self.prescription is None:
                return None
            score = night_adherence(self.prescription, night)
            self.adherence_scores.append(score)
            return score

    def initialize_prescription(self, preferred_wake_time: Optional[str] = None) -> Prescription:
        """First-week sleep window from the baseline nights recorded so far"""
        with self._lock:
            self.prescription = initial_prescription(
                self.nights,
                config=self.config,
                profile=self.profile,
                preferred_wake_time=preferred_wake_time,
                user_id=self.user_id,
            )
            self.nights_since_adjustment = 0
            return self.prescription

    def _require_prescription(self, operation: str) -> Prescription:
        if self.prescription is None:
            raise ValidationError(
                message="No sleep window has been prescribed yet",
                field="prescription",
                user_id=self.user_id,
                operation=operation
            )
        return self.prescription

    def recommend_tib(self, prediction: Optional[PredictionSignal] = None) -> TIBAdjustment:
        """Recommendation over the nights recorded since the last adjustment"""
        with self._lock:
            prescription = self._require_prescription("recommend_tib")
            recent = self.nights[len(self.nights) - self.nights_since_adjustment:] if self.nights_since_adjustment else []
        return self.advisor.recommend(prescription, recent, prediction=prediction, user_id=self.user_id)

    def apply_weekly_adjustment(self, prediction: Optional[PredictionSignal] = None) -> Prescription:
        """Recommend and adopt next week's sleep window"""
        with self._lock:
            adjustment = self.recommend_tib(prediction)
            self.prescription = apply_adjustment(self.prescription, adjustment)
            self.nights_since_adjustment = 0
            prescription = self.prescription

        logger.info(
            f"User {self.user_id}: week {prescription.week} window "
            f"{prescription.bedtime}-{prescription.wake_time}"
        )
        return prescription

    def reminder_timetable(self) -> List[ReminderSlot]:
        return reminder_timetable(self._require_prescription("reminder_timetable"), self.profile)

    # ------------------------------------------------------------------
    # Just-in-time scheduling
    # ------------------------------------------------------------------

    def decide(
        self,
        now: datetime,
        adherence_history: Optional[List[float]] = None,
        prediction: Optional[PredictionSignal] = None,
    ) -> Decision:
        """
        JITAI decision for this moment

        Uses the engine's own adherence scores when no history is passed.
        """
        with self._lock:
            prescription = self._require_prescription("decide")
            history = adherence_history if adherence_history is not None else list(self.adherence_scores)
            return self.scheduler.decide(
                self.user_id,
                prescription,
                now,
                adherence_history=history,
                prediction=prediction,
                profile=self.profile,
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self, drain_export: bool = False) -> EngineSnapshot:
        """
        Export the engine's state

        Args:
            drain_export: Also hand back decisions already evicted from the
                in-memory log; use when the engine is being retired
        """
        with self._lock:
            decisions = self.decision_log.drain_export() if drain_export else []
            decisions.extend(self.decision_log.page(0, len(self.decision_log)))
            return EngineSnapshot(
                user_id=self.user_id,
                belief=self.belief,
                action_stats=self.action_model.snapshot(),
                config=self.config,
                pending_action=self.pending_action,
                profile=self.profile,
                prescription=self.prescription,
                nights=list(self.nights),
                nights_since_adjustment=self.nights_since_adjustment,
                adherence_scores=list(self.adherence_scores),
                decisions=decisions,
                decisions_recorded=self.decision_log.total_recorded,
            )

    @classmethod
    def restore(cls, snapshot: EngineSnapshot, rng: Optional[np.random.Generator] = None) -> "SleepEngine":
        """
        Rebuild an engine from a snapshot

        Args:
            snapshot: Previously exported state
            rng: Random source for future selections; pass a seeded one for replays
        """
        engine = cls(snapshot.user_id, config=snapshot.config, rng=rng)
        engine.action_model.restore(snapshot.action_stats)
        engine.belief = snapshot.belief
        engine.pending_action = snapshot.pending_action
        engine.profile = snapshot.profile
        engine.prescription = snapshot.prescription
        engine.nights = list(snapshot.nights)
        engine.nights_since_adjustment = min(snapshot.nights_since_adjustment, len(snapshot.nights))
        engine.adherence_scores = list(snapshot.adherence_scores)
        engine.decision_log.restore(snapshot.decisions, snapshot.decisions_recorded)

        logger.info(f"Restored engine for user {snapshot.user_id}")
        return engine
