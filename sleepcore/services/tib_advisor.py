"""
Adaptive Time-in-Bed Adjustment

Recommends the weekly change to the prescribed time in bed (TIB). Three
paths can produce the raw change:

- RULE: classic sleep restriction titration on average sleep efficiency
- MODEL: an ordered decision table over an external SE forecast
- HYBRID: both, weighted by the forecast's confidence

select_basis() picks the path from (prediction, config) alone. Whatever the
path, the resulting TIB is clamped to the configured safety bounds; when the
clamp engages the recommendation is tagged SAFETY_OVERRIDE and a risk factor
is recorded.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sleepcore.config import EngineConfig
from sleepcore.exceptions import InsufficientDataError
from sleepcore.models.decision import AdjustmentBasis, TIBAdjustment
from sleepcore.models.prediction import PredictionSignal
from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.observability import metrics
from sleepcore.utils.time_helpers import round_half_up

logger = logging.getLogger(__name__)

# Sleep restriction titration thresholds (SE %)
INCREASE_THRESHOLD = 90.0
DECREASE_THRESHOLD = 85.0
STEP_MINUTES = 15
CONFIDENT_STEP_MINUTES = 20

RULE_CONFIDENCE = 0.7


@dataclass
class _PathResult:
    """Raw output of one recommendation path, before the safety clamp"""
    delta: int
    confidence: float
    predicted_se: float
    predicted_se_lower: float
    predicted_se_upper: float
    explanation: str
    risk_factors: List[str] = field(default_factory=list)
    protective_factors: List[str] = field(default_factory=list)


def select_basis(prediction: Optional[PredictionSignal], config: EngineConfig) -> AdjustmentBasis:
    """
    Decide which path produces the recommendation

    - no prediction, or model adjustments disabled -> RULE
    - prediction confidence >= threshold -> MODEL
    - otherwise -> HYBRID
    """
    if prediction is None or not config.enable_model_adjustment:
        return AdjustmentBasis.RULE
    if prediction.confidence >= config.min_prediction_confidence:
        return AdjustmentBasis.MODEL
    return AdjustmentBasis.HYBRID


def average_efficiency(recent_metrics: List[SleepMetrics]) -> float:
    return sum(m.sleep_efficiency for m in recent_metrics) / len(recent_metrics)


def rule_based_change(recent_metrics: List[SleepMetrics]) -> _PathResult:
    """Standard titration: SE >= 90 adds 15 minutes, SE < 85 removes 15"""
    avg_se = average_efficiency(recent_metrics)

    if avg_se >= INCREASE_THRESHOLD:
        delta = STEP_MINUTES
        explanation = f"Sleep efficiency {avg_se:.1f}% >= 90%. Increasing time in bed by {delta} minutes."
    elif avg_se < DECREASE_THRESHOLD:
        delta = -STEP_MINUTES
        explanation = f"Sleep efficiency {avg_se:.1f}% < 85%. Reducing time in bed by {STEP_MINUTES} minutes."
    else:
        delta = 0
        explanation = f"Sleep efficiency {avg_se:.1f}% within target range. Maintaining current schedule."

    return _PathResult(
        delta=delta,
        confidence=RULE_CONFIDENCE,
        predicted_se=avg_se,
        predicted_se_lower=max(0.0, avg_se - 5),
        predicted_se_upper=min(100.0, avg_se + 5),
        explanation=explanation,
        protective_factors=["Good baseline sleep efficiency"] if avg_se >= DECREASE_THRESHOLD else [],
    )


def model_based_change(prediction: PredictionSignal, conservative_mode: bool) -> _PathResult:
    """
    Map a forecast to a TIB change; first matching row wins

    1. improving and SE >= 90       -> +15 (+20 if lower95 >= 85)
    2. declining or SE < 80          -> 0 in conservative mode, else -15
    3. 85 <= SE < 90                 -> 0
    4. SE >= 90                      -> +15
    5. otherwise                     -> 0
    """
    predicted_se = prediction.point_estimate
    trend = prediction.trend
    risk_factors: List[str] = []
    protective_factors: List[str] = []

    if trend == "improving" and predicted_se >= INCREASE_THRESHOLD:
        delta = STEP_MINUTES
        if prediction.lower95 >= DECREASE_THRESHOLD:
            delta = CONFIDENT_STEP_MINUTES
            protective_factors.append("High confidence in continued improvement")
    elif trend == "declining" or predicted_se < 80:
        if conservative_mode:
            delta = 0
            risk_factors.append("Sleep efficiency decline predicted")
        else:
            delta = -STEP_MINUTES
    elif DECREASE_THRESHOLD <= predicted_se < INCREASE_THRESHOLD:
        delta = 0
        protective_factors.append("Stable efficiency within target range")
    elif predicted_se >= INCREASE_THRESHOLD:
        delta = STEP_MINUTES
    else:
        delta = 0

    risk_factors.extend(prediction.early_warnings)

    if delta > 0:
        action = f"Recommending TIB increase by {delta} minutes."
    elif delta < 0:
        action = f"Recommending TIB decrease by {abs(delta)} minutes."
    else:
        action = "Recommending maintaining current TIB."
    explanation = f"Forecast predicts efficiency {predicted_se:.1f}% (trend: {trend}). {action}"

    return _PathResult(
        delta=delta,
        confidence=prediction.confidence,
        predicted_se=predicted_se,
        predicted_se_lower=prediction.lower95,
        predicted_se_upper=prediction.upper95,
        explanation=explanation,
        risk_factors=risk_factors,
        protective_factors=protective_factors,
    )


def hybrid_change(rule: _PathResult, model: _PathResult, model_weight: float) -> _PathResult:
    """Blend rule and model changes by the forecast's confidence"""
    rule_weight = 1 - model_weight
    delta = round_half_up(rule.delta * rule_weight + model.delta * model_weight)

    return _PathResult(
        delta=delta,
        confidence=(rule.confidence + model.confidence) / 2,
        predicted_se=model.predicted_se,
        predicted_se_lower=model.predicted_se_lower,
        predicted_se_upper=model.predicted_se_upper,
        explanation=(
            f"Hybrid recommendation (rules: {rule_weight * 100:.0f}%, forecast: {model_weight * 100:.0f}%). "
            + model.explanation
        ),
        risk_factors=list(model.risk_factors),
        protective_factors=list(model.protective_factors),
    )


class TIBAdjustmentAdvisor:
    """Personalized weekly time-in-bed recommendations"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def recommend(
        self,
        prescription: Prescription,
        recent_metrics: List[SleepMetrics],
        prediction: Optional[PredictionSignal] = None,
        user_id: Optional[str] = None,
    ) -> TIBAdjustment:
        """
        Recommend the change to the current prescription

        Args:
            prescription: Current sleep window
            recent_metrics: Nightly metrics since the last adjustment
            prediction: Optional external forecast; absence is not an error
            user_id: Owner, for logging and error context

        Raises:
            InsufficientDataError: Fewer nights than config.min_data_days
        """
        if len(recent_metrics) < self.config.min_data_days:
            metrics.record_insufficient_data("recommend_tib")
            raise InsufficientDataError(
                message=(
                    f"TIB personalization needs {self.config.min_data_days} nights of data "
                    f"(got {len(recent_metrics)})"
                ),
                required=self.config.min_data_days,
                available=len(recent_metrics),
                user_id=user_id,
                operation="recommend_tib"
            )

        basis = select_basis(prediction, self.config)

        if basis == AdjustmentBasis.RULE:
            result = rule_based_change(recent_metrics)
        elif basis == AdjustmentBasis.MODEL:
            result = model_based_change(prediction, self.config.conservative_mode)
        else:
            result = hybrid_change(
                rule_based_change(recent_metrics),
                model_based_change(prediction, self.config.conservative_mode),
                prediction.confidence,
            )

        adjustment = self._apply_safety_bounds(prescription, result, basis)
        metrics.record_adjustment(adjustment.basis.value)

        logger.info(
            f"TIB recommendation for user {user_id}: {adjustment.current_tib} -> {adjustment.proposed_tib} "
            f"({adjustment.delta:+d} min, basis={adjustment.basis.value}, source={basis.value})"
        )
        return adjustment

    def _apply_safety_bounds(
        self,
        prescription: Prescription,
        result: _PathResult,
        basis: AdjustmentBasis,
    ) -> TIBAdjustment:
        current = prescription.tib_minutes
        raw_target = current + result.delta
        target = max(self.config.min_tib_minutes, min(self.config.max_tib_minutes, raw_target))

        risk_factors = list(result.risk_factors)
        final_basis = basis
        explanation = result.explanation

        if target != raw_target:
            bound = "floor" if raw_target < self.config.min_tib_minutes else "ceiling"
            limit = self.config.min_tib_minutes if bound == "floor" else self.config.max_tib_minutes
            risk_factors.append(
                f"Safety limit reached: time in bed held at the {limit}-minute {'minimum' if bound == 'floor' else 'maximum'}"
            )
            explanation += f" Safety bound applied: time in bed capped at {target} minutes."
            final_basis = AdjustmentBasis.SAFETY_OVERRIDE
            metrics.record_safety_clamp(bound)

        return TIBAdjustment(
            delta=target - current,
            current_tib=current,
            proposed_tib=target,
            confidence=result.confidence,
            basis=final_basis,
            source_basis=basis,
            predicted_se=result.predicted_se,
            predicted_se_lower=result.predicted_se_lower,
            predicted_se_upper=result.predicted_se_upper,
            explanation=explanation,
            risk_factors=risk_factors,
            protective_factors=list(result.protective_factors),
        )


def apply_adjustment(prescription: Prescription, adjustment: TIBAdjustment) -> Prescription:
    """
    Next week's prescription with the recommended time in bed

    The wake time stays fixed; bedtime moves. The new prescription is
    re-validated against the window invariants on construction.
    """
    return Prescription.from_wake_time(
        wake_time=prescription.wake_time,
        tib_minutes=adjustment.proposed_tib,
        week=prescription.week + 1,
    )
