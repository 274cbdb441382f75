"""
Prometheus metrics definitions for the sleep decision engine.

Metrics are organized by category:
- Belief state metrics: observations processed, rewards credited
- Policy metrics: interventions selected by Thompson Sampling
- Prescription metrics: TIB adjustments by basis, safety clamps, refusals
- Scheduling metrics: JITAI decisions by type and cascade rule

Recording helpers are no-ops when ENABLE_PROMETHEUS is false.
"""

import logging
from prometheus_client import Counter, Histogram

from sleepcore.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)

# =============================================================================
# Belief State Metrics
# =============================================================================

observations_processed_total = Counter(
    "sleepcore_observations_processed_total",
    "Total observations fused into a belief state",
    ["source"],  # diary/wearable/hybrid
)

rewards_credited_total = Counter(
    "sleepcore_rewards_credited_total",
    "Total rewards credited to an intervention",
    ["outcome"],  # success/failure
)

reward_value = Histogram(
    "sleepcore_reward_value",
    "Distribution of computed transition rewards",
    buckets=[-0.5, -0.25, -0.1, 0.0, 0.1, 0.25, 0.5, 1.0],
)

# =============================================================================
# Policy Metrics
# =============================================================================

actions_selected_total = Counter(
    "sleepcore_actions_selected_total",
    "Total interventions chosen by Thompson Sampling",
    ["action"],
)

# =============================================================================
# Prescription Metrics
# =============================================================================

tib_adjustments_total = Counter(
    "sleepcore_tib_adjustments_total",
    "Total time-in-bed recommendations",
    ["basis"],  # rule/model/hybrid/safety_override
)

safety_clamps_total = Counter(
    "sleepcore_safety_clamps_total",
    "Total recommendations clamped to the TIB safety bounds",
    ["bound"],  # floor/ceiling
)

insufficient_data_total = Counter(
    "sleepcore_insufficient_data_total",
    "Total personalization requests refused for lack of history",
    ["operation"],
)

# =============================================================================
# Scheduling Metrics
# =============================================================================

jitai_decisions_total = Counter(
    "sleepcore_jitai_decisions_total",
    "Total just-in-time scheduling decisions",
    ["decision_type", "rule"],
)


# =============================================================================
# Recording Helpers
# =============================================================================

def record_observation(source: str) -> None:
    if ENABLE_PROMETHEUS:
        observations_processed_total.labels(source=source).inc()


def record_reward(reward: float) -> None:
    if ENABLE_PROMETHEUS:
        rewards_credited_total.labels(outcome="success" if reward > 0 else "failure").inc()
        reward_value.observe(reward)


def record_action(action: str) -> None:
    if ENABLE_PROMETHEUS:
        actions_selected_total.labels(action=action).inc()


def record_adjustment(basis: str) -> None:
    if ENABLE_PROMETHEUS:
        tib_adjustments_total.labels(basis=basis).inc()


def record_safety_clamp(bound: str) -> None:
    if ENABLE_PROMETHEUS:
        safety_clamps_total.labels(bound=bound).inc()


def record_insufficient_data(operation: str) -> None:
    if ENABLE_PROMETHEUS:
        insufficient_data_total.labels(operation=operation).inc()


def record_decision(decision_type: str, rule: str) -> None:
    if ENABLE_PROMETHEUS:
        jitai_decisions_total.labels(decision_type=decision_type, rule=rule).inc()
