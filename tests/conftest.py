"""Global test fixtures and utilities for sleepcore tests"""
import pytest
from datetime import datetime, timezone

from sleepcore.config import EngineConfig
from sleepcore.models import (
    LatentSleepState,
    Observation,
    PredictionSignal,
    Prescription,
    SleepMetrics,
    SleepNeedQuestionnaire,
)
from sleepcore.utils.sampling import make_rng


# ============================================================================
# User & Config Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "123456789"


@pytest.fixture
def engine_config():
    """Engine configuration pinned to the documented defaults"""
    return EngineConfig(
        kalman_gain=0.3,
        prior_strength=1.0,
        exploration_bonus=0.1,
        enable_model_adjustment=True,
        min_prediction_confidence=0.6,
        conservative_mode=True,
        min_data_days=7,
        min_tib_minutes=300,
        max_tib_minutes=540,
        free_days=[5, 6],
        decision_log_retention=500,
    )


@pytest.fixture
def seeded_rng():
    """Deterministic random source"""
    return make_rng(42)


# ============================================================================
# Belief & Observation Fixtures
# ============================================================================

@pytest.fixture
def baseline_belief():
    """Typical belief of a user starting treatment"""
    return LatentSleepState(
        sleep_efficiency=75.0,
        isi_score=18.0,
        sol_minutes=40.0,
        waso_minutes=60.0,
        pre_sleep_arousal=0.6,
        sleep_anxiety=0.7,
        circadian_deviation=0.5,
        treatment_adherence=0.7,
        treatment_week=1,
    )


@pytest.fixture
def fixed_now():
    """Monday 2026-01-05 21:00 UTC"""
    return datetime(2026, 1, 5, 21, 0, tzinfo=timezone.utc)


@pytest.fixture
def observation_factory(fixed_now):
    """Factory for diary observations"""
    def _create(**kwargs):
        kwargs.setdefault("timestamp", fixed_now)
        return Observation(**kwargs)
    return _create


# ============================================================================
# Prescription Fixtures
# ============================================================================

@pytest.fixture
def prescription():
    """Six-hour window ending at 06:30"""
    return Prescription.from_wake_time("06:30", 360)


@pytest.fixture
def nights_factory():
    """Factory for a run of nights with the same efficiency"""
    def _create(sleep_efficiency=88.0, count=7, **kwargs):
        return [SleepMetrics(sleep_efficiency=sleep_efficiency, **kwargs) for _ in range(count)]
    return _create


@pytest.fixture
def prediction_factory():
    """Factory for forecasts with a +/-5 interval"""
    def _create(point_estimate=88.0, trend="stable", confidence=0.8, **kwargs):
        kwargs.setdefault("lower95", max(0.0, point_estimate - 5))
        kwargs.setdefault("upper95", min(100.0, point_estimate + 5))
        return PredictionSignal(
            point_estimate=point_estimate,
            trend=trend,
            confidence=confidence,
            **kwargs
        )
    return _create


# ============================================================================
# Questionnaire Fixtures
# ============================================================================

@pytest.fixture
def questionnaire():
    """Intermediate chronotype with an average sleep need"""
    return SleepNeedQuestionnaire(
        free_wake_time="07:30",
        free_bedtime="23:30",
        subjective_sleep_need=7.5,
        morning_alertness=3,
        waking_difficulty=3,
        peak_performance_time="afternoon",
        sleep_onset_ease=3,
    )
