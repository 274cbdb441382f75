"""Simulation entry point: runs a synthetic CBT-I program through one engine"""
import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from sleepcore.config import LOG_LEVEL, load_engine_config, validate_config
from sleepcore.exceptions import SleepCoreError
from sleepcore.models import Observation, SleepMetrics, SleepNeedQuestionnaire
from sleepcore.services.registry import EngineRegistry
from sleepcore.utils.sampling import make_rng
from sleepcore.utils.time_helpers import minutes_to_time, time_to_minutes

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper())
)

logger = logging.getLogger(__name__)

DEMO_QUESTIONNAIRE = SleepNeedQuestionnaire(
    free_wake_time="07:30",
    free_bedtime="23:30",
    subjective_sleep_need=7.5,
    morning_alertness=3,
    waking_difficulty=3,
    peak_performance_time="late_morning",
    sleep_onset_ease=3,
    daytime_fatigue=4,
    weekend_oversleep=True,
    social_jet_lag=75,
)


def synthetic_night(data_rng: np.random.Generator, day: int, tib_minutes: int, wake_time: str) -> SleepMetrics:
    """One diary night whose efficiency drifts upwards as treatment goes on"""
    efficiency = float(np.clip(72 + day * 0.6 + data_rng.normal(0, 4), 40, 99))
    wake_jitter = int(data_rng.integers(-20, 21))
    actual_wake = minutes_to_time(time_to_minutes(wake_time) + wake_jitter)
    return SleepMetrics(
        sleep_efficiency=round(efficiency, 1),
        time_in_bed_minutes=tib_minutes,
        total_sleep_minutes=int(tib_minutes * efficiency / 100),
        bedtime=minutes_to_time(time_to_minutes(actual_wake) - tib_minutes),
        wake_time=actual_wake,
    )


def run_simulation(seed: int, weeks: int, user_id: str = "demo-user") -> int:
    """Run baseline week plus treatment weeks; returns the process exit code"""
    config = load_engine_config()
    registry = EngineRegistry(config, rng_factory=lambda _user_id: make_rng(seed))
    engine = registry.create(user_id)
    data_rng = np.random.default_rng(seed + 1)

    start = datetime(2026, 1, 5, 7, 30, tzinfo=timezone.utc)

    profile = engine.set_profile(DEMO_QUESTIONNAIRE)
    logger.info(f"Profile: {profile.chronotype}, need {profile.sleep_need_minutes} min")

    # Baseline week: habitual 8.5 hours in bed
    for _ in range(config.min_data_days):
        engine.record_night(synthetic_night(data_rng, 0, 510, profile.optimal_wake_time))

    prescription = engine.initialize_prescription()
    logger.info(f"Week 1 window {prescription.bedtime}-{prescription.wake_time} ({prescription.tib_minutes} min)")

    for day in range(weeks * 7):
        morning = start + timedelta(days=config.min_data_days + day)
        night = synthetic_night(data_rng, day, engine.prescription.tib_minutes, engine.prescription.wake_time)
        engine.record_night(night)
        engine.process_observation(Observation(
            timestamp=morning,
            sleep_efficiency=night.sleep_efficiency,
            sol_minutes=float(max(0.0, 40 - day + data_rng.normal(0, 5))),
            sleep_anxiety=float(np.clip(0.7 - day * 0.02, 0, 1)),
            pre_sleep_arousal=float(np.clip(0.6 - day * 0.015, 0, 1)),
            treatment_week=engine.prescription.week,
        ))

        action = engine.select_action()
        evening = morning.replace(hour=0, minute=0) + timedelta(
            minutes=time_to_minutes(engine.prescription.bedtime) - 20
        )
        decision = engine.decide(evening)
        logger.info(f"Day {day + 1}: intervention={action}, reminder={decision.selected_intervention}")

        if (day + 1) % 7 == 0:
            engine.apply_weekly_adjustment()

    for stat in engine.action_model.snapshot():
        logger.info(f"{stat.action}: alpha={stat.alpha:.0f}, beta={stat.beta:.0f}, mean={stat.mean:.2f}")
    logger.info(f"Decisions logged: {engine.decision_log.total_recorded}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a seeded synthetic sleep program through the engine")
    parser.add_argument("--seed", type=int, default=42, help="Seed for intervention sampling and synthetic data")
    parser.add_argument("--weeks", type=int, default=4, help="Treatment weeks after the baseline week")
    args = parser.parse_args(argv)

    try:
        logger.info("Validating configuration...")
        validate_config()
        return run_simulation(args.seed, args.weeks)
    except SleepCoreError as e:
        logger.error(f"Simulation stopped: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
