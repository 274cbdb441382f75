"""Unit tests for just-in-time intervention scheduling"""
import pytest
from datetime import datetime, timezone

from sleepcore.models.prescription import Prescription
from sleepcore.models.profile import SleepProfile
from sleepcore.services.decision_log import DecisionLog
from sleepcore.services.jitai_scheduler import JITAIScheduler, recent_adherence, reminder_timetable

GOOD_ADHERENCE = [0.9] * 7
POOR_ADHERENCE = [0.3] * 7


@pytest.fixture
def late_window():
    """23:30-06:30 window"""
    return Prescription.from_wake_time("06:30", 420)


@pytest.fixture
def scheduler(engine_config):
    return JITAIScheduler(engine_config, DecisionLog())


def at(day, hour, minute):
    """January 2026 timestamp; the 5th is a Monday, the 10th a Saturday"""
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


def make_profile(social_jet_lag, chronotype="intermediate"):
    return SleepProfile(
        chronotype=chronotype,
        chronotype_score=55,
        sleep_need_minutes=480,
        sleep_need_category="average",
        optimal_wake_time="07:00",
        optimal_bedtime="23:00",
        social_jet_lag=social_jet_lag,
        social_jet_lag_severity="moderate",
        accumulated_sleep_debt=0,
    )


# ============================================================================
# Bedtime Window Tests
# ============================================================================

def test_wind_down_fifteen_minutes_before_bed(scheduler, late_window):
    """Test 15 minutes to bedtime prompts the wind-down routine"""
    decision = scheduler.decide("u1", late_window, at(5, 23, 15), GOOD_ADHERENCE)

    assert decision.tailoring_variables.minutes_to_bedtime == 15
    assert decision.selected_intervention == "wind_down_prompt"
    assert decision.rule == "bedtime_window"
    assert decision.decision_type == "reminder"


def test_wind_down_wins_on_free_days(scheduler, late_window):
    """Test the bedtime window is checked before the free-day rule"""
    decision = scheduler.decide("u1", late_window, at(10, 23, 15), GOOD_ADHERENCE, profile=make_profile(120))

    assert decision.selected_intervention == "wind_down_prompt"
    assert decision.tailoring_variables.is_free_day


def test_low_adherence_gets_firm_reminder(scheduler, late_window):
    """Test adherence below 0.6 escalates to a firm reminder"""
    decision = scheduler.decide("u1", late_window, at(5, 22, 0), POOR_ADHERENCE)
    assert decision.selected_intervention == "bedtime_reminder_firm"


def test_gentle_reminder_otherwise(scheduler, late_window):
    """Test 90 minutes out with good adherence is a gentle reminder"""
    decision = scheduler.decide("u1", late_window, at(5, 22, 0), GOOD_ADHERENCE)

    assert decision.selected_intervention == "bedtime_reminder_gentle"
    assert "relaxation_exercise" in decision.intervention_options


def test_bedtime_after_midnight_wraps(scheduler, prescription):
    """Test 23:45 is 45 minutes before a 00:30 bedtime"""
    decision = scheduler.decide("u1", prescription, at(5, 23, 45), GOOD_ADHERENCE)

    assert decision.tailoring_variables.minutes_to_bedtime == 45
    assert decision.selected_intervention == "bedtime_reminder_gentle"


def test_past_bedtime_not_in_window(scheduler, late_window):
    """Test a passed bedtime gives negative minutes and no reminder"""
    decision = scheduler.decide("u1", late_window, at(5, 23, 50), GOOD_ADHERENCE)

    assert decision.tailoring_variables.minutes_to_bedtime == -20
    assert decision.rule == "default"


# ============================================================================
# Free Day Tests
# ============================================================================

def test_weekend_consistency_reminder(scheduler, late_window):
    """Test Saturday midday reminds about schedule consistency"""
    decision = scheduler.decide("u1", late_window, at(10, 12, 0), GOOD_ADHERENCE)

    assert decision.selected_intervention == "weekend_consistency_reminder"
    assert decision.rule == "free_day"


def test_high_social_jet_lag_escalates(scheduler, late_window):
    """Test profile jet lag above 60 minutes becomes a warning"""
    decision = scheduler.decide("u1", late_window, at(10, 12, 0), GOOD_ADHERENCE, profile=make_profile(90))

    assert decision.selected_intervention == "social_jet_lag_warning"
    assert decision.decision_type == "warning"


def test_custom_free_days(engine_config, late_window):
    """Test free days come from configuration"""
    config = engine_config.model_copy(update={"free_days": [0]})
    decision = JITAIScheduler(config).decide("u1", late_window, at(5, 12, 0), GOOD_ADHERENCE)
    assert decision.rule == "free_day"


# ============================================================================
# Trend Tests
# ============================================================================

def test_improving_trend_celebrated(scheduler, late_window, prediction_factory):
    """Test improving forecast reinforces behavior"""
    decision = scheduler.decide("u1", late_window, at(5, 12, 0), GOOD_ADHERENCE, prediction_factory(90.0, "improving"))

    assert decision.selected_intervention == "progress_celebration"
    assert decision.decision_type == "encouragement"


@pytest.mark.parametrize("trend,point,expected", [
    ("declining", 70.0, "adherence_check"),
    ("declining", 80.0, "decline_alert"),
    ("critical", 74.9, "adherence_check"),
])
def test_concerning_trend(scheduler, late_window, prediction_factory, trend, point, expected):
    """Test low predicted SE checks adherence, otherwise alerts"""
    decision = scheduler.decide("u1", late_window, at(5, 12, 0), GOOD_ADHERENCE, prediction_factory(point, trend))
    assert decision.selected_intervention == expected


def test_stable_day_is_logged_no_op(scheduler, late_window):
    """Test no-op decisions are still recorded"""
    decision = scheduler.decide("u1", late_window, at(5, 12, 0), GOOD_ADHERENCE)

    assert decision.decision_type == "no_op"
    assert decision.selected_intervention == "no_intervention"
    assert scheduler.decision_log.recent(1) == [decision]


# ============================================================================
# Tailoring Variable Tests
# ============================================================================

def test_recent_adherence_uses_last_week():
    """Test only the last seven scores count; empty history is 0.5"""
    assert recent_adherence([]) == 0.5
    assert recent_adherence([0.0] * 3 + [1.0] * 7) == 1.0


def test_decision_record(scheduler, late_window):
    """Test id, owner and treatment days are captured"""
    now = at(5, 23, 15)
    decision = scheduler.decide("u1", late_window, now, GOOD_ADHERENCE)

    assert decision.id == f"jitai_u1_{int(now.timestamp() * 1000)}_1"
    assert decision.user_id == "u1"
    assert decision.tailoring_variables.days_in_treatment == 7
    assert decision.tailoring_variables.predicted_se == 85.0
    assert decision.tailoring_variables.trend == "stable"


def test_same_moment_decisions_get_distinct_ids(scheduler, late_window):
    """Test two decisions at the same instant stay separately addressable"""
    now = at(5, 23, 15)
    first = scheduler.decide("u1", late_window, now, GOOD_ADHERENCE)
    second = scheduler.decide("u1", late_window, now, GOOD_ADHERENCE)

    assert first.id != second.id
    assert second.id.endswith("_2")
    assert [d.id for d in scheduler.decision_log.recent()] == [first.id, second.id]


# ============================================================================
# Reminder Timetable Tests
# ============================================================================

def test_reminder_timetable(late_window):
    """Test wind-down, device-off, bedtime and wake reminders"""
    slots = reminder_timetable(late_window)

    assert [(slot.time, slot.type) for slot in slots] == [
        ("21:30", "wind_down"),
        ("22:30", "device_off"),
        ("23:15", "bedtime"),
        ("06:30", "wake"),
    ]


def test_evening_type_wind_down_message(late_window):
    """Test evening chronotypes get an extra hint"""
    slots = reminder_timetable(late_window, make_profile(0, chronotype="definite_evening"))
    assert "Evening types" in slots[0].message
