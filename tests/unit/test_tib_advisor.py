"""Unit tests for adaptive time-in-bed adjustment (sleepcore/services/tib_advisor.py)"""
import pytest

from sleepcore.exceptions import InsufficientDataError
from sleepcore.models.decision import AdjustmentBasis
from sleepcore.models.prescription import Prescription
from sleepcore.services.tib_advisor import TIBAdjustmentAdvisor, apply_adjustment, select_basis


# ============================================================================
# Rule-Based Tests
# ============================================================================

def test_high_efficiency_adds_fifteen(engine_config, prescription, nights_factory):
    """Test SE >= 90 extends time in bed by 15 minutes"""
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(95.0))

    assert adjustment.delta == 15
    assert adjustment.proposed_tib == 375
    assert adjustment.basis == AdjustmentBasis.RULE
    assert adjustment.confidence == 0.7


def test_low_efficiency_removes_fifteen(engine_config, prescription, nights_factory):
    """Test SE < 85 restricts time in bed by 15 minutes"""
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(70.0))

    assert adjustment.delta == -15
    assert adjustment.proposed_tib == 345


def test_target_range_keeps_schedule(engine_config, prescription, nights_factory):
    """Test 85 <= SE < 90 keeps the window"""
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(87.0))

    assert adjustment.delta == 0
    assert "Good baseline sleep efficiency" in adjustment.protective_factors


# ============================================================================
# Safety Bound Tests
# ============================================================================

def test_floor_clamp_flags_risk(engine_config, nights_factory):
    """Test a restriction below 300 minutes is held at the floor"""
    at_floor = Prescription.from_wake_time("06:00", 300)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(at_floor, nights_factory(70.0))

    assert adjustment.proposed_tib == 300
    assert adjustment.delta == 0
    assert adjustment.basis == AdjustmentBasis.SAFETY_OVERRIDE
    assert adjustment.source_basis == AdjustmentBasis.RULE
    assert adjustment.safety_clamped
    assert any("300-minute minimum" in factor for factor in adjustment.risk_factors)


def test_ceiling_clamp(engine_config, nights_factory):
    """Test an extension above 540 minutes is held at the ceiling"""
    at_ceiling = Prescription.from_wake_time("07:00", 540)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(at_ceiling, nights_factory(96.0))

    assert adjustment.proposed_tib == 540
    assert adjustment.basis == AdjustmentBasis.SAFETY_OVERRIDE


def test_proposed_tib_always_within_bounds(engine_config, nights_factory, prediction_factory):
    """Test every path and starting point stays within 300-540"""
    advisor = TIBAdjustmentAdvisor(engine_config)
    for tib in (300, 310, 420, 530, 540):
        current = Prescription.from_wake_time("06:30", tib)
        for se in (50.0, 86.0, 99.0):
            for prediction in (None, prediction_factory(se, "improving", 0.9), prediction_factory(se, "declining", 0.3)):
                adjustment = advisor.recommend(current, nights_factory(se), prediction)
                assert 300 <= adjustment.proposed_tib <= 540


# ============================================================================
# Model & Hybrid Tests
# ============================================================================

def test_basis_selection(engine_config, prediction_factory):
    """Test basis is a function of prediction and config only"""
    assert select_basis(None, engine_config) == AdjustmentBasis.RULE
    assert select_basis(prediction_factory(confidence=0.6), engine_config) == AdjustmentBasis.MODEL
    assert select_basis(prediction_factory(confidence=0.59), engine_config) == AdjustmentBasis.HYBRID

    disabled = engine_config.model_copy(update={"enable_model_adjustment": False})
    assert select_basis(prediction_factory(confidence=0.9), disabled) == AdjustmentBasis.RULE


def test_confident_improvement_adds_twenty(engine_config, prescription, nights_factory, prediction_factory):
    """Test improving forecast with lower95 >= 85 extends by 20 minutes"""
    prediction = prediction_factory(92.0, "improving", 0.8)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.basis == AdjustmentBasis.MODEL
    assert adjustment.delta == 20
    assert adjustment.predicted_se == 92.0


def test_conservative_mode_holds_on_decline(engine_config, prescription, nights_factory, prediction_factory):
    """Test declining forecast keeps TIB in conservative mode"""
    prediction = prediction_factory(82.0, "declining", 0.8, early_warnings=["Efficiency dropping fast"])
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.delta == 0
    assert "Sleep efficiency decline predicted" in adjustment.risk_factors
    assert "Efficiency dropping fast" in adjustment.risk_factors


def test_decline_restricts_without_conservative_mode(engine_config, prescription, nights_factory, prediction_factory):
    """Test declining forecast restricts when conservative mode is off"""
    config = engine_config.model_copy(update={"conservative_mode": False})
    prediction = prediction_factory(82.0, "declining", 0.8)
    adjustment = TIBAdjustmentAdvisor(config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.delta == -15


def test_hybrid_blends_by_confidence(engine_config, prescription, nights_factory, prediction_factory):
    """Test 15 x 0.6 + 20 x 0.4 = 17 with averaged confidence"""
    prediction = prediction_factory(92.0, "improving", 0.4)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(95.0), prediction)

    assert adjustment.basis == AdjustmentBasis.HYBRID
    assert adjustment.delta == 17
    assert adjustment.confidence == pytest.approx(0.55)


def test_critical_forecast_with_high_efficiency_extends(engine_config, prescription, nights_factory, prediction_factory):
    """Test only a declining trend triggers the decline row; critical at SE 92 extends"""
    prediction = prediction_factory(92.0, "critical", 0.8)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(88.0), prediction)

    assert adjustment.basis == AdjustmentBasis.MODEL
    assert adjustment.delta == 15
    assert "Sleep efficiency decline predicted" not in adjustment.risk_factors


def test_critical_forecast_in_target_range_holds(engine_config, prescription, nights_factory, prediction_factory):
    """Test critical at SE 87 falls through to the target-range row"""
    config = engine_config.model_copy(update={"conservative_mode": False})
    prediction = prediction_factory(87.0, "critical", 0.8)
    adjustment = TIBAdjustmentAdvisor(config).recommend(prescription, nights_factory(88.0), prediction)

    assert adjustment.delta == 0


def test_stable_forecast_in_target_range_holds(engine_config, prescription, nights_factory, prediction_factory):
    """Test 85 <= SE < 90 keeps TIB and records a protective factor"""
    prediction = prediction_factory(87.0, "stable", 0.8)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.delta == 0
    assert "Stable efficiency within target range" in adjustment.protective_factors


def test_stable_forecast_high_efficiency_extends(engine_config, prescription, nights_factory, prediction_factory):
    """Test stable trend with SE >= 90 extends by 15 minutes"""
    prediction = prediction_factory(92.0, "stable", 0.8)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.delta == 15
    assert adjustment.protective_factors == []


def test_uncertain_improvement_adds_fifteen(engine_config, prescription, nights_factory, prediction_factory):
    """Test improving forecast with lower95 < 85 extends by 15 only"""
    prediction = prediction_factory(92.0, "improving", 0.8, lower95=84.0)
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(80.0), prediction)

    assert adjustment.delta == 15
    assert "High confidence in continued improvement" not in adjustment.protective_factors


def test_model_restriction_at_floor_flags_risk(engine_config, nights_factory, prediction_factory):
    """Test a forecast-driven restriction at 300 minutes is held with a risk flag"""
    config = engine_config.model_copy(update={"conservative_mode": False})
    at_floor = Prescription.from_wake_time("06:00", 300)
    prediction = prediction_factory(70.0, "declining", 0.8)
    adjustment = TIBAdjustmentAdvisor(config).recommend(at_floor, nights_factory(70.0), prediction)

    assert adjustment.delta == 0
    assert adjustment.proposed_tib == 300
    assert adjustment.basis == AdjustmentBasis.SAFETY_OVERRIDE
    assert adjustment.source_basis == AdjustmentBasis.MODEL
    assert any("300-minute minimum" in factor for factor in adjustment.risk_factors)


# ============================================================================
# Data Requirement Tests
# ============================================================================

def test_insufficient_data_refused(engine_config, prescription, nights_factory):
    """Test fewer than seven nights is an error, not a guess"""
    with pytest.raises(InsufficientDataError) as exc_info:
        TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(95.0, count=6), user_id="u1")

    assert exc_info.value.required == 7
    assert exc_info.value.available == 6


def test_apply_adjustment_keeps_wake_time(engine_config, prescription, nights_factory):
    """Test the next week's window moves bedtime only"""
    adjustment = TIBAdjustmentAdvisor(engine_config).recommend(prescription, nights_factory(95.0))
    next_week = apply_adjustment(prescription, adjustment)

    assert next_week.wake_time == "06:30"
    assert next_week.bedtime == "00:15"
    assert next_week.tib_minutes == 375
    assert next_week.week == 2
