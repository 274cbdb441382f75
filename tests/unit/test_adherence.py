"""Unit tests for prescription adherence scoring"""
import pytest

from sleepcore.models.prescription import Prescription, SleepMetrics
from sleepcore.services.adherence import adherence_history, calculate_adherence, night_adherence


def test_perfect_night(prescription):
    """Test matching TIB, bedtime and wake time scores 1"""
    night = SleepMetrics(sleep_efficiency=85, time_in_bed_minutes=360, bedtime="00:30", wake_time="06:30")
    assert night_adherence(prescription, night) == 1.0


def test_partial_deviation(prescription):
    """Test 15 minutes late to bed halves the bedtime factor"""
    night = SleepMetrics(sleep_efficiency=85, bedtime="00:45", wake_time="06:30")
    assert night_adherence(prescription, night) == pytest.approx(0.75)


def test_deviation_across_midnight():
    """Test 23:50 vs 00:05 is 15 minutes, not almost a day"""
    late = Prescription.from_wake_time("07:00", 430)
    night = SleepMetrics(sleep_efficiency=85, bedtime="00:05")
    assert night_adherence(late, night) == pytest.approx(0.5)


def test_large_deviation_floors_at_zero(prescription):
    """Test factors never go negative"""
    night = SleepMetrics(sleep_efficiency=85, time_in_bed_minutes=480)
    assert night_adherence(prescription, night) == 0.0


def test_night_without_schedule_data(prescription):
    """Test a night reporting no times scores 0"""
    assert night_adherence(prescription, SleepMetrics(sleep_efficiency=85)) == 0.0


def test_average_and_history(prescription):
    """Test averaging over nights"""
    nights = [
        SleepMetrics(sleep_efficiency=85, wake_time="06:30"),
        SleepMetrics(sleep_efficiency=85, wake_time="07:30"),
    ]
    assert adherence_history(prescription, nights) == [1.0, 0.0]
    assert calculate_adherence(prescription, nights) == 0.5
    assert calculate_adherence(prescription, []) == 0.0
