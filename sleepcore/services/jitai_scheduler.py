"""
Just-In-Time Adaptive Intervention (JITAI) Scheduling

Decides whether to nudge the user right now, and with what, from a snapshot
of tailoring variables. Rules are checked in order and the first match wins:

1. Bedtime window (0 < minutes to bedtime <= 120): firm reminder when recent
   adherence < 0.6, wind-down prompt within 30 minutes, else gentle reminder
2. Free day, more than 2 hours before bedtime: weekend consistency reminder,
   escalated to a social jet lag warning when jet lag > 60 minutes
3. Trend: improving -> celebrate progress; declining/critical -> adherence
   check when predicted SE < 75, else decline alert
4. Otherwise no intervention

Every decision, including the no-op, is appended to the user's decision log.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sleepcore.config import EngineConfig
from sleepcore.models.decision import Decision, DecisionRule, DecisionType, TailoringVariables
from sleepcore.models.prediction import PredictionSignal
from sleepcore.models.prescription import Prescription
from sleepcore.models.profile import SleepProfile
from sleepcore.observability import metrics
from sleepcore.services.decision_log import DecisionLog
from sleepcore.utils.time_helpers import minutes_to_time, minutes_until, time_to_minutes

logger = logging.getLogger(__name__)

REMINDER_WINDOW_MINUTES = 120
WIND_DOWN_WINDOW_MINUTES = 30
LOW_ADHERENCE = 0.6
HIGH_SOCIAL_JET_LAG = 60
CRITICAL_SE = 75.0

ADHERENCE_WINDOW = 7
DEFAULT_ADHERENCE = 0.5
DEFAULT_PREDICTED_SE = 85.0
DEFAULT_PREDICTION_CONFIDENCE = 0.5

BEDTIME_OPTIONS = [
    "bedtime_reminder_gentle",
    "bedtime_reminder_firm",
    "wind_down_prompt",
    "relaxation_exercise",
    "no_intervention",
]
FREE_DAY_OPTIONS = [
    "weekend_consistency_reminder",
    "social_jet_lag_warning",
    "flexible_schedule_allowed",
    "no_intervention",
]
IMPROVING_OPTIONS = ["progress_celebration", "maintain_momentum", "no_intervention"]
DECLINING_OPTIONS = ["decline_alert", "adherence_check", "therapist_referral", "no_intervention"]


@dataclass(frozen=True)
class _Selection:
    decision_type: DecisionType
    rule: DecisionRule
    options: List[str]
    selected: str
    reason: str


@dataclass(frozen=True)
class ReminderSlot:
    """One entry of a daily reminder timetable"""
    time: str
    type: str
    message: str


def recent_adherence(history: List[float]) -> float:
    """Mean of the last week's adherence scores; 0.5 with no history"""
    if not history:
        return DEFAULT_ADHERENCE
    window = history[-ADHERENCE_WINDOW:]
    return sum(window) / len(window)


def select_intervention(variables: TailoringVariables) -> _Selection:
    """Run the rule cascade over a tailoring-variable snapshot"""
    minutes = variables.minutes_to_bedtime

    if 0 < minutes <= REMINDER_WINDOW_MINUTES:
        if variables.recent_adherence < LOW_ADHERENCE:
            return _Selection(
                "reminder", "bedtime_window", BEDTIME_OPTIONS, "bedtime_reminder_firm",
                f"Low adherence ({variables.recent_adherence * 100:.0f}%) requires firmer reminder",
            )
        if minutes <= WIND_DOWN_WINDOW_MINUTES:
            return _Selection(
                "reminder", "bedtime_window", BEDTIME_OPTIONS, "wind_down_prompt",
                "Close to bedtime, prompt wind-down routine",
            )
        return _Selection(
            "reminder", "bedtime_window", BEDTIME_OPTIONS, "bedtime_reminder_gentle",
            "Standard gentle reminder appropriate",
        )

    if variables.is_free_day and minutes > REMINDER_WINDOW_MINUTES:
        jet_lag = variables.social_jet_lag
        if jet_lag is not None and jet_lag > HIGH_SOCIAL_JET_LAG:
            return _Selection(
                "warning", "free_day", FREE_DAY_OPTIONS, "social_jet_lag_warning",
                f"High social jet lag ({jet_lag}min) detected",
            )
        return _Selection(
            "reminder", "free_day", FREE_DAY_OPTIONS, "weekend_consistency_reminder",
            "Free day - remind about schedule consistency",
        )

    if variables.trend == "improving":
        return _Selection(
            "encouragement", "trend", IMPROVING_OPTIONS, "progress_celebration",
            "Positive trend detected - reinforce behavior",
        )

    if variables.trend in ("declining", "critical"):
        selected = "adherence_check" if variables.predicted_se < CRITICAL_SE else "decline_alert"
        return _Selection(
            "warning", "trend", DECLINING_OPTIONS, selected,
            f"Concerning trend ({variables.trend}) requires intervention",
        )

    return _Selection(
        "no_op", "default", ["no_intervention"], "no_intervention",
        "Stable state, no intervention needed",
    )


class JITAIScheduler:
    """Context-triggered intervention timing for one user"""

    def __init__(self, config: Optional[EngineConfig] = None, decision_log: Optional[DecisionLog] = None):
        self.config = config or EngineConfig()
        self.decision_log = decision_log if decision_log is not None else DecisionLog(self.config.decision_log_retention)

    def decide(
        self,
        user_id: str,
        prescription: Prescription,
        now: datetime,
        adherence_history: Optional[List[float]] = None,
        prediction: Optional[PredictionSignal] = None,
        profile: Optional[SleepProfile] = None,
    ) -> Decision:
        """
        Make and log the decision for this moment

        Args:
            user_id: Owner of the decision
            prescription: Current sleep window
            now: Current local time of the user
            adherence_history: Per-night adherence scores, oldest first
            prediction: Optional forecast giving trend and predicted SE
            profile: Optional sleep profile (social jet lag)
        """
        variables = TailoringVariables(
            minutes_to_bedtime=minutes_until(prescription.bedtime, now),
            predicted_se=prediction.point_estimate if prediction else DEFAULT_PREDICTED_SE,
            prediction_confidence=prediction.confidence if prediction else DEFAULT_PREDICTION_CONFIDENCE,
            recent_adherence=recent_adherence(adherence_history or []),
            days_in_treatment=prescription.week * 7,
            trend=prediction.trend if prediction else "stable",
            is_free_day=now.weekday() in self.config.free_days,
            social_jet_lag=profile.social_jet_lag if profile else None,
        )

        selection = select_intervention(variables)

        decision = Decision(
            id=f"jitai_{user_id}_{int(now.timestamp() * 1000)}_{self.decision_log.total_recorded + 1}",
            user_id=user_id,
            timestamp=now,
            decision_type=selection.decision_type,
            rule=selection.rule,
            tailoring_variables=variables,
            selected_intervention=selection.selected,
            intervention_options=list(selection.options),
            selection_reason=selection.reason,
        )

        self.decision_log.append(decision)
        metrics.record_decision(decision.decision_type, decision.rule)

        logger.info(
            f"JITAI decision for user {user_id}: {decision.selected_intervention} "
            f"({decision.rule}, {variables.minutes_to_bedtime} min to bedtime)"
        )
        return decision


def reminder_timetable(prescription: Prescription, profile: Optional[SleepProfile] = None) -> List[ReminderSlot]:
    """
    Daily reminder times for a prescription

    Wind-down two hours before bedtime, devices off one hour before,
    bedtime reminder 15 minutes before, and a wake-up reminder.
    """
    bedtime = time_to_minutes(prescription.bedtime)

    if profile is not None and profile.is_evening_type:
        wind_down_message = "Start getting ready for bed. Evening types usually need longer to fall asleep."
    else:
        wind_down_message = "Start getting ready for bed."

    return [
        ReminderSlot(minutes_to_time(bedtime - 120), "wind_down", wind_down_message),
        ReminderSlot(
            minutes_to_time(bedtime - 60),
            "device_off",
            "Put your devices away. Blue light delays melatonin release.",
        ),
        ReminderSlot(
            minutes_to_time(bedtime - 15),
            "bedtime",
            f"Time to go to bed. Your prescribed bedtime is {prescription.bedtime}.",
        ),
        ReminderSlot(
            prescription.wake_time,
            "wake",
            "Time to get up! Don't stay in bed longer than 15 minutes.",
        ),
    ]
