"""Time-window aggregation over a baby's recent activity history."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Union

from .baby_age import age_based_interval, calculate_baby_age_days, daily_goal
from .classification import classify_activity
from .predictions.common import blend_interval, calculate_intervals, matching_activities, realistic_intervals
from .predictions.diaper import MAX_DIAPER_GAP_HOURS
from .predictions.feeding import MAX_FEEDING_GAP_HOURS
from .predictions.pumping import MAX_PUMPING_GAP_HOURS
from .predictions.sleep import MAX_SLEEP_GAP_HOURS
from .schemas import ActivityRecord, PredictedActivity

DATE_HISTORY = 10

MAX_GAP_HOURS = {
    PredictedActivity.FEEDING: MAX_FEEDING_GAP_HOURS,
    PredictedActivity.SLEEP: MAX_SLEEP_GAP_HOURS,
    PredictedActivity.DIAPER: MAX_DIAPER_GAP_HOURS,
    PredictedActivity.PUMPING: MAX_PUMPING_GAP_HOURS,
}


def _in_window(
    activities: Sequence[ActivityRecord],
    category: PredictedActivity,
    start: datetime,
    end: datetime,
) -> List[ActivityRecord]:
    return sorted(
        (
            activity
            for activity in activities
            if classify_activity(activity.type) == category
            and not activity.is_scheduled
            and not activity.is_skip_marker
            and start <= activity.start_time < end
        ),
        key=lambda activity: activity.start_time,
    )


def summarize_window(
    activities: Sequence[ActivityRecord],
    category: PredictedActivity,
    start: datetime,
    end: datetime,
) -> Dict[str, Union[int, float, None]]:
    window = _in_window(activities, category, start, end)
    total_amount = 0.0
    total_duration = 0.0
    for activity in window:
        amount = activity.amount_ml if activity.amount_ml is not None else activity.amount
        if amount:
            total_amount += float(amount)
        if activity.duration:
            total_duration += float(activity.duration)

    average_interval: Optional[float] = None
    if len(window) > 1:
        span_hours = (window[-1].start_time - window[0].start_time).total_seconds() / 3600
        average_interval = span_hours / (len(window) - 1)

    return {
        "count": len(window),
        "total_amount_ml": total_amount,
        "total_duration_minutes": total_duration,
        "average_interval_hours": average_interval,
    }


def todays_summary(
    activities: Sequence[ActivityRecord],
    category: PredictedActivity,
    now: Optional[datetime] = None,
    birth_date: Optional[datetime] = None,
) -> Dict[str, Union[int, float, None]]:
    """Totals since UTC midnight plus the age-based daily goal where one applies."""

    current = now or datetime.now(timezone.utc)
    start_of_day = current.replace(hour=0, minute=0, second=0, microsecond=0)
    summary = summarize_window(activities, category, start_of_day, current + timedelta(microseconds=1))
    if category in (PredictedActivity.FEEDING, PredictedActivity.DIAPER):
        summary["daily_goal"] = daily_goal(category, calculate_baby_age_days(birth_date, current))
    return summary


def compare_windows(
    activities: Sequence[ActivityRecord],
    category: PredictedActivity,
    *,
    now: Optional[datetime] = None,
    days: int = 1,
    baseline_days: int = 1,
) -> Dict[str, Dict]:
    current_time = now or datetime.now(timezone.utc)
    window_start = current_time - timedelta(days=days)
    baseline_start = window_start - timedelta(days=baseline_days)

    current_summary = summarize_window(activities, category, window_start, current_time)
    baseline_summary = summarize_window(activities, category, baseline_start, window_start)

    deltas = {}
    for key in current_summary:
        current_value = current_summary.get(key) or 0.0
        baseline_value = baseline_summary.get(key) or 0.0
        deltas[key] = {
            "current": current_value,
            "baseline": baseline_value,
            "delta": current_value - baseline_value,
        }

    return {
        "window_days": days,
        "baseline_days": baseline_days,
        "current": current_summary,
        "baseline": baseline_summary,
        "metrics": deltas,
    }


def predicted_interval_for_date(
    activities: Sequence[ActivityRecord],
    target: datetime,
    birth_date: Optional[datetime],
    category: PredictedActivity = PredictedActivity.FEEDING,
) -> Dict[str, Union[int, float, None]]:
    """The interval the engine would have predicted using only history up to the target time."""

    history = [activity for activity in activities if activity.start_time <= target]
    relevant = matching_activities(history, category, DATE_HISTORY)
    age_based = age_based_interval(category, calculate_baby_age_days(birth_date, target))
    valid = realistic_intervals(calculate_intervals(relevant), MAX_GAP_HOURS[category])
    estimate = blend_interval(age_based, valid)
    return {
        "predicted_interval_hours": estimate.interval_hours,
        "average_interval_hours": estimate.average_interval,
        "data_points": len(valid),
    }
