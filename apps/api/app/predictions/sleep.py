from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..baby_age import age_based_interval, calculate_baby_age_days, typical_nap_duration
from ..schemas import ActivityRecord, PredictedActivity, Prediction
from .common import (
    assemble_prediction,
    average,
    blend_interval,
    calculate_intervals,
    latest_skip_time,
    matching_activities,
    realistic_intervals,
    utc_now,
)

SLEEP_HISTORY = 10
MAX_SLEEP_GAP_HOURS = 24
MAX_NAP_MINUTES = 480


def suggested_sleep_duration(age_days: Optional[int], sleeps: Sequence[ActivityRecord]) -> int:
    """Quick-log nap length: the age default nudged toward recent realistic durations."""

    baseline = typical_nap_duration(age_days)
    durations = [
        float(sleep.duration)
        for sleep in sleeps
        if sleep.duration is not None and 0 < sleep.duration < MAX_NAP_MINUTES
    ]
    recent = average(durations)
    if recent is None:
        return baseline
    if len(durations) >= 3:
        return round(recent * 0.6 + baseline * 0.4)
    return round(recent * 0.4 + baseline * 0.6)


def predict_next_sleep(
    recent_activities: Sequence[ActivityRecord],
    birth_date: Optional[datetime],
    *,
    now: Optional[datetime] = None,
) -> Prediction:
    current = now or utc_now()
    category = PredictedActivity.SLEEP
    sleeps = matching_activities(recent_activities, category, SLEEP_HISTORY)
    age_days = calculate_baby_age_days(birth_date, current)
    age_based = age_based_interval(category, age_days)
    intervals = calculate_intervals(sleeps)
    estimate = blend_interval(age_based, realistic_intervals(intervals, MAX_SLEEP_GAP_HOURS))

    return assemble_prediction(
        category,
        estimate=estimate,
        age_based=age_based,
        age_days=age_days,
        now=current,
        activities=sleeps,
        intervals=intervals,
        recent_skip_time=latest_skip_time(recent_activities, category),
        suggested_duration=suggested_sleep_duration(age_days, sleeps),
    )
