from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..baby_age import age_based_interval, calculate_baby_age_days
from ..schemas import ActivityRecord, PredictedActivity, Prediction
from .common import (
    assemble_prediction,
    blend_interval,
    calculate_intervals,
    latest_skip_time,
    matching_activities,
    realistic_intervals,
    utc_now,
)

PUMPING_HISTORY = 10
MAX_PUMPING_GAP_HOURS = 12


def predict_next_pumping(
    recent_activities: Sequence[ActivityRecord],
    birth_date: Optional[datetime],
    *,
    now: Optional[datetime] = None,
) -> Prediction:
    current = now or utc_now()
    category = PredictedActivity.PUMPING
    sessions = matching_activities(recent_activities, category, PUMPING_HISTORY)
    age_days = calculate_baby_age_days(birth_date, current)
    age_based = age_based_interval(category, age_days)
    intervals = calculate_intervals(sessions)
    estimate = blend_interval(age_based, realistic_intervals(intervals, MAX_PUMPING_GAP_HOURS))

    last_amount = None
    if sessions:
        last = sessions[0]
        last_amount = last.amount_ml if last.amount_ml is not None else last.amount

    return assemble_prediction(
        category,
        estimate=estimate,
        age_based=age_based,
        age_days=age_days,
        now=current,
        activities=sessions,
        intervals=intervals,
        recent_skip_time=latest_skip_time(recent_activities, category),
        suggested_amount=last_amount,
    )
