from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..baby_age import age_based_interval, calculate_baby_age_days, typical_feeding_duration
from ..schemas import ActivityRecord, ActivityType, ConfidenceLevel, PredictedActivity, Prediction
from .common import (
    AGE_ONLY_WEIGHTS,
    IntervalEstimate,
    assemble_prediction,
    average,
    blend_interval,
    calculate_intervals,
    latest_skip_time,
    matching_activities,
    realistic_intervals,
    utc_now,
)

FEEDING_HISTORY = 10
MAX_FEEDING_GAP_HOURS = 12


def _configured_estimate(hours: float, valid: Sequence[float]) -> IntervalEstimate:
    return IntervalEstimate(
        interval_hours=hours,
        confidence=ConfidenceLevel.HIGH,
        weights=AGE_ONLY_WEIGHTS,
        average_interval=average(valid),
        last_interval=valid[0] if valid else None,
        source="configured",
    )


def predict_next_feeding(
    recent_activities: Sequence[ActivityRecord],
    birth_date: Optional[datetime],
    feed_interval_hours: Optional[float] = None,
    *,
    now: Optional[datetime] = None,
) -> Prediction:
    """Predict the next feed from bottle, nursing and generic feeding records.

    A configured feed interval replaces the data-derived estimate outright.
    """

    current = now or utc_now()
    category = PredictedActivity.FEEDING
    feedings = matching_activities(recent_activities, category, FEEDING_HISTORY)
    age_days = calculate_baby_age_days(birth_date, current)
    age_based = age_based_interval(category, age_days)
    intervals = calculate_intervals(feedings)
    valid = realistic_intervals(intervals, MAX_FEEDING_GAP_HOURS)

    if feed_interval_hours is not None and feed_interval_hours > 0:
        estimate = _configured_estimate(float(feed_interval_hours), valid)
    else:
        estimate = blend_interval(age_based, valid)

    last = feedings[0] if feedings else None
    suggested_amount = None
    suggested_type = None
    if last is not None:
        suggested_amount = last.amount_ml if last.amount_ml is not None else last.amount
        if last.type in (ActivityType.BOTTLE.value, ActivityType.NURSING.value):
            suggested_type = last.type

    return assemble_prediction(
        category,
        estimate=estimate,
        age_based=age_based,
        age_days=age_days,
        now=current,
        activities=feedings,
        intervals=intervals,
        recent_skip_time=latest_skip_time(recent_activities, category),
        suggested_amount=suggested_amount,
        suggested_duration=typical_feeding_duration(age_days),
        suggested_type=suggested_type,
    )
