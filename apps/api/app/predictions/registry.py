from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from ..schemas import ActivityRecord, BabyProfile, PredictedActivity, Prediction
from .common import utc_now
from .diaper import predict_next_diaper
from .feeding import predict_next_feeding
from .pumping import predict_next_pumping
from .sleep import predict_next_sleep


def predict_next(
    category: PredictedActivity,
    activities: Sequence[ActivityRecord],
    baby: BabyProfile,
    *,
    now: Optional[datetime] = None,
) -> Prediction:
    """Run the predictor for one category against a baby's shared activity window."""

    if category == PredictedActivity.FEEDING:
        return predict_next_feeding(activities, baby.birth_date, baby.feed_interval_hours, now=now)
    if category == PredictedActivity.SLEEP:
        return predict_next_sleep(activities, baby.birth_date, now=now)
    if category == PredictedActivity.DIAPER:
        return predict_next_diaper(activities, baby.birth_date, all_activities=activities, now=now)
    if category == PredictedActivity.PUMPING:
        return predict_next_pumping(activities, baby.birth_date, now=now)
    raise ValueError(f"Unsupported activity category: {category}")


def predict_all(
    activities: Sequence[ActivityRecord],
    baby: BabyProfile,
    *,
    now: Optional[datetime] = None,
) -> Dict[PredictedActivity, Prediction]:
    current = now or utc_now()
    return {category: predict_next(category, activities, baby, now=current) for category in PredictedActivity}
