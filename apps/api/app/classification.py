"""Mapping from stored activity type strings to predicted categories."""
from __future__ import annotations

from typing import Dict, Optional, Union

from .schemas import ActivityType, PredictedActivity

ACTIVITY_CATEGORIES: Dict[ActivityType, Optional[PredictedActivity]] = {
    ActivityType.FEEDING: PredictedActivity.FEEDING,
    ActivityType.BOTTLE: PredictedActivity.FEEDING,
    ActivityType.NURSING: PredictedActivity.FEEDING,
    ActivityType.SLEEP: PredictedActivity.SLEEP,
    ActivityType.DIAPER: PredictedActivity.DIAPER,
    ActivityType.WET: PredictedActivity.DIAPER,
    ActivityType.DIRTY: PredictedActivity.DIAPER,
    ActivityType.BOTH: PredictedActivity.DIAPER,
    ActivityType.PUMPING: PredictedActivity.PUMPING,
    ActivityType.SOLIDS: None,
    ActivityType.BATH: None,
    ActivityType.MEDICINE: None,
    ActivityType.TEMPERATURE: None,
    ActivityType.TUMMY_TIME: None,
    ActivityType.GROWTH: None,
    ActivityType.POTTY: None,
    ActivityType.NAIL_TRIMMING: None,
}


def classify_activity(activity_type: Union[ActivityType, str, None]) -> Optional[PredictedActivity]:
    """Return the predicted category for a stored type, or None if it is never predicted."""

    if activity_type is None:
        return None
    if not isinstance(activity_type, ActivityType):
        try:
            activity_type = ActivityType(str(activity_type).strip().lower())
        except ValueError:
            return None
    return ACTIVITY_CATEGORIES[activity_type]
