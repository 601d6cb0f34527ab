"""Age helpers and developmental-stage defaults used by the predictors."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from .schemas import PredictedActivity

DEFAULT_INTERVAL_HOURS = 3.0

# (max_age_days, interval_hours); the last row covers everything older.
AGE_INTERVALS: dict[PredictedActivity, Sequence[Tuple[int, float]]] = {
    PredictedActivity.FEEDING: ((7, 2.5), (30, 3.0), (60, 3.0), (90, 3.5), (180, 4.0), (10**6, 4.5)),
    PredictedActivity.SLEEP: ((30, 2.0), (90, 2.5), (180, 3.0), (365, 3.5), (10**6, 5.0)),
    PredictedActivity.DIAPER: ((7, 2.0), (30, 2.5), (90, 3.0), (180, 3.5), (10**6, 4.0)),
    PredictedActivity.PUMPING: ((14, 2.5), (30, 3.0), (90, 3.5), (180, 4.0), (10**6, 5.0)),
}


def calculate_baby_age_days(birth_date: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole calendar days between the birth date and now (UTC), or None without a birth date."""

    if birth_date is None:
        return None
    current = now or datetime.now(timezone.utc)
    if birth_date.tzinfo is not None:
        birth_date = birth_date.astimezone(timezone.utc)
    if current.tzinfo is not None:
        current = current.astimezone(timezone.utc)
    diff = (current.date() - birth_date.date()).days
    return max(0, diff)


def _lookup(rows: Sequence[Tuple[int, float]], age_days: int) -> float:
    for max_age, value in rows:
        if age_days <= max_age:
            return value
    return rows[-1][1]


def age_based_interval(category: PredictedActivity, age_days: Optional[int]) -> float:
    if age_days is None:
        return DEFAULT_INTERVAL_HOURS
    return _lookup(AGE_INTERVALS[category], age_days)


def typical_feeding_duration(age_days: Optional[int]) -> int:
    if age_days is None:
        return 20
    if age_days <= 7:
        return 30
    if age_days <= 30:
        return 25
    if age_days <= 90:
        return 20
    return 15


def typical_nap_duration(age_days: Optional[int]) -> int:
    if age_days is None:
        return 60
    if age_days <= 90:
        return 45
    if age_days <= 180:
        return 75
    if age_days <= 365:
        return 90
    return 105


def daily_goal(category: PredictedActivity, age_days: Optional[int]) -> int:
    """Expected occurrences per day for the age, derived from the default interval."""

    return round(24 / age_based_interval(category, age_days))
