"""Age-dependent grace periods before a late prediction counts as overdue.

Newborn care is the most time-sensitive, so thresholds start tight and widen
as the baby grows. A threshold configured by the user always wins over the
age-derived default.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from .schemas import ActivityStatus, PredictedActivity

AGE_BRACKETS: Tuple[int, ...] = (7, 14, 30, 60, 90)

# One value per bracket in AGE_BRACKETS plus a final value for 90+ days.
THRESHOLD_TABLE: Dict[PredictedActivity, Tuple[int, ...]] = {
    PredictedActivity.FEEDING: (15, 20, 25, 30, 35, 45),
    PredictedActivity.SLEEP: (20, 25, 30, 40, 50, 60),
    PredictedActivity.DIAPER: (30, 40, 50, 60, 75, 90),
    PredictedActivity.PUMPING: (20, 25, 30, 40, 45, 60),
}


def get_overdue_threshold(category: PredictedActivity, age_days: Optional[int]) -> int:
    """Minutes of grace for the category; a missing age uses the newborn row."""

    age = age_days if age_days is not None else 0
    values = THRESHOLD_TABLE[category]
    for index, upper in enumerate(AGE_BRACKETS):
        if age <= upper:
            return values[index]
    return values[-1]


def resolve_threshold(
    category: PredictedActivity,
    age_days: Optional[int],
    user_override: Optional[int] = None,
) -> int:
    if user_override is not None:
        return user_override
    return get_overdue_threshold(category, age_days)


def describe_threshold(
    category: PredictedActivity,
    age_days: Optional[int],
    user_override: Optional[int] = None,
) -> str:
    if user_override is not None:
        return f"Marked overdue after {user_override} minutes based on your custom setting"
    threshold = get_overdue_threshold(category, age_days)
    age = age_days if age_days is not None else 0
    if age <= 7:
        context = "newborns need frequent care"
    elif age <= 30:
        context = "young babies need regular care"
    elif age <= 90:
        context = "babies this age are developing patterns"
    else:
        context = "babies this age have more flexible schedules"
    return f"Marked overdue after {threshold} minutes because {context}"


def minutes_until(next_time: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes from now until next_time, truncated toward zero."""

    current = now or datetime.now(timezone.utc)
    return int((next_time - current).total_seconds() / 60)


def is_overdue(next_time: datetime, threshold_minutes: int, now: Optional[datetime] = None) -> bool:
    return minutes_until(next_time, now) < -threshold_minutes


def activity_status(
    next_time: datetime,
    threshold_minutes: int,
    now: Optional[datetime] = None,
) -> ActivityStatus:
    remaining = minutes_until(next_time, now)
    if remaining < -threshold_minutes:
        return ActivityStatus.OVERDUE
    if remaining <= min(30, threshold_minutes / 2):
        return ActivityStatus.SOON
    return ActivityStatus.UPCOMING
