"""Alarm check: which enabled activities are currently past their overdue threshold.

The check is read-only and idempotent so it can be polled. Any failure while
loading data propagates to the caller; a partial list is never returned.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .baby_age import calculate_baby_age_days
from .db import fetch_family_babies, fetch_family_ids, fetch_recent_activities, fetch_user_alarm_preferences
from .overdue_thresholds import minutes_until, resolve_threshold
from .predictions.registry import predict_next
from .schemas import ActivityRecord, BabyProfile, OverdueActivity, UserAlarmPreferences
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)


class UserNotFoundError(LookupError):
    """The authenticated user has no profile row."""


def evaluate_baby(
    baby: BabyProfile,
    activities: Sequence[ActivityRecord],
    preferences: UserAlarmPreferences,
    *,
    now: datetime,
) -> List[OverdueActivity]:
    age_days = calculate_baby_age_days(baby.birth_date, now)
    overdue: List[OverdueActivity] = []
    for category in preferences.enabled_categories():
        prediction = predict_next(category, activities, baby, now=now)
        threshold = resolve_threshold(category, age_days, preferences.threshold_for(category))
        remaining = minutes_until(prediction.next_time, now)
        if remaining < -threshold:
            overdue.append(
                OverdueActivity(
                    activity_type=category,
                    baby_id=baby.id,
                    baby_name=baby.first_name,
                    overdue_minutes=abs(remaining),
                    next_expected_time=prediction.next_time,
                )
            )
    return overdue


async def check_overdue_activities(
    supabase: SupabaseClient,
    user_id: str,
    *,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[OverdueActivity]:
    preferences = await fetch_user_alarm_preferences(supabase, user_id)
    if preferences is None:
        raise UserNotFoundError(user_id)
    if not preferences.any_enabled:
        return []

    family_ids = await fetch_family_ids(supabase, user_id)
    if not family_ids:
        return []

    babies = await fetch_family_babies(supabase, family_ids)
    if not babies:
        return []

    current = now or datetime.now(timezone.utc)
    overdue: List[OverdueActivity] = []
    for baby in babies:
        activities = await fetch_recent_activities(supabase, baby.id, limit=limit)
        overdue.extend(evaluate_baby(baby, activities, preferences, now=current))

    logger.info(
        "overdue check complete",
        extra={
            "user_id": user_id,
            "baby_count": len(babies),
            "enabled": [category.value for category in preferences.enabled_categories()],
            "overdue_count": len(overdue),
        },
    )
    return overdue
