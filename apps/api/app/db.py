"""Supabase read helpers for users, babies and activities."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .config import CONFIG
from .schemas import ActivityRecord, BabyProfile, UserAlarmPreferences
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

USER_ALARM_COLUMNS = (
    "id,"
    "alarm_feeding_enabled,alarm_sleep_enabled,alarm_diaper_enabled,alarm_pumping_enabled,"
    "alarm_feeding_threshold,alarm_sleep_threshold,alarm_diaper_threshold,alarm_pumping_threshold"
)
BABY_COLUMNS = "id,family_id,first_name,birth_date,feed_interval_hours"
ACTIVITY_COLUMNS = (
    "id,type,start_time,end_time,duration,amount,amount_ml,notes,is_scheduled,details"
)


async def fetch_user_alarm_preferences(
    supabase: SupabaseClient,
    user_id: str,
) -> Optional[UserAlarmPreferences]:
    rows = await supabase.select(
        "users",
        params={"select": USER_ALARM_COLUMNS, "id": f"eq.{user_id}", "limit": "1"},
    )
    if not rows:
        return None
    return UserAlarmPreferences.model_validate(rows[0])


async def fetch_family_ids(supabase: SupabaseClient, user_id: str) -> List[str]:
    rows = await supabase.select(
        "family_members",
        params={"select": "family_id", "user_id": f"eq.{user_id}"},
    )
    family_ids: List[str] = []
    for row in rows:
        family_id = row.get("family_id")
        if family_id and family_id not in family_ids:
            family_ids.append(family_id)
    return family_ids


async def fetch_family_babies(supabase: SupabaseClient, family_ids: Sequence[str]) -> List[BabyProfile]:
    if not family_ids:
        return []
    rows = await supabase.select(
        "babies",
        params={
            "select": BABY_COLUMNS,
            "family_id": f"in.({','.join(family_ids)})",
            "order": "created_at.asc",
        },
    )
    return [BabyProfile.model_validate(row) for row in rows]


async def fetch_baby(
    supabase: SupabaseClient,
    baby_id: str,
    family_ids: Sequence[str],
) -> Optional[BabyProfile]:
    if not family_ids:
        return None
    rows = await supabase.select(
        "babies",
        params={
            "select": BABY_COLUMNS,
            "id": f"eq.{baby_id}",
            "family_id": f"in.({','.join(family_ids)})",
            "limit": "1",
        },
    )
    if not rows:
        return None
    return BabyProfile.model_validate(rows[0])


async def fetch_recent_activities(
    supabase: SupabaseClient,
    baby_id: str,
    *,
    limit: Optional[int] = None,
) -> List[ActivityRecord]:
    """Most recent activities for one baby, newest first."""

    rows = await supabase.select(
        "activities",
        params={
            "select": ACTIVITY_COLUMNS,
            "baby_id": f"eq.{baby_id}",
            "order": "start_time.desc",
            "limit": str(limit or CONFIG.recent_activity_limit),
        },
    )
    records: List[ActivityRecord] = []
    for row in rows:
        try:
            records.append(ActivityRecord.model_validate(row))
        except ValidationError:
            logger.warning(
                "skipping malformed activity row",
                extra={"baby_id": baby_id, "activity_id": row.get("id")},
            )
    return records
