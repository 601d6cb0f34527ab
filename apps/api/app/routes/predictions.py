from datetime import datetime, timezone
from typing import Dict, Optional

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..baby_age import calculate_baby_age_days
from ..db import fetch_baby, fetch_family_ids, fetch_recent_activities, fetch_user_alarm_preferences
from ..overdue_thresholds import activity_status, describe_threshold, resolve_threshold
from ..predictions.registry import predict_all
from ..schemas import ActivityCard, BabyPredictionsResponse, BabyProfile, PredictedActivity
from ..skip_logic import skip_state_for
from ..summaries import compare_windows, predicted_interval_for_date, todays_summary
from ..supabase import UserContext, get_user_context, parse_uuid

router = APIRouter(prefix="/api/v1", tags=["predictions"])
logger = logging.getLogger(__name__)


async def _load_baby(user: UserContext, baby_id: str) -> BabyProfile:
    baby_uuid = parse_uuid(baby_id, "baby_id")
    family_ids = await fetch_family_ids(user.supabase, user.user_id)
    baby = await fetch_baby(user.supabase, baby_uuid, family_ids)
    if baby is None:
        raise HTTPException(status_code=404, detail="Baby not found")
    return baby


@router.get("/babies/{baby_id}/predictions", response_model=BabyPredictionsResponse)
async def baby_predictions(
    baby_id: str,
    user: UserContext = Depends(get_user_context),
) -> BabyPredictionsResponse:
    """Prediction, skip state and overdue status for each dashboard card."""

    baby = await _load_baby(user, baby_id)
    preferences = await fetch_user_alarm_preferences(user.supabase, user.user_id)
    activities = await fetch_recent_activities(user.supabase, baby.id)

    now = datetime.now(timezone.utc)
    age_days = calculate_baby_age_days(baby.birth_date, now)
    cards: Dict[PredictedActivity, ActivityCard] = {}
    for category, prediction in predict_all(activities, baby, now=now).items():
        override = preferences.threshold_for(category) if preferences else None
        threshold = resolve_threshold(category, age_days, override)
        skip = skip_state_for(prediction, now, threshold)
        cards[category] = ActivityCard(
            prediction=prediction,
            skip=skip,
            threshold_minutes=threshold,
            threshold_description=describe_threshold(category, age_days, override),
            status=activity_status(skip.display_next_time, threshold, now),
        )

    logger.info(
        "baby-scoped request",
        extra={"method": "GET", "path": "/api/v1/babies/{baby_id}/predictions", "baby_id": baby.id},
    )
    return BabyPredictionsResponse(
        baby_id=baby.id,
        baby_name=baby.first_name,
        age_days=age_days,
        generated_at=now,
        cards=cards,
    )


@router.get("/babies/{baby_id}/summary")
async def baby_summary(
    baby_id: str,
    category: PredictedActivity = Query(..., description="Activity category to summarize"),
    days: int = Query(1, ge=1, le=14),
    baseline_days: Optional[int] = Query(None, ge=1, le=14),
    user: UserContext = Depends(get_user_context),
) -> dict:
    """Today's totals plus a current-vs-baseline comparison for one category."""

    baby = await _load_baby(user, baby_id)
    activities = await fetch_recent_activities(user.supabase, baby.id)
    now = datetime.now(timezone.utc)
    return {
        "baby_id": baby.id,
        "category": category.value,
        "today": todays_summary(activities, category, now, baby.birth_date),
        "predicted_interval": predicted_interval_for_date(activities, now, baby.birth_date, category),
        "compare": compare_windows(
            activities,
            category,
            now=now,
            days=days,
            baseline_days=baseline_days or days,
        ),
    }
