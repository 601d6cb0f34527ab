from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..overdue_check import UserNotFoundError, check_overdue_activities
from ..schemas import OverdueCheckResponse
from ..supabase import UserContext, get_user_context

router = APIRouter(prefix="/api/activities", tags=["activities"])
logger = logging.getLogger(__name__)


@router.get("/check-overdue", response_model=OverdueCheckResponse)
async def check_overdue_endpoint(
    user: UserContext = Depends(get_user_context),
) -> OverdueCheckResponse:
    """List every enabled alarm that is currently past its overdue threshold."""

    try:
        overdue = await check_overdue_activities(user.supabase, user.user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="User not found") from exc
    except Exception as exc:
        logger.exception("overdue check failed", extra={"user_id": user.user_id})
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return OverdueCheckResponse(overdue_activities=overdue)
