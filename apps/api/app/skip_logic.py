"""Suppress overdue alarms for a while after the user skips an expected activity."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from .overdue_thresholds import is_overdue as past_threshold
from .schemas import Prediction, SkipState, _ensure_utc


def compute_skip_state(
    *,
    next_time: datetime,
    is_overdue: bool,
    interval_hours: float,
    recent_skip_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> SkipState:
    """A skip stays valid for one full interval and re-anchors the displayed next time on itself."""

    current = _ensure_utc(now or datetime.now(timezone.utc))
    skipped_at = _ensure_utc(recent_skip_time)
    window = timedelta(hours=interval_hours)
    recently_skipped = skipped_at is not None and current - skipped_at < window

    if recently_skipped:
        display = skipped_at + window
    else:
        display = _ensure_utc(next_time)

    return SkipState(
        is_recently_skipped=recently_skipped,
        effective_is_overdue=is_overdue and not recently_skipped,
        display_next_time=display,
    )


def skip_state_for(
    prediction: Prediction,
    now: Optional[datetime] = None,
    threshold_minutes: Optional[int] = None,
) -> SkipState:
    """Skip state for a prediction; a resolved threshold replaces the age-based overdue flag."""

    overdue = prediction.is_overdue
    if threshold_minutes is not None:
        overdue = past_threshold(prediction.next_time, threshold_minutes, now)
    return compute_skip_state(
        next_time=prediction.next_time,
        is_overdue=overdue,
        interval_hours=prediction.interval_hours,
        recent_skip_time=prediction.recent_skip_time,
        now=now,
    )
