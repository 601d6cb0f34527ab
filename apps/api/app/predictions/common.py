"""Interval estimation shared by the per-activity predictors."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from ..classification import classify_activity
from ..overdue_thresholds import get_overdue_threshold, minutes_until
from ..schemas import (
    ActivityRecord,
    CalculationDetails,
    ConfidenceLevel,
    PatternEntry,
    PredictedActivity,
    Prediction,
    PredictionWeights,
)

MIN_INTERVAL_HOURS = 0.5
RECOVERY_FACTOR = 0.6
PATTERN_SIZE = 5

HIGH_WEIGHTS = PredictionWeights(age_based=0.4, recent_average=0.4, last_interval=0.2)
MEDIUM_WEIGHTS = PredictionWeights(age_based=0.5, recent_average=0.3, last_interval=0.2)
AGE_ONLY_WEIGHTS = PredictionWeights(age_based=1.0, recent_average=0.0, last_interval=0.0)


@dataclass
class IntervalEstimate:
    interval_hours: float
    confidence: ConfidenceLevel
    weights: PredictionWeights
    average_interval: Optional[float]
    last_interval: Optional[float]
    source: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(records: Iterable[ActivityRecord]) -> List[ActivityRecord]:
    return sorted(records, key=lambda record: record.start_time, reverse=True)


def matching_activities(
    records: Sequence[ActivityRecord],
    category: PredictedActivity,
    limit: int,
) -> List[ActivityRecord]:
    """Real (non-scheduled, non-skipped) occurrences of the category, newest first."""

    matches = [
        record
        for record in records
        if classify_activity(record.type) == category
        and not record.is_scheduled
        and not record.is_skip_marker
    ]
    return _newest_first(matches)[:limit]


def latest_skip_time(records: Sequence[ActivityRecord], category: PredictedActivity) -> Optional[datetime]:
    skips = [
        record
        for record in records
        if classify_activity(record.type) == category and record.is_skip_marker
    ]
    if not skips:
        return None
    return _newest_first(skips)[0].start_time


def calculate_intervals(activities: Sequence[ActivityRecord]) -> List[Optional[float]]:
    """Hours between each record and the one logged after it; the newest has no interval."""

    intervals: List[Optional[float]] = []
    for index, activity in enumerate(activities):
        if index == 0:
            intervals.append(None)
            continue
        newer = activities[index - 1]
        intervals.append((newer.start_time - activity.start_time).total_seconds() / 3600)
    return intervals


def realistic_intervals(intervals: Sequence[Optional[float]], max_hours: float) -> List[float]:
    return [value for value in intervals if value is not None and 0 < value < max_hours]


def blend_interval(
    age_based: float,
    valid: Sequence[float],
    *,
    high_min: int = 3,
    high_weights: PredictionWeights = HIGH_WEIGHTS,
    medium_weights: PredictionWeights = MEDIUM_WEIGHTS,
) -> IntervalEstimate:
    """Weighted blend of the age default, the recent average gap and the latest gap."""

    mean = average(valid)
    last = valid[0] if valid else None

    if len(valid) >= high_min:
        weights, confidence = high_weights, ConfidenceLevel.HIGH
    elif valid:
        weights, confidence = medium_weights, ConfidenceLevel.MEDIUM
    else:
        return age_only_estimate(age_based)

    interval = (
        age_based * weights.age_based
        + (mean or age_based) * weights.recent_average
        + (last or age_based) * weights.last_interval
    )
    return IntervalEstimate(
        interval_hours=interval,
        confidence=confidence,
        weights=weights,
        average_interval=mean,
        last_interval=last,
        source="blended",
    )


def clamp_interval(hours: float) -> float:
    return max(MIN_INTERVAL_HOURS, hours)


def build_pattern(
    activities: Sequence[ActivityRecord],
    intervals: Sequence[Optional[float]],
) -> List[PatternEntry]:
    pattern: List[PatternEntry] = []
    for index, activity in enumerate(activities[:PATTERN_SIZE]):
        pattern.append(
            PatternEntry(
                time=activity.start_time,
                interval_from_previous=intervals[index] if index < len(intervals) else None,
                amount_ml=activity.amount_ml if activity.amount_ml is not None else activity.amount,
                duration=activity.duration,
                type=activity.type,
            )
        )
    return pattern


def assemble_prediction(
    category: PredictedActivity,
    *,
    estimate: IntervalEstimate,
    age_based: float,
    age_days: Optional[int],
    now: datetime,
    activities: Sequence[ActivityRecord],
    intervals: Sequence[Optional[float]],
    recent_skip_time: Optional[datetime],
    **extras,
) -> Prediction:
    """Anchor the estimate on the newest occurrence (or now) and fill the overdue fields."""

    interval_hours = clamp_interval(estimate.interval_hours)
    last_time = activities[0].start_time if activities else None
    anchor = last_time or now
    next_time = anchor + timedelta(hours=interval_hours)

    overdue = False
    overdue_minutes: Optional[int] = None
    recovery: Optional[datetime] = None
    if last_time is not None:
        remaining = minutes_until(next_time, now)
        overdue = remaining < -get_overdue_threshold(category, age_days)
        if overdue:
            overdue_minutes = abs(remaining)
            recovery = now + timedelta(hours=interval_hours * RECOVERY_FACTOR)

    return Prediction(
        activity_type=category,
        next_time=next_time,
        interval_hours=interval_hours,
        confidence_level=estimate.confidence,
        average_interval_hours=estimate.average_interval,
        last_time=last_time,
        recent_pattern=build_pattern(activities, intervals),
        is_overdue=overdue,
        overdue_minutes=overdue_minutes,
        suggested_recovery_time=recovery,
        recent_skip_time=recent_skip_time,
        calculation_details=CalculationDetails(
            age_based_interval=age_based,
            recent_average_interval=estimate.average_interval,
            last_interval=estimate.last_interval,
            weights=estimate.weights,
            data_points=len(activities),
            source=estimate.source,
        ),
        **extras,
    )


def age_only_estimate(interval_hours: float, source: str = "age-based") -> IntervalEstimate:
    return IntervalEstimate(
        interval_hours=interval_hours,
        confidence=ConfidenceLevel.LOW,
        weights=AGE_ONLY_WEIGHTS,
        average_interval=None,
        last_interval=None,
        source=source,
    )


def average(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)
