"""Diaper prediction.

Besides the gap history, diaper changes cluster after feeds and just before
sleep, so when the full activity list is available those correlations nudge
the interval. The final interval is kept within 1–6 hours.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..baby_age import age_based_interval, calculate_baby_age_days
from ..schemas import ActivityRecord, ConfidenceLevel, PredictedActivity, Prediction, PredictionWeights
from .common import (
    IntervalEstimate,
    age_only_estimate,
    assemble_prediction,
    average,
    calculate_intervals,
    latest_skip_time,
    matching_activities,
    realistic_intervals,
    utc_now,
)

DIAPER_HISTORY = 15
MAX_DIAPER_GAP_HOURS = 12
MIN_DIAPER_INTERVAL_HOURS = 1.0
MAX_DIAPER_INTERVAL_HOURS = 6.0
FEED_TO_DIAPER_WINDOW_MINUTES = 240
DIAPER_TO_SLEEP_WINDOW_MINUTES = 120
DIAPER_KINDS = ("wet", "dirty", "both")


@dataclass
class Correlation:
    average_minutes: Optional[float]
    confidence: float


def diaper_kind(record: ActivityRecord) -> Optional[str]:
    """wet / dirty / both from the stored type, falling back to the details payload."""

    if record.type in DIAPER_KINDS:
        return record.type
    details: Dict[str, Any] = record.details
    kind = details.get("type")
    if isinstance(kind, str):
        return kind
    wet, dirty = bool(details.get("wet")), bool(details.get("dirty"))
    if wet and dirty:
        return "both"
    if wet:
        return "wet"
    if dirty:
        return "dirty"
    return None


def suggest_diaper_kind(diapers: Sequence[ActivityRecord]) -> Optional[str]:
    kinds = [kind for kind in (diaper_kind(d) for d in diapers[:5]) if kind is not None]
    if not kinds:
        return None
    most_common, _ = Counter(kinds).most_common(1)[0]
    return most_common if most_common in DIAPER_KINDS else None


def _minutes_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 60


def feeding_correlation(feedings: Sequence[ActivityRecord], diapers: Sequence[ActivityRecord]) -> Correlation:
    """Average minutes from a feed to the first diaper change within four hours after it."""

    samples: List[float] = []
    for feeding in feedings:
        after = [
            _minutes_between(feeding.start_time, diaper.start_time)
            for diaper in diapers
            if 0 < _minutes_between(feeding.start_time, diaper.start_time) <= FEED_TO_DIAPER_WINDOW_MINUTES
        ]
        if after:
            samples.append(min(after))
    if not samples:
        return Correlation(None, 0.0)
    return Correlation(average(samples), min(len(samples) / 10, 1.0))


def sleep_correlation(sleeps: Sequence[ActivityRecord], diapers: Sequence[ActivityRecord]) -> Correlation:
    """Average minutes between the closest diaper change and a following sleep (two-hour window)."""

    samples: List[float] = []
    for sleep in sleeps:
        before = [
            _minutes_between(diaper.start_time, sleep.start_time)
            for diaper in diapers
            if 0 < _minutes_between(diaper.start_time, sleep.start_time) <= DIAPER_TO_SLEEP_WINDOW_MINUTES
        ]
        if before:
            samples.append(min(before))
    if not samples:
        return Correlation(None, 0.0)
    return Correlation(average(samples), min(len(samples) / 8, 1.0))


def _correlation_factors(
    all_activities: Sequence[ActivityRecord],
    diapers: Sequence[ActivityRecord],
    now: datetime,
) -> tuple[float, float]:
    feedings = matching_activities(all_activities, PredictedActivity.FEEDING, 20)
    sleeps = matching_activities(all_activities, PredictedActivity.SLEEP, 15)

    feeding_factor = 0.0
    feeding_corr = feeding_correlation(feedings, diapers)
    if feedings and feeding_corr.average_minutes is not None and feeding_corr.confidence > 0.3:
        since_feed = _minutes_between(feedings[0].start_time, now)
        if since_feed < FEED_TO_DIAPER_WINDOW_MINUTES:
            expected_from_now = feeding_corr.average_minutes - since_feed
            if expected_from_now > 0:
                feeding_factor = expected_from_now / 60

    sleep_factor = 0.0
    sleep_corr = sleep_correlation(sleeps, diapers)
    if sleeps and sleep_corr.average_minutes is not None:
        sleep_factor = sleep_corr.average_minutes / 60

    return feeding_factor, sleep_factor


def _diaper_estimate(
    age_based: float,
    valid: Sequence[float],
    feeding_factor: float,
    sleep_factor: float,
) -> IntervalEstimate:
    mean = average(valid)
    last = valid[0] if valid else None

    if len(valid) >= 5:
        weights = PredictionWeights(age_based=0.3, recent_average=0.3, last_interval=0.15)
        interval = (
            age_based * weights.age_based
            + (mean or age_based) * weights.recent_average
            + (last or age_based) * weights.last_interval
            + feeding_factor * 0.15
            + sleep_factor * 0.1
        )
        confidence = ConfidenceLevel.HIGH
        source = "blended"
    elif len(valid) >= 2:
        weights = PredictionWeights(age_based=0.4, recent_average=0.35, last_interval=0.15)
        interval = (
            age_based * weights.age_based
            + (mean or age_based) * weights.recent_average
            + (last or age_based) * weights.last_interval
            + feeding_factor * 0.1
        )
        confidence = ConfidenceLevel.MEDIUM
        source = "blended"
    else:
        weights = PredictionWeights(age_based=0.85, recent_average=0.0, last_interval=0.0)
        interval = age_based * weights.age_based + feeding_factor * 0.15
        confidence = ConfidenceLevel.LOW
        source = "age-based"

    interval = max(MIN_DIAPER_INTERVAL_HOURS, min(MAX_DIAPER_INTERVAL_HOURS, interval))
    return IntervalEstimate(
        interval_hours=interval,
        confidence=confidence,
        weights=weights,
        average_interval=mean,
        last_interval=last,
        source=source,
    )


def predict_next_diaper(
    recent_activities: Sequence[ActivityRecord],
    birth_date: Optional[datetime],
    *,
    all_activities: Optional[Sequence[ActivityRecord]] = None,
    now: Optional[datetime] = None,
) -> Prediction:
    current = now or utc_now()
    category = PredictedActivity.DIAPER
    diapers = matching_activities(recent_activities, category, DIAPER_HISTORY)
    age_days = calculate_baby_age_days(birth_date, current)
    age_based = age_based_interval(category, age_days)
    intervals = calculate_intervals(diapers)

    if not diapers:
        estimate = age_only_estimate(age_based)
    else:
        feeding_factor, sleep_factor = 0.0, 0.0
        if all_activities:
            feeding_factor, sleep_factor = _correlation_factors(all_activities, diapers, current)
        estimate = _diaper_estimate(
            age_based,
            realistic_intervals(intervals, MAX_DIAPER_GAP_HOURS),
            feeding_factor,
            sleep_factor,
        )

    return assemble_prediction(
        category,
        estimate=estimate,
        age_based=age_based,
        age_days=age_days,
        now=current,
        activities=diapers,
        intervals=intervals,
        recent_skip_time=latest_skip_time(recent_activities, category),
        suggested_type=suggest_diaper_kind(diapers),
    )
