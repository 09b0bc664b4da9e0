"""
Training-frequency analytics.

Per (user, exercise), the mean interval between distinct training days is
persisted as TrainingAnalytics and recomputed from the full history on
every new workout, so recomputation is idempotent and order-independent.

The next recommended date, its status and the consistency level are pure
functions of that aggregate, the training dates and today's date; they
are recomputed on every read and never stored.

Status bands on days_until_next (first match wins):
    < -1      overdue
    -1 .. 1   due_soon
    2 .. 3    on_track
    > 3       ahead

Consistency is the coefficient of variation of the intervals
(population standard deviation / mean):
    CV < 0.3  high
    CV < 0.6  medium
    else      low      (also when fewer than 3 distinct dates exist)
"""

import math
import statistics
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from .config import (
    CONSISTENCY_CV_HIGH,
    CONSISTENCY_CV_MEDIUM,
    DUE_SOON_WITHIN,
    FREQUENCY_DECIMALS,
    MIN_DATES_FOR_AVERAGE,
    MIN_DATES_FOR_CONSISTENCY,
    ON_TRACK_WITHIN,
    OVERDUE_BELOW,
    STATUS_ORDER,
)
from .models import Consistency, FrequencyStats, NextRecommendation, RecommendationStatus, TrainingAnalytics


def _round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def distinct_training_dates(dates: Iterable[date | datetime]) -> list[date]:
    """
    Distinct calendar days, ascending.

    Several workouts (or sets) on the same day count once.
    """
    days = {d.date() if isinstance(d, datetime) else d for d in dates}
    return sorted(days)


def training_intervals(dates: Iterable[date | datetime]) -> list[int]:
    """Days between consecutive distinct training days."""
    days = distinct_training_dates(dates)
    return [(later - earlier).days for earlier, later in zip(days, days[1:])]


def compute_training_analytics(
    dates: Iterable[date | datetime],
    today: date | None = None,
) -> TrainingAnalytics | None:
    """
    Recompute the training-frequency aggregate from the full history.

    Args:
        dates: Every date the exercise was trained (duplicates allowed)
        today: Value for last_updated (default: date.today())

    Returns:
        TrainingAnalytics with the mean interval rounded to 1 decimal, or
        None when fewer than 2 distinct days exist
    """
    intervals = training_intervals(dates)
    if len(intervals) < MIN_DATES_FOR_AVERAGE - 1:
        return None

    average = _round_half_up(statistics.fmean(intervals), FREQUENCY_DECIMALS)
    return TrainingAnalytics(average_frequency=average, last_updated=today or date.today())


def calculate_next_recommended_date(last_training_date: date, average_frequency: float) -> date:
    """Last training day plus the average interval rounded to whole days."""
    return last_training_date + timedelta(days=int(_round_half_up(average_frequency)))


def get_training_status(days_until_next: int) -> RecommendationStatus:
    """Classify how urgent the next session is."""
    if days_until_next < OVERDUE_BELOW:
        return "overdue"
    if days_until_next <= DUE_SOON_WITHIN:
        return "due_soon"
    if days_until_next <= ON_TRACK_WITHIN:
        return "on_track"
    return "ahead"


def _consistency_for_cv(cv: float) -> Consistency:
    if cv < CONSISTENCY_CV_HIGH:
        return "high"
    if cv < CONSISTENCY_CV_MEDIUM:
        return "medium"
    return "low"


def classify_consistency(intervals: Sequence[int | float]) -> Consistency:
    """
    Consistency level of a series of training intervals.

    Needs at least 2 intervals (3 distinct dates); fewer yields "low".
    """
    if len(intervals) < MIN_DATES_FOR_CONSISTENCY - 1:
        return "low"
    mean = statistics.fmean(intervals)
    if mean <= 0:
        return "low"
    return _consistency_for_cv(statistics.pstdev(intervals) / mean)


def calculate_consistency(dates: Iterable[date | datetime]) -> Consistency:
    """Consistency level of a training history given as dates."""
    return classify_consistency(training_intervals(dates))


def calculate_frequency_stats(intervals: Sequence[int]) -> FrequencyStats | None:
    """
    Average, spread and consistency of training intervals.

    Args:
        intervals: Interval lengths in days

    Returns:
        FrequencyStats, or None for an empty series
    """
    if not intervals:
        return None

    average = statistics.fmean(intervals)
    std_dev = statistics.pstdev(intervals)
    consistency = _consistency_for_cv(std_dev / average) if average > 0 else "low"

    return FrequencyStats(
        average=_round_half_up(average, FREQUENCY_DECIMALS),
        minimum=min(intervals),
        maximum=max(intervals),
        standard_deviation=_round_half_up(std_dev, FREQUENCY_DECIMALS),
        consistency=consistency,
    )


def build_next_recommendation(
    exercise_name: str,
    analytics: TrainingAnalytics | None,
    training_dates: Iterable[date | datetime],
    today: date | None = None,
) -> NextRecommendation | None:
    """
    Project when an exercise should next be trained.

    Args:
        exercise_name: Exercise name
        analytics: Stored frequency aggregate (None if never computed)
        training_dates: Every date the exercise was trained
        today: Reference date (default: date.today())

    Returns:
        NextRecommendation, or None without analytics or training history
    """
    days = distinct_training_dates(training_dates)
    if analytics is None or not days:
        return None

    today = today or date.today()
    last_training_date = days[-1]
    next_date = calculate_next_recommended_date(last_training_date, analytics.average_frequency)
    days_until_next = (next_date - today).days

    return NextRecommendation(
        exercise_name=exercise_name,
        next_recommended_date=next_date,
        days_until_next=days_until_next,
        average_frequency=analytics.average_frequency,
        last_training_date=last_training_date,
        consistency=calculate_consistency(days),
        status=get_training_status(days_until_next),
    )


def sort_by_urgency(recommendations: Iterable[NextRecommendation]) -> list[NextRecommendation]:
    """Overdue first, then due_soon, on_track, ahead; earlier dates first within a status."""
    return sorted(recommendations, key=lambda r: (STATUS_ORDER[r.status], r.days_until_next))


def format_recommendation_message(rec: NextRecommendation) -> str:
    """One-line description of a recommendation's status."""
    name, days = rec.exercise_name, rec.days_until_next

    if rec.status == "overdue":
        return f"{name} is {abs(days)} days overdue"
    if rec.status == "due_soon":
        if days == 0:
            return f"{name} is recommended today"
        if days > 0:
            return f"{name} is recommended tomorrow"
        return f"{name} was recommended yesterday"
    return f"{name} is recommended in {days} days"
