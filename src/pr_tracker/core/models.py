"""
Data models for pr-tracker.

All core dataclasses representing workouts, personal records, and the
derived analytics/recommendation projections.  Numeric set values are not
validated here: zero or negative weight/reps simply never produce a PR
candidate.  Input validation lives in io.serializers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

PRType = Literal["e1RM", "weight_reps", "3RM", "5RM", "8RM", "session_volume"]
PRCategoryId = Literal["max_strength", "endurance", "volume"]
Consistency = Literal["high", "medium", "low"]
RecommendationStatus = Literal["overdue", "due_soon", "on_track", "ahead"]
MatchSource = Literal["catalog", "keyword", "unknown"]


@dataclass
class SetEntry:
    """A single logged set: load in kg and completed reps."""

    weight: float
    reps: int


@dataclass
class WorkoutExercise:
    """One exercise inside a workout post, with its sets in logged order."""

    name: str
    sets: list[SetEntry] = field(default_factory=list)
    id: str = ""


@dataclass
class WorkoutPost:
    """
    A user's logged training session as shared in the feed.

    record_date is set for manually back-dated records (YYYY-MM-DD); live
    records fall back to the calendar day of created_at.
    """

    id: str
    user_id: str
    exercises: list[WorkoutExercise]
    created_at: datetime
    duration_minutes: int = 0
    comment: str = ""
    photos: list[str] = field(default_factory=list)
    likes: int = 0
    liked_by: list[str] = field(default_factory=list)
    comments: int = 0
    record_date: str | None = None

    @property
    def workout_date(self) -> date:
        """Calendar day the workout counts for."""
        if self.record_date:
            return date.fromisoformat(self.record_date)
        return self.created_at.date()

    def exercise_names(self) -> list[str]:
        """Distinct exercise names in first-seen order."""
        seen: list[str] = []
        for ex in self.exercises:
            if ex.name not in seen:
                seen.append(ex.name)
        return seen

    def has_exercise(self, exercise_name: str) -> bool:
        return any(ex.name == exercise_name for ex in self.exercises)


@dataclass
class Comment:
    """A comment on a workout post."""

    id: str
    post_id: str
    user_id: str
    text: str
    created_at: datetime


@dataclass
class PRRecord:
    """
    A personal record for one (user_id, exercise_name, pr_type) triple.

    value is the quantity compared when deciding whether a later workout
    sets a new record.  weight/reps are only present for weight_reps and the
    rep-specific types.  Records are never updated after creation.
    """

    user_id: str
    exercise_name: str
    pr_type: PRType
    value: float
    date: datetime
    id: str = ""
    weight: float | None = None
    reps: int | None = None
    workout_id: str | None = None
    previous_best: float | None = None
    improvement: float = 0.0


@dataclass
class BestSet:
    """The winning set of a best-set selector and the value it won with."""

    set: SetEntry
    value: float


@dataclass
class PRCandidate:
    """A freshly computed PR value, not yet compared against history."""

    exercise_name: str
    pr_type: PRType
    value: float
    weight: float | None = None
    reps: int | None = None


@dataclass(frozen=True)
class PRCategoryInfo:
    """Display information for a PR category."""

    id: PRCategoryId
    name: str
    description: str


@dataclass(frozen=True)
class PRBadge:
    """Short label shown next to a newly achieved PR."""

    pr_type: PRType
    text: str


@dataclass
class PRRecommendation:
    """Next numeric target suggested after a PR."""

    next_target: float
    increment: float
    message: str
    target_date: date


@dataclass
class TrainingAnalytics:
    """Persisted per-(user, exercise) aggregate: mean days between sessions."""

    average_frequency: float
    last_updated: date


@dataclass
class FrequencyStats:
    """Summary statistics over training intervals (days)."""

    average: float
    minimum: int
    maximum: int
    standard_deviation: float
    consistency: Consistency


@dataclass
class NextRecommendation:
    """
    When an exercise should next be trained.

    Derived on read from TrainingAnalytics, the training dates and today's
    date; never persisted.
    """

    exercise_name: str
    next_recommended_date: date
    days_until_next: int
    average_frequency: float
    last_training_date: date
    consistency: Consistency
    status: RecommendationStatus


@dataclass(frozen=True)
class MuscleGroup:
    """A muscle group with its catalogued exercises and fallback keywords."""

    id: str
    name: str
    exercises: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class MuscleGroupMatch:
    """Result of classifying an exercise name, with how it was resolved."""

    exercise_name: str
    group: MuscleGroup
    source: MatchSource


@dataclass
class MuscleGroupSummary:
    """Best PRs and PR count for one muscle group."""

    muscle_group: str
    best_prs: list[PRRecord]
    achievement_count: int


@dataclass
class WorkoutResult:
    """Outcome of posting a workout: the stored post and what it earned."""

    post: WorkoutPost
    new_prs: list[PRRecord] = field(default_factory=list)
    recommendations: list[PRRecommendation] = field(default_factory=list)


@dataclass
class TrainingReminder:
    """A reminder that an exercise is past its recommended training date."""

    user_id: str
    exercise_name: str
    days_overdue: int
    message: str
