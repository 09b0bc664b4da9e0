"""
Workout orchestration: posting, PR detection, analytics upkeep and deletion.

WorkoutTracker is the single entry point the CLI (and any other front end)
talks to.  It owns no state besides the document store it is given.
"""

from datetime import date, datetime
from typing import Sequence

from loguru import logger

from .core.config import DEFAULT_POSTS_LIMIT, TREND_LIMIT
from .core.exceptions import StorageError
from .core.frequency import build_next_recommendation, compute_training_analytics, sort_by_urgency
from .core.models import (
    Comment,
    MuscleGroupSummary,
    NextRecommendation,
    PRRecord,
    PRType,
    TrainingAnalytics,
    WorkoutExercise,
    WorkoutPost,
    WorkoutResult,
)
from .core.recommendation import calculate_pr_recommendation
from .core.records import best_prs_by_muscle_group, detect_workout_prs
from .io.document_store import DocumentStore
from .io.serializers import ValidationError, validate_date


class WorkoutTracker:
    """Coordinates the document store with the PR and analytics engines."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Posting
    # -------------------------------------------------------------------------

    def post_workout(
        self,
        user_id: str,
        exercises: Sequence[WorkoutExercise],
        *,
        duration_minutes: int = 0,
        comment: str = "",
        record_date: str | None = None,
        now: datetime | None = None,
    ) -> WorkoutResult:
        """
        Store a workout, detect its PRs and refresh training analytics.

        Args:
            user_id: Owner of the workout
            exercises: Logged exercises with their sets
            duration_minutes: Session length
            comment: Free-text note shown with the post
            record_date: YYYY-MM-DD for back-dated records (default: today)
            now: Creation timestamp (default: datetime.now())

        Returns:
            WorkoutResult with the stored post, new PRs and one recommendation
            per new PR

        Raises:
            ValidationError: If there are no exercises or record_date is invalid
        """
        if not exercises:
            raise ValidationError("A workout needs at least one exercise")
        if record_date is not None:
            validate_date(record_date)

        now = now or datetime.now()
        post = self.store.create_post(
            WorkoutPost(
                id="",
                user_id=user_id,
                exercises=list(exercises),
                created_at=now,
                duration_minutes=duration_minutes,
                comment=comment,
                record_date=record_date,
            )
        )

        new_prs = detect_workout_prs(
            self.store,
            user_id,
            post.exercises,
            workout_id=post.id,
            now=now,
            save=True,
        )
        recommendations = [calculate_pr_recommendation(pr, today=now.date()) for pr in new_prs]

        self.on_workout_created(post, today=now.date())

        return WorkoutResult(post=post, new_prs=new_prs, recommendations=recommendations)

    def on_workout_created(self, post: WorkoutPost, today: date | None = None) -> None:
        """
        Recompute the frequency aggregate of every exercise in a new post.

        Each recomputation reads the full history, so running it twice or
        out of order gives the same result.  A failure for one exercise does
        not affect the others.
        """
        for exercise_name in post.exercise_names():
            try:
                self.refresh_training_analytics(post.user_id, exercise_name, today=today)
            except StorageError as e:
                logger.warning(f"Analytics update failed for '{exercise_name}' (user {post.user_id}): {e}")

    def refresh_training_analytics(
        self, user_id: str, exercise_name: str, today: date | None = None
    ) -> TrainingAnalytics | None:
        """
        Recompute and store the aggregate for one (user, exercise).

        Returns:
            The stored aggregate, or None when there are fewer than 2 distinct
            training days (nothing is written in that case)
        """
        dates = self.store.get_training_dates(user_id, exercise_name)
        analytics = compute_training_analytics(dates, today=today)
        if analytics is None:
            logger.debug(f"Not enough history for '{exercise_name}' (user {user_id}); analytics unchanged")
            return None

        self.store.save_training_analytics(user_id, exercise_name, analytics)
        logger.info(
            f"Analytics for '{exercise_name}' (user {user_id}): "
            f"every {analytics.average_frequency} days"
        )
        return analytics

    # -------------------------------------------------------------------------
    # Deletion / comments
    # -------------------------------------------------------------------------

    def delete_workout(self, post_id: str, user_id: str) -> int:
        """
        Delete a workout and cascade its PR records and comments.

        Returns:
            Number of PR records removed

        Raises:
            NotFoundError: If the post does not exist
            PermissionDeniedError: If `user_id` does not own the post
        """
        return self.store.delete_post(post_id, user_id)

    def add_comment(self, post_id: str, user_id: str, text: str, now: datetime | None = None) -> Comment:
        text = text.strip()
        if not text:
            raise ValidationError("Comment cannot be empty")
        return self.store.add_comment(post_id, user_id, text, now=now)

    def get_comments(self, post_id: str) -> list[Comment]:
        return self.store.get_comments(post_id)

    def get_posts(self, user_id: str | None = None, limit: int = DEFAULT_POSTS_LIMIT) -> list[WorkoutPost]:
        return self.store.get_posts(user_id, limit)

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def get_next_recommendation(
        self, user_id: str, exercise_name: str, today: date | None = None
    ) -> NextRecommendation | None:
        analytics = self.store.get_training_analytics(user_id, exercise_name)
        dates = self.store.get_training_dates(user_id, exercise_name)
        return build_next_recommendation(exercise_name, analytics, dates, today=today)

    def get_next_recommendations(self, user_id: str, today: date | None = None) -> list[NextRecommendation]:
        """
        Next training date for every exercise with stored analytics.

        Returns:
            Recommendations ordered overdue, due_soon, on_track, ahead
        """
        recommendations: list[NextRecommendation] = []
        for exercise_name in self.store.list_analytics_exercises(user_id):
            try:
                rec = self.get_next_recommendation(user_id, exercise_name, today=today)
            except StorageError as e:
                logger.warning(f"Skipping recommendation for '{exercise_name}' (user {user_id}): {e}")
                continue
            if rec is not None:
                recommendations.append(rec)
        return sort_by_urgency(recommendations)

    def get_user_prs(
        self,
        user_id: str,
        exercise_name: str | None = None,
        pr_type: PRType | None = None,
    ) -> list[PRRecord]:
        return self.store.get_user_prs(user_id, exercise_name, pr_type)

    def get_weekly_prs(self, user_id: str, now: datetime | None = None) -> list[PRRecord]:
        return self.store.get_weekly_prs(user_id, now=now)

    def get_pr_trend(
        self, user_id: str, exercise_name: str, pr_type: PRType, limit: int = TREND_LIMIT
    ) -> list[PRRecord]:
        return self.store.get_pr_trend_data(user_id, exercise_name, pr_type, limit=limit)

    def muscle_group_summaries(self, user_id: str, top: int = 3) -> list[MuscleGroupSummary]:
        return best_prs_by_muscle_group(self.store.get_user_prs(user_id), top=top)
