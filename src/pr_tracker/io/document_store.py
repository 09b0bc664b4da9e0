"""
JSONL-based document store for workout posts, PR records and analytics.

Handles reading, writing, and cascading deletes of the collections the PR
engine depends on.
"""

import json
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

from loguru import logger

from ..core.config import DEFAULT_DATA_DIR, DEFAULT_POSTS_LIMIT, TREND_LIMIT, WEEKLY_WINDOW_DAYS
from ..core.exceptions import NotFoundError, PermissionDeniedError, StorageError
from ..core.models import Comment, PRRecord, PRType, TrainingAnalytics, WorkoutPost
from .serializers import (
    ValidationError,
    comment_to_dict,
    dict_to_comment,
    dict_to_pr_record,
    dict_to_training_analytics,
    dict_to_workout_post,
    pr_record_to_dict,
    to_json_line,
    training_analytics_to_dict,
    workout_post_to_dict,
)

T = TypeVar("T")


def _new_id() -> str:
    return uuid.uuid4().hex


class DocumentStore:
    """
    Manages the pr-tracker collections stored under one data directory.

    Layout:
    - workout_posts.jsonl   one WorkoutPost per line
    - pr_records.jsonl      one PRRecord per line (append-only except cascades)
    - comments.jsonl        one Comment per line
    - analytics.json        {user_id: {exercise_name: TrainingAnalytics}}

    A missing collection file reads as empty.  Unreadable or corrupt files
    raise StorageError.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the document store.

        Args:
            data_dir: Directory holding the collection files
        """
        self.data_dir = Path(data_dir)
        self.posts_path = self.data_dir / "workout_posts.jsonl"
        self.prs_path = self.data_dir / "pr_records.jsonl"
        self.comments_path = self.data_dir / "comments.jsonl"
        self.analytics_path = self.data_dir / "analytics.json"

        # serializes file reads and writes within this process
        self._io_lock = threading.RLock()
        self._pr_locks: dict[tuple[str, str, str], threading.Lock] = {}
        self._pr_locks_guard = threading.Lock()

    def exists(self) -> bool:
        """Check if the data directory has been initialized."""
        return self.posts_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty collection files.

        Existing files are left untouched.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.posts_path, self.prs_path, self.comments_path):
            if not path.exists():
                path.touch()

    # -------------------------------------------------------------------------
    # Low-level file access
    # -------------------------------------------------------------------------

    def _read_jsonl(self, path: Path, parse: Callable[[dict[str, Any]], T]) -> list[T]:
        if not path.exists():
            return []

        items: list[T] = []
        try:
            with self._io_lock, open(path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        items.append(parse(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as e:
                        raise StorageError(f"Error parsing line {line_num} in {path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        return items

    def _write_jsonl(self, path: Path, rows: list[dict[str, Any]]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                for row in rows:
                    f.write(to_json_line(row) + "\n")
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def _append_jsonl(self, path: Path, row: dict[str, Any]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(to_json_line(row) + "\n")
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def _read_analytics(self) -> dict[str, dict[str, Any]]:
        if not self.analytics_path.exists():
            return {}
        try:
            with self._io_lock, open(self.analytics_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.analytics_path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.analytics_path} must contain a JSON object")
        return data

    # -------------------------------------------------------------------------
    # Workout posts
    # -------------------------------------------------------------------------

    def load_posts(self) -> list[WorkoutPost]:
        """All posts in file order."""
        return self._read_jsonl(self.posts_path, dict_to_workout_post)

    def create_post(self, post: WorkoutPost) -> WorkoutPost:
        """
        Store a new post, assigning an id if it has none.

        Args:
            post: Post to store

        Returns:
            The stored post
        """
        if not post.id:
            post.id = _new_id()
        with self._io_lock:
            self._append_jsonl(self.posts_path, workout_post_to_dict(post))
        return post

    def get_post(self, post_id: str) -> WorkoutPost | None:
        for post in self.load_posts():
            if post.id == post_id:
                return post
        return None

    def get_posts(self, user_id: str | None = None, limit: int = DEFAULT_POSTS_LIMIT) -> list[WorkoutPost]:
        """
        Most recent posts, newest first.

        Args:
            user_id: Only posts by this user (default: everyone)
            limit: Maximum number of posts

        Returns:
            List of posts
        """
        posts = [p for p in self.load_posts() if user_id is None or p.user_id == user_id]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts[:limit]

    def get_user_posts(self, user_id: str) -> list[WorkoutPost]:
        """Every post by a user, oldest workout first."""
        posts = [p for p in self.load_posts() if p.user_id == user_id]
        posts.sort(key=lambda p: (p.workout_date, p.created_at))
        return posts

    def delete_post(self, post_id: str, user_id: str) -> int:
        """
        Delete a post owned by `user_id` together with its PRs and comments.

        Only records whose workout_id equals the post id are removed.

        Args:
            post_id: Post to delete
            user_id: Requesting user; must own the post

        Returns:
            Number of PR records removed

        Raises:
            NotFoundError: If the post does not exist
            PermissionDeniedError: If the post belongs to another user
        """
        with self._io_lock:
            posts = self.load_posts()
            target = next((p for p in posts if p.id == post_id), None)
            if target is None:
                raise NotFoundError(f"Workout post not found: {post_id}")
            if target.user_id != user_id:
                raise PermissionDeniedError(f"User {user_id} cannot delete post {post_id}")

            removed_prs = self.delete_prs_for_workout(post_id)

            comments = self._read_jsonl(self.comments_path, dict_to_comment)
            kept_comments = [c for c in comments if c.post_id != post_id]
            if len(kept_comments) != len(comments):
                self._write_jsonl(self.comments_path, [comment_to_dict(c) for c in kept_comments])

            self._write_jsonl(
                self.posts_path,
                [workout_post_to_dict(p) for p in posts if p.id != post_id],
            )

        logger.info(
            f"Deleted post {post_id}: {removed_prs} PR records, "
            f"{len(comments) - len(kept_comments)} comments"
        )
        return removed_prs

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def add_comment(self, post_id: str, user_id: str, text: str, now: datetime | None = None) -> Comment:
        """
        Add a comment to a post and bump the post's comment counter.

        Raises:
            NotFoundError: If the post does not exist
        """
        with self._io_lock:
            posts = self.load_posts()
            target = next((p for p in posts if p.id == post_id), None)
            if target is None:
                raise NotFoundError(f"Workout post not found: {post_id}")

            comment = Comment(
                id=_new_id(),
                post_id=post_id,
                user_id=user_id,
                text=text,
                created_at=now or datetime.now(),
            )
            self._append_jsonl(self.comments_path, comment_to_dict(comment))

            target.comments += 1
            self._write_jsonl(self.posts_path, [workout_post_to_dict(p) for p in posts])
        return comment

    def get_comments(self, post_id: str) -> list[Comment]:
        """Comments on a post, oldest first."""
        comments = [c for c in self._read_jsonl(self.comments_path, dict_to_comment) if c.post_id == post_id]
        comments.sort(key=lambda c: c.created_at)
        return comments

    # -------------------------------------------------------------------------
    # PR records
    # -------------------------------------------------------------------------

    def load_prs(self) -> list[PRRecord]:
        """All PR records in file order."""
        return self._read_jsonl(self.prs_path, dict_to_pr_record)

    @contextmanager
    def pr_transaction(self, user_id: str, exercise_name: str, pr_type: PRType) -> Iterator[None]:
        """
        Serialize read-compare-write sequences for one (user, exercise, type).

        Usage:
            with store.pr_transaction(uid, "スクワット", "e1RM"):
                latest = store.get_latest_pr_for_exercise(uid, "スクワット", "e1RM")
                ...
                store.save_pr(record)
        """
        key = (user_id, exercise_name, pr_type)
        with self._pr_locks_guard:
            lock = self._pr_locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def save_pr(self, record: PRRecord) -> PRRecord:
        """
        Append a PR record, assigning an id if it has none.

        Returns:
            The stored record
        """
        if not record.id:
            record.id = _new_id()
        with self._io_lock:
            self._append_jsonl(self.prs_path, pr_record_to_dict(record))
        return record

    def get_latest_pr_for_exercise(
        self, user_id: str, exercise_name: str, pr_type: PRType
    ) -> PRRecord | None:
        """
        Most recent PR record for one (user, exercise, type), by date.

        Returns:
            PRRecord or None if the triple has no record yet
        """
        matches = self.get_user_prs(user_id, exercise_name, pr_type)
        return matches[0] if matches else None

    def get_user_prs(
        self,
        user_id: str,
        exercise_name: str | None = None,
        pr_type: PRType | None = None,
    ) -> list[PRRecord]:
        """
        PR records of a user, newest first.

        Args:
            user_id: Owner
            exercise_name: Optional exercise filter
            pr_type: Optional PR type filter

        Returns:
            List of PRRecord
        """
        indexed = [
            (i, r)
            for i, r in enumerate(self.load_prs())
            if r.user_id == user_id
            and (exercise_name is None or r.exercise_name == exercise_name)
            and (pr_type is None or r.pr_type == pr_type)
        ]
        # same timestamp: the later-written record is newer
        indexed.sort(key=lambda ir: (ir[1].date, ir[0]), reverse=True)
        return [r for _, r in indexed]

    def get_weekly_prs(self, user_id: str, now: datetime | None = None) -> list[PRRecord]:
        """PR records of the last 7 days, newest first."""
        cutoff = (now or datetime.now()) - timedelta(days=WEEKLY_WINDOW_DAYS)
        return [r for r in self.get_user_prs(user_id) if r.date >= cutoff]

    def get_pr_trend_data(
        self,
        user_id: str,
        exercise_name: str,
        pr_type: PRType,
        limit: int = TREND_LIMIT,
    ) -> list[PRRecord]:
        """The `limit` most recent records of one triple, in chronological order."""
        recent = self.get_user_prs(user_id, exercise_name, pr_type)[:limit]
        return list(reversed(recent))

    def delete_prs_for_workout(self, workout_id: str) -> int:
        """
        Remove every PR record created by one workout.

        Returns:
            Number of records removed
        """
        with self._io_lock:
            records = self.load_prs()
            kept = [r for r in records if r.workout_id != workout_id]
            removed = len(records) - len(kept)
            if removed:
                self._write_jsonl(self.prs_path, [pr_record_to_dict(r) for r in kept])
        return removed

    # -------------------------------------------------------------------------
    # Training analytics
    # -------------------------------------------------------------------------

    def get_training_analytics(self, user_id: str, exercise_name: str) -> TrainingAnalytics | None:
        raw = self._read_analytics().get(user_id, {}).get(exercise_name)
        if raw is None:
            return None
        try:
            return dict_to_training_analytics(raw)
        except (ValidationError, ValueError) as e:
            raise StorageError(f"Invalid analytics for {user_id}/{exercise_name}: {e}") from e

    def save_training_analytics(self, user_id: str, exercise_name: str, analytics: TrainingAnalytics) -> None:
        """Replace the stored aggregate for one (user, exercise)."""
        with self._io_lock:
            data = self._read_analytics()
            data.setdefault(user_id, {})[exercise_name] = training_analytics_to_dict(analytics)
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                with open(self.analytics_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
            except OSError as e:
                raise StorageError(f"Cannot write {self.analytics_path}: {e}") from e

    def list_analytics_exercises(self, user_id: str) -> list[str]:
        """Exercises that have a stored frequency aggregate for this user."""
        return sorted(self._read_analytics().get(user_id, {}))

    def get_training_dates(self, user_id: str, exercise_name: str) -> list[date]:
        """Workout dates of every post by the user that contains the exercise."""
        return [p.workout_date for p in self.get_user_posts(user_id) if p.has_exercise(exercise_name)]

    def get_last_training_date(self, user_id: str, exercise_name: str) -> date | None:
        dates = self.get_training_dates(user_id, exercise_name)
        return max(dates) if dates else None


def get_default_store() -> DocumentStore:
    """
    Get a DocumentStore at the configured default location.

    Returns:
        DocumentStore instance
    """
    return DocumentStore(DEFAULT_DATA_DIR)
