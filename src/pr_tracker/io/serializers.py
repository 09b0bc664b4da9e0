"""
JSON serialization for workout and PR models.

Handles conversion between dataclasses and JSON-compatible dicts, input
validation, and parsing of the sets strings typed on the command line.
"""

import json
import re
from datetime import date, datetime
from typing import Any

from ..core.config import PR_TYPES
from ..core.models import (
    Comment,
    NextRecommendation,
    PRRecommendation,
    PRRecord,
    PRType,
    SetEntry,
    TrainingAnalytics,
    WorkoutExercise,
    WorkoutPost,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate a YYYY-MM-DD date string.

    Args:
        date_str: Date string to validate

    Returns:
        The same string

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_pr_type(pr_type: str) -> PRType:
    """
    Validate a PR type name.

    Raises:
        ValidationError: If the type is unknown
    """
    if pr_type not in PR_TYPES:
        raise ValidationError(f"Invalid pr_type: {pr_type}. Must be one of {PR_TYPES}")
    return pr_type  # type: ignore


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _parse_datetime(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO timestamp, got {value!r}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}") from e


def _require(data: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


# =============================================================================
# WORKOUTS
# =============================================================================


def set_entry_to_dict(entry: SetEntry) -> dict[str, Any]:
    return {"weight": entry.weight, "reps": entry.reps}


def dict_to_set_entry(data: dict[str, Any]) -> SetEntry:
    """
    Convert dict to SetEntry.

    Raises:
        ValidationError: If weight or reps are missing or negative
    """
    _require(data, "weight", "reps")
    weight = float(data["weight"])
    reps = int(data["reps"])
    validate_non_negative(weight, "weight")
    validate_non_negative(reps, "reps")
    return SetEntry(weight=weight, reps=reps)


def workout_exercise_to_dict(exercise: WorkoutExercise) -> dict[str, Any]:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "sets": [set_entry_to_dict(s) for s in exercise.sets],
    }


def dict_to_workout_exercise(data: dict[str, Any]) -> WorkoutExercise:
    _require(data, "name")
    name = str(data["name"]).strip()
    if not name:
        raise ValidationError("Exercise name cannot be empty")
    return WorkoutExercise(
        name=name,
        sets=[dict_to_set_entry(s) for s in data.get("sets", [])],
        id=str(data.get("id", "")),
    )


def workout_post_to_dict(post: WorkoutPost) -> dict[str, Any]:
    """
    Convert WorkoutPost to JSON-compatible dict.

    Args:
        post: WorkoutPost to convert

    Returns:
        Dict representation
    """
    data: dict[str, Any] = {
        "id": post.id,
        "user_id": post.user_id,
        "exercises": [workout_exercise_to_dict(e) for e in post.exercises],
        "created_at": post.created_at.isoformat(),
        "duration_minutes": post.duration_minutes,
        "comment": post.comment,
        "photos": list(post.photos),
        "likes": post.likes,
        "liked_by": list(post.liked_by),
        "comments": post.comments,
    }
    if post.record_date is not None:
        data["record_date"] = post.record_date
    return data


def dict_to_workout_post(data: dict[str, Any]) -> WorkoutPost:
    """
    Convert dict to WorkoutPost.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "id", "user_id", "exercises", "created_at")
    record_date = data.get("record_date")
    if record_date is not None:
        validate_date(record_date)

    return WorkoutPost(
        id=str(data["id"]),
        user_id=str(data["user_id"]),
        exercises=[dict_to_workout_exercise(e) for e in data["exercises"]],
        created_at=_parse_datetime(data["created_at"], "created_at"),
        duration_minutes=int(data.get("duration_minutes", 0)),
        comment=str(data.get("comment", "")),
        photos=list(data.get("photos", [])),
        likes=int(data.get("likes", 0)),
        liked_by=list(data.get("liked_by", [])),
        comments=int(data.get("comments", 0)),
        record_date=record_date,
    )


def comment_to_dict(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "text": comment.text,
        "created_at": comment.created_at.isoformat(),
    }


def dict_to_comment(data: dict[str, Any]) -> Comment:
    _require(data, "id", "post_id", "user_id", "text", "created_at")
    return Comment(
        id=str(data["id"]),
        post_id=str(data["post_id"]),
        user_id=str(data["user_id"]),
        text=str(data["text"]),
        created_at=_parse_datetime(data["created_at"], "created_at"),
    )


# =============================================================================
# PR RECORDS / ANALYTICS
# =============================================================================


def pr_record_to_dict(record: PRRecord) -> dict[str, Any]:
    """
    Convert PRRecord to JSON-compatible dict.

    Optional fields are omitted when unset, so an absent previous_best
    stays absent rather than becoming null.
    """
    data: dict[str, Any] = {
        "id": record.id,
        "user_id": record.user_id,
        "exercise_name": record.exercise_name,
        "pr_type": record.pr_type,
        "value": record.value,
        "date": record.date.isoformat(),
        "improvement": record.improvement,
    }
    if record.weight is not None:
        data["weight"] = record.weight
    if record.reps is not None:
        data["reps"] = record.reps
    if record.workout_id is not None:
        data["workout_id"] = record.workout_id
    if record.previous_best is not None:
        data["previous_best"] = record.previous_best
    return data


def dict_to_pr_record(data: dict[str, Any]) -> PRRecord:
    """
    Convert dict to PRRecord.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "user_id", "exercise_name", "pr_type", "value", "date")
    return PRRecord(
        id=str(data.get("id", "")),
        user_id=str(data["user_id"]),
        exercise_name=str(data["exercise_name"]),
        pr_type=validate_pr_type(data["pr_type"]),
        value=float(data["value"]),
        date=_parse_datetime(data["date"], "date"),
        weight=float(data["weight"]) if data.get("weight") is not None else None,
        reps=int(data["reps"]) if data.get("reps") is not None else None,
        workout_id=data.get("workout_id"),
        previous_best=float(data["previous_best"]) if data.get("previous_best") is not None else None,
        improvement=float(data.get("improvement", 0.0)),
    )


def training_analytics_to_dict(analytics: TrainingAnalytics) -> dict[str, Any]:
    return {
        "average_frequency": analytics.average_frequency,
        "last_updated": analytics.last_updated.isoformat(),
    }


def dict_to_training_analytics(data: dict[str, Any]) -> TrainingAnalytics:
    _require(data, "average_frequency", "last_updated")
    return TrainingAnalytics(
        average_frequency=float(data["average_frequency"]),
        last_updated=date.fromisoformat(validate_date(data["last_updated"])),
    )


def pr_recommendation_to_dict(rec: PRRecommendation) -> dict[str, Any]:
    return {
        "next_target": rec.next_target,
        "increment": rec.increment,
        "message": rec.message,
        "target_date": rec.target_date.isoformat(),
    }


def next_recommendation_to_dict(rec: NextRecommendation) -> dict[str, Any]:
    """Convert NextRecommendation to JSON-compatible dict (output only; never stored)."""
    return {
        "exercise_name": rec.exercise_name,
        "next_recommended_date": rec.next_recommended_date.isoformat(),
        "days_until_next": rec.days_until_next,
        "average_frequency": rec.average_frequency,
        "last_training_date": rec.last_training_date.isoformat(),
        "consistency": rec.consistency,
        "status": rec.status,
    }


def to_json_line(data: dict[str, Any]) -> str:
    """Serialize a dict to a single compact JSON line (no trailing newline)."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# SETS STRINGS
# =============================================================================


def parse_compact_sets(s: str) -> list[tuple[int, float]] | None:
    """
    Try to parse a compact sets string.

    Format: NxM @Wkg
      NxM   N reps × M sets (any x/X/× accepted), several groups comma-separated
      @Wkg  shared load for every set

    Examples:
        "5x3 @100kg"       → 3 sets of 5 reps at 100 kg
        "8, 6x2 @60kg"     → 1 set of 8 + 2 sets of 6 at 60 kg

    Returns list of (reps, weight) tuples, or None if format not recognised.
    """
    text = s.strip()

    m = re.search(r"@\s*([0-9]+(?:\.[0-9]+)?)\s*kg\s*$", text, re.IGNORECASE)
    if not m:
        return None
    weight = float(m.group(1))
    text = text[: m.start()].strip()

    groups = [g.strip() for g in text.split(",") if g.strip()]
    if not groups:
        return None

    result: list[tuple[int, float]] = []
    for group in groups:
        m = re.fullmatch(r"(\d+)\s*[xX×]\s*(\d+)", group)
        if m:
            n_reps, n_sets = int(m.group(1)), int(m.group(2))
            if n_sets < 1:
                return None
            result.extend((n_reps, weight) for _ in range(n_sets))
            continue
        m = re.fullmatch(r"(\d+)", group)
        if m:
            result.append((int(m.group(1)), weight))
            continue
        return None

    return result or None


def parse_sets_string(sets_str: str) -> list[SetEntry]:
    """
    Parse a sets string.

    Compact format (tried first):
        NxM @Wkg        e.g. "5x3 @100kg"  → 3 sets of 5 reps at 100 kg

    Per-set formats (comma-separated):
        reps@kg         e.g. "5@100"
        reps kg         e.g. "5 100"

    Args:
        sets_str: Sets string to parse

    Returns:
        List of SetEntry in logged order

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    compact = parse_compact_sets(sets_str)
    if compact is not None:
        return [SetEntry(weight=w, reps=r) for r, w in compact]

    sets: list[SetEntry] = []
    for part in (p.strip() for p in sets_str.split(",")):
        if not part:
            continue
        m = re.fullmatch(r"(\d+)\s*@\s*(-?\d+(?:\.\d+)?)(?:\s*kg)?", part, re.IGNORECASE) or re.fullmatch(
            r"(\d+)\s+(-?\d+(?:\.\d+)?)", part
        )
        if not m:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@kg (e.g. 5@100), reps kg (e.g. 5 100),\n"
                f"     or compact: NxM @Wkg (e.g. 5x3 @100kg)."
            )
        reps, weight = int(m.group(1)), float(m.group(2))
        validate_non_negative(weight, "Weight")
        sets.append(SetEntry(weight=weight, reps=reps))

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets


def parse_exercise_arg(arg: str) -> WorkoutExercise:
    """
    Parse a "NAME=SETS" command-line argument into a WorkoutExercise.

    Example: "ベンチプレス=5x3 @100kg"

    Raises:
        ValidationError: If the name or sets are missing or invalid
    """
    name, sep, sets = arg.partition("=")
    if not sep or not name.strip():
        raise ValidationError(f"Expected NAME=SETS, got '{arg}'")
    return WorkoutExercise(name=name.strip(), sets=parse_sets_string(sets))
