"""
Personal-record detection and PR history summaries.

A workout yields one candidate per (exercise, PR type) plus one session
volume candidate.  Each candidate is compared against the latest stored
record for its (user, exercise, type) triple; a new PRRecord is created
only when the candidate strictly beats it, or when no record exists yet.

"Latest" equals "best" because records are only ever created when they
exceed the previous one.  Backfilled or corrected records would break that
and need a max(value) lookup instead.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import ContextManager, Iterable, Protocol, Sequence

from loguru import logger

from .classifier import get_muscle_group_from_exercise
from .config import REP_TARGETS, SESSION_EXERCISE_NAME, WEEKLY_WINDOW_DAYS
from .exceptions import StorageError
from .metrics import (
    calculate_improvement,
    calculate_session_volume,
    find_best_e1rm_set,
    find_best_rep_specific,
    find_best_weight_reps,
)
from .models import MuscleGroupSummary, PRCandidate, PRRecord, PRType, SetEntry, WorkoutExercise


class PRStore(Protocol):
    """Storage operations the PR comparator depends on."""

    def get_latest_pr_for_exercise(
        self, user_id: str, exercise_name: str, pr_type: PRType
    ) -> PRRecord | None: ...

    def save_pr(self, record: PRRecord) -> PRRecord: ...

    def pr_transaction(
        self, user_id: str, exercise_name: str, pr_type: PRType
    ) -> ContextManager[None]: ...


# =============================================================================
# CANDIDATES
# =============================================================================


def exercise_candidates(exercise_name: str, sets: Sequence[SetEntry]) -> list[PRCandidate]:
    """
    PR candidates for one exercise: e1RM, weight x reps and exact-rep maxes.

    Candidates whose value is not positive are dropped.

    Args:
        exercise_name: Exercise name
        sets: All sets of the exercise in this workout

    Returns:
        List of PRCandidate in type order
    """
    candidates: list[PRCandidate] = []

    best_e1rm = find_best_e1rm_set(sets)
    if best_e1rm is not None and best_e1rm.value > 0:
        candidates.append(PRCandidate(exercise_name, "e1RM", best_e1rm.value))

    best_wr = find_best_weight_reps(sets)
    if best_wr is not None and best_wr.value > 0:
        candidates.append(
            PRCandidate(
                exercise_name,
                "weight_reps",
                best_wr.value,
                weight=best_wr.set.weight,
                reps=best_wr.set.reps,
            )
        )

    for target_reps in REP_TARGETS:
        best_rep = find_best_rep_specific(sets, target_reps)
        if best_rep is not None and best_rep.value > 0:
            candidates.append(
                PRCandidate(
                    exercise_name,
                    f"{target_reps}RM",  # type: ignore[arg-type]
                    best_rep.value,
                    weight=best_rep.set.weight,
                    reps=target_reps,
                )
            )

    return candidates


def _merge_by_name(exercises: Iterable[WorkoutExercise]) -> dict[str, list[SetEntry]]:
    merged: dict[str, list[SetEntry]] = {}
    for ex in exercises:
        merged.setdefault(ex.name, []).extend(ex.sets)
    return merged


def workout_candidates(exercises: Sequence[WorkoutExercise]) -> list[PRCandidate]:
    """
    All PR candidates of one workout.

    The session volume candidate comes first, keyed by the pseudo exercise
    "session".  An exercise logged in several blocks is evaluated once over
    all of its sets.
    """
    candidates: list[PRCandidate] = []

    volume = calculate_session_volume(exercises)
    if volume > 0:
        candidates.append(PRCandidate(SESSION_EXERCISE_NAME, "session_volume", volume))

    for name, sets in _merge_by_name(exercises).items():
        candidates.extend(exercise_candidates(name, sets))

    return candidates


# =============================================================================
# COMPARISON
# =============================================================================


def evaluate_candidate(
    candidate: PRCandidate,
    previous: PRRecord | None,
    *,
    user_id: str,
    workout_id: str | None = None,
    now: datetime | None = None,
) -> PRRecord | None:
    """
    Decide whether a candidate is a new PR.

    Args:
        candidate: Freshly computed value for one exercise/type
        previous: Latest stored record for the same triple, if any
        user_id: Owner of the workout
        workout_id: Post the record belongs to
        now: Timestamp for the record (default: datetime.now())

    Returns:
        New PRRecord, or None when the candidate does not beat `previous`
    """
    if previous is not None and candidate.value <= previous.value:
        return None

    return PRRecord(
        user_id=user_id,
        exercise_name=candidate.exercise_name,
        pr_type=candidate.pr_type,
        value=candidate.value,
        date=now or datetime.now(),
        weight=candidate.weight,
        reps=candidate.reps,
        workout_id=workout_id,
        previous_best=previous.value if previous is not None else None,
        improvement=calculate_improvement(candidate.value, previous.value) if previous is not None else 0.0,
    )


def _compare(
    store: PRStore,
    candidate: PRCandidate,
    user_id: str,
    workout_id: str | None,
    now: datetime,
    save: bool,
) -> PRRecord | None:
    previous = store.get_latest_pr_for_exercise(user_id, candidate.exercise_name, candidate.pr_type)
    record = evaluate_candidate(candidate, previous, user_id=user_id, workout_id=workout_id, now=now)
    if record is not None and save:
        record = store.save_pr(record)
    return record


def detect_workout_prs(
    store: PRStore,
    user_id: str,
    exercises: Sequence[WorkoutExercise],
    *,
    workout_id: str | None = None,
    now: datetime | None = None,
    save: bool = False,
) -> list[PRRecord]:
    """
    Run the PR comparison for every candidate of a workout.

    Each comparison is independent.  If reading the previous best (or
    saving the new record) fails, that single comparison is skipped; it is
    never treated as "no previous record".

    With save=True each read-compare-write runs inside the store's
    transaction for its (user, exercise, type) triple, so two concurrent
    submissions cannot both create a record from the same previous best.

    Args:
        store: PR storage
        user_id: Owner of the workout
        exercises: Exercises of the workout
        workout_id: Post id stored on created records
        now: Timestamp for created records (default: datetime.now())
        save: Persist created records

    Returns:
        Newly created PRRecords (possibly empty)
    """
    now = now or datetime.now()
    created: list[PRRecord] = []

    for candidate in workout_candidates(exercises):
        try:
            if save:
                with store.pr_transaction(user_id, candidate.exercise_name, candidate.pr_type):
                    record = _compare(store, candidate, user_id, workout_id, now, save=True)
            else:
                record = _compare(store, candidate, user_id, workout_id, now, save=False)
        except StorageError as e:
            logger.warning(
                f"Skipping {candidate.pr_type} PR check for '{candidate.exercise_name}' "
                f"(user {user_id}): {e}"
            )
            continue

        if record is not None:
            logger.info(
                f"New {record.pr_type} PR for '{record.exercise_name}' (user {user_id}): "
                f"{record.value} (+{record.improvement}%)"
            )
            created.append(record)

    return created


# =============================================================================
# HISTORY SUMMARIES
# =============================================================================


def is_within_last_week(
    when: datetime, now: datetime | None = None, window_days: int = WEEKLY_WINDOW_DAYS
) -> bool:
    """True if `when` falls within the last `window_days` days."""
    now = now or datetime.now()
    return when >= now - timedelta(days=window_days)


def get_week_start(when: datetime | date) -> date:
    """Monday of the week containing `when`."""
    day = when.date() if isinstance(when, datetime) else when
    return day - timedelta(days=day.weekday())


def group_prs_by_week(prs: Iterable[PRRecord]) -> list[list[PRRecord]]:
    """
    Group PRs into Monday-based weeks.

    Returns:
        Weeks newest first; records inside a week newest first
    """
    weeks: list[list[PRRecord]] = []
    current_start: date | None = None

    for pr in sorted(prs, key=lambda p: p.date, reverse=True):
        week_start = get_week_start(pr.date)
        if week_start != current_start:
            weeks.append([])
            current_start = week_start
        weeks[-1].append(pr)

    return weeks


def format_pr_date(when: datetime, now: datetime | None = None) -> str:
    """Relative date label: today, yesterday, N days ago, else e.g. 'Mar 4'."""
    now = now or datetime.now()
    diff_days = (now - when).days

    if diff_days == 0:
        return "today"
    if diff_days == 1:
        return "yesterday"
    if 0 < diff_days < 7:
        return f"{diff_days} days ago"
    return f"{when:%b} {when.day}"


def _exercise_prs(prs: Iterable[PRRecord]) -> list[PRRecord]:
    return [p for p in prs if p.exercise_name != SESSION_EXERCISE_NAME]


def pr_achievement_frequency(prs: Iterable[PRRecord]) -> dict[str, int]:
    """
    Number of PR records per muscle group.

    Session volume records belong to no exercise and are not counted.
    """
    counts: dict[str, int] = defaultdict(int)
    for pr in _exercise_prs(prs):
        counts[get_muscle_group_from_exercise(pr.exercise_name)] += 1
    return dict(counts)


def best_prs_by_muscle_group(prs: Iterable[PRRecord], top: int = 3) -> list[MuscleGroupSummary]:
    """
    Best PRs per muscle group.

    For each (exercise, type) only the highest value counts; each group
    keeps its `top` highest values.

    Args:
        prs: PR records of one user
        top: Records to keep per group

    Returns:
        Summaries ordered by achievement count, highest first
    """
    records = _exercise_prs(prs)

    best: dict[tuple[str, str], PRRecord] = {}
    for pr in records:
        key = (pr.exercise_name, pr.pr_type)
        if key not in best or pr.value > best[key].value:
            best[key] = pr

    grouped: dict[str, list[PRRecord]] = defaultdict(list)
    for pr in best.values():
        grouped[get_muscle_group_from_exercise(pr.exercise_name)].append(pr)

    counts = pr_achievement_frequency(records)
    summaries = [
        MuscleGroupSummary(
            muscle_group=group,
            best_prs=sorted(group_prs, key=lambda p: p.value, reverse=True)[:top],
            achievement_count=counts.get(group, 0),
        )
        for group, group_prs in grouped.items()
    ]
    summaries.sort(key=lambda s: s.achievement_count, reverse=True)
    return summaries
