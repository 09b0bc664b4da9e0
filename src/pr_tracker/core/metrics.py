"""
Pure metric computation functions.

Estimated one-rep max, weight x reps products, best-set selectors and
session volume.  All functions are pure; invalid (zero or negative) input
is not an error and simply yields 0 or None.
"""

from typing import Iterable, Sequence

from .config import E1RM_DECIMALS, IMPROVEMENT_DECIMALS
from .models import BestSet, SetEntry, WorkoutExercise


def calculate_e1rm(weight: float, reps: int) -> float:
    """
    Estimate 1RM using the Epley formula.

    e1RM = weight * (1 + reps/30), and exactly `weight` for a single rep.

    Args:
        weight: Load lifted in kg
        reps: Reps performed

    Returns:
        Estimated 1RM rounded to 4 decimals, or 0.0 for non-positive input
    """
    if weight <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return float(weight)
    return round(weight * (1 + reps / 30), E1RM_DECIMALS)


def format_e1rm(e1rm: float) -> str:
    """Format an e1RM value for display (2 decimals)."""
    return f"{e1rm:.2f}"


def calculate_estimated_rm(weight: float, reps: int, target_reps: int) -> float:
    """
    Estimate the weight liftable for `target_reps` from one performed set.

    Reverse Epley: weight = e1RM / (1 + target_reps/30).

    Args:
        weight: Load lifted in kg
        reps: Reps performed
        target_reps: Rep count to estimate a max for

    Returns:
        Estimated weight rounded to 2 decimals, or 0.0 for non-positive input
    """
    if weight <= 0 or reps <= 0 or target_reps <= 0:
        return 0.0
    e1rm = calculate_e1rm(weight, reps)
    return round(e1rm / (1 + target_reps / 30), 2)


def weight_reps_value(weight: float, reps: int) -> float:
    """Weight x reps product for one set."""
    return weight * reps


def find_best_e1rm_set(sets: Sequence[SetEntry]) -> BestSet | None:
    """
    Find the set with the highest estimated 1RM.

    Ties keep the first set encountered.

    Args:
        sets: Sets of one exercise, in logged order

    Returns:
        BestSet with the e1RM as value, or None if there are no sets
    """
    if not sets:
        return None

    best = sets[0]
    best_e1rm = calculate_e1rm(best.weight, best.reps)
    for s in sets[1:]:
        e1rm = calculate_e1rm(s.weight, s.reps)
        if e1rm > best_e1rm:
            best, best_e1rm = s, e1rm

    return BestSet(set=best, value=best_e1rm)


def find_best_weight_reps(sets: Sequence[SetEntry]) -> BestSet | None:
    """
    Find the set with the highest weight x reps product.

    Ties keep the first set encountered.
    """
    if not sets:
        return None

    best = sets[0]
    best_value = weight_reps_value(best.weight, best.reps)
    for s in sets[1:]:
        value = weight_reps_value(s.weight, s.reps)
        if value > best_value:
            best, best_value = s, value

    return BestSet(set=best, value=best_value)


def find_best_rep_specific(sets: Sequence[SetEntry], target_reps: int) -> BestSet | None:
    """
    Find the heaviest set performed for exactly `target_reps` reps.

    Only exact rep matches count; a 4-rep set never qualifies as a 3RM or
    5RM attempt.

    Args:
        sets: Sets of one exercise, in logged order
        target_reps: Exact rep count (3, 5 or 8)

    Returns:
        BestSet with the weight as value, or None if no set matches exactly
    """
    matching = [s for s in sets if s.reps == target_reps]
    if not matching:
        return None

    best = matching[0]
    for s in matching[1:]:
        if s.weight > best.weight:
            best = s

    return BestSet(set=best, value=best.weight)


def calculate_session_volume(exercises: Iterable[WorkoutExercise]) -> float:
    """
    Total weight x reps across every set of every exercise in a workout.

    Args:
        exercises: Exercises of one workout

    Returns:
        Session volume in kg
    """
    return sum(
        weight_reps_value(s.weight, s.reps)
        for exercise in exercises
        for s in exercise.sets
    )


def calculate_improvement(new_value: float, previous_value: float) -> float:
    """
    Percentage improvement of a new value over the previous best.

    Args:
        new_value: Newly achieved value
        previous_value: Previous best value

    Returns:
        Improvement in percent rounded to 2 decimals, 0.0 if previous <= 0
    """
    if previous_value <= 0:
        return 0.0
    return round((new_value - previous_value) / previous_value * 100, IMPROVEMENT_DECIMALS)
