"""Next-target recommendations after a PR."""

from datetime import date, timedelta

from .config import DEFAULT_INCREMENT, PR_INCREMENTS, REP_SPECIFIC_PR_TYPES, SUGGESTED_DAYS_NEXT_ATTEMPT
from .models import PRRecommendation, PRRecord


def get_increment(pr_type: str) -> float:
    """Per-type target increment in kg."""
    return PR_INCREMENTS.get(pr_type, DEFAULT_INCREMENT)


def calculate_pr_recommendation(pr: PRRecord, today: date | None = None) -> PRRecommendation:
    """
    Suggest the next target after a PR.

    weight_reps and rep-specific PRs step up the set's weight; e1RM and
    session volume step up the recorded value.  The suggested retry date is
    a fixed window after today.

    Args:
        pr: Newly created PR record
        today: Reference date (default: date.today())

    Returns:
        PRRecommendation
    """
    increment = get_increment(pr.pr_type)

    if pr.pr_type == "e1RM":
        next_target = pr.value + increment
        message = f"Next up: aim for an e1RM of {next_target:.1f} kg!"
    elif pr.pr_type == "weight_reps":
        next_target = (pr.weight or 0.0) + increment
        message = f"Next up: try {next_target:g} kg!"
    elif pr.pr_type in REP_SPECIFIC_PR_TYPES:
        next_target = (pr.weight or 0.0) + increment
        message = f"Next up: go for {next_target:g} kg for a {pr.pr_type}!"
    elif pr.pr_type == "session_volume":
        next_target = pr.value + increment
        message = f"Next up: push total session volume to {next_target / 1000:.1f} t!"
    else:
        next_target = pr.value + increment
        message = f"Next up: aim for +{increment:g}!"

    target_date = (today or date.today()) + timedelta(days=SUGGESTED_DAYS_NEXT_ATTEMPT)

    return PRRecommendation(
        next_target=round(next_target, 2),
        increment=increment,
        message=message,
        target_date=target_date,
    )
