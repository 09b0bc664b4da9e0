"""
PR classification for display grouping.

Maps PR types to categories and badges, and exercise names to muscle
groups.  Pure lookups; nothing here affects whether a PR is created.
"""

from typing import Final

from .models import MuscleGroup, MuscleGroupMatch, PRBadge, PRCategoryId, PRCategoryInfo, PRType
from .muscle_groups import get_catalog

PR_CATEGORIES: Final[dict[str, PRCategoryInfo]] = {
    "max_strength": PRCategoryInfo(
        id="max_strength",
        name="Max strength",
        description="PRs focused on the heaviest load lifted",
    ),
    "endurance": PRCategoryInfo(
        id="endurance",
        name="Endurance",
        description="PRs focused on strength across more reps",
    ),
    "volume": PRCategoryInfo(
        id="volume",
        name="Volume",
        description="PRs focused on total work performed",
    ),
}

_CATEGORY_BY_TYPE: Final[dict[str, PRCategoryId]] = {
    "e1RM": "max_strength",
    "3RM": "max_strength",
    "5RM": "endurance",
    "8RM": "endurance",
    "weight_reps": "volume",
    "session_volume": "volume",
}

_BADGE_LABELS: Final[dict[str, str]] = {
    "e1RM": "e1RM",
    "weight_reps": "Weight x reps",
    "3RM": "3RM",
    "5RM": "5RM",
    "8RM": "8RM",
    "session_volume": "Session volume",
}


def get_pr_category(pr_type: PRType) -> PRCategoryId:
    """
    Category of a PR type.

    e1RM and 3RM are max_strength, 5RM and 8RM endurance, weight_reps and
    session_volume volume.  Unknown types fall back to max_strength.
    """
    return _CATEGORY_BY_TYPE.get(pr_type, "max_strength")


def get_pr_category_info(pr_type: PRType) -> PRCategoryInfo:
    return PR_CATEGORIES[get_pr_category(pr_type)]


def get_pr_badge(pr_type: PRType, improvement: float) -> PRBadge:
    """
    Badge text for a PR, e.g. "e1RM +2.5% ↑".

    Args:
        pr_type: PR type
        improvement: Improvement over the previous best in percent

    Returns:
        PRBadge
    """
    improvement_text = f"+{improvement:g}%" if improvement > 0 else f"{improvement:g}%"
    label = _BADGE_LABELS.get(pr_type, _BADGE_LABELS["e1RM"])
    return PRBadge(pr_type=pr_type, text=f"{label} {improvement_text} ↑")


def classify_exercise(exercise_name: str) -> MuscleGroupMatch:
    """Muscle group of an exercise, with how it was resolved."""
    return get_catalog().classify(exercise_name)


def lookup_muscle_group(exercise_name: str) -> MuscleGroup | None:
    """Explicit catalog entry for an exercise, or None when it is unknown."""
    return get_catalog().lookup(exercise_name)


def get_muscle_group_from_exercise(exercise_name: str) -> str:
    """
    Display name of the muscle group an exercise trains.

    Falls back to "その他" (other) when nothing matches.
    """
    return classify_exercise(exercise_name).group.name
