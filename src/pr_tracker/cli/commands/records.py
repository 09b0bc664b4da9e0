"""PR commands: prs, trend, next-target."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.config import TREND_LIMIT
from ...core.exceptions import StorageError
from ...core.recommendation import calculate_pr_recommendation
from ...io.serializers import (
    ValidationError,
    pr_recommendation_to_dict,
    pr_record_to_dict,
    validate_pr_type,
)
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_tracker, resolve_user

PRTypeOption = Annotated[
    str,
    typer.Option("--type", "-t", help="PR type: e1RM | weight_reps | 3RM | 5RM | 8RM | session_volume"),
]


def _pr_type_or_exit(value: str):
    try:
        return validate_pr_type(value)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command("prs")
def prs(
    weekly: Annotated[
        bool,
        typer.Option("--weekly", "-w", help="Only PRs from the last 7 days"),
    ] = False,
    exercise: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Only this exercise"),
    ] = None,
    pr_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Only this PR type"),
    ] = None,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show personal records grouped by week, newest first."""
    tracker = get_tracker(data_dir)
    user_id = resolve_user(user)
    type_filter = _pr_type_or_exit(pr_type) if pr_type is not None else None
    now = datetime.now()

    try:
        if weekly:
            records = tracker.get_weekly_prs(user_id, now=now)
            records = [
                r for r in records
                if (exercise is None or r.exercise_name == exercise)
                and (type_filter is None or r.pr_type == type_filter)
            ]
        else:
            records = tracker.get_user_prs(user_id, exercise, type_filter)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([pr_record_to_dict(r) for r in records], indent=2, ensure_ascii=False))
        return

    views.print_prs_by_week(records, now)


@app.command("trend")
def trend(
    exercise: Annotated[str, typer.Argument(help="Exercise name")],
    pr_type: PRTypeOption = "e1RM",
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Number of most recent records"),
    ] = TREND_LIMIT,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show how one exercise's PR has progressed, oldest first."""
    tracker = get_tracker(data_dir)
    validated = _pr_type_or_exit(pr_type)

    try:
        records = tracker.get_pr_trend(resolve_user(user), exercise, validated, limit=limit)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([pr_record_to_dict(r) for r in records], indent=2, ensure_ascii=False))
        return

    views.print_trend(records, exercise, validated)


@app.command("next-target")
def next_target(
    exercise: Annotated[str, typer.Argument(help="Exercise name (use 'session' for session volume)")],
    pr_type: PRTypeOption = "e1RM",
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Suggest the next target for an exercise based on its current PR."""
    tracker = get_tracker(data_dir)
    validated = _pr_type_or_exit(pr_type)

    try:
        latest = tracker.store.get_latest_pr_for_exercise(resolve_user(user), exercise, validated)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if latest is None:
        views.print_error(f"No {validated} record for {exercise} yet.")
        raise typer.Exit(1)

    rec = calculate_pr_recommendation(latest)

    if json_out:
        print(json.dumps({
            "pr": pr_record_to_dict(latest),
            "recommendation": pr_recommendation_to_dict(rec),
        }, indent=2, ensure_ascii=False))
        return

    views.print_pr_recommendation(latest, rec)
