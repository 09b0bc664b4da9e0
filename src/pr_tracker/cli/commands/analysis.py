"""Analysis commands: schedule, muscle-groups, remind."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.classifier import classify_exercise
from ...core.exceptions import StorageError
from ...core.models import TrainingReminder
from ...core.reminders import TrainingReminderService
from ...io.serializers import ValidationError, next_recommendation_to_dict, pr_record_to_dict, validate_date
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_tracker, resolve_user

TodayOption = Annotated[
    Optional[str],
    typer.Option("--today", help="Reference date (YYYY-MM-DD, default: today)"),
]


def _today_or_exit(value: str | None) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(validate_date(value))
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command("schedule")
def schedule(
    today: TodayOption = None,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show when each exercise should next be trained, most urgent first.

    Based on the average gap between your training days for each exercise.
    """
    tracker = get_tracker(data_dir)
    ref = _today_or_exit(today)

    try:
        recs = tracker.get_next_recommendations(resolve_user(user), today=ref)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([next_recommendation_to_dict(r) for r in recs], indent=2, ensure_ascii=False))
        return

    views.print_schedule(recs)


@app.command("muscle-groups")
def muscle_groups(
    classify: Annotated[
        Optional[str],
        typer.Option("--classify", help="Only show which muscle group an exercise belongs to"),
    ] = None,
    top: Annotated[
        int,
        typer.Option("--top", help="Best records to show per group"),
    ] = 3,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Summarize PRs per muscle group."""
    if classify is not None:
        match = classify_exercise(classify)
        if json_out:
            print(json.dumps({
                "exercise_name": match.exercise_name,
                "group_id": match.group.id,
                "group_name": match.group.name,
                "source": match.source,
            }, indent=2, ensure_ascii=False))
            return
        views.print_classification(match)
        return

    tracker = get_tracker(data_dir)
    try:
        summaries = tracker.muscle_group_summaries(resolve_user(user), top=top)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([
            {
                "muscle_group": s.muscle_group,
                "achievement_count": s.achievement_count,
                "best_prs": [pr_record_to_dict(pr) for pr in s.best_prs],
            }
            for s in summaries
        ], indent=2, ensure_ascii=False))
        return

    views.print_muscle_groups(summaries)


@app.command("remind")
def remind(
    users: Annotated[
        Optional[list[str]],
        typer.Option("--for", help="User ids to check, repeatable (default: --user)"),
    ] = None,
    test: Annotated[
        bool,
        typer.Option("--test", help="Send one test reminder instead of checking the schedule"),
    ] = False,
    today: TodayOption = None,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Print a reminder for every overdue exercise."""
    tracker = get_tracker(data_dir)
    ref = _today_or_exit(today)
    user_ids = users or [resolve_user(user)]

    delivered: list[TrainingReminder] = []

    def notify(reminder: TrainingReminder) -> None:
        delivered.append(reminder)
        if not json_out:
            views.print_reminder(reminder)

    service = TrainingReminderService(tracker, notify, user_ids)

    try:
        if test:
            service.send_test_reminder(user_ids[0])
        else:
            service.start(today=ref)
            service.stop()
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([
            {
                "user_id": r.user_id,
                "exercise_name": r.exercise_name,
                "days_overdue": r.days_overdue,
                "message": r.message,
            }
            for r in delivered
        ], indent=2, ensure_ascii=False))
        return

    if not delivered:
        views.print_success("Nothing overdue. Keep it up!")
