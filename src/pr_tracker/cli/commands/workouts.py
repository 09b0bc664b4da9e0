"""Workout commands: log-workout, show-workouts, delete-workout, comment."""

import json
from typing import Annotated, Optional

import typer

from ...core.exceptions import NotFoundError, PermissionDeniedError, StorageError
from ...core.models import WorkoutExercise
from ...io.serializers import (
    ValidationError,
    comment_to_dict,
    parse_exercise_arg,
    parse_sets_string,
    pr_recommendation_to_dict,
    pr_record_to_dict,
    workout_post_to_dict,
)
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_store, get_tracker, resolve_user


def _interactive_exercises() -> list[WorkoutExercise]:
    """
    Prompt for exercises one by one, then their sets.

    Sets accept compact NxM @Wkg or per-set reps@kg / "reps kg".
    """
    views.console.print()
    views.console.print("[bold]Enter exercises one at a time.[/bold]")
    views.console.print(
        "  Sets: [cyan]NxM @Wkg[/cyan] e.g. [green]5x3 @100kg[/green]"
        "  or [cyan]reps@kg, ...[/cyan] e.g. [green]5@100, 3@105[/green]"
    )
    views.console.print("  Press [bold]Enter[/bold] on an empty exercise name when done.\n")

    exercises: list[WorkoutExercise] = []
    while True:
        name = views.console.input("  Exercise: ").strip()
        if not name:
            if exercises:
                break
            views.print_warning("Enter at least one exercise.")
            continue
        while True:
            raw = views.console.input(f"  Sets for {name}: ").strip()
            try:
                exercises.append(WorkoutExercise(name=name, sets=parse_sets_string(raw)))
                break
            except ValidationError as e:
                views.print_error(str(e))
    return exercises


@app.command("log-workout")
def log_workout(
    exercise: Annotated[
        Optional[list[str]],
        typer.Option("--exercise", "-e", help='NAME=SETS, repeatable. e.g. "ベンチプレス=5x3 @100kg"'),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Workout date for back-dated records (YYYY-MM-DD, default: today)"),
    ] = None,
    duration: Annotated[
        int,
        typer.Option("--duration", help="Duration in minutes"),
    ] = 0,
    comment: Annotated[
        str,
        typer.Option("--comment", "-c", help="Note shown with the post"),
    ] = "",
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a workout and check it for new personal records.

    Run without --exercise for interactive entry, or one-liner:

      pr-tracker log-workout -e "スクワット=5x3 @140kg" -e "ベンチプレス=5@100, 3@105"
    """
    tracker = get_tracker(data_dir)
    tracker.store.init()

    try:
        exercises = [parse_exercise_arg(arg) for arg in exercise] if exercise else _interactive_exercises()
    except ValidationError as e:
        views.print_error(f"Invalid exercise: {e}")
        raise typer.Exit(1)

    try:
        result = tracker.post_workout(
            resolve_user(user),
            exercises,
            duration_minutes=duration,
            comment=comment,
            record_date=date,
        )
    except (ValidationError, StorageError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "post": workout_post_to_dict(result.post),
            "new_prs": [pr_record_to_dict(pr) for pr in result.new_prs],
            "recommendations": [pr_recommendation_to_dict(r) for r in result.recommendations],
        }, indent=2, ensure_ascii=False))
        return

    views.print_workout_result(result)


@app.command("show-workouts")
def show_workouts(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of workouts"),
    ] = 20,
    all_users: Annotated[
        bool,
        typer.Option("--all", "-a", help="Show the whole feed, not just your workouts"),
    ] = False,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show recent workouts, newest first."""
    store = get_store(data_dir)
    try:
        posts = store.get_posts(None if all_users else resolve_user(user), limit)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([workout_post_to_dict(p) for p in posts], indent=2, ensure_ascii=False))
        return

    views.print_workouts(posts)


@app.command("delete-workout")
def delete_workout(
    post_id: Annotated[str, typer.Argument(help="Workout id (as shown by show-workouts --json)")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Delete one of your workouts together with its PR records and comments.
    """
    tracker = get_tracker(data_dir)

    if not force and not json_out and not views.confirm_action(f"Delete workout {post_id}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        removed = tracker.delete_workout(post_id, resolve_user(user))
    except (NotFoundError, PermissionDeniedError, StorageError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({"deleted": post_id, "pr_records_removed": removed}, indent=2))
        return

    views.print_success(f"Deleted workout {post_id} ({removed} PR records removed)")


@app.command("comment")
def comment(
    post_id: Annotated[str, typer.Argument(help="Workout id")],
    text: Annotated[
        Optional[str],
        typer.Argument(help="Comment text (omit to list the workout's comments)"),
    ] = None,
    user: UserOption = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Comment on a workout, or list its comments."""
    tracker = get_tracker(data_dir)

    try:
        if text is None:
            comments = tracker.get_comments(post_id)
        else:
            comments = [tracker.add_comment(post_id, resolve_user(user), text)]
    except (ValidationError, NotFoundError, StorageError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([comment_to_dict(c) for c in comments], indent=2, ensure_ascii=False))
        return

    if text is None:
        views.print_comments(comments)
    else:
        views.print_success("Comment added.")
