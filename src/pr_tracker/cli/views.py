"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workouts, PRs and schedules.
"""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..core.classifier import get_pr_badge, get_pr_category_info
from ..core.frequency import format_recommendation_message
from ..core.metrics import calculate_session_volume, format_e1rm
from ..core.models import (
    Comment,
    MuscleGroupMatch,
    MuscleGroupSummary,
    NextRecommendation,
    PRRecommendation,
    PRRecord,
    TrainingReminder,
    WorkoutPost,
    WorkoutResult,
)
from ..core.records import format_pr_date, get_week_start, group_prs_by_week

console = Console()

_STATUS_STYLES = {
    "overdue": "bold red",
    "due_soon": "yellow",
    "on_track": "green",
    "ahead": "dim",
}

_CONSISTENCY_STYLES = {"high": "green", "medium": "yellow", "low": "red"}


def format_pr_value(pr: PRRecord) -> str:
    """Human-readable PR value: '116.67 kg', '100 kg × 5', '5,200 kg total'."""
    if pr.pr_type == "e1RM":
        return f"{format_e1rm(pr.value)} kg"
    if pr.pr_type == "weight_reps":
        if pr.weight is None or pr.reps is None:
            return f"{pr.value:g}"
        return f"{pr.weight:g} kg × {pr.reps}"
    if pr.pr_type == "session_volume":
        return f"{pr.value:,.0f} kg total"
    return f"{pr.weight if pr.weight is not None else pr.value:g} kg"


def _fmt_exercises(post: WorkoutPost) -> str:
    parts = []
    for ex in post.exercises:
        parts.append(f"{ex.name} ({len(ex.sets)})")
    return ", ".join(parts)


def format_workouts_table(posts: list[WorkoutPost]) -> Table:
    """
    Create a Rich table displaying workout posts.

    Args:
        posts: Posts to display, newest first

    Returns:
        Rich Table object
    """
    table = Table(title="Workouts")

    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("User", style="magenta")
    table.add_column("Exercises (sets)")
    table.add_column("Volume(kg)", justify="right", style="bold")
    table.add_column("Min", justify="right")
    table.add_column("Comments", justify="right")

    for post in posts:
        volume = calculate_session_volume(post.exercises)
        table.add_row(
            post.id[:8],
            post.workout_date.isoformat(),
            post.user_id,
            _fmt_exercises(post),
            f"{volume:,.0f}" if volume > 0 else "-",
            str(post.duration_minutes) if post.duration_minutes else "-",
            str(post.comments),
        )

    return table


def print_workouts(posts: list[WorkoutPost]) -> None:
    if not posts:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return
    console.print(format_workouts_table(posts))


def print_workout_result(result: WorkoutResult) -> None:
    """
    Print the outcome of logging a workout: new PR badges and next targets.

    Args:
        result: WorkoutResult returned by the tracker
    """
    post = result.post
    print_success(f"Logged workout {post.id[:8]} for {post.workout_date.isoformat()}")

    if not result.new_prs:
        print_info("No new personal records this time.")
        return

    console.print()
    console.print(f"[bold]New personal records: {len(result.new_prs)}[/bold]")
    for pr, rec in zip(result.new_prs, result.recommendations):
        badge = get_pr_badge(pr.pr_type, pr.improvement)
        console.print(f"  [green]{badge.text}[/green]  {pr.exercise_name}: {format_pr_value(pr)}")
        console.print(f"    [dim]{rec.message} (by {rec.target_date.isoformat()})[/dim]")


def format_prs_table(prs: list[PRRecord], title: str, now: datetime | None = None) -> Table:
    table = Table(title=title)

    table.add_column("When", style="cyan")
    table.add_column("Exercise")
    table.add_column("Type", style="magenta")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Prev", justify="right", style="dim")
    table.add_column("Gain", justify="right", style="green")
    table.add_column("Category", style="dim")

    for pr in prs:
        table.add_row(
            format_pr_date(pr.date, now),
            pr.exercise_name,
            pr.pr_type,
            format_pr_value(pr),
            f"{pr.previous_best:g}" if pr.previous_best is not None else "-",
            f"+{pr.improvement:g}%" if pr.improvement > 0 else "-",
            get_pr_category_info(pr.pr_type).name,
        )

    return table


def print_prs_by_week(prs: list[PRRecord], now: datetime | None = None) -> None:
    """
    Print PR records as one table per Monday-based week, newest first.

    Args:
        prs: PR records to display
        now: Reference time for relative dates
    """
    if not prs:
        console.print("[yellow]No personal records yet.[/yellow]")
        return

    for week in group_prs_by_week(prs):
        start = get_week_start(week[0].date)
        console.print(format_prs_table(week, f"Week of {start.isoformat()}", now))


def print_trend(prs: list[PRRecord], exercise_name: str, pr_type: str) -> None:
    """
    Print the progression of one exercise/type, oldest first, with a bar per record.

    Args:
        prs: Chronological PR records
        exercise_name: Exercise shown in the title
        pr_type: PR type shown in the title
    """
    if not prs:
        console.print(f"[yellow]No {pr_type} records for {exercise_name}.[/yellow]")
        return

    top = max(pr.value for pr in prs)
    table = Table(title=f"{exercise_name} · {pr_type} trend")
    table.add_column("Date", style="cyan")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("", style="green")

    for pr in prs:
        width = int(round(pr.value / top * 30)) if top > 0 else 0
        table.add_row(pr.date.date().isoformat(), format_pr_value(pr), "█" * width)

    console.print(table)


def print_pr_recommendation(pr: PRRecord, rec: PRRecommendation) -> None:
    console.print(f"Current best: [bold]{format_pr_value(pr)}[/bold] ({pr.pr_type}, {pr.date.date().isoformat()})")
    console.print(f"[green]{rec.message}[/green]")
    console.print(f"[dim]Target {rec.next_target:g} (+{rec.increment:g}) by {rec.target_date.isoformat()}[/dim]")


def format_schedule_table(recs: list[NextRecommendation]) -> Table:
    table = Table(title="Next sessions")

    table.add_column("Exercise")
    table.add_column("Next date", style="cyan")
    table.add_column("In", justify="right")
    table.add_column("Every(d)", justify="right")
    table.add_column("Last", style="dim")
    table.add_column("Consistency")
    table.add_column("Status")

    for rec in recs:
        status_style = _STATUS_STYLES[rec.status]
        cons_style = _CONSISTENCY_STYLES[rec.consistency]
        table.add_row(
            rec.exercise_name,
            rec.next_recommended_date.isoformat(),
            f"{rec.days_until_next:+d}d",
            f"{rec.average_frequency:g}",
            rec.last_training_date.isoformat(),
            f"[{cons_style}]{rec.consistency}[/{cons_style}]",
            f"[{status_style}]{rec.status}[/{status_style}]",
        )

    return table


def print_schedule(recs: list[NextRecommendation]) -> None:
    """
    Print next-session recommendations, most urgent first.

    Args:
        recs: Recommendations sorted by urgency
    """
    if not recs:
        console.print("[yellow]Not enough history yet: train an exercise on two different days.[/yellow]")
        return

    console.print(format_schedule_table(recs))
    console.print()
    for rec in recs:
        if rec.status in ("overdue", "due_soon"):
            style = _STATUS_STYLES[rec.status]
            console.print(f"[{style}]• {format_recommendation_message(rec)}[/{style}]")


def print_muscle_groups(summaries: list[MuscleGroupSummary]) -> None:
    if not summaries:
        console.print("[yellow]No personal records yet.[/yellow]")
        return

    table = Table(title="PRs by muscle group")
    table.add_column("Group", style="magenta")
    table.add_column("PRs", justify="right", style="bold")
    table.add_column("Best records")

    for summary in summaries:
        best = "; ".join(f"{pr.exercise_name} {pr.pr_type} {format_pr_value(pr)}" for pr in summary.best_prs)
        table.add_row(summary.muscle_group, str(summary.achievement_count), best)

    console.print(table)


def print_classification(match: MuscleGroupMatch) -> None:
    style = "yellow" if match.source == "unknown" else "green"
    console.print(
        f"{match.exercise_name}: [{style}]{match.group.name}[/{style}] "
        f"[dim]({match.group.id}, via {match.source})[/dim]"
    )


def print_comments(comments: list[Comment]) -> None:
    if not comments:
        console.print("[yellow]No comments yet.[/yellow]")
        return
    for c in comments:
        console.print(f"[cyan]{c.created_at:%Y-%m-%d %H:%M}[/cyan] [magenta]{c.user_id}[/magenta]: {c.text}")


def print_reminder(reminder: TrainingReminder) -> None:
    console.print(f"[bold yellow]⏰ {reminder.user_id}[/bold yellow] {reminder.message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
