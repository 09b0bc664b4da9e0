"""
CLI entry point using Typer.

Provides commands for personal-record tracking:
- log-workout: Log a workout and detect new PRs
- show-workouts / delete-workout / comment: Manage workout posts
- prs / trend / next-target: Inspect personal records
- schedule / muscle-groups / remind: Training-frequency analytics
"""

from typing import Annotated, Optional

import typer

from ..logger import configure_logging
from . import views
from .app import app

# Command modules register themselves on `app` at import time
from .commands import analysis, records, workouts  # noqa: F401


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="DEBUG | INFO | WARNING | ERROR (default: config / $PR_TRACKER_LOG_LEVEL)"),
    ] = None,
) -> None:
    """
    Track strength-training personal records and when to train next.
    """
    try:
        configure_logging(log_level)
    except ValueError as e:
        views.print_error(f"Invalid log level: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
