"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import DEFAULT_USER_ID
from ..io.document_store import DocumentStore, get_default_store
from ..service import WorkoutTracker

# Shared options used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Directory holding the pr-tracker data files"),
]
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", "-u", help=f"User id (default: {DEFAULT_USER_ID})"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="pr-tracker",
    help="Track strength-training personal records and when to train next.",
    no_args_is_help=True,
)


def get_store(data_dir: Path | None) -> DocumentStore:
    """Get document store from path or the configured default location."""
    if data_dir is None:
        return get_default_store()
    return DocumentStore(data_dir)


def get_tracker(data_dir: Path | None) -> WorkoutTracker:
    return WorkoutTracker(get_store(data_dir))


def resolve_user(user: str | None) -> str:
    return user or DEFAULT_USER_ID
