import os
import sys

from loguru import logger

from .core.config import DEFAULT_LOG_LEVEL

LOG_LEVEL_ENV = "PR_TRACKER_LOG_LEVEL"
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} - {level} - {message}"


def resolve_log_level(level: str | None = None) -> str:
    """Explicit level, else $PR_TRACKER_LOG_LEVEL, else config.yaml."""
    return (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()


def configure_logging(level: str | None = None) -> str:
    """
    Route loguru output to a single stderr sink.

    stdout is left to command output so --json stays parseable.

    Returns:
        The level that was applied
    """
    resolved = resolve_log_level(level)
    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": resolved,
                "format": LOG_FORMAT,
            }
        ]
    )
    return resolved
