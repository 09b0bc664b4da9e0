"""
Configuration constants for PR detection and training analytics.

All adjustable parameters are centralized here.  Defaults are the Python
values below; the bundled config.yaml (and ~/.pr-tracker/config.yaml on top
of it) may override the tunable ones at import time.
"""

from pathlib import Path
from typing import Any, Final

from .engine.config_loader import load_app_config

_CFG: dict[str, Any] = load_app_config()


def _section(name: str) -> dict[str, Any]:
    section = _CFG.get(name, {})
    return section if isinstance(section, dict) else {}


# =============================================================================
# PR TYPES
# =============================================================================

PR_TYPES: Final[tuple[str, ...]] = ("e1RM", "weight_reps", "3RM", "5RM", "8RM", "session_volume")
REP_SPECIFIC_PR_TYPES: Final[tuple[str, ...]] = ("3RM", "5RM", "8RM")

# Pseudo exercise name that session_volume PRs are keyed under
SESSION_EXERCISE_NAME: Final[str] = "session"

# Exact rep counts that produce rep-specific PR candidates
REP_TARGETS: Final[tuple[int, ...]] = (3, 5, 8)

E1RM_DECIMALS: Final[int] = 4  # stored precision of e1RM estimates
IMPROVEMENT_DECIMALS: Final[int] = 2  # percent improvement precision

TREND_LIMIT: Final[int] = int(_section("pr").get("trend_limit", 6))
WEEKLY_WINDOW_DAYS: Final[int] = int(_section("pr").get("weekly_window_days", 7))

# =============================================================================
# RECOMMENDATIONS
# =============================================================================

_DEFAULT_INCREMENTS: dict[str, float] = {
    "e1RM": 2.5,
    "weight_reps": 2.5,
    "3RM": 2.5,
    "5RM": 2.0,
    "8RM": 1.5,
    "session_volume": 10.0,  # kg of total session volume
}

PR_INCREMENTS: Final[dict[str, float]] = {
    **_DEFAULT_INCREMENTS,
    **{str(k): float(v) for k, v in _section("recommendation").get("increments", {}).items()},
}
DEFAULT_INCREMENT: Final[float] = 2.5

SUGGESTED_DAYS_NEXT_ATTEMPT: Final[int] = int(
    _section("recommendation").get("suggested_days_next_attempt", 7)
)

# =============================================================================
# TRAINING FREQUENCY
# =============================================================================

MIN_DATES_FOR_AVERAGE: Final[int] = int(_section("frequency").get("min_dates_for_average", 2))
MIN_DATES_FOR_CONSISTENCY: Final[int] = int(_section("frequency").get("min_dates_for_consistency", 3))
CONSISTENCY_CV_HIGH: Final[float] = float(_section("frequency").get("consistency_cv_high", 0.3))
CONSISTENCY_CV_MEDIUM: Final[float] = float(_section("frequency").get("consistency_cv_medium", 0.6))
FREQUENCY_DECIMALS: Final[int] = 1

# Status bands on daysUntilNext (first match wins):
#   < OVERDUE_BELOW              -> overdue
#   <= DUE_SOON_WITHIN           -> due_soon
#   <= ON_TRACK_WITHIN           -> on_track
#   otherwise                    -> ahead
OVERDUE_BELOW: Final[int] = -1
DUE_SOON_WITHIN: Final[int] = 1
ON_TRACK_WITHIN: Final[int] = 3

STATUS_ORDER: Final[dict[str, int]] = {"overdue": 0, "due_soon": 1, "on_track": 2, "ahead": 3}

# =============================================================================
# STORAGE / LOGGING
# =============================================================================

DEFAULT_DATA_DIR: Final[Path] = Path(str(_section("storage").get("data_dir", "~/.pr-tracker"))).expanduser()
DEFAULT_USER_ID: Final[str] = str(_section("storage").get("default_user", "local"))
DEFAULT_LOG_LEVEL: Final[str] = str(_section("logging").get("level", "WARNING")).upper()
DEFAULT_POSTS_LIMIT: Final[int] = 20
