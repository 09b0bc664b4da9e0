"""
YAML → config dict loader.

Loads tunables from YAML files bundled with the package and optionally
merges user overrides from ~/.pr-tracker/.

Usage:
    from pr_tracker.core.engine.config_loader import load_app_config
    cfg = load_app_config()
    window = cfg.get("recommendation", {}).get("suggested_days_next_attempt", 7)

Bundled files are part of the package and are expected to parse; a user
override file with parse errors is logged as a warning and ignored.
"""

from __future__ import annotations

import importlib.resources
import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

APP_CONFIG_FILE = "config.yaml"
MUSCLE_GROUPS_FILE = "muscle_groups.yaml"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} if unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring config file {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_user_config_dir() -> Path:
    """Return ~/.pr-tracker (not necessarily existing)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".pr-tracker"


def get_bundled_yaml_path(filename: str) -> Path | None:
    """Return the path to a bundled YAML file, or None if not found."""
    ref = importlib.resources.files("pr_tracker").joinpath(filename)
    with importlib.resources.as_file(ref) as p:
        return p if p.exists() else None


def get_user_yaml_path(filename: str) -> Path | None:
    """Return ~/.pr-tracker/<filename> if it exists, else None."""
    p = get_user_config_dir() / filename
    return p if p.exists() else None


def load_yaml_config(filename: str) -> dict[str, Any]:
    """
    Load and merge one YAML config from its bundled and user locations.

    Load order (later overrides earlier):
    1. Bundled src/pr_tracker/<filename>
    2. User override at ~/.pr-tracker/<filename>

    Args:
        filename: YAML file name, e.g. "config.yaml"

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path(filename)
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path(filename)
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_app_config() -> dict[str, Any]:
    """Load the merged application config (PR increments, windows, logging, storage)."""
    return load_yaml_config(APP_CONFIG_FILE)


def load_muscle_group_config() -> dict[str, Any]:
    """Load the merged muscle-group catalog."""
    return load_yaml_config(MUSCLE_GROUPS_FILE)
