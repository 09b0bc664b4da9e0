"""
Muscle-group catalog.

Exercise names are resolved against an explicit exercise -> group
dictionary loaded from the bundled muscle_groups.yaml (deep-merged with
~/.pr-tracker/muscle_groups.yaml).  Names missing from the dictionary fall
back to keyword matching; names that match nothing resolve to the explicit
"unknown" group so callers can tell the difference.

Usage:
    from pr_tracker.core.muscle_groups import get_catalog
    match = get_catalog().classify("ベンチプレス")
    match.group.name, match.source      # ("胸", "catalog")
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from .engine.config_loader import load_muscle_group_config
from .models import MuscleGroup, MuscleGroupMatch

UNKNOWN_GROUP = MuscleGroup(id="other", name="その他")


class MuscleGroupCatalog:
    """Exercise -> muscle-group lookup built from catalog data."""

    def __init__(self, groups: list[MuscleGroup], unknown: MuscleGroup = UNKNOWN_GROUP):
        self.groups = groups
        self.unknown = unknown
        self._by_exercise: dict[str, MuscleGroup] = {}
        for group in groups:
            for name in group.exercises:
                # first listing wins when an exercise appears in two groups
                self._by_exercise.setdefault(name, group)

    def lookup(self, exercise_name: str) -> MuscleGroup | None:
        """Exact dictionary lookup; None if the exercise is not catalogued."""
        return self._by_exercise.get(exercise_name.strip())

    def match_keyword(self, exercise_name: str) -> MuscleGroup | None:
        """First group (in catalog order) with a keyword contained in the name."""
        lowered = exercise_name.lower()
        for group in self.groups:
            if any(kw.lower() in lowered for kw in group.keywords):
                return group
        return None

    def classify(self, exercise_name: str) -> MuscleGroupMatch:
        """
        Resolve an exercise name to a muscle group.

        Args:
            exercise_name: Exercise name as logged

        Returns:
            MuscleGroupMatch whose source is "catalog", "keyword" or "unknown"
        """
        group = self.lookup(exercise_name)
        if group is not None:
            return MuscleGroupMatch(exercise_name, group, "catalog")

        group = self.match_keyword(exercise_name)
        if group is not None:
            return MuscleGroupMatch(exercise_name, group, "keyword")

        return MuscleGroupMatch(exercise_name, self.unknown, "unknown")


def catalog_from_dict(data: dict[str, Any]) -> MuscleGroupCatalog:
    """
    Build a catalog from the parsed YAML structure.

    Args:
        data: Dict with "groups" (id -> {name, exercises, keywords}) and an
            optional "unknown" {id, name} entry

    Returns:
        MuscleGroupCatalog

    Raises:
        ValueError: If a group entry is malformed
    """
    groups: list[MuscleGroup] = []
    for group_id, raw in (data.get("groups") or {}).items():
        if not isinstance(raw, dict) or "name" not in raw:
            raise ValueError(f"Muscle group '{group_id}' must be a mapping with a 'name'")
        groups.append(
            MuscleGroup(
                id=str(group_id),
                name=str(raw["name"]),
                exercises=tuple(str(e) for e in raw.get("exercises") or ()),
                keywords=tuple(str(k) for k in raw.get("keywords") or ()),
            )
        )

    raw_unknown = data.get("unknown") or {}
    unknown = MuscleGroup(
        id=str(raw_unknown.get("id", UNKNOWN_GROUP.id)),
        name=str(raw_unknown.get("name", UNKNOWN_GROUP.name)),
    )
    return MuscleGroupCatalog(groups, unknown)


@lru_cache(maxsize=1)
def get_catalog() -> MuscleGroupCatalog:
    """Return the catalog loaded from bundled and user YAML (cached)."""
    return catalog_from_dict(load_muscle_group_config())
