# crux/catalog.py
"""
Exercise catalog as seen from the scheduler: look an item up, check the
caller may schedule it, and freeze its parameters into a snapshot.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from crux.errors import NotFound, SchedulingPolicyViolation
from crux.models import TrainingItem
from crux.repositories.item_repo import ItemRepository

VARIABLE_KEYS = ("weight", "reps", "sets", "restSeconds", "restBetweenSetsSeconds", "durationSeconds")


def _enum_value(v):
    return getattr(v, "value", v)


def normalize_categories(categories: list[str] | None) -> list[str]:
    seen: list[str] = []
    for entry in categories or []:
        cleaned = entry.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    if not seen:
        raise SchedulingPolicyViolation("Training item must have at least one category.")
    return seen


def snapshot_of(item: TrainingItem) -> dict:
    """Frozen copy of the item; later edits to the item never reach it."""
    variables = item.variables or {}
    return {
        "title": item.title,
        "description": item.description,
        "categories": normalize_categories(item.categories),
        "tags": list(item.tags or []),
        "trainingType": _enum_value(item.training_type),
        "difficulty": _enum_value(item.difficulty),
        "equipment": list(item.equipment or []),
        "variables": {k: variables[k] for k in VARIABLE_KEYS if variables.get(k) is not None},
    }


def assert_schedulable(db: Session, owner_id: int, item_id: int) -> TrainingItem:
    """The item must exist and be either the caller's own or on their save-list."""
    repo = ItemRepository(db)
    item = repo.get(item_id)
    if not item:
        raise NotFound("Exercise not found.")
    if item.owner_id == owner_id:
        return item
    if not repo.is_saved_by(owner_id, item_id):
        raise SchedulingPolicyViolation("You can only schedule your own or saved items.")
    return item
