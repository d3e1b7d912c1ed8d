# crux/scheduling/sessions.py
"""
A calendar entry is either a stored session row or an occurrence computed
from a rule on the fly. ``SessionMaterializer.materialize`` is the only way
to turn the latter into the former.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Union

from crux.models import RecurrenceRule, ScheduledSession


@dataclass(frozen=True, slots=True)
class ConcreteSession:
    kind: ClassVar[str] = "concrete"
    row: ScheduledSession

    @property
    def scheduled_for(self) -> date:
        return self.row.scheduled_for

    @property
    def sort_key(self) -> tuple:
        return (self.row.scheduled_for, 0, self.row.id)


@dataclass(frozen=True, slots=True)
class VirtualOccurrence:
    kind: ClassVar[str] = "virtual"
    rule_id: int
    scheduled_for: date
    owner_id: int
    item_id: int
    snapshot: dict
    overrides: dict
    notes: str | None = None

    @classmethod
    def from_rule(cls, rule: RecurrenceRule, day: date) -> "VirtualOccurrence":
        return cls(
            rule_id=rule.id,
            scheduled_for=day,
            owner_id=rule.owner_id,
            item_id=rule.item_id,
            snapshot=rule.snapshot,
            overrides=dict(rule.default_overrides or {}),
            notes=rule.notes,
        )

    @property
    def key(self) -> str:
        return f"virtual:{self.rule_id}:{self.scheduled_for.isoformat()}"

    @property
    def sort_key(self) -> tuple:
        return (self.scheduled_for, 1, self.rule_id)


CalendarEntry = Union[ConcreteSession, VirtualOccurrence]
