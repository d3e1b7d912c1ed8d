from typing import Annotated, Literal, Union
from datetime import date, datetime
from pydantic import BaseModel, Field, StringConstraints

from crux.models import Frequency
from crux.scheduling.sessions import CalendarEntry, ConcreteSession

# Notes: trimmed, up to 500 chars
NotesStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
NonNegFloat = Annotated[float, Field(ge=0, le=100000)]

class Overrides(BaseModel):
    """Parameter deltas; keys match the exercise's stored variables."""
    weight: NonNegFloat | None = None
    reps: NonNegFloat | None = None
    sets: NonNegFloat | None = None
    restSeconds: NonNegFloat | None = None
    restBetweenSetsSeconds: NonNegFloat | None = None
    durationSeconds: NonNegFloat | None = None

    def as_dict(self) -> dict:
        return self.model_dump(exclude_none=True)

def overrides_dict(value: Overrides | None) -> dict | None:
    return None if value is None else value.as_dict()

# ---- requests ----

class SessionCreate(BaseModel):
    item_id: int
    scheduled_for: date
    overrides: Overrides | None = None
    notes: NotesStr | None = None

class ImpromptuSessionCreate(BaseModel):
    item_id: int
    overrides: Overrides | None = None
    notes: NotesStr | None = None

class RecurrenceIn(BaseModel):
    frequency: Frequency
    # interval and weekday ranges are checked by the scheduler itself
    interval: int = 1
    by_weekdays: list[int] = Field(default_factory=list)
    until: date | None = None

class RuleCreate(BaseModel):
    item_id: int
    start_date: date
    recurrence: RecurrenceIn
    overrides: Overrides | None = None
    notes: NotesStr | None = None

class SessionUpdate(BaseModel):
    scheduled_for: date | None = None
    overrides: Overrides | None = None
    notes: NotesStr | None = None

class SessionComplete(BaseModel):
    notes: NotesStr | None = None

class RuleFutureUpdate(BaseModel):
    effective_from: date
    overrides: Overrides | None = None
    notes: NotesStr | None = None

# ---- responses ----

class Ack(BaseModel):
    success: bool = True

class RemovalRead(BaseModel):
    removed_count: int
    active: bool

class SessionRead(BaseModel):
    id: int
    owner_id: int
    item_id: int
    is_impromptu: bool
    recurrence_rule_id: int | None = None
    scheduled_for: date
    snapshot: dict
    overrides: dict
    notes: str | None = None
    completed_at: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

class RecurrenceRead(BaseModel):
    frequency: Frequency
    interval: int
    by_weekdays: list[int] = Field(default_factory=list)
    until: date | None = None

class RuleRead(BaseModel):
    id: int
    owner_id: int
    item_id: int
    start_date: date
    recurrence: RecurrenceRead
    snapshot: dict
    default_overrides: dict
    notes: str | None = None
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

class ConcreteEntryRead(SessionRead):
    kind: Literal["concrete"] = "concrete"

class VirtualEntryRead(BaseModel):
    kind: Literal["virtual"] = "virtual"
    key: str
    recurrence_rule_id: int
    owner_id: int
    item_id: int
    scheduled_for: date
    snapshot: dict
    overrides: dict
    notes: str | None = None

CalendarEntryRead = Annotated[Union[ConcreteEntryRead, VirtualEntryRead], Field(discriminator="kind")]

class CalendarRead(BaseModel):
    sessions: list[CalendarEntryRead]
    window_start: date
    window_end: date
    today: date

def calendar_entry_read(entry: CalendarEntry) -> ConcreteEntryRead | VirtualEntryRead:
    if isinstance(entry, ConcreteSession):
        return ConcreteEntryRead.model_validate(entry.row)
    return VirtualEntryRead(
        key=entry.key,
        recurrence_rule_id=entry.rule_id,
        owner_id=entry.owner_id,
        item_id=entry.item_id,
        scheduled_for=entry.scheduled_for,
        snapshot=entry.snapshot,
        overrides=entry.overrides,
        notes=entry.notes,
    )
