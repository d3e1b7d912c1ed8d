from typing import Annotated, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field, StringConstraints

from crux.execution.steps import StepRecord
from crux.models import LogStatus, StepKind

PosInt = Annotated[int, Field(ge=1)]
NonNegInt = Annotated[int, Field(ge=0)]
NoteStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]

class ExecutionStart(BaseModel):
    session_id: int

class StepCreate(BaseModel):
    kind: StepKind
    set_number: PosInt
    rep_number: PosInt | None = None
    completed_reps: NonNegInt | None = None
    planned_duration_seconds: NonNegInt | None = None
    actual_duration_ms: NonNegInt
    # "between_reps" / "between_sets" tells rest steps apart on resume
    note: NoteStr | None = None

    def to_record(self) -> StepRecord:
        return StepRecord(**self.model_dump())

class ExecutionFinish(BaseModel):
    outcome: Literal["completed", "stopped_early"]
    notes: Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)] | None = None

class StepRead(BaseModel):
    position: int
    kind: StepKind
    set_number: int
    rep_number: int | None = None
    completed_reps: int | None = None
    planned_duration_seconds: int | None = None
    actual_duration_ms: int
    note: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

class SummaryRead(BaseModel):
    completed_sets: int
    completed_reps: int
    skipped_sets: int
    total_rep_duration_ms: int
    total_rest_duration_ms: int

    model_config = {"from_attributes": True}

class ExecutionLogRead(BaseModel):
    id: int
    owner_id: int
    session_id: int
    item_id: int
    status: LogStatus
    started_at: datetime
    ended_at: datetime | None = None
    planned: dict
    summary: SummaryRead
    steps: list[StepRead] = Field(default_factory=list)
    notes: str | None = None

    model_config = {"from_attributes": True}

class RecentExecutionRead(ExecutionLogRead):
    session_title: str = "Session"
    scheduled_for: date | None = None
