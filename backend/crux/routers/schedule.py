from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from crux.deps.auth import get_current_user
from crux.deps.services import get_schedule_service
from crux.models import User
from crux.scheduling.service import RecurrenceSpec, ScheduleService
from crux.schemas.schedule import (
    Ack,
    CalendarRead,
    ImpromptuSessionCreate,
    RemovalRead,
    RuleCreate,
    RuleFutureUpdate,
    RuleRead,
    SessionComplete,
    SessionCreate,
    SessionRead,
    SessionUpdate,
    calendar_entry_read,
    overrides_dict,
)

router = APIRouter(prefix="/schedule", tags=["schedule"])

# ---- one-off sessions ----

@router.post("/sessions", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def add_session(
    payload: SessionCreate,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.add_session(
        current.id, payload.item_id, payload.scheduled_for,
        overrides=overrides_dict(payload.overrides), notes=payload.notes,
    )

@router.post("/sessions/impromptu", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def start_impromptu_session(
    payload: ImpromptuSessionCreate,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.start_impromptu_session(
        current.id, payload.item_id, overrides=overrides_dict(payload.overrides), notes=payload.notes,
    )

@router.get("/sessions/{session_id}", response_model=SessionRead)
def get_session(
    session_id: int,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.get_session(current.id, session_id)

@router.patch("/sessions/{session_id}", response_model=SessionRead)
def update_upcoming_session(
    session_id: int,
    payload: SessionUpdate,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.update_upcoming_session(
        current.id, session_id,
        scheduled_for=payload.scheduled_for,
        overrides=overrides_dict(payload.overrides),
        notes=payload.notes,
    )

@router.delete("/sessions/{session_id}", response_model=Ack)
def remove_upcoming_session(
    session_id: int,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    service.remove_upcoming_session(current.id, session_id)
    return Ack()

@router.post("/sessions/{session_id}/complete", response_model=SessionRead)
def complete_session(
    session_id: int,
    payload: SessionComplete | None = None,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.complete_session(current.id, session_id, notes=payload.notes if payload else None)

# ---- recurring series ----

@router.post("/rules", response_model=RuleRead, status_code=status.HTTP_201_CREATED)
def add_recurring_series(
    payload: RuleCreate,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    recurrence = RecurrenceSpec(
        frequency=payload.recurrence.frequency,
        interval=payload.recurrence.interval,
        by_weekdays=payload.recurrence.by_weekdays,
        until=payload.recurrence.until,
    )
    return service.add_recurring_series(
        current.id, payload.item_id, payload.start_date, recurrence,
        overrides=overrides_dict(payload.overrides), notes=payload.notes,
    )

@router.post("/rules/{rule_id}/occurrences/{day}/materialize", response_model=SessionRead)
def materialize_recurring_occurrence(
    rule_id: int,
    day: date,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.materialize_recurring_occurrence(current.id, rule_id, day)

@router.delete("/rules/{rule_id}/occurrences/{day}", response_model=Ack)
def cancel_recurring_occurrence(
    rule_id: int,
    day: date,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    service.cancel_recurring_occurrence(current.id, rule_id, day)
    return Ack()

@router.patch("/rules/{rule_id}/future", response_model=RuleRead)
def update_recurring_rule_future(
    rule_id: int,
    payload: RuleFutureUpdate,
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.update_recurring_rule_future(
        current.id, rule_id, payload.effective_from,
        overrides=overrides_dict(payload.overrides), notes=payload.notes,
    )

@router.delete("/rules/{rule_id}/future", response_model=RemovalRead)
def remove_recurring_rule_future(
    rule_id: int,
    effective_from: date = Query(...),
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    result = service.remove_recurring_rule_future(current.id, rule_id, effective_from)
    return RemovalRead(removed_count=result.removed_count, active=result.active)

# ---- calendar ----

@router.get("/calendar", response_model=CalendarRead)
def list_calendar_sessions_in_range(
    range_start: date = Query(...),
    range_end: date = Query(...),
    current: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    if range_end < range_start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail="range_end must not be before range_start")
    window = service.list_calendar_sessions_in_range(current.id, range_start, range_end)
    return CalendarRead(
        sessions=[calendar_entry_read(entry) for entry in window.sessions],
        window_start=window.window_start,
        window_end=window.window_end,
        today=window.today,
    )
