from fastapi import APIRouter, Depends, Query, Response, status
from crux.deps.auth import get_current_user
from crux.deps.services import get_execution_service, get_schedule_service
from crux.execution.service import ExecutionService
from crux.scheduling.service import ScheduleService
from crux.models import LogStatus, User
from crux.schemas.execution import (
    ExecutionFinish,
    ExecutionLogRead,
    ExecutionStart,
    RecentExecutionRead,
    StepCreate,
)

router = APIRouter(tags=["executions"])

@router.post("/executions", response_model=ExecutionLogRead, status_code=status.HTTP_201_CREATED)
def start_session_execution(
    payload: ExecutionStart,
    response: Response,
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
):
    # 201 for a new log, 200 when resuming the still-active one
    resumed = service.active_execution_for_session(current.id, payload.session_id)
    entry = service.start_session_execution(current.id, payload.session_id)
    if resumed is not None and resumed.id == entry.id:
        response.status_code = status.HTTP_200_OK
    return entry

@router.get("/executions", response_model=list[RecentExecutionRead])
def list_recent_executions(
    limit: int = Query(20, ge=1, le=50),
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
):
    return service.list_recent_execution_logs(current.id, limit)

@router.get("/executions/{log_id}", response_model=ExecutionLogRead)
def get_execution(
    log_id: int,
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
):
    return service.get_log(current.id, log_id)

@router.post("/executions/{log_id}/steps", response_model=ExecutionLogRead, status_code=status.HTTP_201_CREATED)
def append_execution_step(
    log_id: int,
    payload: StepCreate,
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
):
    return service.append_execution_step(current.id, log_id, payload.to_record())

@router.post("/executions/{log_id}/finish", response_model=ExecutionLogRead)
def finish_session_execution(
    log_id: int,
    payload: ExecutionFinish,
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
):
    return service.finish_session_execution(current.id, log_id, LogStatus(payload.outcome), payload.notes)

@router.get("/schedule/sessions/{session_id}/execution", response_model=ExecutionLogRead | None)
def get_active_execution_for_session(
    session_id: int,
    current: User = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    schedule.get_session(current.id, session_id)  # 404 for missing, foreign or removed sessions
    return service.active_execution_for_session(current.id, session_id)
