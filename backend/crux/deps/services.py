# crux/deps/services.py
from fastapi import Depends
from sqlalchemy.orm import Session

from crux.clock import Clock, get_clock
from crux.db import get_db
from crux.execution.service import ExecutionService
from crux.scheduling.service import ScheduleService

def get_schedule_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ScheduleService:
    return ScheduleService(db, clock)

def get_execution_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ExecutionService:
    return ExecutionService(db, clock)
