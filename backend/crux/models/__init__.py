from crux.models.user import User
from crux.models.training_item import TrainingItem, SavedItem, TrainingType, Difficulty, ItemStatus
from crux.models.recurrence_rule import RecurrenceRule, Frequency
from crux.models.scheduled_session import ScheduledSession
from crux.models.execution_log import ExecutionLog, LogStatus
from crux.models.execution_step import ExecutionStep, StepKind

__all__ = [
    "User",
    "TrainingItem",
    "SavedItem",
    "TrainingType",
    "Difficulty",
    "ItemStatus",
    "RecurrenceRule",
    "Frequency",
    "ScheduledSession",
    "ExecutionLog",
    "LogStatus",
    "ExecutionStep",
    "StepKind",
]
