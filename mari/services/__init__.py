"""Services layer - Business logic"""

from .accrual_service import AccrualService, PendingAccrual
from .task_service import TaskService
from .activity_log_service import ActivityLogService
from .context import AppContext
from .timers import ScheduledTask, TimerFactory, AsyncioTimerFactory
from .prompt_scheduler import PromptScheduler, PromptResolver

__all__ = [
    "AccrualService", "PendingAccrual", "TaskService", "ActivityLogService",
    "AppContext", "ScheduledTask", "TimerFactory", "AsyncioTimerFactory",
    "PromptScheduler", "PromptResolver",
]
