"""Domain layer - Pure business entities and errors"""

from .models import (
    Task, TimeEntry, TimeEntryWithTask, PromptAction, PromptState,
    UserPreferences, FIXED_INCREMENT, CURRENT_TASK_SETTING
)
from .exceptions import MariError, NotInitializedError, ValidationError, StorageIOError

__all__ = [
    "Task", "TimeEntry", "TimeEntryWithTask", "PromptAction", "PromptState",
    "UserPreferences", "FIXED_INCREMENT", "CURRENT_TASK_SETTING",
    "MariError", "NotInitializedError", "ValidationError", "StorageIOError",
]
