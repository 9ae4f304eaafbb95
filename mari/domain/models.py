"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation, ensuring data integrity when loading
from the YAML config file or the database. ORM rows are converted with
model_validate(from_attributes=True), so the rest of the app never touches
SQLAlchemy objects.
"""

import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


# One confirmed prompt represents one full period of work.
FIXED_INCREMENT = 20 * 60

CURRENT_TASK_SETTING = "current_task_id"


class Task(BaseModel):
    """
    Represents a trackable task.

    Examples: "Writing", "Code review", "Meetings"
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)


class TimeEntry(BaseModel):
    """
    Accumulated time for one task on one calendar day.

    There is at most one entry per (task_id, day). Accrual adds to
    `duration`, manual correction overwrites it.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    day: datetime.date
    duration: int = Field(default=0, ge=0)  # seconds


class TimeEntryWithTask(TimeEntry):
    """A time entry joined with its task (None if the task is gone)"""
    task: Optional[Task] = None

    @property
    def task_name(self) -> str:
        return self.task.name if self.task else ""


class PromptAction(str, Enum):
    """Decisions a user (or the auto-dismiss timeout) can make on a prompt"""
    CONFIRM = "confirm"
    DENY = "deny"
    SWITCH = "switch"


class PromptState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    SUPPRESSED = "suppressed"


class UserPreferences(BaseModel):
    """
    User configuration and preferences.

    This allows users to customize behavior without touching code.
    """
    model_config = ConfigDict(from_attributes=True)

    # Prompt settings
    prompt_interval_seconds: int = Field(
        default=FIXED_INCREMENT, gt=0,
        description="How often to ask what you are working on"
    )
    prompt_timeout_seconds: int = Field(
        default=10, gt=0,
        description="Seconds before an unanswered prompt confirms the current task"
    )

    # UI settings
    language: str = Field(default="auto", description="UI language: 'en', 'de', or 'auto' (detect from system)")
