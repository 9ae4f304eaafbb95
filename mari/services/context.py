"""
Application context - the process-scope state, owned by the entry point.

Holds the repositories, the services built on them and the current-task
pointer, and is passed by reference to the scheduler and the UI. Nothing
here is a module global, so tests can build as many contexts as they like.
"""

import datetime
import logging
from typing import Callable, Optional

from mari.domain.models import FIXED_INCREMENT, CURRENT_TASK_SETTING
from mari.infra.repository import TaskRepository, TimeEntryRepository, SettingsRepository
from mari.services.accrual_service import AccrualService
from mari.services.task_service import TaskService
from mari.services.activity_log_service import ActivityLogService
from mari.utils import today

logger = logging.getLogger(__name__)


class AppContext:

    def __init__(self, increment_seconds: int = FIXED_INCREMENT,
                 today_provider: Callable[[], datetime.date] = today):
        self.task_repo = TaskRepository()
        self.entry_repo = TimeEntryRepository()
        self.settings_repo = SettingsRepository()

        self.accrual = AccrualService(self.entry_repo, increment_seconds, today_provider)
        self.tasks = TaskService(self.task_repo, context=self)
        self.activity_log = ActivityLogService(
            self.task_repo, self.entry_repo, self.tasks, self.accrual
        )

        self._current_task_id: Optional[int] = None

    async def load(self) -> Optional[int]:
        """Restore the persisted current-task pointer"""
        value = await self.settings_repo.get(CURRENT_TASK_SETTING)
        self._current_task_id = int(value) if value is not None else None
        logger.info(f"Loaded current_task_id: {self._current_task_id}")
        return self._current_task_id

    def get_current_task_id(self) -> Optional[int]:
        return self._current_task_id

    async def set_current_task_id(self, task_id: Optional[int]) -> None:
        """Change the current task and persist it immediately"""
        await self.settings_repo.set(CURRENT_TASK_SETTING, task_id)
        self._current_task_id = task_id
