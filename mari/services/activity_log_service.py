"""
Activity Log Service - the data behind the activity log window.

Lists a day's entries with their task names and applies the edits the log
allows: add an entry, change its task, change or clear its duration.
"""

import datetime
import logging
from collections import defaultdict
from typing import Dict, List, Optional, TYPE_CHECKING

from mari.domain.exceptions import ValidationError
from mari.domain.models import TimeEntry, TimeEntryWithTask
from mari.infra.repository import TaskRepository, TimeEntryRepository

if TYPE_CHECKING:
    from mari.services.accrual_service import AccrualService
    from mari.services.task_service import TaskService

logger = logging.getLogger(__name__)


class ActivityLogService:

    def __init__(self, task_repo: TaskRepository, entry_repo: TimeEntryRepository,
                 task_service: "TaskService", accrual: "AccrualService"):
        self.task_repo = task_repo
        self.entry_repo = entry_repo
        self.task_service = task_service
        self.accrual = accrual

    async def entries_for_day(self, day: datetime.date) -> List[TimeEntryWithTask]:
        """Entries for `day` joined with their tasks"""
        entries = await self.entry_repo.get_for_day(day)
        tasks = {t.id: t for t in await self.task_repo.get_all()}
        return [
            TimeEntryWithTask(**entry.model_dump(), task=tasks.get(entry.task_id))
            for entry in entries
        ]

    async def total_for_day(self, day: datetime.date) -> int:
        return sum(e.duration for e in await self.entry_repo.get_for_day(day))

    async def create_entry(self, task_name: str, seconds: int,
                           day: datetime.date) -> TimeEntryWithTask:
        """
        Add time for a task by name, creating the task if it is new.

        Adds to an existing entry for the same task and day.
        """
        task = await self.task_service.find_or_create(task_name)
        entry = await self.accrual.record_manual(task.id, day, seconds)
        return TimeEntryWithTask(**entry.model_dump(), task=task)

    async def rename_entry_task(self, entry_id: int, task_name: str) -> Optional[TimeEntry]:
        """
        Attribute an entry to a different task (found or created by name).

        Merges into the target task's entry if it already has one that day.
        """
        task = await self.task_service.find_or_create(task_name)
        return await self.entry_repo.reassign(entry_id, task.id)

    async def update_duration(self, entry_id: int, seconds: int) -> Optional[TimeEntry]:
        """
        Set an entry's duration. Zero removes the entry.

        Returns:
            The updated entry, or None if it was deleted or does not exist
        """
        if seconds < 0:
            raise ValidationError(f"Duration must not be negative, got {seconds}")

        entry = await self.entry_repo.get_by_id(entry_id)
        if entry is None:
            return None
        if seconds == 0:
            await self.entry_repo.delete(entry_id)
            logger.info(f"Deleted entry {entry_id} (duration cleared)")
            return None
        if seconds == entry.duration:
            return entry

        await self.entry_repo.set_duration(entry_id, seconds)
        return entry.model_copy(update={"duration": seconds})

    async def delete_entry(self, entry_id: int) -> None:
        await self.entry_repo.delete(entry_id)

    async def totals_for_week(self, start: datetime.date) -> Dict[int, int]:
        """Seconds per task id for the week starting at `start`"""
        return _totals(await self.entry_repo.get_for_week(start))

    async def totals_for_month(self, start: datetime.date) -> Dict[int, int]:
        """Seconds per task id for the calendar month starting at `start`"""
        return _totals(await self.entry_repo.get_for_month(start))


def _totals(entries: List[TimeEntry]) -> Dict[int, int]:
    totals: Dict[int, int] = defaultdict(int)
    for entry in entries:
        totals[entry.task_id] += entry.duration
    return dict(totals)
