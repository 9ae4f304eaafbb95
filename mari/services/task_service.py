"""
Task Service - the task workflow layered over TaskRepository.

The store accepts any name; this layer trims names, refuses empty ones and
treats names as case-insensitively unique by looking up before creating.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from mari.domain.exceptions import ValidationError
from mari.domain.models import Task
from mari.infra.repository import TaskRepository

if TYPE_CHECKING:
    from mari.services.context import AppContext

logger = logging.getLogger(__name__)


def clean_task_name(name: str) -> str:
    """Trim a task name, raising ValidationError if nothing is left"""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Task name must not be empty")
    return cleaned


class TaskService:

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 context: Optional["AppContext"] = None):
        self.task_repo = task_repo or TaskRepository()
        self.context = context

    async def find_or_create(self, name: str) -> Task:
        """Return the task matching `name` case-insensitively, creating it if needed"""
        cleaned = clean_task_name(name)
        existing = await self.task_repo.get_by_name(cleaned)
        if existing:
            return existing
        task = await self.task_repo.create(cleaned)
        logger.info(f"Created task {task.id}: {task.name!r}")
        return task

    async def rename(self, task_id: int, name: str) -> None:
        await self.task_repo.update(task_id, clean_task_name(name))

    async def delete(self, task_id: int) -> None:
        """Delete a task and its entries, clearing the current-task pointer if it pointed here"""
        await self.task_repo.delete(task_id)
        if self.context and self.context.get_current_task_id() == task_id:
            await self.context.set_current_task_id(None)
        logger.info(f"Deleted task {task_id}")

    async def list_for_prompt(self, current_task_id: Optional[int] = None) -> List[Task]:
        """All tasks for the prompt list, current task first"""
        return filter_for_prompt(await self.task_repo.get_all(), current_task_id)


def filter_for_prompt(tasks: List[Task], current_task_id: Optional[int] = None,
                      query: str = "") -> List[Task]:
    """
    Keep tasks whose name contains `query` (case-insensitive) and move the
    current task to the top. The prompt window calls this on every keystroke.
    """
    needle = query.strip().lower()
    result = [t for t in tasks if needle in t.name.lower()] if needle else list(tasks)
    if current_task_id is not None:
        result.sort(key=lambda t: t.id != current_task_id)
    return result
