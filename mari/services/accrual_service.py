"""
Accrual Service - turns "the user worked on task T this period" into storage.

Every write goes through TimeEntryRepository.upsert_accrual, which only ever
adds. Day totals therefore never go down through accrual, and no accrual can
overwrite time that was already recorded.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError

from mari.domain.exceptions import StorageIOError, ValidationError
from mari.domain.models import TimeEntry, FIXED_INCREMENT
from mari.infra.repository import TimeEntryRepository
from mari.utils import today

logger = logging.getLogger(__name__)


@dataclass
class PendingAccrual:
    """An accrual that failed to reach the database and is waiting for a retry"""
    task_id: int
    day: datetime.date
    seconds: int


class AccrualService:
    """
    The Accrual Engine.

    Failed writes are logged and retained in `pending` instead of being
    dropped; retry_pending() replays them.
    """

    def __init__(self, entry_repo: Optional[TimeEntryRepository] = None,
                 increment_seconds: int = FIXED_INCREMENT,
                 today_provider: Callable[[], datetime.date] = today):
        self.entry_repo = entry_repo or TimeEntryRepository()
        self.increment_seconds = increment_seconds
        self.today_provider = today_provider
        self.pending: List[PendingAccrual] = []

    async def confirm(self, task_id: int) -> TimeEntry:
        """Add one full period to today's entry for `task_id`"""
        day = self.today_provider()
        entry = await self._accrue(task_id, day, self.increment_seconds)
        logger.info(f"Confirmed task {task_id}: {entry.duration}s on {day}")
        return entry

    async def record_manual(self, task_id: int, day: datetime.date, seconds: int) -> TimeEntry:
        """
        Add a caller-supplied duration to (task, day).

        Additive like confirm(): calling this twice accumulates.
        """
        if seconds < 0:
            raise ValidationError(f"Duration must not be negative, got {seconds}")
        entry = await self._accrue(task_id, day, seconds)
        logger.info(f"Recorded {seconds}s for task {task_id} on {day}")
        return entry

    async def retry_pending(self) -> int:
        """
        Replay retained accruals, oldest first.

        Stops at the first one that fails again, leaving it and the rest
        queued.

        Returns:
            Number of accruals written
        """
        written = 0
        while self.pending:
            accrual = self.pending[0]
            try:
                await self.entry_repo.upsert_accrual(accrual.task_id, accrual.day, accrual.seconds)
            except StorageIOError as e:
                if is_retryable(e):
                    logger.warning(f"Retry of {len(self.pending)} pending accrual(s) failed: {e}")
                    break
                logger.error(f"Dropping pending accrual for task {accrual.task_id}: {e}")
                self.pending.pop(0)
                continue
            self.pending.pop(0)
            written += 1
        if written:
            logger.info(f"Replayed {written} pending accrual(s)")
        return written

    async def _accrue(self, task_id: int, day: datetime.date, seconds: int) -> TimeEntry:
        try:
            return await self.entry_repo.upsert_accrual(task_id, day, seconds)
        except StorageIOError as e:
            if not is_retryable(e):
                logger.error(f"Accrual for task {task_id} rejected by the database: {e}")
                raise
            logger.exception(f"Accrual of {seconds}s for task {task_id} on {day} failed, keeping it for retry")
            self.pending.append(PendingAccrual(task_id, day, seconds))
            raise


def is_retryable(error: StorageIOError) -> bool:
    # A constraint violation (e.g. the task was deleted) will fail the same way again
    return not isinstance(error.__cause__, IntegrityError)
