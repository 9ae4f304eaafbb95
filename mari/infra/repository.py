"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Mock data for testing
- Keep SQL (upserts, cascades, range filters) in one place
- Hand the services plain Pydantic models instead of ORM rows

Every database failure leaves this module as StorageIOError. A row that
does not exist is returned as None, never raised.
"""

import functools
import logging
from datetime import date, timedelta
from typing import Any, List, Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mari.domain.exceptions import StorageIOError
from mari.domain.models import Task, TimeEntry
from mari.infra.db import TaskModel, TimeEntryModel, SettingModel, get_engine
from mari.utils import add_months

logger = logging.getLogger(__name__)

_entries = TimeEntryModel.__table__


def storage_errors(method):
    """Re-raise SQLAlchemy failures as StorageIOError"""
    @functools.wraps(method)
    async def wrapper(*args, **kwargs):
        try:
            return await method(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{method.__qualname__} failed: {e}")
            raise StorageIOError(str(e)) from e
    return wrapper


class _Repository:
    """Session handling shared by all repositories"""

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class TaskRepository(_Repository):
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    Names are stored as given; trimming and uniqueness belong to TaskService.
    """

    @storage_errors
    async def get_all(self) -> List[Task]:
        """Get all tasks, most recently created first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            )
            return [Task.model_validate(tm) for tm in result.scalars().all()]

    @storage_errors
    async def get_by_id(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == task_id)
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    @storage_errors
    async def get_by_name(self, name: str) -> Optional[Task]:
        """Get a task by case-insensitive name (oldest match wins)"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel)
                .where(func.lower(TaskModel.name) == name.lower())
                .order_by(TaskModel.id)
                .limit(1)
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    @storage_errors
    async def create(self, name: str) -> Task:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            task_model = TaskModel(name=name)
            session.add(task_model)
            await session.commit()
            await session.refresh(task_model)
            return Task.model_validate(task_model)

    @storage_errors
    async def update(self, task_id: int, name: str) -> None:
        """Rename a task in place (silently does nothing for unknown IDs)"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TaskModel).where(TaskModel.id == task_id).values(name=name)
            )
            await session.commit()

    @storage_errors
    async def delete(self, task_id: int) -> None:
        """Delete a task; its time entries go with it (ON DELETE CASCADE)"""
        session = await self._get_session()
        async with session:
            await session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await session.commit()


class TimeEntryRepository(_Repository):
    """
    Handles all TimeEntry-related database operations.

    Day ranges are half-open: [start, end).
    """

    @storage_errors
    async def get_all(self) -> List[TimeEntry]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel).order_by(TimeEntryModel.day, TimeEntryModel.id)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    @storage_errors
    async def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    @storage_errors
    async def get_for_day(self, day: date) -> List[TimeEntry]:
        """Get all entries in the given day bucket"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.day == day)
                .order_by(TimeEntryModel.id)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    @storage_errors
    async def get_for_range(self, start: date, end: date) -> List[TimeEntry]:
        """Get all entries with start <= day < end"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.day >= start, TimeEntryModel.day < end)
                .order_by(TimeEntryModel.day, TimeEntryModel.id)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def get_for_week(self, start: date) -> List[TimeEntry]:
        """Seven days starting at `start`"""
        return await self.get_for_range(start, start + timedelta(days=7))

    async def get_for_month(self, start: date) -> List[TimeEntry]:
        """One calendar month starting at `start` (28 to 31 days)"""
        return await self.get_for_range(start, add_months(start, 1))

    @storage_errors
    async def upsert_accrual(self, task_id: int, day: date, seconds: int) -> TimeEntry:
        """
        Add `seconds` to the (task, day) entry, creating it if absent.

        A single INSERT ... ON CONFLICT DO UPDATE statement, so two accruals
        can never race into a lost update or a duplicate row.

        Returns:
            The entry after the update
        """
        session = await self._get_session()
        async with session:
            entry = await self._upsert(session, task_id, day, seconds)
            await session.commit()
            return entry

    @staticmethod
    async def _upsert(session: AsyncSession, task_id: int, day: date, seconds: int) -> TimeEntry:
        stmt = sqlite_insert(_entries).values(task_id=task_id, day=day, duration=seconds)
        stmt = stmt.on_conflict_do_update(
            index_elements=["task_id", "day"],
            set_={"duration": _entries.c.duration + stmt.excluded.duration},
        ).returning(_entries.c.id, _entries.c.task_id, _entries.c.day, _entries.c.duration)
        result = await session.execute(stmt)
        return TimeEntry.model_validate(dict(result.mappings().one()))

    @storage_errors
    async def set_duration(self, entry_id: int, seconds: int) -> None:
        """Overwrite an entry's duration (manual correction)"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.id == entry_id)
                .values(duration=seconds)
            )
            await session.commit()

    @storage_errors
    async def reassign(self, entry_id: int, task_id: int) -> Optional[TimeEntry]:
        """
        Move an entry to another task on the same day.

        If the target task already has an entry for that day the durations
        are merged into it and the source row is removed, in one transaction.

        Returns:
            The resulting entry, or None if `entry_id` does not exist
        """
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            source = result.scalar_one_or_none()
            if source is None:
                return None
            if source.task_id == task_id:
                return TimeEntry.model_validate(source)

            day, duration = source.day, source.duration
            await session.execute(delete(TimeEntryModel).where(TimeEntryModel.id == entry_id))
            merged = await self._upsert(session, task_id, day, duration)
            await session.commit()
            return merged

    @storage_errors
    async def delete(self, entry_id: int) -> None:
        """Delete a time entry by ID (no error if it does not exist)"""
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            await session.commit()


class SettingsRepository(_Repository):
    """
    Opaque key-value settings stored as JSON, so values keep their type.
    """

    @storage_errors
    async def get(self, key: str, default: Any = None) -> Any:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(SettingModel).where(SettingModel.key == key)
            )
            setting = result.scalar_one_or_none()
            if setting is None or setting.value is None:
                return default
            return setting.value

    @storage_errors
    async def set(self, key: str, value: Any) -> None:
        session = await self._get_session()
        async with session:
            stmt = sqlite_insert(SettingModel.__table__).values(key=key, value=value)
            stmt = stmt.on_conflict_do_update(
                index_elements=["key"],
                set_={"value": stmt.excluded.value},
            )
            await session.execute(stmt)
            await session.commit()
