"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- The SQLite dialect exposes INSERT ... ON CONFLICT, which gives us an
  atomic "add time to today for this task" in a single statement
"""

from datetime import datetime, date
from typing import Any, Optional

from sqlalchemy import (
    String, Integer, Date, DateTime, ForeignKey, JSON, Index, UniqueConstraint, event
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from mari.domain.exceptions import NotInitializedError


# Base class for all models
class Base(DeclarativeBase):
    pass


class TaskModel(Base):
    """SQLAlchemy model for Task entity"""
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class TimeEntryModel(Base):
    """SQLAlchemy model for TimeEntry entity (one row per task and day)"""
    __tablename__ = "time_entries"
    __table_args__ = (
        UniqueConstraint("task_id", "day", name="uq_time_entries_task_day"),
        Index("idx_time_entries_day", "day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)


class SettingModel(Base):
    """Small key-value settings (e.g. current_task_id)"""
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    It has to be opened with init_db() before any repository is used.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.url = db_url
        self.engine = create_async_engine(db_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # SQLite only enforces ON DELETE CASCADE with this pragma, per connection
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_foreign_keys)

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get the engine, creating it when a URL is given for the first time"""
        if cls._instance is None:
            if db_url is None:
                raise NotInitializedError(
                    "Database not initialized. Call init_db() first."
                )
            cls._instance = cls(db_url)
        return cls._instance

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Convenience functions
def get_engine() -> DatabaseEngine:
    """Get the database engine instance (raises NotInitializedError if not opened)"""
    return DatabaseEngine.get_instance()


async def init_db(db_url: Optional[str] = None) -> DatabaseEngine:
    """Open the database for the current user profile and create tables"""
    if db_url is None:
        from mari.infra.config import get_settings
        db_url = get_settings().get_db_url()
    engine = DatabaseEngine.get_instance(db_url)
    await engine.create_tables()
    return engine


async def close_db():
    """Dispose the engine; the store is uninitialized afterwards"""
    if DatabaseEngine._instance is not None:
        await DatabaseEngine._instance.dispose()
        DatabaseEngine._instance = None
