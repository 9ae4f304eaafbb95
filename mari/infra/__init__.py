"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db, close_db
from .db import TaskModel, TimeEntryModel, SettingModel

__all__ = [
    "DatabaseEngine", "get_engine", "init_db", "close_db",
    "TaskModel", "TimeEntryModel", "SettingModel",
]
