"""
Pytest configuration and fixtures.
"""

import sys
import datetime
from pathlib import Path
import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from mari.infra.db import init_db, close_db
from mari.services.context import AppContext

# Monday, so week ranges start here
DAY = datetime.date(2026, 3, 2)


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh SQLite file per test, opened through init_db() like the app does"""
    engine = await init_db(f"sqlite+aiosqlite:///{tmp_path / 'mari-test.db'}")
    yield engine
    await close_db()


@pytest_asyncio.fixture
async def context(db):
    """AppContext on the test database with the clock fixed at DAY"""
    ctx = AppContext(today_provider=lambda: DAY)
    await ctx.load()
    return ctx


@pytest.fixture
def day():
    return DAY
