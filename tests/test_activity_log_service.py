"""
Tests for the activity log edits.
"""

import datetime
import pytest

from mari.domain.exceptions import ValidationError


@pytest.mark.asyncio
async def test_entries_for_day_carry_task_names(context, day):
    log = context.activity_log
    await log.create_entry("Writing", 45 * 60, day)
    await log.create_entry("Email", 15 * 60, day)
    await log.create_entry("Writing", 15 * 60, day - datetime.timedelta(days=1))

    entries = await log.entries_for_day(day)

    assert {e.task_name: e.duration for e in entries} == {"Writing": 2700, "Email": 900}
    assert await log.total_for_day(day) == 3600


@pytest.mark.asyncio
async def test_create_entry_adds_to_existing(context, day):
    log = context.activity_log
    await log.create_entry("Writing", 1200, day)
    entry = await log.create_entry("writing", 600, day)

    assert entry.duration == 1800
    assert entry.task_name == "Writing"
    assert len(await log.entries_for_day(day)) == 1


@pytest.mark.asyncio
async def test_update_duration(context, day):
    log = context.activity_log
    entry = await log.create_entry("Writing", 1200, day)

    updated = await log.update_duration(entry.id, 1800)

    assert updated.duration == 1800
    assert (await context.entry_repo.get_by_id(entry.id)).duration == 1800


@pytest.mark.asyncio
async def test_zero_duration_deletes_entry(context, day):
    log = context.activity_log
    entry = await log.create_entry("Writing", 1200, day)

    assert await log.update_duration(entry.id, 0) is None
    assert await log.entries_for_day(day) == []
    # The task itself stays
    assert await context.task_repo.get_by_name("Writing") is not None


@pytest.mark.asyncio
async def test_update_duration_rejects_negative(context, day):
    entry = await context.activity_log.create_entry("Writing", 1200, day)
    with pytest.raises(ValidationError):
        await context.activity_log.update_duration(entry.id, -1)


@pytest.mark.asyncio
async def test_update_duration_unknown_entry(context):
    assert await context.activity_log.update_duration(4242, 60) is None


@pytest.mark.asyncio
async def test_rename_entry_task_merges(context, day):
    log = context.activity_log
    source = await log.create_entry("Writng", 600, day)
    await log.create_entry("Writing", 1200, day)

    merged = await log.rename_entry_task(source.id, "writing")

    assert merged.duration == 1800
    entries = await log.entries_for_day(day)
    assert [(e.task_name, e.duration) for e in entries] == [("Writing", 1800)]


@pytest.mark.asyncio
async def test_rename_entry_task_creates_new_task(context, day):
    log = context.activity_log
    source = await log.create_entry("Writing", 600, day)

    moved = await log.rename_entry_task(source.id, "Planning")

    planning = await context.task_repo.get_by_name("Planning")
    assert moved.task_id == planning.id
    assert moved.duration == 600


@pytest.mark.asyncio
async def test_totals_for_week_and_month(context, day):
    log = context.activity_log
    writing = await log.create_entry("Writing", 1200, day)
    await log.create_entry("Writing", 1200, day + datetime.timedelta(days=3))
    email = await log.create_entry("Email", 600, day + datetime.timedelta(days=6))
    await log.create_entry("Email", 600, day + datetime.timedelta(days=7))

    week = await log.totals_for_week(day)
    assert week == {writing.task_id: 2400, email.task_id: 600}

    month = await log.totals_for_month(datetime.date(2026, 3, 1))
    assert month == {writing.task_id: 2400, email.task_id: 1200}
