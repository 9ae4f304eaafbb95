"""
Tests for the task workflow.
"""

import pytest

from mari.domain.exceptions import ValidationError
from mari.services.context import AppContext
from mari.services.task_service import clean_task_name, filter_for_prompt


def test_clean_task_name():
    assert clean_task_name("  Writing  ") == "Writing"
    with pytest.raises(ValidationError):
        clean_task_name("   ")
    with pytest.raises(ValidationError):
        clean_task_name("")


@pytest.mark.asyncio
async def test_find_or_create_reuses_existing_task(context):
    first = await context.tasks.find_or_create("  Writing ")
    again = await context.tasks.find_or_create("writing")

    assert first.name == "Writing"
    assert again.id == first.id
    assert len(await context.task_repo.get_all()) == 1


@pytest.mark.asyncio
async def test_find_or_create_rejects_empty_name(context):
    with pytest.raises(ValidationError):
        await context.tasks.find_or_create(" ")


@pytest.mark.asyncio
async def test_rename(context):
    task = await context.tasks.find_or_create("Writng")
    await context.tasks.rename(task.id, " Writing ")
    assert (await context.task_repo.get_by_id(task.id)).name == "Writing"


@pytest.mark.asyncio
async def test_delete_clears_current_task(context, day):
    task = await context.tasks.find_or_create("Writing")
    await context.accrual.confirm(task.id)
    await context.set_current_task_id(task.id)

    await context.tasks.delete(task.id)

    assert context.get_current_task_id() is None
    assert await context.entry_repo.get_for_day(day) == []
    # Persisted, not just cached
    assert await AppContext().load() is None


@pytest.mark.asyncio
async def test_delete_other_task_keeps_current(context):
    current = await context.tasks.find_or_create("Writing")
    other = await context.tasks.find_or_create("Email")
    await context.set_current_task_id(current.id)

    await context.tasks.delete(other.id)

    assert context.get_current_task_id() == current.id


@pytest.mark.asyncio
async def test_list_for_prompt_puts_current_first(context):
    writing = await context.tasks.find_or_create("Writing")
    await context.tasks.find_or_create("Email")
    await context.tasks.find_or_create("Code review")

    tasks = await context.tasks.list_for_prompt(current_task_id=writing.id)
    assert tasks[0].id == writing.id
    assert len(tasks) == 3

    filtered = filter_for_prompt(tasks, writing.id, query="RE")
    assert [t.name for t in filtered] == ["Code review"]
    assert filter_for_prompt(tasks, writing.id, query="  ")[0].id == writing.id


@pytest.mark.asyncio
async def test_current_task_survives_restart(context):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    restarted = AppContext()
    assert await restarted.load() == task.id
    assert restarted.get_current_task_id() == task.id
