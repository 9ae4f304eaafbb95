"""
Tests for the PromptScheduler state machine, driven by a hand-cranked clock.
"""

import pytest

from mari.domain.exceptions import StorageIOError, ValidationError
from mari.domain.models import PromptAction, PromptState, FIXED_INCREMENT
from mari.services.prompt_scheduler import PromptScheduler
from mari.services.timers import ScheduledTask, TimerFactory


class FakeScheduledTask(ScheduledTask):

    def __init__(self, callback, repeating):
        self.callback = callback
        self.repeating = repeating
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return not self.cancelled and (self.repeating or not self.fired)


class FakeTimers(TimerFactory):
    """Records scheduled callbacks; tests fire them explicitly"""

    def __init__(self):
        self.period = None
        self.timeouts = []

    def call_later(self, delay_seconds, callback):
        task = FakeScheduledTask(callback, repeating=False)
        self.timeouts.append(task)
        return task

    def call_every(self, interval_seconds, callback):
        self.period = FakeScheduledTask(callback, repeating=True)
        return self.period

    async def tick(self):
        assert self.period and self.period.active
        await self.period.callback()

    async def expire(self):
        task = self.timeouts[-1]
        assert task.active
        task.fired = True
        await task.callback()


class FakePrompt:

    def __init__(self):
        self.suppressed = False
        self.shown = 0
        self.hidden = 0

    def is_suppressed(self):
        return self.suppressed

    def show(self):
        self.shown += 1

    def hide(self):
        self.hidden += 1


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def prompt():
    return FakePrompt()


@pytest.fixture
def scheduler(context, timers, prompt):
    s = PromptScheduler(context, timers, prompt.is_suppressed, prompt.show, prompt.hide)
    s.start()
    return s


async def _durations(context, day):
    return {e.task_id: e.duration for e in await context.entry_repo.get_for_day(day)}


@pytest.mark.asyncio
async def test_timeout_confirms_current_task(context, scheduler, timers, prompt, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    await timers.tick()
    assert scheduler.state == PromptState.AWAITING_RESPONSE
    assert prompt.shown == 1

    await timers.expire()

    assert scheduler.state == PromptState.IDLE
    assert prompt.hidden >= 1
    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}


@pytest.mark.asyncio
async def test_three_unanswered_prompts_make_an_hour(context, scheduler, timers, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    for _ in range(3):
        await timers.tick()
        await timers.expire()

    assert await _durations(context, day) == {task.id: 3600}


@pytest.mark.asyncio
async def test_switch_accrues_to_new_task(context, scheduler, timers, day):
    a = await context.tasks.find_or_create("A")
    b = await context.tasks.find_or_create("B")
    await context.set_current_task_id(a.id)

    await timers.tick()
    assert await scheduler.resolve(PromptAction.SWITCH, b.id)

    assert context.get_current_task_id() == b.id
    assert await _durations(context, day) == {b.id: FIXED_INCREMENT}
    # The auto-dismiss timer is gone
    assert not timers.timeouts[-1].active


@pytest.mark.asyncio
async def test_deny_records_nothing(context, scheduler, timers, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    await timers.tick()
    assert await scheduler.resolve(PromptAction.DENY)

    assert await _durations(context, day) == {}
    assert context.get_current_task_id() == task.id
    assert scheduler.state == PromptState.IDLE


@pytest.mark.asyncio
async def test_confirm_without_current_task_records_nothing(context, scheduler, timers, day):
    await timers.tick()
    assert await scheduler.resolve(PromptAction.CONFIRM)
    assert await _durations(context, day) == {}


@pytest.mark.asyncio
async def test_suppressed_period_confirms_silently(context, scheduler, timers, prompt, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)
    prompt.suppressed = True

    await timers.tick()

    assert prompt.shown == 0
    assert scheduler.state == PromptState.IDLE
    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}


@pytest.mark.asyncio
async def test_suppressed_period_without_task_records_nothing(context, scheduler, timers, prompt, day):
    prompt.suppressed = True
    await timers.tick()
    assert await _durations(context, day) == {}


@pytest.mark.asyncio
async def test_period_during_open_prompt_is_skipped(context, scheduler, timers, prompt, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    await timers.tick()
    await timers.tick()

    assert prompt.shown == 1
    assert len(timers.timeouts) == 1
    assert await _durations(context, day) == {}

    await scheduler.resolve(PromptAction.CONFIRM)
    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}


@pytest.mark.asyncio
async def test_prompt_resolves_only_once(context, scheduler, timers, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    await timers.tick()
    assert await scheduler.resolve(PromptAction.CONFIRM) is True
    assert await scheduler.resolve(PromptAction.CONFIRM) is False

    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}


@pytest.mark.asyncio
async def test_resolve_when_idle_is_ignored(context, scheduler, day):
    task = await context.tasks.find_or_create("Writing")

    assert await scheduler.resolve(PromptAction.SWITCH, task.id) is False
    assert context.get_current_task_id() is None
    assert await _durations(context, day) == {}


@pytest.mark.asyncio
async def test_switch_requires_task_id(scheduler, timers):
    await timers.tick()
    with pytest.raises(ValidationError):
        await scheduler.resolve(PromptAction.SWITCH)
    # Still waiting for a valid answer
    assert scheduler.state == PromptState.AWAITING_RESPONSE


@pytest.mark.asyncio
async def test_switch_to_unknown_task_keeps_pointer(context, scheduler, timers, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)

    await timers.tick()
    with pytest.raises(ValidationError):
        await scheduler.resolve(PromptAction.SWITCH, 4242)

    assert context.get_current_task_id() == task.id
    assert await _durations(context, day) == {}


@pytest.mark.asyncio
async def test_shutdown_cancels_timers(scheduler, timers, prompt):
    await timers.tick()

    scheduler.shutdown()

    assert not scheduler.running
    assert timers.period.cancelled
    assert timers.timeouts[-1].cancelled
    assert scheduler.state == PromptState.IDLE
    assert prompt.hidden >= 1


@pytest.mark.asyncio
async def test_start_is_idempotent(scheduler, timers):
    first = timers.period
    scheduler.start()
    assert timers.period is first
    assert scheduler.running


@pytest.mark.asyncio
async def test_async_show_prompt_is_awaited(context, timers):
    shown = []

    async def show():
        shown.append(await context.tasks.list_for_prompt())

    scheduler = PromptScheduler(context, timers, lambda: False, show, lambda: None)
    scheduler.start()
    await context.tasks.find_or_create("Writing")

    await timers.tick()

    assert [t.name for t in shown[0]] == ["Writing"]
    assert scheduler.state == PromptState.AWAITING_RESPONSE


@pytest.mark.asyncio
async def test_timeout_releases_its_timer(context, scheduler, timers):
    await timers.tick()
    await timers.expire()

    assert timers.timeouts[-1].cancelled


def _storage_down(monkeypatch, repo, method):
    """Make `repo.method` fail until the returned switch is flipped"""
    real = getattr(repo, method)
    storage = {"down": True}

    async def flaky(*args, **kwargs):
        if storage["down"]:
            raise StorageIOError("disk I/O error")
        return await real(*args, **kwargs)

    monkeypatch.setattr(repo, method, flaky)
    return storage


@pytest.mark.asyncio
async def test_next_period_replays_failed_accrual(context, scheduler, timers, monkeypatch, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)
    storage = _storage_down(monkeypatch, context.entry_repo, "upsert_accrual")

    await timers.tick()
    await timers.expire()
    assert scheduler.state == PromptState.IDLE
    assert len(context.accrual.pending) == 1

    storage["down"] = False
    await timers.tick()

    assert context.accrual.pending == []
    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}


@pytest.mark.asyncio
async def test_switch_is_retained_when_task_lookup_fails(context, scheduler, timers, monkeypatch, day):
    a = await context.tasks.find_or_create("A")
    b = await context.tasks.find_or_create("B")
    await context.set_current_task_id(a.id)
    lookup = _storage_down(monkeypatch, context.task_repo, "get_by_id")
    writes = _storage_down(monkeypatch, context.entry_repo, "upsert_accrual")

    await timers.tick()
    assert await scheduler.resolve(PromptAction.SWITCH, b.id)
    assert len(context.accrual.pending) == 1

    lookup["down"] = writes["down"] = False
    await timers.tick()

    assert await _durations(context, day) == {b.id: FIXED_INCREMENT}
    assert context.get_current_task_id() == b.id


@pytest.mark.asyncio
async def test_prompt_resolved_while_loading_is_hidden(context, timers, day):
    task = await context.tasks.find_or_create("Writing")
    await context.set_current_task_id(task.id)
    hidden = []
    holder = {}

    async def show():
        # The user answers before the task list has finished loading
        await holder["scheduler"].resolve(PromptAction.CONFIRM)

    scheduler = PromptScheduler(context, timers, lambda: False, show, lambda: hidden.append(True))
    holder["scheduler"] = scheduler
    scheduler.start()

    await timers.tick()

    assert scheduler.state == PromptState.IDLE
    # Once from resolve(), once more after show_prompt returned
    assert len(hidden) == 2
    assert await _durations(context, day) == {task.id: FIXED_INCREMENT}
