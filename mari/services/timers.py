"""
Cancellable scheduled tasks.

The prompt scheduler needs exactly two kinds of timer: a recurring period
and a one-shot auto-dismiss. It asks a TimerFactory for them, so the same
scheduler runs on QTimer in the tray app (mari.ui.qt_timers), on asyncio
here, and on a hand-cranked fake in the tests.

Callbacks are coroutine functions taking no arguments.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class ScheduledTask(ABC):
    """Handle to a scheduled callback"""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the callback from running (again). Safe to call repeatedly."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the callback may still fire"""


class TimerFactory(ABC):

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        """Run `callback` once after `delay_seconds`"""

    @abstractmethod
    def call_every(self, interval_seconds: float, callback: Callback) -> ScheduledTask:
        """Run `callback` every `interval_seconds` until cancelled"""


class AsyncioScheduledTask(ScheduledTask):

    def __init__(self):
        self._task: Optional["asyncio.Task"] = None
        self._cancelled = False

    def _attach(self, task: "asyncio.Task") -> None:
        self._task = task

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is None or self._task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A callback cancelling its own timer runs to completion; the loop
        # stops on the flag afterwards
        if self._task is not current:
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not self._cancelled and self._task is not None and not self._task.done()


class AsyncioTimerFactory(TimerFactory):
    """Timers as tasks on the running asyncio loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop

    def _spawn(self, make_coro) -> AsyncioScheduledTask:
        loop = self.loop or asyncio.get_running_loop()
        handle = AsyncioScheduledTask()
        handle._attach(loop.create_task(make_coro(handle)))
        return handle

    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        async def run_once(handle):
            await asyncio.sleep(delay_seconds)
            if not handle.cancelled:
                await _run_callback(callback)
        return self._spawn(run_once)

    def call_every(self, interval_seconds: float, callback: Callback) -> ScheduledTask:
        async def run_forever(handle):
            while not handle.cancelled:
                await asyncio.sleep(interval_seconds)
                if handle.cancelled:
                    break
                await _run_callback(callback)
        return self._spawn(run_forever)


async def _run_callback(callback: Callback) -> None:
    # A failing tick must not kill the recurring timer
    try:
        await callback()
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Scheduled callback failed")
