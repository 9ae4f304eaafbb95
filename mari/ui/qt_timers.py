"""
QTimer-backed TimerFactory for the tray app.

Qt owns the main thread's event loop, so scheduled coroutines are run on
the application's asyncio loop with run_until_complete, the same way the
rest of the UI calls into async services.
"""

import asyncio
import logging

from PySide6.QtCore import QObject, QTimer

from mari.services.timers import Callback, ScheduledTask, TimerFactory

logger = logging.getLogger(__name__)


class QtScheduledTask(ScheduledTask):

    def __init__(self, timer: QTimer):
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._timer.stop()
        self._timer.deleteLater()

    @property
    def active(self) -> bool:
        return not self._cancelled and self._timer.isActive()


class QtTimerFactory(TimerFactory):

    def __init__(self, loop: asyncio.AbstractEventLoop, parent: QObject = None):
        self.loop = loop
        self.parent = parent

    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        return self._start(delay_seconds, callback, single_shot=True)

    def call_every(self, interval_seconds: float, callback: Callback) -> ScheduledTask:
        return self._start(interval_seconds, callback, single_shot=False)

    def _start(self, seconds: float, callback: Callback, single_shot: bool) -> QtScheduledTask:
        timer = QTimer(self.parent)
        timer.setSingleShot(single_shot)
        timer.setInterval(int(seconds * 1000))
        handle = QtScheduledTask(timer)
        # A fired one-shot is released like a cancelled one
        done = handle if single_shot else None
        timer.timeout.connect(lambda: self._run(callback, done))
        timer.start()
        return handle

    def _run(self, callback: Callback, done: QtScheduledTask = None) -> None:
        try:
            self.loop.run_until_complete(callback())
        except Exception:
            logger.exception("Scheduled callback failed")
        finally:
            if done is not None:
                done.cancel()
