"""
Prompt Scheduler - asks "what are you working on?" once per period.

Architecture Decision: State machine over injected collaborators
The scheduler knows nothing about windows or QTimer. The UI hands it three
callables (is_suppressed, show_prompt, hide_prompt) and a TimerFactory, so
the whole state machine can be driven from tests with a fake clock.
show_prompt may be a coroutine function, so the UI can load the task list
before the prompt appears.

States:
    IDLE --period--> SUPPRESSED --auto-confirm--> IDLE    (activity log visible)
    IDLE --period--> AWAITING_RESPONSE --resolve/timeout--> IDLE

A period that fires while a prompt is still awaiting a response is skipped:
no second prompt and no accrual. The pending prompt already stands for that
stretch of work.
"""

import inspect
import logging
from typing import Any, Callable, Optional

from mari.domain.exceptions import StorageIOError, ValidationError
from mari.domain.models import PromptAction, PromptState, FIXED_INCREMENT
from mari.services.accrual_service import is_retryable
from mari.services.context import AppContext
from mari.services.timers import ScheduledTask, TimerFactory

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class PromptResolver:
    """
    Resolution Handler: applies a decision to the accrual store and the
    current-task pointer.

    | confirm          | accrue one period to the current task |
    | switch(task_id)  | accrue to task_id, make it current    |
    | deny             | nothing                               |
    """

    def __init__(self, context: AppContext):
        self.context = context

    async def apply(self, action: PromptAction, task_id: Optional[int] = None) -> None:
        action = PromptAction(action)

        if action == PromptAction.CONFIRM:
            current = self.context.get_current_task_id()
            if current is None:
                logger.info("Confirm with no current task, nothing to accrue")
                return
            await self.context.accrual.confirm(current)
            logger.info(f"[Prompt] Confirmed task: {current}")

        elif action == PromptAction.SWITCH:
            if task_id is None:
                raise ValidationError("switch needs a task id")
            try:
                exists = await self.context.task_repo.get_by_id(task_id) is not None
            except StorageIOError as e:
                # Unknown while storage is down; the accrual below is retained
                logger.warning(f"Could not check task {task_id}: {e}")
                exists = True
            if not exists:
                raise ValidationError(f"Task {task_id} does not exist")
            try:
                await self.context.accrual.confirm(task_id)
            except StorageIOError as e:
                # The pointer follows an accrual that is kept for retry, not a rejected one
                if is_retryable(e):
                    await self.context.set_current_task_id(task_id)
                raise
            await self.context.set_current_task_id(task_id)
            logger.info(f"[Prompt] Switched to task: {task_id}")

        else:
            logger.info("[Prompt] Denied, no time recorded")


class PromptScheduler:
    """
    Owns the recurring period timer and the one-shot auto-dismiss timer.
    """

    def __init__(self, context: AppContext, timers: TimerFactory,
                 is_suppressed: Callable[[], bool],
                 show_prompt: Callable[[], Any],
                 hide_prompt: Callable[[], None],
                 interval_seconds: int = FIXED_INCREMENT,
                 timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.context = context
        self.timers = timers
        self.is_suppressed = is_suppressed
        self.show_prompt = show_prompt
        self.hide_prompt = hide_prompt
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds

        self.resolver = PromptResolver(context)
        self.state = PromptState.IDLE

        self._period_task: Optional[ScheduledTask] = None
        self._timeout_task: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return self._period_task is not None and self._period_task.active

    def start(self) -> None:
        """Start the recurring period timer (no-op if already running)"""
        if self.running:
            return
        self._period_task = self.timers.call_every(self.interval_seconds, self.on_period)
        logger.info(f"[Timer] Started {self.interval_seconds}s interval")

    def shutdown(self) -> None:
        """Cancel all timers; call before the store is closed"""
        if self._period_task:
            self._period_task.cancel()
            self._period_task = None
        self._dismiss()
        self.state = PromptState.IDLE
        logger.info("[Timer] Stopped")

    async def on_period(self) -> None:
        """One period has elapsed"""
        await self.context.accrual.retry_pending()

        if self.state == PromptState.AWAITING_RESPONSE:
            logger.warning("[Timer] Previous prompt still open, skipping this period")
            return

        if self.is_suppressed():
            self.state = PromptState.SUPPRESSED
            try:
                current = self.context.get_current_task_id()
                if current is not None:
                    await self._apply(PromptAction.CONFIRM)
                    logger.info(f"[Timer] Suppressed, auto-confirmed task: {current}")
            finally:
                self.state = PromptState.IDLE
            return

        self.state = PromptState.AWAITING_RESPONSE
        # Armed before showing, so a prompt that fails to render still confirms
        self._timeout_task = self.timers.call_later(self.timeout_seconds, self._on_timeout)
        shown = self.show_prompt()
        if inspect.isawaitable(shown):
            await shown
            if self.state != PromptState.AWAITING_RESPONSE:
                # Resolved while the prompt was still loading
                self.hide_prompt()

    async def resolve(self, action: PromptAction, task_id: Optional[int] = None) -> bool:
        """
        Decision entry point for the prompt UI and the auto-dismiss timer.

        Always cancels the auto-dismiss timer and hides the prompt. The
        action is applied only if a prompt is awaiting a response, so each
        prompt resolves at most once.

        Returns:
            True if the decision was applied
        """
        action = PromptAction(action)
        if action == PromptAction.SWITCH and task_id is None:
            raise ValidationError("switch needs a task id")

        self._dismiss()
        if self.state != PromptState.AWAITING_RESPONSE:
            logger.debug(f"Ignoring {action.value}: no prompt is pending")
            return False

        self.state = PromptState.IDLE
        await self._apply(action, task_id)
        return True

    async def _on_timeout(self) -> None:
        logger.info("[Prompt] No response, confirming current task")
        # Released before resolving; inside its own callback cancel() only marks it done
        task, self._timeout_task = self._timeout_task, None
        if task:
            task.cancel()
        await self.resolve(PromptAction.CONFIRM)

    def _dismiss(self) -> None:
        if self._timeout_task:
            self._timeout_task.cancel()
            self._timeout_task = None
        self.hide_prompt()

    async def _apply(self, action: PromptAction, task_id: Optional[int] = None) -> None:
        try:
            await self.resolver.apply(action, task_id)
        except StorageIOError as e:
            # The accrual service keeps failed accruals and retries them next period
            logger.warning(f"[Prompt] {action.value} not saved: {e}")
