"""
Cooperative scheduling for the home screen.

DESIGN DECISION: Every deferred action on the home screen (the single-tap
confirmation, animation ticks, onboarding timers) goes through a Scheduler.
Production code uses the asyncio event loop; tests substitute a manual
clock so cancellation races can be replayed deterministically.

All times are milliseconds.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Optional


class ScheduledAction:
    """
    Handle to a callback scheduled for later.

    The callback runs at most once. Cancelling after it ran is a no-op.
    """

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        if self._fired:
            return
        self._cancelled = True
        self._on_cancel()

    def run(self) -> None:
        """Invoke the callback unless cancelled or already run."""
        if not self.pending:
            return
        self._fired = True
        self._callback()

    def _on_cancel(self) -> None:
        """Hook for schedulers that hold a backend handle."""


class Scheduler(ABC):
    """Abstract clock + timer used by the gesture and animation state machines."""

    @abstractmethod
    def now_ms(self) -> float:
        """Current time in milliseconds on this scheduler's clock."""
        pass

    @abstractmethod
    def call_later(
        self,
        delay_ms: float,
        callback: Callable[[], None],
    ) -> ScheduledAction:
        """
        Run callback after delay_ms.

        Returns:
            A cancellable handle
        """
        pass


class _AsyncioAction(ScheduledAction):
    def __init__(self, callback: Callable[[], None]):
        super().__init__(callback)
        self.timer: Optional[asyncio.TimerHandle] = None

    def _on_cancel(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    If no loop is given, the running loop is looked up on each call,
    so one instance can be created before the loop starts.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def now_ms(self) -> float:
        return self._get_loop().time() * 1000.0

    def call_later(
        self,
        delay_ms: float,
        callback: Callable[[], None],
    ) -> ScheduledAction:
        action = _AsyncioAction(callback)
        action.timer = self._get_loop().call_later(max(delay_ms, 0.0) / 1000.0, action.run)
        return action
