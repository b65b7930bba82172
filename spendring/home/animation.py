"""
Value animation for the hero number.

DESIGN DECISION: Each animation is stamped with a generation id. Starting,
jumping or cancelling bumps the generation, and a tick from an older
generation returns without writing. Two overlapping animations therefore
can never interleave their writes: the most recent one wins.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import Optional, Union

from spendring.gestures.scheduler import ScheduledAction, Scheduler

__all__ = ["ease_out_quart", "ValueAnimator"]

ANIMATION_DURATION_MS = 600.0
FRAME_INTERVAL_MS = 16.0


def ease_out_quart(progress: float) -> float:
    progress = min(max(progress, 0.0), 1.0)
    return 1.0 - (1.0 - progress) ** 4


class ValueAnimator:
    """
    Interpolates a displayed number toward a target over a fixed duration.

    Ticks are driven by the scheduler every `frame_ms`. `on_update` is called
    with each written value; the final tick writes the exact target.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_update: Optional[Callable[[float], None]] = None,
        duration_ms: float = ANIMATION_DURATION_MS,
        frame_ms: float = FRAME_INTERVAL_MS,
        easing: Callable[[float], float] = ease_out_quart,
        initial_value: float = 0.0,
    ):
        self._scheduler = scheduler
        self._on_update = on_update
        self._duration = duration_ms
        self._frame_ms = frame_ms
        self._easing = easing

        self._value = float(initial_value)
        self._target = float(initial_value)
        self._generation = 0
        self._frame: Optional[ScheduledAction] = None
        self._running = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def target(self) -> float:
        return self._target

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_running(self) -> bool:
        return self._running

    def animate_to(self, target: Union[Decimal, float, int]) -> int:
        """
        Start animating from the current value to target.

        Any animation in flight is superseded. The first frame is written
        immediately.

        Returns:
            The generation id of the new animation
        """
        generation = self._start_generation()
        end = float(target)
        self._target = end

        start = self._value
        if self._duration <= 0 or start == end:
            self._write(end)
            return generation

        self._running = True
        self._tick(generation, start, end, self._scheduler.now_ms())
        return generation

    def jump_to(self, value: Union[Decimal, float, int]) -> None:
        """Set the value without animating, superseding any animation."""
        self._start_generation()
        self._target = float(value)
        self._write(self._target)

    def cancel(self) -> None:
        """Stop the animation in flight; the current value is kept."""
        self._start_generation()
        self._target = self._value

    def _start_generation(self) -> int:
        self._generation += 1
        self._running = False
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None
        return self._generation

    def _tick(self, generation: int, start: float, end: float, started_at: float) -> None:
        if generation != self._generation:
            return

        elapsed = self._scheduler.now_ms() - started_at
        progress = min(elapsed / self._duration, 1.0)

        if progress >= 1.0:
            self._running = False
            self._frame = None
            self._write(end)
            return

        self._write(start + (end - start) * self._easing(progress))
        self._frame = self._scheduler.call_later(
            self._frame_ms,
            lambda: self._tick(generation, start, end, started_at),
        )

    def _write(self, value: float) -> None:
        self._value = value
        if self._on_update is not None:
            self._on_update(value)
