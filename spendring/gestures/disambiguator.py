"""
Gesture Disambiguator

Turns raw pointer events on the home screen surface into exactly one
logical command per down-up sequence:

    single tap        -> open the expense editor (after the double-tap window)
    double tap        -> open the budget editor
    horizontal swipe  -> switch view (left = This Month, right = Today)
    upward swipe      -> open the transaction panel
    anything else     -> nothing

DESIGN DECISION: The tap/double-tap race is an explicit state machine with
one cancellable scheduled action, not a bag of timer references. The
pending single tap is cleared before it fires, so a command is emitted at
most once, and a tap arriving after the window is a fresh single tap.
"""

from collections.abc import Callable
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict

from spendring.gestures.scheduler import ScheduledAction, Scheduler

logger = structlog.get_logger(__name__)


MOVEMENT_THRESHOLD_PX = 10.0
SWIPE_THRESHOLD_PX = 50.0
DOUBLE_TAP_WINDOW_MS = 300.0

# Screen coordinates grow downward, so for an upward swipe
# start_y - end_y is positive.
UPWARD_SIGN = 1

# The vertical swipe that opens the transaction panel. The opposite
# direction is ignored.
TRANSACTION_PANEL_SWIPE = "up"


class CommandType(str, Enum):
    """Logical commands the home screen understands."""
    OPEN_EXPENSE_EDITOR = "open_expense_editor"
    OPEN_BUDGET_EDITOR = "open_budget_editor"
    SWITCH_VIEW = "switch_view"
    OPEN_TRANSACTION_PANEL = "open_transaction_panel"


class SwipeDirection(str, Enum):
    """Direction the finger travelled."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


class GesturePhase(str, Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    MOVED = "moved"


class GestureCommand(BaseModel):
    """A classified gesture. `direction` is only set for SWITCH_VIEW."""
    model_config = ConfigDict(frozen=True)

    type: CommandType
    direction: Optional[SwipeDirection] = None

    @classmethod
    def open_expense_editor(cls) -> "GestureCommand":
        return cls(type=CommandType.OPEN_EXPENSE_EDITOR)

    @classmethod
    def open_budget_editor(cls) -> "GestureCommand":
        return cls(type=CommandType.OPEN_BUDGET_EDITOR)

    @classmethod
    def switch_view(cls, direction: SwipeDirection) -> "GestureCommand":
        return cls(type=CommandType.SWITCH_VIEW, direction=direction)

    @classmethod
    def open_transaction_panel(cls) -> "GestureCommand":
        return cls(type=CommandType.OPEN_TRANSACTION_PANEL)


class GestureSession(BaseModel):
    """Ephemeral state of one pointer-down-to-up interaction."""

    start_x: float
    start_y: float
    start_t: float
    last_x: float
    last_y: float
    moved: bool = False

    @property
    def horizontal(self) -> float:
        """Positive when the finger moved right-to-left."""
        return self.start_x - self.last_x

    @property
    def vertical(self) -> float:
        """start_y - last_y; see UPWARD_SIGN."""
        return self.start_y - self.last_y


def vertical_direction(vertical: float) -> SwipeDirection:
    return SwipeDirection.UP if vertical * UPWARD_SIGN > 0 else SwipeDirection.DOWN


class GestureDisambiguator:
    """
    Classifies pointer sequences on one interaction surface.

    Commands are delivered through `on_command`. Swipes and double taps are
    delivered synchronously from pointer_up; the single tap is delivered
    later by the scheduler once the double-tap window has passed.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_command: Callable[[GestureCommand], None],
        movement_threshold_px: float = MOVEMENT_THRESHOLD_PX,
        swipe_threshold_px: float = SWIPE_THRESHOLD_PX,
        double_tap_window_ms: float = DOUBLE_TAP_WINDOW_MS,
        enabled: bool = True,
    ):
        self._scheduler = scheduler
        self._on_command = on_command
        self._movement_threshold = movement_threshold_px
        self._swipe_threshold = swipe_threshold_px
        self._double_tap_window = double_tap_window_ms

        self._enabled = enabled
        self._destroyed = False
        self._session: Optional[GestureSession] = None
        self._last_tap_t: Optional[float] = None
        self._pending_tap: Optional[ScheduledAction] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> GesturePhase:
        if self._session is None:
            return GesturePhase.IDLE
        return GesturePhase.MOVED if self._session.moved else GesturePhase.PRESSED

    @property
    def session(self) -> Optional[GestureSession]:
        return self._session

    @property
    def has_pending_tap(self) -> bool:
        return self._pending_tap is not None and self._pending_tap.pending

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if not value:
            self._cancel_pending_tap()
            self._last_tap_t = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, t: float) -> None:
        if self._destroyed:
            return
        self._session = GestureSession(
            start_x=x,
            start_y=y,
            start_t=t,
            last_x=x,
            last_y=y,
        )

    def pointer_move(self, x: float, y: float, t: float) -> None:
        session = self._session
        if self._destroyed or session is None:
            return

        session.last_x = x
        session.last_y = y
        if (
            abs(x - session.start_x) > self._movement_threshold
            or abs(y - session.start_y) > self._movement_threshold
        ):
            session.moved = True

    def pointer_up(self, t: float) -> Optional[GestureCommand]:
        """
        Finish the current sequence.

        Returns:
            The command emitted synchronously, if any. A single tap is
            deferred and therefore returns None here.
        """
        session = self._session
        self._session = None
        if self._destroyed or session is None or not self._enabled:
            return None

        if session.moved:
            command = self._classify_swipe(session)
        else:
            command = self._handle_tap(t)

        if command is not None:
            self._emit(command)
        return command

    def pointer_leave(self) -> None:
        """Pointer left the surface mid-sequence: abort without a command."""
        self._session = None

    def destroy(self) -> None:
        """Tear down: drop any pending single tap and ignore further events."""
        self._destroyed = True
        self._session = None
        self._cancel_pending_tap()
        self._last_tap_t = None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify_swipe(self, session: GestureSession) -> Optional[GestureCommand]:
        horizontal = session.horizontal
        vertical = session.vertical

        if abs(horizontal) > abs(vertical):
            if abs(horizontal) <= self._swipe_threshold:
                return None
            if horizontal > 0:
                return GestureCommand.switch_view(SwipeDirection.LEFT)
            return GestureCommand.switch_view(SwipeDirection.RIGHT)

        if abs(vertical) <= self._swipe_threshold:
            return None
        if vertical_direction(vertical).value == TRANSACTION_PANEL_SWIPE:
            return GestureCommand.open_transaction_panel()
        return None

    def _handle_tap(self, t: float) -> Optional[GestureCommand]:
        last = self._last_tap_t
        if last is not None and t - last < self._double_tap_window:
            self._cancel_pending_tap()
            # A third tap inside the window starts a new sequence
            self._last_tap_t = None
            return GestureCommand.open_budget_editor()

        self._cancel_pending_tap()
        self._last_tap_t = t
        self._pending_tap = self._scheduler.call_later(
            self._double_tap_window,
            self._fire_single_tap,
        )
        return None

    def _fire_single_tap(self) -> None:
        self._pending_tap = None
        self._last_tap_t = None
        if self._destroyed or not self._enabled:
            return
        self._emit(GestureCommand.open_expense_editor())

    def _cancel_pending_tap(self) -> None:
        if self._pending_tap is not None:
            self._pending_tap.cancel()
            self._pending_tap = None

    def _emit(self, command: GestureCommand) -> None:
        logger.debug(
            "gesture_command",
            command=command.type.value,
            direction=command.direction.value if command.direction else None,
        )
        self._on_command(command)
