"""
Onboarding window shown on the first few app sessions.

The session count is read once at startup by the caller and injected here,
so the gate itself never touches persistent storage.
"""

from collections.abc import Callable
from enum import Enum
from typing import Optional

import structlog

from spendring.gestures.scheduler import ScheduledAction, Scheduler

__all__ = ["OnboardingPhase", "OnboardingGate", "should_onboard"]

logger = structlog.get_logger(__name__)


class OnboardingPhase(str, Enum):
    SHOWING = "showing"
    TRANSITIONING = "transitioning"
    COMPLETE = "complete"


def should_onboard(session_count: Optional[int], session_limit: int) -> bool:
    """True for sessions 1..session_limit. An unknown count means no onboarding."""
    if session_count is None:
        return False
    return 0 < session_count <= session_limit


class OnboardingGate:
    """
    Runs the showing -> transitioning -> complete sequence.

    Onboarding is active until the complete phase is reached.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        session_count: Optional[int],
        session_limit: int = 3,
        show_ms: float = 2500.0,
        transition_ms: float = 1000.0,
        on_phase_change: Optional[Callable[[OnboardingPhase], None]] = None,
    ):
        self._scheduler = scheduler
        self._session_count = session_count
        self._session_limit = session_limit
        self._show_ms = show_ms
        self._transition_ms = transition_ms
        self._on_phase_change = on_phase_change

        self._phase = OnboardingPhase.COMPLETE
        self._timer: Optional[ScheduledAction] = None
        self._started = False

    @property
    def phase(self) -> OnboardingPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase != OnboardingPhase.COMPLETE

    @property
    def session_count(self) -> Optional[int]:
        return self._session_count

    def start(self) -> bool:
        """
        Begin onboarding if this session qualifies.

        Returns:
            True if onboarding started
        """
        if self._started:
            return self.is_active
        self._started = True

        if not should_onboard(self._session_count, self._session_limit):
            logger.debug("onboarding_skipped", session_count=self._session_count)
            return False

        logger.info("onboarding_started", session_count=self._session_count)
        self._set_phase(OnboardingPhase.SHOWING)
        self._timer = self._scheduler.call_later(self._show_ms, self._begin_transition)
        return True

    def cancel(self) -> None:
        """Drop pending timers. The phase stays where it was."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _begin_transition(self) -> None:
        self._set_phase(OnboardingPhase.TRANSITIONING)
        self._timer = self._scheduler.call_later(self._transition_ms, self._complete)

    def _complete(self) -> None:
        self._timer = None
        logger.info("onboarding_completed", session_count=self._session_count)
        self._set_phase(OnboardingPhase.COMPLETE)

    def _set_phase(self, phase: OnboardingPhase) -> None:
        self._phase = phase
        if self._on_phase_change is not None:
            self._on_phase_change(phase)
