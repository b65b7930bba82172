"""
Home Screen Controller

Ties the home screen together:
1. Fetches totals through the home flow and keeps the latest result
2. Routes gesture commands (view switches stay here, the rest go out)
3. Drives the hero-number animation
4. Runs the onboarding window

DESIGN DECISION: Fetches are guarded by a request sequence number.
Each refresh takes the next number, and a result is applied only if no
newer refresh has started since. A slow fetch can never overwrite the
result of a faster, more recent one.
"""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog

from spendring.config import GestureSettings, HomeSettings, get_settings
from spendring.gestures import (
    CommandType,
    GestureCommand,
    GestureDisambiguator,
    Scheduler,
    SwipeDirection,
)
from spendring.home.animation import ValueAnimator
from spendring.home.formatting import HeroAmount, format_hero_amount
from spendring.home.onboarding import OnboardingGate, OnboardingPhase
from spendring.models import AggregationResult, Period, SeverityTier, SpendingTotals
from spendring.services.storage import StorageError

if TYPE_CHECKING:
    from spendring.orchestrator import HomeFlow

logger = structlog.get_logger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load data"


class HomeScreenController:
    """
    State holder for one home screen instance.

    Call start() once after construction, then refresh() whenever data may
    have changed. destroy() tears everything down.
    """

    def __init__(
        self,
        home_flow: "HomeFlow",
        owner_id: str,
        scheduler: Scheduler,
        session_count: Optional[int] = None,
        home_settings: Optional[HomeSettings] = None,
        gesture_settings: Optional[GestureSettings] = None,
        on_command: Optional[Callable[[GestureCommand], None]] = None,
        on_display_change: Optional[Callable[[float], None]] = None,
        today_provider: Callable[[], date] = date.today,
    ):
        settings = get_settings()
        home_settings = home_settings or settings.home
        gesture_settings = gesture_settings or settings.gestures

        self._home_flow = home_flow
        self._owner_id = owner_id
        self._on_command = on_command
        self._on_display_change = on_display_change
        self._today_provider = today_provider

        self._period = Period.TODAY
        self._totals: Optional[SpendingTotals] = None
        self._loading = False
        self._error: Optional[str] = None
        self._request_seq = 0
        self._destroyed = False

        self._animator = ValueAnimator(
            scheduler,
            on_update=self._notify_display,
            duration_ms=home_settings.animation_duration_ms,
            frame_ms=home_settings.animation_frame_ms,
        )
        self._onboarding = OnboardingGate(
            scheduler,
            session_count,
            session_limit=home_settings.onboarding_session_limit,
            show_ms=home_settings.onboarding_show_ms,
            transition_ms=home_settings.onboarding_transition_ms,
            on_phase_change=self._on_onboarding_phase,
        )
        self._gestures = GestureDisambiguator(
            scheduler,
            self._handle_command,
            movement_threshold_px=gesture_settings.movement_threshold_px,
            swipe_threshold_px=gesture_settings.swipe_threshold_px,
            double_tap_window_ms=gesture_settings.double_tap_window_ms,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def period(self) -> Period:
        return self._period

    @property
    def totals(self) -> Optional[SpendingTotals]:
        return self._totals

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def onboarding(self) -> OnboardingGate:
        return self._onboarding

    @property
    def gestures(self) -> GestureDisambiguator:
        return self._gestures

    @property
    def is_onboarding(self) -> bool:
        return self._onboarding.is_active

    @property
    def current_result(self) -> Optional[AggregationResult]:
        if self._totals is None:
            return None
        return self._totals.for_period(self._period)

    @property
    def displayed_value(self) -> float:
        """The hero number. Pinned to 0 while onboarding is showing."""
        if self.is_onboarding:
            return 0.0
        return self._animator.value

    @property
    def hero(self) -> HeroAmount:
        return format_hero_amount(Decimal(str(self.displayed_value)))

    @property
    def ring_tier(self) -> SeverityTier:
        result = self.current_result
        return result.tier if result else SeverityTier.NORMAL

    @property
    def ring_progress(self) -> float:
        result = self.current_result
        return result.progress_ratio if result else 0.0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin onboarding if this session qualifies."""
        if self._destroyed:
            return
        active = self._onboarding.start()
        self._gestures.enabled = not active

    async def refresh(self) -> Optional[SpendingTotals]:
        """
        Fetch fresh totals.

        Returns:
            The applied totals, or None if the fetch failed or was
            superseded by a newer refresh.
        """
        if self._destroyed:
            return None

        self._request_seq += 1
        seq = self._request_seq
        self._loading = True

        try:
            totals = await self._home_flow.load_totals(
                self._owner_id,
                self._today_provider(),
            )
        except StorageError as e:
            if seq != self._request_seq:
                logger.debug("stale_fetch_discarded", request_seq=seq, error=str(e))
                return None
            self._loading = False
            self._error = LOAD_ERROR_MESSAGE
            logger.error("home_refresh_failed", owner_id=self._owner_id, error=str(e))
            return None

        if seq != self._request_seq:
            logger.info(
                "stale_fetch_discarded",
                request_seq=seq,
                latest_seq=self._request_seq,
            )
            return None

        self._loading = False
        self._error = None
        self._totals = totals
        if totals.skipped:
            logger.warning(
                "malformed_expenses_skipped",
                owner_id=self._owner_id,
                skipped=totals.skipped,
            )

        if not self.is_onboarding:
            self._animator.jump_to(totals.for_period(self._period).total)
        return totals

    def destroy(self) -> None:
        """Cancel pending taps, animation and timers; ignore in-flight fetches."""
        self._destroyed = True
        self._request_seq += 1
        self._gestures.destroy()
        self._animator.cancel()
        self._onboarding.cancel()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, t: float) -> None:
        self._gestures.pointer_down(x, y, t)

    def pointer_move(self, x: float, y: float, t: float) -> None:
        self._gestures.pointer_move(x, y, t)

    def pointer_up(self, t: float) -> Optional[GestureCommand]:
        return self._gestures.pointer_up(t)

    def pointer_leave(self) -> None:
        self._gestures.pointer_leave()

    def switch_view(self, period: Period) -> bool:
        """
        Show the other period, animating from the displayed value.

        Returns:
            False if nothing changed (same period, onboarding, destroyed)
        """
        if self._destroyed or self.is_onboarding or period == self._period:
            return False

        self._period = period
        logger.debug("view_switched", period=period.value)
        if self._totals is not None:
            self._animator.animate_to(self._totals.for_period(period).total)
        return True

    def _handle_command(self, command: GestureCommand) -> None:
        if command.type == CommandType.SWITCH_VIEW:
            if command.direction == SwipeDirection.LEFT:
                self.switch_view(Period.THIS_MONTH)
            else:
                self.switch_view(Period.TODAY)
            return

        if self._on_command is not None:
            self._on_command(command)

    def _on_onboarding_phase(self, phase: OnboardingPhase) -> None:
        if phase != OnboardingPhase.COMPLETE:
            return
        self._gestures.enabled = True
        result = self.current_result
        self._animator.jump_to(result.total if result else 0)
        self._notify_display(self._animator.value)

    def _notify_display(self, value: float) -> None:
        if self._on_display_change is not None:
            self._on_display_change(0.0 if self.is_onboarding else value)
