"""Gesture handling package."""

from spendring.gestures.disambiguator import (
    DOUBLE_TAP_WINDOW_MS,
    MOVEMENT_THRESHOLD_PX,
    SWIPE_THRESHOLD_PX,
    CommandType,
    GestureCommand,
    GestureDisambiguator,
    GesturePhase,
    GestureSession,
    SwipeDirection,
)
from spendring.gestures.scheduler import (
    AsyncioScheduler,
    ScheduledAction,
    Scheduler,
)

__all__ = [
    "DOUBLE_TAP_WINDOW_MS",
    "MOVEMENT_THRESHOLD_PX",
    "SWIPE_THRESHOLD_PX",
    "AsyncioScheduler",
    "CommandType",
    "GestureCommand",
    "GestureDisambiguator",
    "GesturePhase",
    "GestureSession",
    "ScheduledAction",
    "Scheduler",
    "SwipeDirection",
]
