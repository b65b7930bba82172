"""Home screen package: animation, onboarding, controller and formatting."""

from spendring.home.animation import ValueAnimator, ease_out_quart
from spendring.home.controller import LOAD_ERROR_MESSAGE, HomeScreenController
from spendring.home.formatting import HeroAmount, format_currency, format_hero_amount
from spendring.home.onboarding import OnboardingGate, OnboardingPhase, should_onboard

__all__ = [
    "LOAD_ERROR_MESSAGE",
    "HeroAmount",
    "HomeScreenController",
    "OnboardingGate",
    "OnboardingPhase",
    "ValueAnimator",
    "ease_out_quart",
    "format_currency",
    "format_hero_amount",
    "should_onboard",
]
