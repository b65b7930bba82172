"""Formatting helpers for the hero number and money amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict

from spendring.aggregation.engine import round_currency

__all__ = ["HeroAmount", "format_hero_amount", "format_currency"]

Number = Union[Decimal, int, float, str]

CURRENCY_SYMBOL = "$"


class HeroAmount(BaseModel):
    """The hero number split for display: symbol and whole dollars."""
    model_config = ConfigDict(frozen=True)

    symbol: str = CURRENCY_SYMBOL
    dollars: str = "0"

    def __str__(self) -> str:
        return f"{self.symbol}{self.dollars}"


def format_hero_amount(value: Number) -> HeroAmount:
    """
    Render a value as whole dollars with thousands separators.

    The value is rounded to cents first, then to the dollar. Negative
    values are not meaningful on the home screen and render as $0.
    """
    cents = round_currency(value)
    if cents < 0:
        return HeroAmount()
    dollars = cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return HeroAmount(dollars=f"{dollars:,.0f}")


def format_currency(value: Number) -> str:
    amount = round_currency(value)
    if amount < 0:
        return f"-{CURRENCY_SYMBOL}{-amount:,.2f}"
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"
