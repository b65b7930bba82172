"""
Aggregation Engine

Computes the "Today" and "This Month" totals shown on the home screen
and compares each against its cap.

DESIGN DECISION: This module is pure. It never fetches, never logs and
never mutates its input. The same records and the same reference date
always give the same totals, which keeps the hero number testable.

Periods are half-open ranges: [start, end). An expense dated on the
first day of the next month can never leak into this month's total.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError

from spendring.models.expense import (
    AggregationResult,
    Budget,
    DateRange,
    Expense,
    Period,
    SeverityTier,
    SpendingTotals,
)

__all__ = [
    "WARNING_RATIO",
    "round_currency",
    "today_range",
    "month_range",
    "period_range",
    "progress_ratio",
    "severity_for",
    "coerce_expense",
    "aggregate_period",
    "compute_totals",
]

WARNING_RATIO = Decimal("0.80")

_CENT = Decimal("0.01")
_ZERO = Decimal("0")
_ONE = Decimal("1")

ExpenseRecord = Union[Expense, Mapping[str, Any]]


def _to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    return Decimal(str(value))


def round_currency(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round to cents, half away from zero."""
    return _to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _as_day(as_of: Union[date, datetime]) -> date:
    if isinstance(as_of, datetime):
        return as_of.date()
    return as_of


def today_range(as_of: Union[date, datetime]) -> DateRange:
    day = _as_day(as_of)
    return DateRange(start=day, end=day + timedelta(days=1))


def month_range(as_of: Union[date, datetime]) -> DateRange:
    day = _as_day(as_of)
    start = day.replace(day=1)
    if start.month == 12:
        end = date(start.year + 1, 1, 1)
    else:
        end = date(start.year, start.month + 1, 1)
    return DateRange(start=start, end=end)


def period_range(period: Period, as_of: Union[date, datetime]) -> DateRange:
    """Calendar range covered by a period for the given reference date."""
    if period == Period.TODAY:
        return today_range(as_of)
    return month_range(as_of)


def progress_ratio(total: Decimal, cap: Optional[Decimal]) -> Decimal:
    """Spend-to-cap ratio capped at 1. Zero when there is no cap."""
    if cap is None or cap <= 0:
        return _ZERO
    return min(total / cap, _ONE)


def severity_for(
    total: Decimal,
    cap: Optional[Decimal],
    warning_ratio: Union[Decimal, float] = WARNING_RATIO,
) -> SeverityTier:
    """
    Derive the severity tier for a total against a cap.

    normal  - no cap, or below the warning ratio
    warning - at or above the warning ratio but below the cap
    over    - at or above the cap
    """
    if cap is None or cap <= 0:
        return SeverityTier.NORMAL

    ratio = total / cap
    if ratio >= _ONE:
        return SeverityTier.OVER
    if ratio >= _to_decimal(warning_ratio):
        return SeverityTier.WARNING
    return SeverityTier.NORMAL


def _is_well_formed(expense: Expense) -> bool:
    amount = expense.amount
    day = expense.expense_date
    return (
        isinstance(amount, Decimal)
        and amount.is_finite()
        and amount >= 0
        and isinstance(day, date)
        and not isinstance(day, datetime)
    )


def coerce_expense(record: ExpenseRecord) -> Optional[Expense]:
    """
    Turn a record into a validated Expense, or None if it is malformed.

    Accepts Expense instances and raw mappings as returned by the backend.
    """
    if isinstance(record, Expense):
        candidate = record
    else:
        try:
            candidate = Expense.model_validate(record)
        except ValidationError:
            return None

    if not _is_well_formed(candidate):
        return None
    return candidate


def aggregate_period(
    expenses: Iterable[Expense],
    period: Period,
    as_of: Union[date, datetime],
    cap: Optional[Decimal] = None,
    warning_ratio: Union[Decimal, float] = WARNING_RATIO,
) -> AggregationResult:
    """Sum the expenses falling inside one period and grade against the cap."""
    window = period_range(period, as_of)

    exact_sum = _ZERO
    count = 0
    for expense in expenses:
        if window.contains(expense.expense_date):
            exact_sum += expense.amount
            count += 1

    total = round_currency(exact_sum)
    if cap is not None and cap <= 0:
        cap = None

    return AggregationResult(
        period=period,
        total=total,
        cap=cap,
        progress_ratio=float(progress_ratio(total, cap)),
        tier=severity_for(total, cap, warning_ratio),
        expense_count=count,
    )


def compute_totals(
    expenses: Iterable[ExpenseRecord],
    as_of: Union[date, datetime],
    budget: Optional[Budget] = None,
    owner_id: Optional[str] = None,
    warning_ratio: Union[Decimal, float] = WARNING_RATIO,
) -> SpendingTotals:
    """
    Compute both home screen totals for a reference date.

    Args:
        expenses: Expense records (validated models or raw rows)
        as_of: Reference date; "today" is the calendar day containing it
        budget: Owner's caps, if any
        owner_id: When given, records of other owners are ignored
        warning_ratio: Ratio at which the tier becomes "warning"

    Returns:
        SpendingTotals with both periods and the count of malformed
        records that were excluded.
    """
    day = _as_day(as_of)

    valid: list[Expense] = []
    skipped = 0
    for record in expenses:
        expense = coerce_expense(record)
        if expense is None:
            skipped += 1
            continue
        if owner_id is not None and expense.owner_id != owner_id:
            continue
        valid.append(expense)

    daily_cap = budget.cap_for(Period.TODAY) if budget else None
    monthly_cap = budget.cap_for(Period.THIS_MONTH) if budget else None

    return SpendingTotals(
        as_of=day,
        today=aggregate_period(valid, Period.TODAY, day, daily_cap, warning_ratio),
        month=aggregate_period(valid, Period.THIS_MONTH, day, monthly_cap, warning_ratio),
        skipped=skipped,
    )
