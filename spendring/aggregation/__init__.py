"""Spending aggregation package."""

from spendring.aggregation.engine import (
    WARNING_RATIO,
    aggregate_period,
    coerce_expense,
    compute_totals,
    month_range,
    period_range,
    progress_ratio,
    round_currency,
    severity_for,
    today_range,
)
from spendring.aggregation.grouping import day_label, group_by_day

__all__ = [
    "WARNING_RATIO",
    "aggregate_period",
    "coerce_expense",
    "compute_totals",
    "day_label",
    "group_by_day",
    "month_range",
    "period_range",
    "progress_ratio",
    "round_currency",
    "severity_for",
    "today_range",
]
