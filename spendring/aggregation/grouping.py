"""Grouping of expenses by calendar day for the transaction panel."""

from collections.abc import Iterable
from datetime import date, timedelta

from spendring.aggregation.engine import round_currency
from spendring.models.expense import Expense, TransactionGroup

__all__ = ["day_label", "group_by_day"]


def day_label(day: date, today: date) -> str:
    """'Today', 'Yesterday', or e.g. 'Friday, March 15' (year added when it differs)."""
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"

    label = f"{day:%A, %B} {day.day}"
    if day.year != today.year:
        label = f"{label}, {day.year}"
    return label


def group_by_day(expenses: Iterable[Expense], today: date) -> list[TransactionGroup]:
    """
    Group expenses by day, newest day first.

    Within a day the most recently recorded expense comes first.
    """
    buckets: dict[date, list[Expense]] = {}
    for expense in expenses:
        buckets.setdefault(expense.expense_date, []).append(expense)

    groups = []
    for day in sorted(buckets, reverse=True):
        items = sorted(buckets[day], key=lambda e: e.created_at, reverse=True)
        groups.append(TransactionGroup(
            day=day,
            label=day_label(day, today),
            expenses=items,
            total=round_currency(sum((e.amount for e in items), start=round_currency(0))),
        ))
    return groups
