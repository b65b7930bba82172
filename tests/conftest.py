"""
Shared fixtures.

ManualScheduler is a fake clock: nothing runs until the test advances
time, so timer races can be replayed exactly.
"""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import pytest

from spendring.config import AppSettings, GestureSettings, HomeSettings
from spendring.gestures import ScheduledAction, Scheduler
from spendring.models import Expense
from spendring.services.storage import (
    InMemoryAccountStorage,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
)


class ManualScheduler(Scheduler):
    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._queue: list[tuple[float, int, ScheduledAction]] = []
        self._seq = 0

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledAction:
        action = ScheduledAction(callback)
        self._seq += 1
        self._queue.append((self._now + max(delay_ms, 0.0), self._seq, action))
        return action

    @property
    def pending(self) -> int:
        return sum(1 for _, _, action in self._queue if action.pending)

    def advance(self, ms: float) -> None:
        """Move the clock forward, running due callbacks in time order."""
        target = self._now + ms
        while True:
            due = [entry for entry in self._queue if entry[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._queue.remove(entry)
            self._now = max(self._now, entry[0])
            entry[2].run()
        self._now = target


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def expense_storage() -> InMemoryExpenseStorage:
    return InMemoryExpenseStorage()


@pytest.fixture
def account_storage() -> InMemoryAccountStorage:
    return InMemoryAccountStorage(["owner-1"])


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def home_settings() -> HomeSettings:
    return HomeSettings()


@pytest.fixture
def gesture_settings() -> GestureSettings:
    return GestureSettings()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings()


def make_expense(
    amount: str,
    day: date,
    owner_id: str = "owner-1",
    item_name: str = "Coffee",
    category_id: Optional[UUID] = None,
) -> Expense:
    return Expense(
        owner_id=owner_id,
        item_name=item_name,
        amount=Decimal(amount),
        expense_date=day,
        category_id=category_id,
    )


@pytest.fixture
def expense_factory() -> Callable[..., Expense]:
    return make_expense
