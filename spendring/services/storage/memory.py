"""
In-memory storage.

Used by the test suite and as the fallback backend when Google Sheets is
not configured. Data lives only as long as the process.
"""

from typing import Optional
from uuid import UUID

from spendring.models.audit import AuditEvent
from spendring.models.expense import Budget, Category, DateRange, Expense, utcnow
from spendring.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    def __init__(self):
        self._expenses: dict[UUID, Expense] = {}
        self._budgets: dict[str, Budget] = {}
        self._categories: dict[UUID, Category] = {}

    async def fetch_expenses(
        self,
        owner_id: str,
        date_range: Optional[DateRange] = None,
    ) -> list[Expense]:
        expenses = [
            e for e in self._expenses.values()
            if e.owner_id == owner_id
            and (date_range is None or date_range.contains(e.expense_date))
        ]
        expenses.sort(key=lambda e: (e.expense_date, e.created_at), reverse=True)
        return expenses

    async def get_expense(self, owner_id: str, expense_id: UUID) -> Optional[Expense]:
        expense = self._expenses.get(expense_id)
        if expense is None or expense.owner_id != owner_id:
            return None
        return expense

    async def create_expense(self, expense: Expense) -> Expense:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense
        return expense

    async def update_expense(self, expense: Expense) -> Expense:
        existing = self._expenses.get(expense.id)
        if existing is None or existing.owner_id != expense.owner_id:
            raise NotFoundError(f"Expense not found: {expense.id}")
        updated = expense.model_copy(update={"updated_at": utcnow()})
        self._expenses[expense.id] = updated
        return updated

    async def delete_expense(self, owner_id: str, expense_id: UUID) -> bool:
        if await self.get_expense(owner_id, expense_id) is None:
            return False
        del self._expenses[expense_id]
        return True

    async def delete_all_expenses(self, owner_id: str) -> int:
        doomed = [k for k, e in self._expenses.items() if e.owner_id == owner_id]
        for key in doomed:
            del self._expenses[key]
        return len(doomed)

    async def fetch_budget(self, owner_id: str) -> Optional[Budget]:
        return self._budgets.get(owner_id)

    async def upsert_budget(self, budget: Budget) -> Budget:
        self._budgets[budget.owner_id] = budget
        return budget

    async def delete_budget(self, owner_id: str) -> bool:
        return self._budgets.pop(owner_id, None) is not None

    async def list_categories(self, owner_id: str) -> list[Category]:
        categories = [c for c in self._categories.values() if c.owner_id == owner_id]
        categories.sort(key=lambda c: c.name.lower())
        return categories

    async def create_category(self, category: Category) -> Category:
        if category.id in self._categories:
            raise DuplicateError(f"Category already exists: {category.id}")
        self._categories[category.id] = category
        return category

    async def delete_category(self, owner_id: str, category_id: UUID) -> bool:
        category = self._categories.get(category_id)
        if category is None or category.owner_id != owner_id:
            return False
        del self._categories[category_id]
        return True

    async def delete_all_categories(self, owner_id: str) -> int:
        doomed = [k for k, c in self._categories.items() if c.owner_id == owner_id]
        for key in doomed:
            del self._categories[key]
        return len(doomed)


class InMemoryAccountStorage(AccountStorageInterface):
    def __init__(self, owner_ids: Optional[list[str]] = None):
        self._accounts: set[str] = set(owner_ids or [])

    def add_account(self, owner_id: str) -> None:
        self._accounts.add(owner_id)

    async def account_exists(self, owner_id: str) -> bool:
        return owner_id in self._accounts

    async def delete_account(self, owner_id: str) -> bool:
        if owner_id not in self._accounts:
            raise NotFoundError(f"Account not found: {owner_id}")
        self._accounts.remove(owner_id)
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
