"""
Main Orchestrator for SpendRing

This module ties together all the components and defines the
end-to-end flows for:
1. Home totals (fetch this month -> aggregate -> severity)
2. Expenses (validate -> save -> audit, delete, transaction history)
3. Budget (validate -> upsert -> audit)
4. Categories (validate -> create -> audit, delete)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No input persists without passing validation
- Every mutation is audited
- Owners only ever touch their own records

Input problems the owner can fix come back as a ValidationResult next to a
None result. Storage failures propagate as StorageError.
"""

from datetime import date
from decimal import Decimal
from typing import Any, NamedTuple, Optional, Union
from uuid import UUID

import structlog

from spendring.accounts import AccountDeletionService
from spendring.aggregation import compute_totals, group_by_day, month_range, round_currency
from spendring.audit import AuditLogger, create_correlation_id
from spendring.config import get_settings
from spendring.models import (
    Budget,
    Category,
    Expense,
    Recurrence,
    SpendingTotals,
    TransactionGroup,
    ValidationResult,
)
from spendring.services.storage import (
    AccountStorageInterface,
    ExpenseStorageInterface,
    GoogleSheetsAccountStorage,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryAccountStorage,
    InMemoryExpenseStorage,
    NotFoundError,
)
from spendring.validation import ExpenseValidator, parse_amount

logger = structlog.get_logger(__name__)

# Starter categories for owners who have none
DEFAULT_CATEGORIES = [
    ("Food & Drinks", "🍔"),
    ("Shopping", "🛍️"),
    ("Transportation", "🚗"),
    ("Entertainment", "🎬"),
    ("Bills & Utilities", "💡"),
    ("Healthcare", "🏥"),
    ("Education", "📚"),
    ("Travel", "✈️"),
    ("Personal Care", "💄"),
    ("Other", "📦"),
]


def _money(value: Any) -> Optional[Decimal]:
    """Parsed form amount rounded to cents; None for blanks."""
    amount = parse_amount(value)
    return None if amount is None else round_currency(amount)


class HomeFlow:
    """
    Loads the numbers behind the home screen.

    Only this month's expenses are fetched; today always lies inside the
    current month, so both totals come from the same rows.
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        warning_ratio: Optional[float] = None,
    ):
        self._storage = expense_storage
        if warning_ratio is None:
            warning_ratio = get_settings().home.warning_ratio
        self._warning_ratio = warning_ratio

    async def load_totals(self, owner_id: str, as_of: date) -> SpendingTotals:
        expenses = await self._storage.fetch_expenses(owner_id, month_range(as_of))
        budget = await self._storage.fetch_budget(owner_id)
        return compute_totals(
            expenses,
            as_of,
            budget=budget,
            owner_id=owner_id,
            warning_ratio=self._warning_ratio,
        )


class ExpenseFlow:
    """
    Orchestrates creating, editing and deleting expenses.

    Editing is full replacement: every field comes from the form, only the
    id and creation time of the original are kept.
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = expense_storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger

    async def save_expense(
        self,
        owner_id: str,
        item_name: Any,
        amount: Any,
        category_id: Any,
        expense_date: Any,
        recurrence: Union[Recurrence, str] = Recurrence.NONE,
        expense_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> tuple[Optional[Expense], ValidationResult]:
        """
        Validate and persist an expense.

        Args:
            expense_id: Id of the expense to replace; None creates a new one

        Returns:
            (saved_expense, validation). saved_expense is None when
            validation failed.

        Raises:
            NotFoundError: If expense_id doesn't exist for this owner
            StorageError: If the write fails
        """
        correlation_id = create_correlation_id()

        validation = self._validator.validate_expense(
            item_name=item_name,
            amount=amount,
            category_id=category_id,
            expense_date=expense_date,
            today=today,
        )
        if not validation.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    owner_id, "expense", validation, correlation_id,
                )
            return None, validation

        fields = {
            "owner_id": owner_id,
            "item_name": str(item_name).strip(),
            "amount": _money(amount),
            "category_id": category_id,
            "expense_date": expense_date,
            "recurrence": Recurrence(recurrence),
        }

        if expense_id is None:
            saved = await self._storage.create_expense(Expense(**fields))
            created = True
        else:
            existing = await self._storage.get_expense(owner_id, expense_id)
            if existing is None:
                raise NotFoundError(f"Expense not found: {expense_id}")
            replacement = Expense(id=existing.id, created_at=existing.created_at, **fields)
            saved = await self._storage.update_expense(replacement)
            created = False

        if self._audit_logger:
            await self._audit_logger.log_expense_saved(saved, created, correlation_id)

        return saved, validation

    async def delete_expense(self, owner_id: str, expense_id: UUID) -> bool:
        deleted = await self._storage.delete_expense(owner_id, expense_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(owner_id, expense_id)
        return deleted

    async def get_expense(self, owner_id: str, expense_id: UUID) -> Optional[Expense]:
        return await self._storage.get_expense(owner_id, expense_id)

    async def list_transactions(
        self,
        owner_id: str,
        today: Optional[date] = None,
    ) -> list[TransactionGroup]:
        """All of the owner's expenses grouped by day, newest first."""
        expenses = await self._storage.fetch_expenses(owner_id)
        return group_by_day(expenses, today or date.today())


class BudgetFlow:
    """Reads and upserts the owner's spending caps."""

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = expense_storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger

    async def load_budget(self, owner_id: str) -> Optional[Budget]:
        return await self._storage.fetch_budget(owner_id)

    async def save_budget(
        self,
        owner_id: str,
        daily_cap: Any,
        monthly_cap: Any,
    ) -> tuple[Optional[Budget], ValidationResult]:
        """
        Validate and upsert caps. A blank cap is stored as "no limit".

        Returns:
            (saved_budget, validation)
        """
        validation = self._validator.validate_budget(daily_cap, monthly_cap)
        if not validation.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(owner_id, "budget", validation)
            return None, validation

        budget = Budget(
            owner_id=owner_id,
            daily_cap=_money(daily_cap),
            monthly_cap=_money(monthly_cap),
        )
        saved = await self._storage.upsert_budget(budget)

        if self._audit_logger:
            await self._audit_logger.log_budget_saved(saved)
        return saved, validation


class CategoryFlow:
    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = expense_storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger

    async def list_categories(self, owner_id: str) -> list[Category]:
        return await self._storage.list_categories(owner_id)

    async def category_lookup(self, owner_id: str) -> dict[UUID, Category]:
        return {c.id: c for c in await self.list_categories(owner_id)}

    async def add_category(
        self,
        owner_id: str,
        name: Any,
        emoji: Any,
    ) -> tuple[Optional[Category], ValidationResult]:
        validation = self._validator.validate_category(name, emoji)
        if not validation.is_valid:
            return None, validation

        category = await self._storage.create_category(Category(
            owner_id=owner_id,
            name=str(name).strip(),
            emoji=str(emoji).strip(),
        ))
        if self._audit_logger:
            await self._audit_logger.log_category_created(category)
        return category, validation

    async def ensure_default_categories(self, owner_id: str) -> list[Category]:
        """
        Seed the starter categories for an owner who has none.

        Best-effort: a storage failure is logged and whatever was created
        before it is returned.
        """
        created: list[Category] = []
        try:
            if await self._storage.list_categories(owner_id):
                return created
            for name, emoji in DEFAULT_CATEGORIES:
                created.append(await self._storage.create_category(
                    Category(owner_id=owner_id, name=name, emoji=emoji)
                ))
        except Exception:
            logger.exception("default_categories_failed", owner_id=owner_id, created=len(created))
            return created

        logger.info("default_categories_created", owner_id=owner_id, count=len(created))
        return created

    async def remove_category(self, owner_id: str, category_id: UUID) -> bool:
        deleted = await self._storage.delete_category(owner_id, category_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_category_deleted(owner_id, category_id)
        return deleted


class AppComponents(NamedTuple):
    home_flow: HomeFlow
    expense_flow: ExpenseFlow
    budget_flow: BudgetFlow
    category_flow: CategoryFlow
    deletion_service: AccountDeletionService
    sheets_client: Optional[GoogleSheetsClient]


def create_app_components(
    use_storage: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.

    Returns:
        AppComponents. sheets_client is None when running in memory.
    """
    sheets_client = None
    expense_storage: ExpenseStorageInterface
    account_storage: AccountStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            expense_storage = GoogleSheetsExpenseStorage(sheets_client)
            account_storage = GoogleSheetsAccountStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    if sheets_client is None:
        expense_storage = InMemoryExpenseStorage()
        account_storage = InMemoryAccountStorage([get_settings().app.default_owner_id])
        audit_logger = AuditLogger()  # Local-only logging

    validator = ExpenseValidator()

    return AppComponents(
        home_flow=HomeFlow(expense_storage),
        expense_flow=ExpenseFlow(expense_storage, validator, audit_logger),
        budget_flow=BudgetFlow(expense_storage, validator, audit_logger),
        category_flow=CategoryFlow(expense_storage, validator, audit_logger),
        deletion_service=AccountDeletionService(expense_storage, account_storage, audit_logger),
        sheets_client=sheets_client,
    )
