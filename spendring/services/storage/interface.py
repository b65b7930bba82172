"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the hosted backend behind a request/response contract
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

Every record is scoped to an owner. Implementations never return another
owner's rows.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from spendring.models.audit import AuditEvent
from spendring.models.expense import Budget, Category, DateRange, Expense


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense, budget and category storage.

    Any storage implementation (Google Sheets, in-memory, etc.)
    must implement these methods.
    """

    # ----- Expenses -----

    @abstractmethod
    async def fetch_expenses(
        self,
        owner_id: str,
        date_range: Optional[DateRange] = None,
    ) -> list[Expense]:
        """
        List an owner's expenses.

        Args:
            owner_id: Owner whose expenses to return
            date_range: Only expenses dated within [start, end) if given

        Returns:
            Expenses ordered by date, newest first
        """
        pass

    @abstractmethod
    async def get_expense(self, owner_id: str, expense_id: UUID) -> Optional[Expense]:
        """
        Retrieve one expense.

        Returns:
            The expense if found and owned by owner_id, None otherwise
        """
        pass

    @abstractmethod
    async def create_expense(self, expense: Expense) -> Expense:
        """
        Insert a new expense.

        Raises:
            DuplicateError: If an expense with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """
        Replace an existing expense in full.

        Raises:
            NotFoundError: If the expense doesn't exist for its owner
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, owner_id: str, expense_id: UUID) -> bool:
        """
        Delete an expense.

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    async def delete_all_expenses(self, owner_id: str) -> int:
        """Delete every expense of an owner. Returns the number deleted."""
        pass

    # ----- Budget -----

    @abstractmethod
    async def fetch_budget(self, owner_id: str) -> Optional[Budget]:
        """Return the owner's budget, or None if none was ever saved."""
        pass

    @abstractmethod
    async def upsert_budget(self, budget: Budget) -> Budget:
        """
        Save the owner's budget, replacing any previous one.

        There is at most one budget per owner.
        """
        pass

    @abstractmethod
    async def delete_budget(self, owner_id: str) -> bool:
        pass

    # ----- Categories -----

    @abstractmethod
    async def list_categories(self, owner_id: str) -> list[Category]:
        """Return the owner's categories sorted by name."""
        pass

    @abstractmethod
    async def create_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    async def delete_category(self, owner_id: str, category_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_all_categories(self, owner_id: str) -> int:
        """Delete every category of an owner. Returns the number deleted."""
        pass


class AccountStorageInterface(ABC):
    """
    Credential records held by the authentication service.

    Only the operations account deletion needs. Sign-in itself is handled
    by the hosted service.
    """

    @abstractmethod
    async def account_exists(self, owner_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_account(self, owner_id: str) -> bool:
        """
        Remove the owner's credential record.

        Raises:
            NotFoundError: If no such account exists
            StorageError: If the backend refuses the deletion
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one account deletion).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
