"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. The owner can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each table lives in its own worksheet, created with a header row on first
use. Rows that fail to parse are skipped when reading so one bad row never
hides the rest of an owner's data.
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spendring.config import GoogleSheetsSettings, get_settings
from spendring.models.audit import AuditEvent, AuditEventType, AuditSeverity
from spendring.models.expense import Budget, Category, DateRange, Expense, utcnow
from spendring.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger(__name__)


# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "owner_id",
    "created_at",
    "updated_at",
    "item_name",
    "amount",
    "expense_date",
    "category_id",
    "recurrence",
]

# One row per owner
BUDGET_COLUMNS = [
    "owner_id",
    "daily_cap",
    "monthly_cap",
    "updated_at",
]

CATEGORY_COLUMNS = [
    "id",
    "owner_id",
    "name",
    "emoji",
]

ACCOUNT_COLUMNS = [
    "owner_id",
    "email",
    "created_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _row_to_dict(row: list, columns: list[str]) -> dict[str, str]:
    """Map a row onto column names. Missing trailing cells become ''."""
    padded = list(row) + [""] * (len(columns) - len(row))
    return dict(zip(columns, padded))


def _blank_to_none(record: dict[str, Any], *fields: str) -> dict[str, Any]:
    for name in fields:
        if record.get(name) == "":
            record[name] = None
    return record


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.budgets_sheet_name, BUDGET_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def _replace_row(sheet: gspread.Worksheet, index: int, row: list) -> None:
    sheet.update(range_name=f"A{index}", values=[row], value_input_option="RAW")


def _delete_matching(sheet: gspread.Worksheet, predicate) -> int:
    """Delete data rows matching predicate, bottom-up so indices stay valid."""
    all_rows = sheet.get_all_values()
    matches = [
        idx for idx, row in enumerate(all_rows[1:], start=2)  # row 1 is header
        if row and predicate(row)
    ]
    for idx in reversed(matches):
        sheet.delete_rows(idx)
    return len(matches)


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense, budget and category storage.

    Expenses are stored one per row. Budgets are one row per owner.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # ----- Row conversion -----

    def _expense_to_row(self, expense: Expense) -> list:
        """Convert an Expense to a spreadsheet row."""
        return [
            str(expense.id),
            expense.owner_id,
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
            expense.item_name,
            str(expense.amount),
            expense.expense_date.isoformat(),
            str(expense.category_id) if expense.category_id else "",
            expense.recurrence.value,
        ]

    def _row_to_expense(self, row: list) -> Expense:
        """Convert a spreadsheet row to an Expense. Raises ValidationError if malformed."""
        record = _blank_to_none(_row_to_dict(row, EXPENSE_COLUMNS), "category_id")
        if not record["recurrence"]:
            record["recurrence"] = "none"
        return Expense.model_validate(record)

    def _budget_to_row(self, budget: Budget) -> list:
        return [
            budget.owner_id,
            str(budget.daily_cap) if budget.daily_cap is not None else "",
            str(budget.monthly_cap) if budget.monthly_cap is not None else "",
            budget.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list) -> Budget:
        record = _blank_to_none(
            _row_to_dict(row, BUDGET_COLUMNS),
            "daily_cap",
            "monthly_cap",
            "updated_at",
        )
        if record["updated_at"] is None:
            del record["updated_at"]
        return Budget.model_validate(record)

    def _category_to_row(self, category: Category) -> list:
        return [
            str(category.id),
            category.owner_id,
            category.name,
            category.emoji,
        ]

    def _row_to_category(self, row: list) -> Category:
        return Category.model_validate(_row_to_dict(row, CATEGORY_COLUMNS))

    # ----- Expenses -----

    async def fetch_expenses(
        self,
        owner_id: str,
        date_range: Optional[DateRange] = None,
    ) -> list[Expense]:
        """List an owner's expenses, newest first."""
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

        expenses = []
        skipped = 0
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if len(row) < 2 or row[1] != owner_id:
                continue

            try:
                expense = self._row_to_expense(row)
            except ValidationError:
                skipped += 1  # Skip malformed rows
                continue

            if date_range and not date_range.contains(expense.expense_date):
                continue
            expenses.append(expense)

        if skipped:
            logger.warning("malformed_rows_skipped", sheet="expenses", owner_id=owner_id, count=skipped)

        # Sort by date descending (newest first)
        expenses.sort(key=lambda e: (e.expense_date, e.created_at), reverse=True)
        return expenses

    async def get_expense(self, owner_id: str, expense_id: UUID) -> Optional[Expense]:
        """Retrieve an expense by its ID."""
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}")

        for row in all_rows:
            if row and row[0] == str(expense_id) and len(row) > 1 and row[1] == owner_id:
                try:
                    return self._row_to_expense(row)
                except ValidationError:
                    return None
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def create_expense(self, expense: Expense) -> Expense:
        """Append an expense to Google Sheets."""
        try:
            sheet = self._client.get_expenses_sheet()
            existing_ids = sheet.col_values(1)[1:]
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

        if str(expense.id) in existing_ids:
            raise DuplicateError(f"Expense already exists: {expense.id}")

        try:
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")
        return expense

    async def update_expense(self, expense: Expense) -> Expense:
        """Replace an existing expense row."""
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()

            # Find the row with this expense ID
            for idx, row in enumerate(all_rows[1:], start=2):  # Start from 2 (row 1 is header)
                if row and row[0] == str(expense.id) and len(row) > 1 and row[1] == expense.owner_id:
                    updated = expense.model_copy(update={"updated_at": utcnow()})
                    _replace_row(sheet, idx, self._expense_to_row(updated))
                    return updated

            raise NotFoundError(f"Expense not found: {expense.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def delete_expense(self, owner_id: str, expense_id: UUID) -> bool:
        """Delete an expense by ID."""
        try:
            sheet = self._client.get_expenses_sheet()
            deleted = _delete_matching(
                sheet,
                lambda row: row[0] == str(expense_id) and len(row) > 1 and row[1] == owner_id,
            )
            return deleted > 0
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")

    async def delete_all_expenses(self, owner_id: str) -> int:
        try:
            sheet = self._client.get_expenses_sheet()
            return _delete_matching(sheet, lambda row: len(row) > 1 and row[1] == owner_id)
        except Exception as e:
            raise StorageError(f"Failed to delete expenses: {e}")

    # ----- Budget -----

    async def fetch_budget(self, owner_id: str) -> Optional[Budget]:
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get budget: {e}")

        for row in all_rows:
            if row and row[0] == owner_id:
                try:
                    return self._row_to_budget(row)
                except ValidationError:
                    logger.warning("malformed_rows_skipped", sheet="budgets", owner_id=owner_id, count=1)
                    return None
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def upsert_budget(self, budget: Budget) -> Budget:
        """Insert or replace the owner's single budget row."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()
            row = self._budget_to_row(budget)

            for idx, existing in enumerate(all_rows[1:], start=2):
                if existing and existing[0] == budget.owner_id:
                    _replace_row(sheet, idx, row)
                    return budget

            sheet.append_row(row, value_input_option="RAW")
            return budget
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def delete_budget(self, owner_id: str) -> bool:
        try:
            sheet = self._client.get_budgets_sheet()
            return _delete_matching(sheet, lambda row: row[0] == owner_id) > 0
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")

    # ----- Categories -----

    async def list_categories(self, owner_id: str) -> list[Category]:
        try:
            sheet = self._client.get_categories_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

        categories = []
        for row in all_rows:
            if not row or len(row) < 2 or row[1] != owner_id:
                continue
            try:
                categories.append(self._row_to_category(row))
            except ValidationError:
                continue  # Skip malformed rows

        categories.sort(key=lambda c: c.name.lower())
        return categories

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_category(self, category: Category) -> Category:
        try:
            sheet = self._client.get_categories_sheet()
            sheet.append_row(self._category_to_row(category), value_input_option="RAW")
            return category
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    async def delete_category(self, owner_id: str, category_id: UUID) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            deleted = _delete_matching(
                sheet,
                lambda row: row[0] == str(category_id) and len(row) > 1 and row[1] == owner_id,
            )
            return deleted > 0
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")

    async def delete_all_categories(self, owner_id: str) -> int:
        try:
            sheet = self._client.get_categories_sheet()
            return _delete_matching(sheet, lambda row: len(row) > 1 and row[1] == owner_id)
        except Exception as e:
            raise StorageError(f"Failed to delete categories: {e}")


class GoogleSheetsAccountStorage(AccountStorageInterface):
    """Credential records kept in the Accounts worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def account_exists(self, owner_id: str) -> bool:
        try:
            sheet = self._client.get_accounts_sheet()
            owner_ids = sheet.col_values(1)[1:]
        except Exception as e:
            raise StorageError(f"Failed to look up account: {e}")
        return owner_id in owner_ids

    async def delete_account(self, owner_id: str) -> bool:
        try:
            sheet = self._client.get_accounts_sheet()
            deleted = _delete_matching(sheet, lambda row: row[0] == owner_id)
        except Exception as e:
            raise StorageError(f"Failed to delete account: {e}")

        if not deleted:
            raise NotFoundError(f"Account not found: {owner_id}")
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        record = _row_to_dict(row, AUDIT_COLUMNS)
        details_json = record["details_json"]

        return AuditEvent(
            event_id=UUID(record["event_id"]),
            timestamp=datetime.fromisoformat(record["timestamp"]),
            event_type=AuditEventType(record["event_type"]),
            severity=AuditSeverity(record["severity"]),
            owner_id=record["owner_id"] or None,
            entity_type=record["entity_type"] or None,
            entity_id=record["entity_id"] or None,
            correlation_id=UUID(record["correlation_id"]) if record["correlation_id"] else None,
            description=record["description"],
            details=json.loads(details_json) if details_json else {},
            error_message=record["error_message"] or None,
            is_user_action=record["is_user_action"].lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        all_rows = sheet.get_all_values()[1:]

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
