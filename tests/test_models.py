"""
Tests for SpendRing

Test strategy:
1. Unit tests for individual components (models, engine, state machines)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests
"""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from spendring.models import (
    AggregationResult,
    Budget,
    Category,
    DateRange,
    Expense,
    Period,
    Recurrence,
    SeverityTier,
    ValidationIssue,
    ValidationResult,
)
from spendring.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(
            owner_id="owner-1",
            item_name="Lunch",
            amount=Decimal("12.50"),
            expense_date=date(2024, 3, 15),
        )
        assert expense.item_name == "Lunch"
        assert expense.recurrence == Recurrence.NONE
        assert expense.category_id is None
        assert expense.created_at.tzinfo is not None

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from the item name."""
        expense = Expense(
            owner_id="owner-1",
            item_name="  Lunch  ",
            amount=Decimal("1"),
            expense_date=date(2024, 3, 15),
        )
        assert expense.item_name == "Lunch"

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Expense(
                owner_id="owner-1",
                item_name="Refund",
                amount=Decimal("-1.00"),
                expense_date=date(2024, 3, 15),
            )

    def test_expense_keeps_sub_cent_amount(self):
        """Sub-cent amounts stay exact; rounding happens on the total."""
        expense = Expense(
            owner_id="owner-1",
            item_name="Gas",
            amount=Decimal("3.999"),
            expense_date=date(2024, 3, 15),
        )
        assert expense.amount == Decimal("3.999")

    def test_budget_cap_for_period(self):
        """Test caps are looked up per period, zero meaning no cap."""
        budget = Budget(owner_id="owner-1", daily_cap=Decimal("0"), monthly_cap=Decimal("500"))
        assert budget.cap_for(Period.TODAY) is None
        assert budget.cap_for(Period.THIS_MONTH) == Decimal("500")

    def test_budget_without_caps(self):
        budget = Budget(owner_id="owner-1")
        assert budget.cap_for(Period.TODAY) is None
        assert budget.cap_for(Period.THIS_MONTH) is None

    def test_category_display_name(self):
        category = Category(owner_id="owner-1", name="Coffee", emoji="☕")
        assert category.display_name == "☕ Coffee"

    def test_category_rejects_long_name(self):
        with pytest.raises(ValidationError):
            Category(owner_id="owner-1", name="x" * 51, emoji="☕")


class TestDateRange:
    def test_half_open(self):
        window = DateRange(start=date(2024, 3, 1), end=date(2024, 4, 1))
        assert window.contains(date(2024, 3, 1))
        assert window.contains(date(2024, 3, 31))
        assert not window.contains(date(2024, 4, 1))
        assert not window.contains(date(2024, 2, 29))

    def test_rejects_empty_range(self):
        with pytest.raises(ValidationError):
            DateRange(start=date(2024, 3, 1), end=date(2024, 3, 1))


class TestAggregationResult:
    def test_remaining(self):
        result = AggregationResult(
            period=Period.TODAY,
            total=Decimal("30.00"),
            cap=Decimal("50.00"),
            progress_ratio=0.6,
            tier=SeverityTier.NORMAL,
            expense_count=2,
        )
        assert result.has_cap
        assert result.remaining == Decimal("20.00")

    def test_no_cap_has_no_remaining(self):
        result = AggregationResult(
            period=Period.TODAY,
            total=Decimal("30.00"),
            progress_ratio=0.0,
            tier=SeverityTier.NORMAL,
            expense_count=2,
        )
        assert not result.has_cap
        assert result.remaining is None

    def test_progress_ratio_bounded(self):
        with pytest.raises(ValidationError):
            AggregationResult(
                period=Period.TODAY,
                total=Decimal("30.00"),
                progress_ratio=1.5,
                tier=SeverityTier.OVER,
                expense_count=1,
            )


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_issue_creation(self):
        """Test ValidationIssue model creation."""
        issue = ValidationIssue(
            field="amount",
            issue_type="missing",
            message="Amount is required",
            severity="error",
        )
        assert issue.severity == "error"

    def test_validation_issue_rejects_unknown_severity(self):
        with pytest.raises(ValidationError):
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="fatal",
            )

    def test_validation_result_helpers(self):
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="a", issue_type="x", message="warn", severity="warning"),
                ValidationIssue(field="b", issue_type="y", message="first", severity="error"),
                ValidationIssue(field="c", issue_type="z", message="second", severity="error"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 2
        assert result.first_error == "first"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Expense created",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            owner_id="owner-1",
            description="Spending caps saved",
            details={"daily_cap": "20"},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "budget_saved"
        assert log_dict["owner_id"] == "owner-1"
        assert log_dict["details"] == {"daily_cap": "20"}

    def test_audit_event_to_sheets_row(self):
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            owner_id="owner-1",
            entity_type="account",
            entity_id="owner-1",
            correlation_id=correlation_id,
            description="Account and data deleted",
            details={"expenses": 3},
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[4] == "owner-1"
        assert row[7] == str(correlation_id)
        assert json.loads(row[9]) == {"expenses": 3}
        assert row[11] == "False"

    def test_audit_event_builder_expense_saved(self):
        """Test AuditEventBuilder for created and updated expenses."""
        expense = Expense(
            owner_id="owner-1",
            item_name="Lunch",
            amount=Decimal("12.50"),
            expense_date=date(2024, 3, 15),
        )
        created = AuditEventBuilder.expense_saved(expense, created=True)
        updated = AuditEventBuilder.expense_saved(expense, created=False)

        assert created.event_type == AuditEventType.EXPENSE_CREATED
        assert updated.event_type == AuditEventType.EXPENSE_UPDATED
        assert created.entity_id == str(expense.id)
        assert created.is_user_action

    def test_audit_event_builder_account_deletion_failed(self):
        event = AuditEventBuilder.account_deletion_failed("owner-1", "boom", uuid4())
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
