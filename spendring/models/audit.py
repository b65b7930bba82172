"""
Audit Models for SpendRing

Every mutation of an owner's data is logged for audit purposes.
This provides:
1. Complete traceability of all edits and deletions
2. Debugging information when things go wrong
3. A record of account deletions after the account itself is gone

DESIGN DECISION: Audit logs are append-only. We never delete or modify them,
not even when the owner deletes their account.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from spendring.models.expense import Budget, Category, Expense, utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Budget
    BUDGET_SAVED = "budget_saved"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_DELETED = "category_deleted"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Account lifecycle
    ACCOUNT_DELETION_REQUESTED = "account_deletion_requested"
    ACCOUNT_CLEANUP_FAILED = "account_cleanup_failed"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_DELETION_FAILED = "account_deletion_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner whose data the event concerns"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'budget', 'account')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all steps of one account deletion)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, owner_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.owner_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(expense, created=True)
        event = AuditEventBuilder.account_deleted(owner_id, correlation_id)
    """

    @staticmethod
    def expense_saved(
        expense: Expense,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.EXPENSE_CREATED if created
                else AuditEventType.EXPENSE_UPDATED
            ),
            owner_id=expense.owner_id,
            entity_type="expense",
            entity_id=str(expense.id),
            correlation_id=correlation_id,
            description=(
                f"Expense {'created' if created else 'updated'}: "
                f"{expense.item_name} - ${expense.amount}"
            ),
            details={
                "amount": str(expense.amount),
                "expense_date": expense.expense_date.isoformat(),
                "recurrence": expense.recurrence.value,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        owner_id: str,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            owner_id=owner_id,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def budget_saved(
        budget: Budget,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            owner_id=budget.owner_id,
            entity_type="budget",
            entity_id=budget.owner_id,
            correlation_id=correlation_id,
            description="Spending caps saved",
            details={
                "daily_cap": str(budget.daily_cap) if budget.daily_cap is not None else None,
                "monthly_cap": str(budget.monthly_cap) if budget.monthly_cap is not None else None,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_created(
        category: Category,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            owner_id=category.owner_id,
            entity_type="category",
            entity_id=str(category.id),
            correlation_id=correlation_id,
            description=f"Category created: {category.display_name}",
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        owner_id: str,
        category_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            owner_id=owner_id,
            entity_type="category",
            entity_id=str(category_id),
            correlation_id=correlation_id,
            description="Category deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        owner_id: str,
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} input rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_deletion_requested(
        owner_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETION_REQUESTED,
            owner_id=owner_id,
            entity_type="account",
            entity_id=owner_id,
            correlation_id=correlation_id,
            description="Account deletion requested",
            is_user_action=True,
        )

    @staticmethod
    def account_cleanup_failed(
        owner_id: str,
        step: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CLEANUP_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="account",
            entity_id=owner_id,
            correlation_id=correlation_id,
            description=f"Account data cleanup failed at step: {step}",
            error_message=error_message,
            details={
                "step": step,
            },
        )

    @staticmethod
    def account_deleted(
        owner_id: str,
        summary: dict,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            owner_id=owner_id,
            entity_type="account",
            entity_id=owner_id,
            correlation_id=correlation_id,
            description="Account and data deleted",
            details=summary,
        )

    @staticmethod
    def account_deletion_failed(
        owner_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETION_FAILED,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            entity_type="account",
            entity_id=owner_id,
            correlation_id=correlation_id,
            description="Credential record could not be deleted",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
