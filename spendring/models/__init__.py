"""
Data Models Package

This package contains all Pydantic models used in SpendRing.
All data flowing through the system must conform to these schemas.
"""

from spendring.models.expense import (
    AggregationResult,
    Budget,
    Category,
    DateRange,
    Expense,
    Period,
    Recurrence,
    SeverityTier,
    SpendingTotals,
    TransactionGroup,
    ValidationIssue,
    ValidationResult,
)
from spendring.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "AggregationResult",
    "Budget",
    "Category",
    "DateRange",
    "Expense",
    "Period",
    "Recurrence",
    "SeverityTier",
    "SpendingTotals",
    "TransactionGroup",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
