"""
Core Data Models for SpendRing

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Money is Decimal everywhere. Totals are summed exactly
and rounded once, so the hero number never shows floating-point drift.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Recurrence(str, Enum):
    """How often an expense repeats. Informational only - nothing is auto-created."""
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Period(str, Enum):
    """The two aggregation windows the home screen toggles between."""
    TODAY = "Today"
    THIS_MONTH = "This Month"


class SeverityTier(str, Enum):
    """
    Spend-to-cap severity.

    NORMAL is also used when no cap is configured - the ring stays neutral.
    """
    NORMAL = "normal"
    WARNING = "warning"
    OVER = "over"


# =============================================================================
# CORE RECORDS
# =============================================================================

class DateRange(BaseModel):
    """
    Half-open calendar range: start is included, end is not.

    Using an exclusive end avoids the classic off-by-one at month ends.
    """
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end <= self.start:
            raise ValueError("Range end must be after range start")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


class Category(BaseModel):
    """A spending category owned by one user, e.g. "Coffee ☕"."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owner of this category"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category name"
    )
    emoji: str = Field(
        ...,
        min_length=1,
        max_length=16,
        description="Emoji shown next to the category"
    )

    @property
    def display_name(self) -> str:
        return f"{self.emoji} {self.name}"


class Expense(BaseModel):
    """
    A single recorded expense.

    Expenses are mutated only by full replacement (edit) and destroyed
    only by explicit delete. Aggregation treats them as immutable snapshots.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owner of this expense"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the expense was recorded"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    item_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What was bought"
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, description="Amount spent; summed exactly and rounded at display")
    ]
    expense_date: date = Field(
        ...,
        description="Calendar day of the expense (no time-of-day semantics)"
    )
    category_id: Optional[UUID] = Field(
        default=None,
        description="Category this expense belongs to"
    )
    recurrence: Recurrence = Field(
        default=Recurrence.NONE,
        description="Recurrence tag"
    )


class Budget(BaseModel):
    """
    Spending caps for one owner.

    At most one budget exists per owner; saving a new one replaces it.
    A missing (or zero) cap means "no limit configured" for that period.
    """

    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owner of this budget"
    )
    daily_cap: Optional[Decimal] = Field(
        default=None,
        ge=0,
        decimal_places=2,
        description="Daily spending cap"
    )
    monthly_cap: Optional[Decimal] = Field(
        default=None,
        ge=0,
        decimal_places=2,
        description="Monthly spending cap"
    )
    updated_at: datetime = Field(
        default_factory=utcnow
    )

    def cap_for(self, period: Period) -> Optional[Decimal]:
        """Return the cap configured for a period, or None when absent."""
        cap = self.daily_cap if period == Period.TODAY else self.monthly_cap
        if cap is None or cap <= 0:
            return None
        return cap


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class AggregationResult(BaseModel):
    """Total spent in one period compared against that period's cap."""

    period: Period
    total: Decimal = Field(
        ...,
        description="Sum of matching expenses, rounded to 2 decimal places"
    )
    cap: Optional[Decimal] = Field(
        default=None,
        description="Applicable cap, None when not configured"
    )
    progress_ratio: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="min(total / cap, 1.0), or 0 when no cap"
    )
    tier: SeverityTier
    expense_count: int = Field(
        default=0,
        ge=0,
        description="Number of expenses that fell inside the period"
    )

    @property
    def has_cap(self) -> bool:
        return self.cap is not None

    @property
    def remaining(self) -> Optional[Decimal]:
        """Amount left before the cap is hit (never negative)."""
        if self.cap is None:
            return None
        return max(self.cap - self.total, Decimal("0.00"))


class SpendingTotals(BaseModel):
    """Both home screen periods computed for one reference date."""

    as_of: date
    today: AggregationResult
    month: AggregationResult
    skipped: int = Field(
        default=0,
        ge=0,
        description="Malformed records excluded from aggregation"
    )

    def for_period(self, period: Period) -> AggregationResult:
        return self.today if period == Period.TODAY else self.month


class TransactionGroup(BaseModel):
    """Expenses that share a calendar day, as listed in the transaction panel."""

    day: date
    label: str = Field(
        ...,
        description="'Today', 'Yesterday' or a formatted date"
    )
    expenses: list[Expense] = Field(default_factory=list)
    total: Decimal = Field(
        default=Decimal("0.00"),
        description="Rounded sum of the group's expenses"
    )

    @property
    def count(self) -> int:
        return len(self.expenses)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (presence, types, ranges)
    Stage 2: Semantic validation (plausibility checks, warnings only)
    """

    validated_at: datetime = Field(
        default_factory=utcnow
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[str]:
        """Message of the first error, for single-line form feedback."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
