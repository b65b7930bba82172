"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numeric format and range
- This catches incomplete or malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- This catches plausible-looking but suspicious input

Stage 2 only runs when stage 1 passes, and it only produces warnings.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from spendring.config import AppSettings, get_settings
from spendring.models.expense import ValidationIssue, ValidationResult

CATEGORY_NAME_MAX_LENGTH = 50
CATEGORY_EMOJI_MAX_LENGTH = 16
ITEM_NAME_MAX_LENGTH = 200


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a form amount into a Decimal.

    Returns None for blanks and for anything that is not a finite number.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    return amount


def _result(issues: list[ValidationIssue]) -> ValidationResult:
    return ValidationResult(
        is_valid=not any(issue.severity == "error" for issue in issues),
        issues=issues,
        warnings=[issue.message for issue in issues if issue.severity == "warning"],
    )


class ExpenseValidator:
    """
    Validates expense, budget and category form input.

    Stage 1: Schema validation
    Stage 2: Semantic validation (expenses only)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def _validate_expense_schema(
        self,
        item_name: Any,
        amount: Any,
        category_id: Any,
        expense_date: Any,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if _is_blank(item_name):
            issues.append(ValidationIssue(
                field="item_name",
                issue_type="missing",
                message="Item name is required",
                severity="error",
                suggested_fix="Enter what the money was spent on",
            ))
        elif len(str(item_name).strip()) > ITEM_NAME_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="item_name",
                issue_type="too_long",
                message=f"Item name must be at most {ITEM_NAME_MAX_LENGTH} characters",
                severity="error",
            ))

        if _is_blank(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            parsed = parse_amount(amount)
            if parsed is None or parsed <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Please enter a valid amount",
                    severity="error",
                    suggested_fix="Amounts must be numbers greater than zero",
                ))

        if _is_blank(category_id):
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
                severity="error",
                suggested_fix="Pick a category, or add one in Settings",
            ))

        if expense_date is None:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif not isinstance(expense_date, date):
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="invalid_value",
                message="Date is not a valid calendar date",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_expense_semantic(
        self,
        amount: Decimal,
        expense_date: date,
        today: date,
    ) -> list[ValidationIssue]:
        """Stage 2: plausibility checks. Warnings only."""
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (${amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def validate_expense(
        self,
        item_name: Any,
        amount: Any,
        category_id: Any,
        expense_date: Any,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation on expense form input.

        Args:
            item_name: What the money was spent on
            amount: Raw amount (str, number or Decimal)
            category_id: Selected category
            expense_date: Calendar day of the expense
            today: Reference date for the future-date check

        Returns:
            ValidationResult with all issues found
        """
        schema_valid, issues = self._validate_expense_schema(
            item_name, amount, category_id, expense_date,
        )
        if schema_valid:
            issues.extend(self._validate_expense_semantic(
                parse_amount(amount),
                expense_date,
                today or date.today(),
            ))
        return _result(issues)

    # ------------------------------------------------------------------
    # Budget
    # ------------------------------------------------------------------

    def validate_budget(self, daily_cap: Any, monthly_cap: Any) -> ValidationResult:
        """At least one cap must be given; each given cap must be a number >= 0."""
        issues = []

        if _is_blank(daily_cap) and _is_blank(monthly_cap):
            issues.append(ValidationIssue(
                field="budget",
                issue_type="missing",
                message="Please enter at least one budget amount",
                severity="error",
            ))
            return _result(issues)

        for field, label, value in (
            ("daily_cap", "daily", daily_cap),
            ("monthly_cap", "monthly", monthly_cap),
        ):
            if _is_blank(value):
                continue
            parsed = parse_amount(value)
            if parsed is None or parsed < 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"Please enter a valid {label} cap amount",
                    severity="error",
                    suggested_fix="Caps must be zero or more",
                ))

        return _result(issues)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def validate_category(self, name: Any, emoji: Any) -> ValidationResult:
        issues = []

        if _is_blank(name) or _is_blank(emoji):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please enter both name and emoji",
                severity="error",
            ))
            return _result(issues)

        if len(str(name).strip()) > CATEGORY_NAME_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Category name must be at most {CATEGORY_NAME_MAX_LENGTH} characters",
                severity="error",
            ))
        if len(str(emoji).strip()) > CATEGORY_EMOJI_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="emoji",
                issue_type="too_long",
                message="Please use a single emoji",
                severity="error",
            ))

        return _result(issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the forms show under the submit button.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
