"""Tests for the two-stage form validator."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from spendring.validation import ExpenseValidator, parse_amount

TODAY = date(2024, 3, 15)


@pytest.fixture
def validator(app_settings) -> ExpenseValidator:
    return ExpenseValidator(app_settings)


def valid_expense(**overrides):
    fields = {
        "item_name": "Lunch",
        "amount": "12.50",
        "category_id": uuid4(),
        "expense_date": TODAY,
        "today": TODAY,
    }
    fields.update(overrides)
    return fields


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.50", Decimal("12.50")),
            (" 3 ", Decimal("3")),
            (7, Decimal("7")),
            (Decimal("1.25"), Decimal("1.25")),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "NaN", "Infinity", True])
    def test_invalid(self, raw):
        assert parse_amount(raw) is None


class TestExpenseValidation:
    """Tests for stage 1 (schema) and stage 2 (semantic) checks."""

    def test_valid_expense(self, validator):
        result = validator.validate_expense(**valid_expense())
        assert result.is_valid
        assert result.issues == []

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "$5"])
    def test_invalid_amount(self, validator, amount):
        result = validator.validate_expense(**valid_expense(amount=amount))
        assert not result.is_valid
        assert result.first_error == "Please enter a valid amount"

    def test_missing_fields(self, validator):
        result = validator.validate_expense(
            item_name="  ",
            amount="",
            category_id=None,
            expense_date=None,
            today=TODAY,
        )
        assert not result.is_valid
        assert [i.field for i in result.issues] == [
            "item_name", "amount", "category_id", "expense_date",
        ]
        assert result.first_error == "Item name is required"

    def test_long_item_name(self, validator):
        result = validator.validate_expense(**valid_expense(item_name="x" * 201))
        assert not result.is_valid
        assert result.issues[0].issue_type == "too_long"

    def test_date_must_be_a_date(self, validator):
        result = validator.validate_expense(**valid_expense(expense_date="2024-03-15"))
        assert not result.is_valid
        assert result.issues[0].field == "expense_date"

    def test_future_date_is_warning(self, validator):
        result = validator.validate_expense(**valid_expense(expense_date=date(2024, 3, 20)))
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "future" in result.warnings[0]

    def test_tomorrow_is_tolerated(self, validator):
        result = validator.validate_expense(**valid_expense(expense_date=date(2024, 3, 16)))
        assert result.warnings == []

    def test_huge_amount_is_warning(self, validator):
        result = validator.validate_expense(**valid_expense(amount="250000"))
        assert result.is_valid
        assert "unusually high" in result.warnings[0]

    def test_semantic_checks_skipped_when_schema_fails(self, validator):
        result = validator.validate_expense(
            **valid_expense(item_name="", amount="250000", expense_date=date(2030, 1, 1))
        )
        assert result.warnings == []
        assert result.error_count == 1


class TestBudgetValidation:
    def test_both_blank(self, validator):
        result = validator.validate_budget("", None)
        assert result.first_error == "Please enter at least one budget amount"

    def test_one_cap_is_enough(self, validator):
        assert validator.validate_budget("20", "").is_valid
        assert validator.validate_budget(None, "500").is_valid

    def test_zero_cap_allowed(self, validator):
        assert validator.validate_budget("0", "100").is_valid

    def test_invalid_daily(self, validator):
        result = validator.validate_budget("-1", "100")
        assert result.first_error == "Please enter a valid daily cap amount"

    def test_invalid_monthly(self, validator):
        result = validator.validate_budget("10", "lots")
        assert result.first_error == "Please enter a valid monthly cap amount"


class TestCategoryValidation:
    @pytest.mark.parametrize("name, emoji", [("", "☕"), ("Coffee", ""), (None, None)])
    def test_both_required(self, validator, name, emoji):
        result = validator.validate_category(name, emoji)
        assert result.first_error == "Please enter both name and emoji"

    def test_valid(self, validator):
        assert validator.validate_category("Coffee", "☕").is_valid

    def test_name_too_long(self, validator):
        assert not validator.validate_category("x" * 51, "☕").is_valid

    def test_emoji_too_long(self, validator):
        result = validator.validate_category("Coffee", "☕" * 17)
        assert result.first_error == "Please use a single emoji"


class TestUserFriendlySummary:
    def test_all_passed(self, validator):
        result = validator.validate_expense(**valid_expense())
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed!"

    def test_errors_and_fixes(self, validator):
        result = validator.validate_expense(**valid_expense(amount="-3"))
        summary = validator.get_user_friendly_summary(result)
        assert "❌ Please fix the following:" in summary
        assert "Please enter a valid amount" in summary
        assert "💡" in summary

    def test_warnings_only(self, validator):
        result = validator.validate_expense(**valid_expense(amount="250000"))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠️ Please verify the following:")
