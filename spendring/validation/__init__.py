"""Validation package."""

from spendring.validation.validator import ExpenseValidator, parse_amount

__all__ = ["ExpenseValidator", "parse_amount"]
