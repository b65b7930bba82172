"""Account lifecycle package."""

from spendring.accounts.deletion import (
    AccountDeletionError,
    AccountDeletionResult,
    AccountDeletionService,
    CleanupStep,
)

__all__ = [
    "AccountDeletionError",
    "AccountDeletionResult",
    "AccountDeletionService",
    "CleanupStep",
]
