"""
Account Deletion

Removes everything the app holds for an owner, then the owner's credential
record.

DESIGN DECISION: Data cleanup is best-effort. Each table is cleared in its
own step; a failing step is logged, audited and recorded in the result, and
the next step still runs. Only the credential deletion is mandatory: if it
fails the whole operation fails, because a leftover credential is an account
the owner can still sign in to.
"""

from collections.abc import Awaitable, Callable
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from spendring.audit import AuditLogger, create_correlation_id
from spendring.services.storage import (
    AccountStorageInterface,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger(__name__)


class CleanupStep(BaseModel):
    """Outcome of one best-effort cleanup step."""

    step: str
    ok: bool
    deleted: int = Field(default=0, ge=0)
    error: Optional[str] = None


class AccountDeletionResult(BaseModel):
    owner_id: str
    correlation_id: UUID
    steps: list[CleanupStep] = Field(default_factory=list)
    account_deleted: bool = False

    @property
    def failed_steps(self) -> list[str]:
        return [s.step for s in self.steps if not s.ok]

    def summary(self) -> dict:
        """Per-step counts, with failed steps reported as 'failed'."""
        return {
            s.step: (s.deleted if s.ok else "failed")
            for s in self.steps
        }


class AccountDeletionError(Exception):
    """The credential record could not be deleted."""

    def __init__(
        self,
        message: str,
        result: Optional[AccountDeletionResult] = None,
        code: str = "unknown",
    ):
        super().__init__(message)
        self.result = result
        self.code = code


class AccountDeletionService:
    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        account_storage: AccountStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._expenses = expense_storage
        self._accounts = account_storage
        self._audit = audit_logger or AuditLogger()

    async def _delete_budget(self, owner_id: str) -> int:
        return 1 if await self._expenses.delete_budget(owner_id) else 0

    def _cleanup_steps(self) -> list[tuple[str, Callable[[str], Awaitable[int]]]]:
        return [
            ("expenses", self._expenses.delete_all_expenses),
            ("budgets", self._delete_budget),
            ("categories", self._expenses.delete_all_categories),
        ]

    async def _record_failed_step(
        self,
        result: AccountDeletionResult,
        step: str,
        error: Exception,
    ) -> None:
        await self._audit.log_account_cleanup_failed(
            owner_id=result.owner_id,
            step=step,
            error_message=str(error),
            correlation_id=result.correlation_id,
        )
        result.steps.append(CleanupStep(step=step, ok=False, error=str(error)))

    async def delete_account(self, owner_id: str) -> AccountDeletionResult:
        """
        Delete the owner's data and credential record.

        Args:
            owner_id: Owner whose account is deleted

        Returns:
            AccountDeletionResult describing every step

        Raises:
            AccountDeletionError: If the credential record could not be deleted
        """
        correlation_id = create_correlation_id()
        result = AccountDeletionResult(owner_id=owner_id, correlation_id=correlation_id)
        log = logger.bind(owner_id=owner_id, correlation_id=str(correlation_id))

        log.info("account_deletion_requested")
        await self._audit.log_account_deletion_requested(owner_id, correlation_id)

        for step, action in self._cleanup_steps():
            try:
                deleted = await action(owner_id)
            except StorageError as e:
                log.warning("account_cleanup_failed", step=step, error=str(e))
                await self._record_failed_step(result, step, e)
                continue
            except Exception as e:
                log.exception("account_cleanup_crashed", step=step)
                await self._record_failed_step(result, step, e)
                continue

            log.info("account_cleanup_step", step=step, deleted=deleted)
            result.steps.append(CleanupStep(step=step, ok=True, deleted=deleted))

        try:
            await self._accounts.delete_account(owner_id)
        except StorageError as e:
            code = "not_found" if isinstance(e, NotFoundError) else "unknown"
            log.error("account_deletion_failed", error=str(e), code=code)
            await self._audit.log_account_deletion_failed(
                owner_id=owner_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise AccountDeletionError(str(e), result=result, code=code) from e

        result.account_deleted = True
        log.info("account_deleted", failed_steps=result.failed_steps)
        await self._audit.log_account_deleted(owner_id, result.summary(), correlation_id)
        return result
