"""
Audit Logger

DESIGN DECISION: Every mutation of an owner's data is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A record of account deletions that outlives the account

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from spendring.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from spendring.models.expense import Budget, Category, Expense, ValidationResult
from spendring.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_saved(
        self,
        expense: Expense,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_saved(expense, created, correlation_id))

    async def log_expense_deleted(
        self,
        owner_id: str,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(owner_id, expense_id, correlation_id))

    async def log_budget_saved(
        self,
        budget: Budget,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_saved(budget, correlation_id))

    async def log_category_created(
        self,
        category: Category,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_created(category, correlation_id))

    async def log_category_deleted(
        self,
        owner_id: str,
        category_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_deleted(owner_id, category_id, correlation_id))

    async def log_validation_failed(
        self,
        owner_id: str,
        entity_type: str,
        result: ValidationResult,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected form input."""
        event = AuditEventBuilder.validation_failed(
            owner_id=owner_id,
            entity_type=entity_type,
            issues=[issue.model_dump() for issue in result.issues],
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_account_deletion_requested(
        self,
        owner_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.account_deletion_requested(owner_id, correlation_id))

    async def log_account_cleanup_failed(
        self,
        owner_id: str,
        step: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log one failed best-effort cleanup step."""
        event = AuditEventBuilder.account_cleanup_failed(
            owner_id=owner_id,
            step=step,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_account_deleted(
        self,
        owner_id: str,
        summary: dict,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.account_deleted(owner_id, summary, correlation_id))

    async def log_account_deletion_failed(
        self,
        owner_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.account_deletion_failed(
            owner_id=owner_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., account deletion).
    Pass it through all subsequent operations.
    """
    return uuid4()
