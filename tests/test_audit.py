"""Tests for the audit logger."""

import asyncio
from uuid import uuid4

from spendring.audit import AuditLogger, create_correlation_id
from spendring.models.audit import AuditEventType, AuditSeverity
from spendring.models.expense import ValidationIssue, ValidationResult


class BrokenAuditStorage:
    async def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class TestAuditLogger:
    def test_logs_without_storage(self):
        logger = AuditLogger()
        assert asyncio.run(logger.log_error("startup", "boom")) is None

    def test_persists_to_storage(self, audit_storage):
        logger = AuditLogger(audit_storage)
        correlation_id = create_correlation_id()

        asyncio.run(logger.log_account_cleanup_failed("owner-1", "expenses", "quota", correlation_id))

        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.ACCOUNT_CLEANUP_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id
        assert event.details["step"] == "expenses"

    def test_validation_failure_records_issues(self, audit_storage):
        logger = AuditLogger(audit_storage)
        result = ValidationResult(
            is_valid=False,
            issues=[ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Please enter a valid amount",
                severity="error",
            )],
        )

        asyncio.run(logger.log_validation_failed("owner-1", "expense", result))

        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.entity_type == "expense"
        assert event.details["issues"][0]["field"] == "amount"

    def test_storage_failure_is_swallowed(self):
        logger = AuditLogger(BrokenAuditStorage())
        event_id = uuid4()

        async def run():
            await logger.log_external_service_error("google_sheets", "timeout")
            await logger.log_expense_deleted("owner-1", event_id)

        asyncio.run(run())

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
