"""
Audit Logger

DESIGN DECISION: Every change to the expense book is logged.
This provides:
1. Complete traceability (bulk label operations touch many records)
2. Debugging capability when the store misbehaves
3. A history the user can read back from the audit sheet

The audit logger:
- Is async so it fits the store calls around it
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from currency_clarity.models.audit import AuditEvent, AuditEventBuilder
from currency_clarity.services.storage import AuditStorageInterface, StorageError


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog through stdlib logging as one JSON object per line."""
    logging.basicConfig(format="%(message)s", level=log_level.upper(), force=True)

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


# Configure structlog for local logging
configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (Google Sheets in production)
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
        self._logger = structlog.get_logger("currency_clarity.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                # The audit trail must never break the main flow
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_created(
        self,
        expense_id: UUID,
        label: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log expense creation."""
        await self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            label=label,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: UUID,
        removed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            removed=removed,
            correlation_id=correlation_id,
        ))

    async def log_balance_cleared(
        self,
        expense_id: UUID,
        previous_status: str,
        previous_amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.balance_cleared(
            expense_id=expense_id,
            previous_status=previous_status,
            previous_amount=previous_amount,
            correlation_id=correlation_id,
        ))

    async def log_label_changed(
        self,
        operation: str,
        label: str,
        affected: int,
        new_label: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a bulk rename or delete, including no-ops."""
        await self.log(AuditEventBuilder.label_changed(
            operation=operation,
            label=label,
            affected=affected,
            new_label=new_label,
            correlation_id=correlation_id,
        ))

    async def log_input_rejected(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.input_rejected(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_heartbeat(
        self,
        url: str,
        succeeded: bool,
        error_message: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.heartbeat(
            url=url,
            succeeded=succeeded,
            error_message=error_message,
        ))

    async def log_store_unavailable(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a connectivity failure of the expense store."""
        await self.log(AuditEventBuilder.store_unavailable(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., one API request).
    Pass it through all subsequent operations.
    """
    return uuid4()
