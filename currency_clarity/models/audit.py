"""
Audit Models for Currency Clarity

Every change to the expense book is logged for audit purposes.
This provides:
1. A history of edits and deletions (labels are renamed in bulk!)
2. Debugging information when the store misbehaves
3. Ability to reconstruct what a record looked like

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense lifecycle
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_DELETE_MISSED = "expense_delete_missed"
    BALANCE_CLEARED = "balance_cleared"

    # Bulk label operations
    LABEL_RENAMED = "label_renamed"
    LABEL_DELETED = "label_deleted"
    LABEL_CHANGE_NOOP = "label_change_noop"

    # Validation
    INPUT_REJECTED = "input_rejected"

    # Keep-alive
    HEARTBEAT_SUCCEEDED = "heartbeat_succeeded"
    HEARTBEAT_FAILED = "heartbeat_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    STORE_UNAVAILABLE = "store_unavailable"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation of the expense book creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'label')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one API request)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, label, amount)
        event = AuditEventBuilder.label_renamed("Cofee", "Coffee", 3)
    """

    @staticmethod
    def expense_created(
        expense_id: UUID,
        label: str,
        amount: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {label} - {amount} FMG",
            details={
                "label": label,
                "amount_fmg": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {', '.join(changed_fields) or 'no fields'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: UUID,
        removed: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        if removed:
            return AuditEvent(
                event_type=AuditEventType.EXPENSE_DELETED,
                entity_type="expense",
                entity_id=expense_id,
                correlation_id=correlation_id,
                description="Expense deleted",
                is_user_action=True,
            )
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETE_MISSED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense to delete was already gone",
            is_user_action=True,
        )

    @staticmethod
    def balance_cleared(
        expense_id: UUID,
        previous_status: str,
        previous_amount: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_CLEARED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Balance marked as settled",
            details={
                "previous_status": previous_status,
                "previous_amount_fmg": previous_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def label_changed(
        operation: str,
        label: str,
        affected: int,
        new_label: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        details: dict[str, Any] = {
            "operation": operation,
            "label": label,
            "affected_count": affected,
        }
        if new_label is not None:
            details["new_label"] = new_label

        if affected == 0:
            return AuditEvent(
                event_type=AuditEventType.LABEL_CHANGE_NOOP,
                severity=AuditSeverity.WARNING,
                entity_type="label",
                correlation_id=correlation_id,
                description=f"Label {operation} matched no expenses: {label}",
                details=details,
                is_user_action=True,
            )

        if operation == "rename":
            event_type = AuditEventType.LABEL_RENAMED
            description = f"Label renamed: {label} -> {new_label} ({affected} expenses)"
        else:
            event_type = AuditEventType.LABEL_DELETED
            description = f"Label deleted: {label} ({affected} expenses)"

        return AuditEvent(
            event_type=event_type,
            entity_type="label",
            correlation_id=correlation_id,
            description=description,
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def input_rejected(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Invalid input for {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def heartbeat(
        url: str,
        succeeded: bool,
        error_message: Optional[str] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.HEARTBEAT_SUCCEEDED
                if succeeded
                else AuditEventType.HEARTBEAT_FAILED
            ),
            severity=AuditSeverity.DEBUG if succeeded else AuditSeverity.WARNING,
            description=f"Heartbeat ping {'succeeded' if succeeded else 'failed'}",
            error_message=error_message,
            details={
                "url": url,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def store_unavailable(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_UNAVAILABLE,
            severity=AuditSeverity.ERROR,
            description=f"Expense store unavailable during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
