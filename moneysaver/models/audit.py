"""
Audit Models for MoneySaver

Every significant ledger action is recorded as an AuditEvent:
refresh cycles, recurring materialization, user-entered transactions,
goal adjustments and storage failures.

DESIGN DECISION: Audit events are emitted, never edited. The logger
writes them as structured log lines.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Refresh cycle
    REFRESH_STARTED = "refresh_started"
    REFRESH_COMPLETED = "refresh_completed"

    # Recurring engine
    RECURRING_TRANSACTION_GENERATED = "recurring_transaction_generated"
    RECURRING_RULE_SKIPPED = "recurring_rule_skipped"

    # User entry
    TRANSACTION_CREATED = "transaction_created"
    RECURRING_RULE_CREATED = "recurring_rule_created"
    GOAL_CREATED = "goal_created"
    GOAL_DEPOSIT = "goal_deposit"
    GOAL_WITHDRAW = "goal_withdraw"
    GOAL_TRANSACTION_REJECTED = "goal_transaction_rejected"

    # Maintenance
    LEDGER_CLEARED = "ledger_cleared"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

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

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'recurring_rule')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    # Correlation - all events of one refresh or one user action
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx_id, "expense", "12.50", cid)
        event = AuditEventBuilder.storage_error("write_collection", str(e), cid)
    """

    @staticmethod
    def refresh_started(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_STARTED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Ledger refresh started",
        )

    @staticmethod
    def refresh_completed(
        transaction_count: int,
        goal_count: int,
        generated_count: int,
        balance: str,
        error_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_COMPLETED,
            severity=AuditSeverity.WARNING if error_count else AuditSeverity.INFO,
            correlation_id=correlation_id,
            description=f"Ledger refreshed: {generated_count} recurring generated",
            details={
                "transaction_count": transaction_count,
                "goal_count": goal_count,
                "generated_count": generated_count,
                "balance": balance,
                "error_count": error_count,
            },
        )

    @staticmethod
    def recurring_generated(
        rule_id: str,
        transaction_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_TRANSACTION_GENERATED,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description=f"Recurring rule materialized transaction {transaction_id}",
            details={
                "transaction_id": transaction_id,
                "amount": amount,
            },
        )

    @staticmethod
    def recurring_rule_skipped(
        rule_id: Optional[str],
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_RULE_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description="Recurring rule skipped",
            error_message=reason,
        )

    @staticmethod
    def transaction_created(
        transaction_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {transaction_type} {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def recurring_rule_created(
        rule_id: str,
        day_of_month: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_RULE_CREATED,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description=f"Recurring rule created for day {day_of_month}",
            details={"day_of_month": day_of_month},
            is_user_action=True,
        )

    @staticmethod
    def goal_created(
        goal_id: str,
        name: str,
        target_amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CREATED,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Goal created: {name}",
            details={"target_amount": target_amount},
            is_user_action=True,
        )

    @staticmethod
    def goal_adjusted(
        goal_id: str,
        kind: str,
        amount: str,
        previous_amount: str,
        new_amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.GOAL_DEPOSIT
            if kind == "deposit"
            else AuditEventType.GOAL_WITHDRAW
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Goal {kind}: {previous_amount} -> {new_amount}",
            details={
                "requested_amount": amount,
                "previous_amount": previous_amount,
                "new_amount": new_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def goal_transaction_rejected(
        goal_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description="Goal transaction rejected",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def ledger_cleared(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="All ledger collections cleared",
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
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
