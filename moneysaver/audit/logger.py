"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. Traceability of generated recurring transactions
2. Debugging capability when a refresh degrades
3. A record of every goal adjustment

The audit logger:
- Never raises (a logging failure must not break a refresh)
- Supports correlation IDs to trace all events of one refresh
  or one user action
"""

from typing import Any, Callable, Optional
from uuid import UUID, uuid4

import structlog

from moneysaver.models.audit import AuditEvent, AuditEventBuilder


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
    """Central audit logging service, writing structured log lines."""

    def __init__(self, logger_name: str = "moneysaver.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event at its severity.

        Returns False if the log call itself failed.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def _emit(self, build: Callable[..., AuditEvent], *args: Any, **kwargs: Any) -> bool:
        """
        Build an event and log it.

        A builder failure (e.g. a field too long for the event model) is
        reported as a plain log line; the ledger action already happened.
        """
        try:
            event = build(*args, **kwargs)
        except Exception as e:
            self._logger.error(
                "audit_event_dropped",
                builder=getattr(build, "__name__", repr(build)),
                error=str(e)[:500],
            )
            return False
        return self.log(event)

    def log_refresh_started(self, correlation_id: UUID) -> None:
        """Log the start of a refresh cycle."""
        self._emit(AuditEventBuilder.refresh_started, correlation_id)

    def log_refresh_completed(
        self,
        transaction_count: int,
        goal_count: int,
        generated_count: int,
        balance: str,
        error_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log the outcome of a refresh cycle."""
        self._emit(
            AuditEventBuilder.refresh_completed,
            transaction_count=transaction_count,
            goal_count=goal_count,
            generated_count=generated_count,
            balance=balance,
            error_count=error_count,
            correlation_id=correlation_id,
        )

    def log_recurring_generated(
        self,
        rule_id: str,
        transaction_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a materialized recurring transaction."""
        self._emit(
            AuditEventBuilder.recurring_generated,
            rule_id=rule_id,
            transaction_id=transaction_id,
            amount=amount,
            correlation_id=correlation_id,
        )

    def log_recurring_rule_skipped(
        self,
        rule_id: Optional[str],
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a rule the engine could not evaluate."""
        self._emit(
            AuditEventBuilder.recurring_rule_skipped,
            rule_id=rule_id,
            reason=reason,
            correlation_id=correlation_id,
        )

    def log_transaction_created(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self._emit(
            AuditEventBuilder.transaction_created,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        )

    def log_recurring_rule_created(
        self,
        rule_id: str,
        day_of_month: int,
        correlation_id: UUID,
    ) -> None:
        self._emit(
            AuditEventBuilder.recurring_rule_created,
            rule_id=rule_id,
            day_of_month=day_of_month,
            correlation_id=correlation_id,
        )

    def log_goal_created(
        self,
        goal_id: str,
        name: str,
        target_amount: str,
        correlation_id: UUID,
    ) -> None:
        self._emit(
            AuditEventBuilder.goal_created,
            goal_id=goal_id,
            name=name,
            target_amount=target_amount,
            correlation_id=correlation_id,
        )

    def log_goal_adjusted(
        self,
        goal_id: str,
        kind: str,
        amount: str,
        previous_amount: str,
        new_amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a deposit or withdrawal."""
        self._emit(
            AuditEventBuilder.goal_adjusted,
            goal_id=goal_id,
            kind=kind,
            amount=amount,
            previous_amount=previous_amount,
            new_amount=new_amount,
            correlation_id=correlation_id,
        )

    def log_goal_transaction_rejected(
        self,
        goal_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self._emit(
            AuditEventBuilder.goal_transaction_rejected,
            goal_id=goal_id,
            reason=reason,
            correlation_id=correlation_id,
        )

    def log_ledger_cleared(self, correlation_id: UUID) -> None:
        self._emit(AuditEventBuilder.ledger_cleared, correlation_id)

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store read or write."""
        self._emit(
            AuditEventBuilder.storage_error,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self._emit(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a refresh or a user action and pass it
    through all subsequent operations.
    """
    return uuid4()
