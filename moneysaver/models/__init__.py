"""
Data Models Package

All records stored in the ledger and all values exchanged between the
engine, the flows and the UI are Pydantic models defined here.
"""

from moneysaver.models.ledger import (
    DEFAULT_CATEGORIES,
    Goal,
    GoalDraft,
    GoalTransactionKind,
    LedgerSnapshot,
    LedgerTotals,
    MaterializeResult,
    RecurringRule,
    SkippedRule,
    Transaction,
    TransactionDraft,
    TransactionType,
    new_id,
    parse_timestamp,
    record_id_of,
)
from moneysaver.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "Goal",
    "GoalDraft",
    "GoalTransactionKind",
    "LedgerSnapshot",
    "LedgerTotals",
    "MaterializeResult",
    "RecurringRule",
    "SkippedRule",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "new_id",
    "parse_timestamp",
    "record_id_of",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
