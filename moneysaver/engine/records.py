"""Record construction for new transactions, recurring rules and goals."""

from datetime import datetime
from typing import Callable

from moneysaver.models.ledger import (
    Goal,
    GoalDraft,
    RecurringRule,
    Transaction,
    TransactionDraft,
    new_id,
)


RECURRING_NOTE_SUFFIX = " (Recurring)"


def build_transaction(
    draft: TransactionDraft,
    now: datetime,
    id_factory: Callable[[], str] = new_id,
) -> Transaction:
    """A user-entered transaction dated ``now``."""
    return Transaction(
        id=id_factory(),
        amount=draft.amount,
        category=draft.category,
        type=draft.type,
        note=draft.note,
        date=now,
    )


def build_recurring_rule(
    transaction: Transaction,
    now: datetime,
    id_factory: Callable[[], str] = new_id,
) -> RecurringRule:
    """
    Rule that repeats ``transaction`` on the same day every month.

    lastGenerated is set to ``now`` so the originating transaction
    counts as this month's instance.
    """
    return RecurringRule(
        id=id_factory(),
        amount=transaction.amount,
        category=transaction.category,
        type=transaction.type,
        note=transaction.note,
        day_of_month=now.day,
        last_generated=now,
    )


def build_recurring_transaction(
    rule: RecurringRule,
    now: datetime,
    note_suffix: str = RECURRING_NOTE_SUFFIX,
    id_factory: Callable[[], str] = new_id,
) -> Transaction:
    """This period's instance of a recurring rule."""
    return Transaction(
        id=id_factory(),
        amount=rule.amount,
        category=rule.category,
        type=rule.type,
        note=f"{rule.note}{note_suffix}",
        date=now,
    )


def build_goal(
    draft: GoalDraft,
    id_factory: Callable[[], str] = new_id,
) -> Goal:
    """A new goal starts with nothing saved."""
    return Goal(
        id=id_factory(),
        name=draft.name,
        target_amount=draft.target_amount,
    )
