"""
Recurring Engine

Decides, per recurring rule, whether a transaction must be materialized
for the current calendar month, and produces the new transactions plus
the updated rules.

DESIGN DECISION: The engine is a pure function of (now, rules).
It performs no I/O. The refresh flow persists its output.

GENERATION CONDITION:
    no lastGenerated
    OR (lastGenerated is in an earlier month AND today >= dayOfMonth)

A dayOfMonth that doesn't exist this month (31 in April) never triggers
that month. This is the observed behavior and is kept as-is.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, Union

from pydantic import ValidationError

from moneysaver.errors import InvalidTimestamp
from moneysaver.engine.records import (
    RECURRING_NOTE_SUFFIX,
    build_recurring_transaction,
)
from moneysaver.models.ledger import (
    MaterializeResult,
    RecurringRule,
    SkippedRule,
    new_id,
    parse_timestamp,
    record_id_of,
)


RuleInput = Union[RecurringRule, dict[str, Any]]


def _period(ts: datetime) -> tuple[int, int]:
    return ts.year, ts.month


def needs_generation(rule: RecurringRule, now: datetime) -> bool:
    """Whether ``rule`` owes a transaction for ``now``'s month."""
    last = rule.last_generated
    if last is None:
        return True

    # Compare months in the caller's timezone when both sides have one
    if last.tzinfo is not None and now.tzinfo is not None:
        last = last.astimezone(now.tzinfo)

    # lastGenerated never moves backwards, so a later period never triggers
    return _period(last) < _period(now) and now.day >= rule.day_of_month


def coerce_rule(rule: RuleInput) -> RecurringRule:
    """
    Accept either a model or a raw stored record.

    Raises:
        InvalidTimestamp: If lastGenerated is malformed
        pydantic.ValidationError: If any other field is invalid
    """
    if isinstance(rule, RecurringRule):
        return rule
    if not isinstance(rule, dict):
        raise TypeError(f"Unsupported rule record: {type(rule).__name__}")
    return RecurringRule.from_record(rule)


def materialize(
    now: Union[datetime, str],
    rules: Iterable[RuleInput],
    note_suffix: str = RECURRING_NOTE_SUFFIX,
    id_factory: Callable[[], str] = new_id,
) -> MaterializeResult:
    """
    Run one recurring pass.

    Each rule is decided independently. Rules that need no generation
    are passed through unchanged in ``updated_rules``. Rules that cannot
    be evaluated are reported in ``skipped`` and the batch continues.

    Args:
        now: Current time (datetime or ISO-8601 string)
        rules: Rules as models or stored records
        note_suffix: Appended to the rule's note on the new transaction
        id_factory: Source of fresh transaction ids

    Returns:
        MaterializeResult with new transactions, rules and skips

    Raises:
        InvalidTimestamp: If ``now`` itself is malformed
    """
    now = parse_timestamp(now)
    result = MaterializeResult()

    for raw in rules:
        try:
            rule = coerce_rule(raw)
        except InvalidTimestamp as e:
            result.skipped.append(SkippedRule(rule_id=record_id_of(raw), reason=str(e)))
            continue
        except (ValidationError, TypeError, ValueError) as e:
            result.skipped.append(
                SkippedRule(rule_id=record_id_of(raw), reason=f"Invalid rule: {e}")
            )
            continue

        if not needs_generation(rule, now):
            result.updated_rules.append(rule)
            continue

        result.new_transactions.append(
            build_recurring_transaction(rule, now, note_suffix, id_factory)
        )
        result.updated_rules.append(rule.model_copy(update={"last_generated": now}))
        result.changed_rule_ids.append(rule.id)

    return result
