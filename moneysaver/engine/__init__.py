"""Pure ledger computations: recurring materialization, totals, goal progress."""

from moneysaver.engine.aggregator import aggregate, to_decimal
from moneysaver.engine.goals import apply_delta, parse_amount, parse_kind
from moneysaver.engine.records import (
    RECURRING_NOTE_SUFFIX,
    build_goal,
    build_recurring_rule,
    build_recurring_transaction,
    build_transaction,
)
from moneysaver.engine.recurring import coerce_rule, materialize, needs_generation

__all__ = [
    "RECURRING_NOTE_SUFFIX",
    "aggregate",
    "apply_delta",
    "build_goal",
    "build_recurring_rule",
    "build_recurring_transaction",
    "build_transaction",
    "coerce_rule",
    "materialize",
    "needs_generation",
    "parse_amount",
    "parse_kind",
    "to_decimal",
]
