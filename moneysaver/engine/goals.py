"""
Goal Progress Calculator

Deposits are capped at the target (excess is discarded) and withdrawals
are floored at zero, so currentAmount always stays in [0, targetAmount].
Invalid input is rejected before anything changes.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Union

from moneysaver.errors import RejectedError
from moneysaver.models.ledger import Goal, GoalTransactionKind


def parse_amount(value: Any) -> Decimal:
    """
    Validate a goal deposit/withdraw amount.

    Raises:
        RejectedError: If the amount is absent, non-numeric, non-finite,
            zero or negative
    """
    if value is None or isinstance(value, bool):
        raise RejectedError("Amount is required")
    if isinstance(value, str) and not value.strip():
        raise RejectedError("Amount is required")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise RejectedError(f"Amount is not a number: {value!r}")

    if not amount.is_finite():
        raise RejectedError(f"Amount is not a number: {value!r}")
    if amount <= 0:
        raise RejectedError("Amount must be greater than zero")
    return amount


def parse_kind(kind: Union[GoalTransactionKind, str]) -> GoalTransactionKind:
    try:
        return GoalTransactionKind(kind)
    except ValueError:
        raise RejectedError(f"Unknown goal transaction: {kind!r}")


def apply_delta(
    goal: Goal,
    kind: Union[GoalTransactionKind, str],
    amount: Any,
) -> Goal:
    """
    Return a copy of ``goal`` with the deposit or withdrawal applied.

    Raises:
        RejectedError: If kind or amount is invalid (goal untouched)
    """
    kind = parse_kind(kind)
    amount = parse_amount(amount)

    if kind == GoalTransactionKind.DEPOSIT:
        new_current = min(goal.current_amount + amount, goal.target_amount)
    else:
        new_current = max(goal.current_amount - amount, Decimal("0"))

    return goal.model_copy(update={"current_amount": new_current})
