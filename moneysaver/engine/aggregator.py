"""
Ledger Aggregator

Sums income and expense over the transaction list and derives the
net balance. Sign is not validated: whatever amount is stored is summed.
A missing or non-numeric amount counts as zero instead of raising.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from moneysaver.models.ledger import LedgerTotals, Transaction, TransactionType


ZERO = Decimal("0")

TransactionInput = Union[Transaction, Mapping[str, Any]]


def to_decimal(value: Any) -> Decimal:
    """Standard decimal parsing; anything unparseable or non-finite is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return ZERO
    return result if result.is_finite() else ZERO


def _type_of(transaction: TransactionInput) -> Optional[TransactionType]:
    raw = (
        transaction.type
        if isinstance(transaction, Transaction)
        else transaction.get("type")
    )
    try:
        return TransactionType(raw)
    except ValueError:
        return None


def _amount_of(transaction: TransactionInput) -> Decimal:
    if isinstance(transaction, Transaction):
        return transaction.amount
    return to_decimal(transaction.get("amount"))


def aggregate(transactions: Iterable[TransactionInput]) -> LedgerTotals:
    """
    Compute total income, total expense and balance.

    Entries of unknown type contribute to neither total.
    """
    income = ZERO
    expense = ZERO

    for transaction in transactions:
        kind = _type_of(transaction)
        if kind == TransactionType.INCOME:
            income += _amount_of(transaction)
        elif kind == TransactionType.EXPENSE:
            expense += _amount_of(transaction)

    return LedgerTotals(income=income, expense=expense, balance=income - expense)
