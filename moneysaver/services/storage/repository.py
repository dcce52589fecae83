"""
Ledger Repository

Typed operations over a LedgerStoreInterface. Every mutation is a
whole-collection read-modify-write, so two concurrent writers to the
same collection can lose an update (last write wins). Callers serialize.

Loading is lenient: a stored record that fails validation is logged and
skipped instead of failing the whole read. Writes that replace records
by id leave such records untouched.
"""

from typing import Any, Callable, Iterable, Optional, TypeVar

import structlog
from pydantic import ValidationError

from moneysaver.config import get_settings
from moneysaver.errors import InvalidTimestamp
from moneysaver.models.ledger import (
    Goal,
    RecurringRule,
    Transaction,
    record_id_of,
)
from moneysaver.services.storage.google_sheets import GoogleSheetsLedgerStore
from moneysaver.services.storage.interface import (
    Collection,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
)
from moneysaver.services.storage.json_file import JsonFileLedgerStore
from moneysaver.services.storage.memory import InMemoryLedgerStore


T = TypeVar("T")

logger = structlog.get_logger(__name__)


def load_records(
    collection: Collection,
    records: Iterable[dict[str, Any]],
    parser: Callable[[dict[str, Any]], T],
) -> list[T]:
    """Parse stored records, skipping (and logging) malformed ones."""
    loaded = []
    for record in records:
        try:
            loaded.append(parser(record))
        except (ValidationError, InvalidTimestamp, TypeError, ValueError) as e:
            record_id = record_id_of(record)
            logger.warning(
                "record_skipped",
                collection=Collection(collection).value,
                record_id=record_id,
                error=str(e),
            )
    return loaded


class LedgerRepository:
    """Transactions, goals and recurring rules on top of a ledger store."""

    def __init__(self, store: LedgerStoreInterface):
        self._store = store

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    # -------------------------------------------------------------------------
    # Transactions (most recent first)
    # -------------------------------------------------------------------------

    async def get_transaction_records(self) -> list[dict[str, Any]]:
        return await self._store.read_collection(Collection.TRANSACTIONS)

    async def get_transactions(self) -> list[Transaction]:
        records = await self.get_transaction_records()
        return load_records(Collection.TRANSACTIONS, records, Transaction.model_validate)

    async def prepend_transactions(self, transactions: list[Transaction]) -> bool:
        """
        Insert new transactions at the head of the collection.

        Raises:
            DuplicateError: If any id is already stored
        """
        if not transactions:
            return True

        existing = await self.get_transaction_records()
        stored_ids = {record_id_of(r) for r in existing}
        new_ids = [t.id for t in transactions]
        clashes = stored_ids.intersection(new_ids)
        if clashes or len(set(new_ids)) != len(new_ids):
            raise DuplicateError(f"Transaction id already exists: {sorted(clashes) or new_ids}")

        records = [t.to_record() for t in transactions] + existing
        return await self._store.write_collection(Collection.TRANSACTIONS, records)

    async def add_transaction(self, transaction: Transaction) -> bool:
        return await self.prepend_transactions([transaction])

    # -------------------------------------------------------------------------
    # Goals (append order)
    # -------------------------------------------------------------------------

    async def get_goals(self) -> list[Goal]:
        records = await self._store.read_collection(Collection.GOALS)
        return load_records(Collection.GOALS, records, Goal.model_validate)

    async def get_goal(self, goal_id: str) -> Goal:
        """
        Raises:
            NotFoundError: If no valid goal has this id
        """
        for goal in await self.get_goals():
            if goal.id == goal_id:
                return goal
        raise NotFoundError(f"Goal not found: {goal_id}")

    async def add_goal(self, goal: Goal) -> bool:
        existing = await self._store.read_collection(Collection.GOALS)
        if any(record_id_of(r) == goal.id for r in existing):
            raise DuplicateError(f"Goal id already exists: {goal.id}")
        return await self._store.write_collection(
            Collection.GOALS, existing + [goal.to_record()]
        )

    async def update_goal(self, goal: Goal) -> bool:
        """
        Replace a stored goal by id.

        Raises:
            NotFoundError: If the goal doesn't exist
        """
        existing = await self._store.read_collection(Collection.GOALS)
        if not any(record_id_of(r) == goal.id for r in existing):
            raise NotFoundError(f"Goal not found: {goal.id}")

        records = [
            goal.to_record() if record_id_of(r) == goal.id else r
            for r in existing
        ]
        return await self._store.write_collection(Collection.GOALS, records)

    # -------------------------------------------------------------------------
    # Recurring rules (append order)
    # -------------------------------------------------------------------------

    async def get_recurring_rule_records(self) -> list[dict[str, Any]]:
        return await self._store.read_collection(Collection.RECURRING_RULES)

    async def get_recurring_rules(self) -> list[RecurringRule]:
        records = await self.get_recurring_rule_records()
        return load_records(Collection.RECURRING_RULES, records, RecurringRule.from_record)

    async def add_recurring_rule(self, rule: RecurringRule) -> bool:
        existing = await self.get_recurring_rule_records()
        if any(record_id_of(r) == rule.id for r in existing):
            raise DuplicateError(f"Recurring rule id already exists: {rule.id}")
        return await self._store.write_collection(
            Collection.RECURRING_RULES, existing + [rule.to_record()]
        )

    async def replace_recurring_rules(self, rules: list[RecurringRule]) -> bool:
        """
        Write back updated rules, matched by id.

        Stored records without a matching update (including malformed
        ones) are kept exactly as they were.
        """
        if not rules:
            return True

        replacements = {rule.id: rule.to_record() for rule in rules}
        existing = await self.get_recurring_rule_records()
        records = [replacements.get(record_id_of(r), r) for r in existing]
        return await self._store.write_collection(Collection.RECURRING_RULES, records)

    async def update_recurring_rule(self, rule: RecurringRule) -> bool:
        return await self.replace_recurring_rules([rule])

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def clear_all(self) -> None:
        """Reset all three collections to empty."""
        for name in Collection:
            await self._store.write_collection(name, [])


def create_store(backend: Optional[str] = None) -> LedgerStoreInterface:
    """Build the ledger store selected in settings (or by ``backend``)."""
    backend = (backend or get_settings().storage.backend).lower()

    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "json":
        return JsonFileLedgerStore()
    if backend == "google_sheets":
        return GoogleSheetsLedgerStore()

    raise ValueError(f"Unknown storage backend: {backend}")
