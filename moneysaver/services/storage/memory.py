"""In-memory ledger store, used for tests and ephemeral sessions."""

import copy
from typing import Any, Optional

from moneysaver.services.storage.interface import (
    Collection,
    LedgerStoreInterface,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Keeps each collection as a list in a dict.

    Records are deep-copied on the way in and out so callers can never
    mutate stored state behind the store's back.
    """

    def __init__(self, initial: Optional[dict[Collection, list[dict[str, Any]]]] = None):
        self._collections: dict[Collection, list[dict[str, Any]]] = {}
        for name, records in (initial or {}).items():
            self._collections[Collection(name)] = copy.deepcopy(list(records))

    async def read_collection(self, name: Collection) -> list[dict[str, Any]]:
        return copy.deepcopy(self._collections.get(Collection(name), []))

    async def write_collection(
        self,
        name: Collection,
        records: list[dict[str, Any]],
    ) -> bool:
        self._collections[Collection(name)] = copy.deepcopy(list(records))
        return True
