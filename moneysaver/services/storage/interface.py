"""
Abstract Ledger Store Interface

DESIGN DECISION: The ledger is three named collections (transactions,
goals, recurring rules) read and written as whole lists. This allows us to:
1. Keep the on-device JSON-array-per-collection format
2. Use in-memory storage for testing
3. Swap to Google Sheets (or a real database) later

The interface is intentionally minimal: read everything, overwrite
everything. There is no partial update and no multi-collection
transaction. Typed operations live in LedgerRepository.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from moneysaver.errors import MoneySaverError


class Collection(str, Enum):
    """The ledger collections."""
    TRANSACTIONS = "transactions"
    GOALS = "goals"
    RECURRING_RULES = "recurringRules"


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage.

    Any backend (memory, JSON files, Google Sheets, ...) must implement
    whole-collection read and whole-collection overwrite.
    """

    @abstractmethod
    async def read_collection(self, name: Collection) -> list[dict[str, Any]]:
        """
        Read every record of a collection, in stored order.

        Args:
            name: Collection to read

        Returns:
            List of raw records, empty if never written

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def write_collection(
        self,
        name: Collection,
        records: list[dict[str, Any]],
    ) -> bool:
        """
        Replace a collection with the given records.

        Args:
            name: Collection to overwrite
            records: Full new content, in order

        Returns:
            True if written successfully

        Raises:
            StorageUnavailableError: If the write fails
        """
        pass


class StorageError(MoneySaverError):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """The backend could not be read or written."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a record whose id already exists."""
    pass
