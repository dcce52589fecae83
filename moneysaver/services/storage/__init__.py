"""
Storage Services Package

Provides the abstract ledger store interface, its backends and the typed
repository on top. The JSON file backend is the default, but every
backend is swappable.
"""

from moneysaver.services.storage.interface import (
    Collection,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from moneysaver.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)
from moneysaver.services.storage.json_file import JsonFileLedgerStore
from moneysaver.services.storage.memory import InMemoryLedgerStore
from moneysaver.services.storage.repository import (
    LedgerRepository,
    create_store,
    load_records,
)

__all__ = [
    # Interface
    "Collection",
    "LedgerStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Backends
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    # Repository
    "LedgerRepository",
    "create_store",
    "load_records",
]
