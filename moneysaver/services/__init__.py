"""Services package."""

from moneysaver.services.storage import (
    Collection,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    JsonFileLedgerStore,
    LedgerRepository,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
    create_store,
)

__all__ = [
    "Collection",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    "LedgerRepository",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    "create_store",
]
