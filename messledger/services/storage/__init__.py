"""Storage services for ledger snapshots."""

from messledger.services.storage.interface import (
    ConnectionError,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from messledger.services.storage.json_file import JsonFileLedgerStorage
from messledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "LedgerStorageInterface",
    "StorageError",
]
