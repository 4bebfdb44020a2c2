"""Ledger store and category management."""

from messledger.ledger.categories import CategoryManager
from messledger.ledger.errors import (
    LedgerError,
    RecordValidationError,
    UnsupportedModeError,
)
from messledger.ledger.store import LedgerStore

__all__ = [
    "CategoryManager",
    "LedgerError",
    "LedgerStore",
    "RecordValidationError",
    "UnsupportedModeError",
]
