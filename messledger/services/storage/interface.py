"""
Abstract Storage Interface

DESIGN DECISION: Storage deals in whole LedgerSnapshots.
The ledger is small (one mess, a few months of records), so every
save writes the complete state and every load reads it back. This allows us to:
1. Swap the JSON file for Google Sheets without touching the core
2. Use in-memory storage for testing
3. Keep the ledger store free of any I/O

The interface is synchronous. The session saves after every mutation
and the core never waits on anything else.
"""

from abc import ABC, abstractmethod
from typing import Optional

from messledger.models.snapshot import LedgerSnapshot


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation (JSON file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """
        Read the persisted ledger.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            StorageError: If the stored data cannot be read
        """
        pass

    @abstractmethod
    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        """
        Replace the persisted ledger with this snapshot.

        Raises:
            StorageError: If save fails
        """
        pass


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Keeps the last saved snapshot in memory. Nothing survives the process."""

    def __init__(self, snapshot: Optional[LedgerSnapshot] = None):
        self._snapshot = snapshot
        self.save_count = 0

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        return self._snapshot

    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        self._snapshot = snapshot
        self.save_count += 1


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
