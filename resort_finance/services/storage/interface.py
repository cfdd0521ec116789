"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run the front desk purely locally (JSON file) or synced (Google Sheets)
2. Use temporary files or fakes for testing
3. Keep the booking store and ledger decoupled from persistence

The core persists the WHOLE state as one snapshot after every successful
mutation. The datasets are small (one resort), so there is no need for
per-row operations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from resort_finance.models.audit import AuditEvent
from resort_finance.models.transaction import ResortSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for resort snapshot persistence.

    Any storage implementation (local file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load(self) -> Optional[ResortSnapshot]:
        """
        Load the last saved snapshot.

        Returns:
            The snapshot, or None when nothing has been saved yet.
            Callers treat None as an empty initial state.

        Raises:
            StorageError: If stored data exists but cannot be read
        """
        pass

    @abstractmethod
    async def save(self, snapshot: ResortSnapshot) -> bool:
        """
        Replace the stored snapshot.

        Args:
            snapshot: Complete {transactions, bookings, settings} state

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """
        Remove all stored data.

        Returns:
            True if cleared successfully
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored data exists but does not match the snapshot schema."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
