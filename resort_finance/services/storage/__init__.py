"""
Storage Services Package

Provides abstract interfaces and concrete implementations for persisting
the resort snapshot and the audit trail.
"""

from resort_finance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptDataError,
    SnapshotStorageInterface,
    StorageError,
)
from resort_finance.services.storage.local_json import LocalJSONStorage
from resort_finance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "StorageError",
    # Local implementation
    "LocalJSONStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
]
