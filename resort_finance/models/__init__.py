"""
Data Models Package

This package contains all Pydantic models used in the Resort Finance Hub.
All data flowing through the system must conform to these schemas.
"""

from resort_finance.models.booking import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    CheckInRequest,
    CustomerType,
    GuestData,
    QuickBookRequest,
    ValidationIssue,
    ValidationResult,
)
from resort_finance.models.transaction import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Category,
    ExtractionResult,
    NewTransaction,
    ReceiptIntent,
    ResortProfile,
    ResortSnapshot,
    Transaction,
    TransactionType,
)
from resort_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Booking models
    "ACTIVE_STATUSES",
    "Booking",
    "BookingStatus",
    "CheckInRequest",
    "CustomerType",
    "GuestData",
    "QuickBookRequest",
    "ValidationIssue",
    "ValidationResult",
    # Ledger models
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "Category",
    "ExtractionResult",
    "NewTransaction",
    "ReceiptIntent",
    "ResortProfile",
    "ResortSnapshot",
    "Transaction",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
