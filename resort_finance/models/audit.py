"""
Audit Models for Resort Finance Hub

Every significant front desk and ledger action is logged for audit purposes.
This provides:
1. Traceability of who-did-what to bookings and money
2. Debugging information when a collaborator fails
3. A record of locks the sweep removed (the only autonomous mutation)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them,
not even on "clear all data".
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Booking lifecycle
    BOOKING_LOCKED = "booking_locked"
    LOCK_EXPIRED = "lock_expired"
    GUEST_CHECKED_IN = "guest_checked_in"
    GUEST_CHECKED_OUT = "guest_checked_out"
    BOOKINGS_IMPORTED = "bookings_imported"
    IMPORT_ROW_REJECTED = "import_row_rejected"
    BOOKING_VALIDATION_FAILED = "booking_validation_failed"

    # Ledger
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    RECONCILE_TOGGLED = "reconcile_toggled"

    # OCR
    OCR_COMPLETED = "ocr_completed"
    OCR_FAILED = "ocr_failed"

    # Settings / data
    SETTINGS_UPDATED = "settings_updated"
    DATA_CLEARED = "data_cleared"
    PERSISTENCE_FAILED = "persistence_failed"

    # Store integrity
    INVARIANT_VIOLATION = "invariant_violation"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'booking', 'transaction')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., the booking and ledger side of a check-in)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.booking_locked(booking_id, room, until)
        event = AuditEventBuilder.lock_expired(booking_id, room, until)
    """

    @staticmethod
    def booking_locked(
        booking_id: str,
        room_number: str,
        guest_name: str,
        locked_until: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOKING_LOCKED,
            entity_type="booking",
            entity_id=booking_id,
            correlation_id=correlation_id,
            description=f"Room {room_number} locked for {guest_name}",
            details={
                "room_number": room_number,
                "locked_until": locked_until.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def lock_expired(
        booking_id: str,
        room_number: str,
        locked_until: Optional[datetime],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCK_EXPIRED,
            entity_type="booking",
            entity_id=booking_id,
            description=f"Lock on room {room_number} expired and was released",
            details={
                "room_number": room_number,
                "locked_until": locked_until.isoformat() if locked_until else None,
            },
        )

    @staticmethod
    def guest_checked_in(
        booking_id: str,
        room_number: str,
        guest_name: str,
        transaction_id: str,
        converted_existing: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUEST_CHECKED_IN,
            entity_type="booking",
            entity_id=booking_id,
            correlation_id=correlation_id,
            description=f"{guest_name} checked in to room {room_number}",
            details={
                "room_number": room_number,
                "transaction_id": transaction_id,
                "converted_existing_booking": converted_existing,
            },
            is_user_action=True,
        )

    @staticmethod
    def guest_checked_out(booking_id: str, room_number: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUEST_CHECKED_OUT,
            entity_type="booking",
            entity_id=booking_id,
            description=f"Room {room_number} checked out",
            is_user_action=True,
        )

    @staticmethod
    def bookings_imported(
        count: int,
        rejected: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOKINGS_IMPORTED,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Imported {count} bookings from {source} ({rejected} rows rejected)",
            details={
                "imported": count,
                "rejected": rejected,
                "source": source,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_row_rejected(
        row_number: int,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_ROW_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Import row {row_number} rejected",
            error_message=reason,
            details={"row_number": row_number},
        )

    @staticmethod
    def validation_failed(
        request_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOKING_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="request",
            correlation_id=correlation_id,
            description=f"{request_type} rejected with {len(issues)} issues",
            details={
                "request_type": request_type,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        tx_type: str,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{tx_type.capitalize()} recorded: {category} ฿{amount}",
            details={
                "type": tx_type,
                "category": category,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def reconcile_toggled(transaction_id: str, is_reconciled: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILE_TOGGLED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                "Transaction marked reconciled"
                if is_reconciled
                else "Transaction marked unreconciled"
            ),
            details={"is_reconciled": is_reconciled},
            is_user_action=True,
        )

    @staticmethod
    def ocr_completed(
        document_kind: str,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"OCR of {document_kind} completed with {confidence:.0%} confidence",
            details={
                "document_kind": document_kind,
                "confidence_score": confidence,
            },
        )

    @staticmethod
    def ocr_failed(
        document_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"OCR of {document_kind} failed",
            error_message=error_message,
            details={"document_kind": document_kind},
        )

    @staticmethod
    def settings_updated(changed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description=f"Settings updated: {', '.join(changed) or 'no changes'}",
            details={"changed_fields": changed},
            is_user_action=True,
        )

    @staticmethod
    def data_cleared(transactions: int, bookings: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="All transactions and bookings cleared",
            details={
                "transactions_removed": transactions,
                "bookings_removed": bookings,
            },
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Persistence {operation} failed",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def invariant_violation(
        booking_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVARIANT_VIOLATION,
            severity=AuditSeverity.CRITICAL,
            entity_type="booking",
            entity_id=booking_id,
            description="Booking store invariant violated",
            error_message=error_message,
        )
