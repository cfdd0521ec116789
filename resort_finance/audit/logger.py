"""
Audit Logger

DESIGN DECISION: Every significant front desk action is logged.
This provides:
1. Traceability of bookings and money
2. Debugging capability when a collaborator fails
3. A visible record of locks released by the background sweep

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from resort_finance.models.audit import AuditEvent, AuditEventBuilder
from resort_finance.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage such as Google Sheets (for the owner to review)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("resort_finance.audit")
        self._recent: list[AuditEvent] = []

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Events logged by this process, newest first."""
        return list(reversed(self._recent))

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        self._recent.append(event)
        del self._recent[:-200]

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Audit failures never break the main flow
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_booking_locked(
        self,
        booking_id: str,
        room_number: str,
        guest_name: str,
        locked_until: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a quick-book room lock."""
        await self.log(AuditEventBuilder.booking_locked(
            booking_id=booking_id,
            room_number=room_number,
            guest_name=guest_name,
            locked_until=locked_until,
            correlation_id=correlation_id,
        ))

    async def log_lock_expired(
        self,
        booking_id: str,
        room_number: str,
        locked_until: Optional[datetime],
    ) -> None:
        await self.log(AuditEventBuilder.lock_expired(
            booking_id=booking_id,
            room_number=room_number,
            locked_until=locked_until,
        ))

    async def log_guest_checked_in(
        self,
        booking_id: str,
        room_number: str,
        guest_name: str,
        transaction_id: str,
        converted_existing: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log check-in (booking side and ledger side together)."""
        await self.log(AuditEventBuilder.guest_checked_in(
            booking_id=booking_id,
            room_number=room_number,
            guest_name=guest_name,
            transaction_id=transaction_id,
            converted_existing=converted_existing,
            correlation_id=correlation_id,
        ))

    async def log_guest_checked_out(self, booking_id: str, room_number: str) -> None:
        await self.log(AuditEventBuilder.guest_checked_out(booking_id, room_number))

    async def log_bookings_imported(
        self,
        count: int,
        rejected: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bookings_imported(
            count=count,
            rejected=rejected,
            source=source,
            correlation_id=correlation_id,
        ))

    async def log_import_row_rejected(
        self,
        row_number: int,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.import_row_rejected(
            row_number=row_number,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        request_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected front desk request."""
        await self.log(AuditEventBuilder.validation_failed(
            request_type=request_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_transaction_added(
        self,
        transaction_id: str,
        tx_type: str,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            tx_type=tx_type,
            category=category,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(self, transaction_id: str) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    async def log_reconcile_toggled(self, transaction_id: str, is_reconciled: bool) -> None:
        await self.log(AuditEventBuilder.reconcile_toggled(transaction_id, is_reconciled))

    async def log_ocr_completed(
        self,
        document_kind: str,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log OCR completion."""
        await self.log(AuditEventBuilder.ocr_completed(
            document_kind=document_kind,
            confidence=confidence,
            correlation_id=correlation_id,
        ))

    async def log_ocr_failed(
        self,
        document_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ocr_failed(
            document_kind=document_kind,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_settings_updated(self, changed: list[str]) -> None:
        await self.log(AuditEventBuilder.settings_updated(changed))

    async def log_data_cleared(self, transactions: int, bookings: int) -> None:
        await self.log(AuditEventBuilder.data_cleared(transactions, bookings))

    async def log_persistence_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.persistence_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_invariant_violation(self, booking_id: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.invariant_violation(booking_id, error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a check-in).
    Pass it through all subsequent operations.
    """
    return uuid4()
