"""
Main Orchestrator for Resort Finance Hub

This module ties together all the components and defines the
end-to-end front desk flows:
1. Quick book (form → validate → lock room → persist)
2. Check-in (form → validate → booking + room revenue → persist)
3. Receipt scan (photo → prepare → OCR → review → confirm → record)
4. OTA import (file → parse → preview → confirm → store)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the booking store or ledger without passing validation
- Nothing scanned is recorded without human confirmation
- Every successful mutation is followed by one awaited snapshot save
- Every step is audited

Store and ledger calls are synchronous and never await, so two front desk
actions can never interleave inside a mutation. Only persistence, OCR and
audit storage are awaited.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from resort_finance.audit import AuditLogger, create_correlation_id
from resort_finance.bookings import (
    BookingInvariantError,
    BookingStore,
    LockSweeper,
    utc_now,
)
from resort_finance.config import AppSettings, get_settings
from resort_finance.ledger import TransactionLedger
from resort_finance.models.booking import (
    Booking,
    CheckInRequest,
    CustomerType,
    GuestData,
    QuickBookRequest,
    ValidationResult,
)
from resort_finance.models.transaction import (
    Category,
    ExtractionResult,
    NewTransaction,
    ReceiptIntent,
    ResortProfile,
    ResortSnapshot,
    Transaction,
    TransactionType,
)
from resort_finance.services.image import InvalidImageError, prepare_image
from resort_finance.services.importer import ImportFileError, ImportResult, OTAImporter
from resort_finance.services.ocr import (
    GeminiOCRService,
    OCRError,
    ZeroAmountExtractionError,
)
from resort_finance.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    LocalJSONStorage,
    SnapshotStorageInterface,
    StorageError,
)
from resort_finance.validation import BookingValidationError, FrontDeskValidator
from resort_finance.views import (
    Dashboard,
    financial_summary,
    occupancy_insights,
    pending_items,
)


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReceiptScan:
    """A proposed transaction plus the evidence image, awaiting review."""
    extraction: ExtractionResult
    image_url: str


class ResortOperations:
    """
    Front desk command surface.

    The UI calls these methods and renders the store, ledger and views.
    Collaborators are injectable; anything not given is built from settings.
    """

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        ledger: Optional[TransactionLedger] = None,
        storage: Optional[SnapshotStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        ocr_service: Optional[GeminiOCRService] = None,
        importer: Optional[OTAImporter] = None,
        validator: Optional[FrontDeskValidator] = None,
        settings: Optional[AppSettings] = None,
        clock=None,
    ):
        self._settings = settings or get_settings().app
        deposit_rate = Decimal(str(self._settings.deposit_rate))

        self._clock = clock or utc_now
        self.store = store or BookingStore(
            clock=self._clock,
            lock_duration=timedelta(minutes=self._settings.lock_duration_minutes),
            deposit_rate=deposit_rate,
        )
        self.ledger = ledger or TransactionLedger()
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._ocr_service = ocr_service
        self._importer = importer or OTAImporter(deposit_rate=deposit_rate)
        self._validator = validator or FrontDeskValidator()
        self._sweeper = LockSweeper(
            self.store,
            interval_seconds=self._settings.sweep_interval_seconds,
            on_expired=self._on_locks_expired,
        )
        self._profile = ResortProfile()

    # -------------------------------------------------------------------------
    # State & lifecycle
    # -------------------------------------------------------------------------

    @property
    def profile(self) -> ResortProfile:
        return self._profile

    @property
    def validator(self) -> FrontDeskValidator:
        return self._validator

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def sweeper(self) -> LockSweeper:
        return self._sweeper

    @property
    def ocr_available(self) -> bool:
        return self._ocr_service is not None

    @property
    def has_storage(self) -> bool:
        return self._storage is not None

    def today(self) -> date:
        return self._clock().date()

    async def load(self) -> bool:
        """
        Load the persisted snapshot into the store and ledger.

        A missing snapshot is an empty resort. Returns True if data was loaded.

        Raises:
            StorageError: If stored data exists but cannot be read
        """
        if self._storage is None:
            return False

        try:
            snapshot = await self._storage.load()
        except StorageError as e:
            await self._audit_logger.log_persistence_failed("load", str(e))
            raise

        if snapshot is None:
            logger.info("snapshot_empty_start")
            return False

        self.store.replace_all(snapshot.bookings)
        self.ledger.replace_all(snapshot.transactions)
        self._apply_profile(snapshot.settings)
        logger.info(
            "snapshot_loaded",
            bookings=len(snapshot.bookings),
            transactions=len(snapshot.transactions),
        )
        return True

    def start(self) -> None:
        """Start the lock sweeper on the running event loop."""
        self._sweeper.start()

    async def shutdown(self) -> None:
        """Stop the sweeper. The store is not touched by it afterwards."""
        await self._sweeper.stop()

    async def sweep_now(self) -> list[Booking]:
        """Run one expiry sweep immediately (e.g., from the console's sweep timer)."""
        return await self._sweeper.sweep_once()

    async def _on_locks_expired(self, removed: list[Booking]) -> None:
        for booking in removed:
            await self._audit_logger.log_lock_expired(
                booking_id=booking.id,
                room_number=booking.room_number,
                locked_until=booking.locked_until,
            )
        # Nobody is waiting on the sweep; a failed save is audited, not raised
        await self._persist("sweep", raise_errors=False)

    # -------------------------------------------------------------------------
    # Booking flows
    # -------------------------------------------------------------------------

    async def quick_book(
        self,
        request: QuickBookRequest,
        correlation_id: Optional[UUID] = None,
    ) -> Booking:
        """
        Hold a room for an unpaid guest (LOCKED until the lock expires).

        Dates default to tonight: check-in today, check-out tomorrow.

        Raises:
            BookingValidationError: If the form is incomplete
        """
        correlation_id = correlation_id or create_correlation_id()

        check_in = request.check_in or self.today()
        check_out = request.check_out or check_in + timedelta(days=1)
        request = request.model_copy(update={"check_in": check_in, "check_out": check_out})

        await self._require_valid(self._validator.validate_quick_book(request), correlation_id)

        guest = GuestData(
            first_name_th=request.guest_name,
            phone=request.phone,
            customer_type=CustomerType.BOOKING,
        )
        booking = await self._guard(
            self.store.create_quick_lock,
            guest_name=request.guest_name,
            room_number=request.room_number,
            check_in=check_in,
            check_out=check_out,
            total_amount=request.amount,
            guest_details=guest,
        )

        await self._audit_logger.log_booking_locked(
            booking_id=booking.id,
            room_number=booking.room_number,
            guest_name=booking.guest_name,
            locked_until=booking.locked_until,
            correlation_id=correlation_id,
        )
        await self._persist("quick_book", correlation_id)
        return booking

    async def check_in(
        self,
        request: CheckInRequest,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Booking, Transaction]:
        """
        Check a guest in and record the room revenue.

        The room's active booking (if any) is converted in place; otherwise
        a walk-in booking is created. Either way one reconciled income
        transaction referencing the room is appended.

        Returns:
            (booking, room_revenue_transaction)

        Raises:
            BookingValidationError: If the form is incomplete
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(self._validator.validate_check_in(request), correlation_id)

        customer_type = CustomerType(request.customer_type)
        guest = request.guest.model_copy(update={"customer_type": customer_type})

        # Built before touching the store so a malformed entry changes nothing
        revenue = NewTransaction(
            date=self.today(),
            type=TransactionType.INCOME,
            category=request.category or Category.ROOM_REVENUE,
            amount=request.amount,
            description=(
                f"{request.description} ({customer_type.value}) "
                f"เช็คอิน {request.check_in.isoformat()} - {request.check_out.isoformat()}"
            ),
            is_reconciled=True,
            guest_data=guest,
            pms_reference_id=request.room_number,
            customer_type=customer_type,
        )

        outcome = await self._guard(
            self.store.check_in,
            guest=guest,
            room_number=request.room_number,
            amount=request.amount,
            check_in=request.check_in,
            check_out=request.check_out,
        )
        tx = self.ledger.append(revenue)

        await self._audit_logger.log_guest_checked_in(
            booking_id=outcome.booking.id,
            room_number=outcome.booking.room_number,
            guest_name=outcome.booking.guest_name,
            transaction_id=tx.id,
            converted_existing=outcome.converted_existing,
            correlation_id=correlation_id,
        )
        await self._persist("check_in", correlation_id)
        return outcome.booking, tx

    async def check_out(self, booking_id: str) -> Optional[Booking]:
        """Check a guest out. None when the booking is unknown or not checked in."""
        booking = await self._guard(self.store.check_out, booking_id)
        if booking is None:
            return None

        await self._audit_logger.log_guest_checked_out(booking.id, booking.room_number)
        await self._persist("check_out")
        return booking

    def import_bookings(
        self,
        source: Union[str, Path, BinaryIO],
        filename: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse an OTA export for preview. Nothing is stored yet.

        Raises:
            ImportFileError: If the file cannot be read at all
        """
        return self._importer.parse_file(source, filename=filename)

    async def confirm_import(
        self,
        result: ImportResult,
        correlation_id: Optional[UUID] = None,
    ) -> list[Booking]:
        """
        Store the previewed bookings as CONFIRMED.

        CRITICAL: Called ONLY after the operator reviewed the preview.
        Rejected rows are recorded in the audit trail.
        """
        correlation_id = correlation_id or create_correlation_id()

        added = await self._guard(self.store.add_confirmed, result.bookings)
        for error in result.errors:
            await self._audit_logger.log_import_row_rejected(
                row_number=error.row_number,
                reason=error.reason,
                correlation_id=correlation_id,
            )
        await self._audit_logger.log_bookings_imported(
            count=len(added),
            rejected=len(result.errors),
            source=result.source,
            correlation_id=correlation_id,
        )

        if added:
            await self._persist("import", correlation_id)
        return added

    async def record_booking_payment(self, booking_id: str) -> Optional[Transaction]:
        """
        Record the full stay amount as paid for a booking.

        The payment is linked by mentioning the booking id in the
        description. Returns None when the booking is unknown.
        """
        booking = self.store.get(booking_id)
        if booking is None:
            logger.warning("booking_not_found", booking_id=booking_id, op="record_payment")
            return None

        return await self.add_transaction(NewTransaction(
            date=self.today(),
            type=TransactionType.INCOME,
            category=Category.ROOM_REVENUE,
            amount=booking.total_amount,
            description=f"Payment for Booking {booking.id} - {booking.guest_name}",
            is_reconciled=True,
        ))

    # -------------------------------------------------------------------------
    # Ledger flows
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        new_tx: NewTransaction,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Record a transaction (manual entry, confirmed scan or payment)."""
        correlation_id = correlation_id or create_correlation_id()

        tx = self.ledger.append(new_tx)
        await self._audit_logger.log_transaction_added(
            transaction_id=tx.id,
            tx_type=tx.type.value,
            category=tx.category,
            amount=str(tx.amount),
            correlation_id=correlation_id,
        )
        await self._persist("add_transaction", correlation_id)
        return tx

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction. The UI asks for confirmation first."""
        if not self.ledger.delete(transaction_id):
            return False

        await self._audit_logger.log_transaction_deleted(transaction_id)
        await self._persist("delete_transaction")
        return True

    async def toggle_reconciled(self, transaction_id: str) -> Optional[Transaction]:
        tx = self.ledger.toggle_reconciled(transaction_id)
        if tx is None:
            return None

        await self._audit_logger.log_reconcile_toggled(tx.id, tx.is_reconciled)
        await self._persist("toggle_reconciled")
        return tx

    # -------------------------------------------------------------------------
    # OCR flows
    # -------------------------------------------------------------------------

    async def scan_receipt(
        self,
        image_bytes: bytes,
        intent: ReceiptIntent = ReceiptIntent.GENERAL,
        correlation_id: Optional[UUID] = None,
    ) -> ReceiptScan:
        """
        Read a slip or receipt into a PROPOSED transaction.

        Nothing is recorded here; pass the result to confirm_receipt()
        after the operator has reviewed (and possibly edited) it.

        Raises:
            InvalidImageError: If the upload is not a usable image
            ZeroAmountExtractionError: If no amount could be read
            OCRError: If extraction fails
        """
        correlation_id = correlation_id or create_correlation_id()
        ocr = self._require_ocr()
        prepared = prepare_image(image_bytes, self._settings)

        try:
            extraction = await ocr.extract_transaction(prepared.data, intent)
            if extraction.amount == 0:
                raise ZeroAmountExtractionError(
                    "AI could not find an amount on this slip. Please enter it manually."
                )
        except OCRError as e:
            await self._audit_logger.log_ocr_failed(
                document_kind="receipt",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_ocr_completed(
            document_kind="receipt",
            confidence=extraction.confidence,
            correlation_id=correlation_id,
        )
        return ReceiptScan(extraction=extraction, image_url=prepared.to_data_url())

    async def confirm_receipt(
        self,
        scan: ReceiptScan,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record a reviewed scan.

        CRITICAL: This is called ONLY after explicit operator confirmation.
        """
        return await self.add_transaction(
            scan.extraction.to_new_transaction(image_url=scan.image_url),
            correlation_id=correlation_id,
        )

    async def scan_guest_id(
        self,
        image_bytes: bytes,
        correlation_id: Optional[UUID] = None,
    ) -> GuestData:
        """
        Read a Thai ID card into guest details for the check-in form.

        Raises:
            InvalidImageError: If the upload is not a usable image
            OCRError: If the card cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        ocr = self._require_ocr()
        prepared = prepare_image(image_bytes, self._settings)

        try:
            guest = await ocr.extract_guest_id(prepared.data)
        except OCRError as e:
            await self._audit_logger.log_ocr_failed(
                document_kind="id_card",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_ocr_completed(
            document_kind="id_card",
            confidence=1.0 if guest.id_number else 0.5,
            correlation_id=correlation_id,
        )
        return guest

    def _require_ocr(self) -> GeminiOCRService:
        if self._ocr_service is None:
            raise OCRError("AI scanning is not configured. Set GEMINI_API_KEY to enable it.")
        return self._ocr_service

    # -------------------------------------------------------------------------
    # Settings & data
    # -------------------------------------------------------------------------

    async def update_settings(self, **changes) -> ResortProfile:
        """
        Update the resort profile.

        Raises:
            ValidationError: If a value is invalid (nothing is changed)
        """
        current = self._profile.model_dump()
        profile = ResortProfile.model_validate({**current, **changes})
        changed = sorted(
            key for key, value in profile.model_dump().items()
            if current.get(key) != value
        )
        if not changed:
            return self._profile

        self._apply_profile(profile)
        await self._audit_logger.log_settings_updated(changed)
        await self._persist("update_settings")
        return profile

    async def clear_all_data(self) -> None:
        """
        Remove every booking and transaction. The profile is kept.

        The UI asks for confirmation first.
        """
        transactions = self.ledger.clear()
        bookings = self.store.clear()
        await self._audit_logger.log_data_cleared(transactions, bookings)
        await self._persist("clear_all_data")

    def _apply_profile(self, profile: ResortProfile) -> None:
        self._profile = profile
        self.ledger.auto_reconcile = profile.auto_reconcile
        if self._ocr_service is not None:
            self._ocr_service.use_model(profile.ai_model)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def dashboard(self) -> Dashboard:
        transactions = self.ledger.transactions
        return Dashboard(
            pending=pending_items(transactions, limit=self._settings.pending_summary_limit),
            occupancy=occupancy_insights(self.store.bookings, today=self.today()),
            financials=financial_summary(transactions),
        )

    def snapshot(self) -> ResortSnapshot:
        return ResortSnapshot(
            transactions=list(self.ledger.transactions),
            bookings=list(self.store.bookings),
            settings=self._profile,
            saved_at=self._clock(),
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _require_valid(
        self,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> None:
        if not result.has_errors:
            return

        await self._audit_logger.log_validation_failed(
            request_type=result.request_type,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ],
            correlation_id=correlation_id,
        )
        raise BookingValidationError(result)

    async def _guard(self, operation, *args, **kwargs):
        """Run a store mutation; invariant violations are audited and re-raised."""
        try:
            return operation(*args, **kwargs)
        except BookingInvariantError as e:
            await self._audit_logger.log_invariant_violation(e.booking_id, str(e))
            raise

    async def _persist(
        self,
        operation: str,
        correlation_id: Optional[UUID] = None,
        raise_errors: bool = True,
    ) -> bool:
        """
        Save the whole snapshot after a mutation.

        The in-memory change stands either way; a failed save is audited and
        (on operator actions) raised so the UI can say so.
        """
        if self._storage is None:
            return True

        try:
            await self._storage.save(self.snapshot())
        except StorageError as e:
            await self._audit_logger.log_persistence_failed(
                operation=operation,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            if raise_errors:
                raise
            return False
        return True


def user_message(exc: Exception) -> str:
    """Operator-facing text for an error raised by ResortOperations."""
    if isinstance(exc, BookingValidationError):
        return FrontDeskValidator().get_user_friendly_summary(exc.result)
    if isinstance(exc, ZeroAmountExtractionError):
        return str(exc)
    if isinstance(exc, OCRError):
        return f"Scanning failed: {exc}"
    if isinstance(exc, (InvalidImageError, ImportFileError)):
        return str(exc)
    if isinstance(exc, ConnectionError):
        return f"Cannot reach the data store. Your change is kept on screen but NOT saved. ({exc})"
    if isinstance(exc, StorageError):
        return f"Saving failed. Your change is kept on screen but NOT saved. ({exc})"
    if isinstance(exc, BookingInvariantError):
        return f"Booking {exc.booking_id} could not be changed: {exc}"
    if isinstance(exc, ValidationError):
        return f"Please check the entered values ({exc.error_count()} invalid)."
    return f"Unexpected error: {exc}"


def create_app_components(use_storage: bool = True) -> ResortOperations:
    """
    Factory function to create the application.

    Args:
        use_storage: Whether to initialize persistence.
                    Set to False for running without any saved data.

    Returns:
        ResortOperations wired from settings (call load() before use)
    """
    settings = get_settings()
    app_settings = settings.app

    storage: Optional[SnapshotStorageInterface] = None
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        if app_settings.storage_backend == "google_sheets":
            try:
                sheets_client = GoogleSheetsClient()
                storage = GoogleSheetsSnapshotStorage(sheets_client)
                audit_storage = GoogleSheetsAuditStorage(sheets_client)
            except Exception as e:
                # Sheets not configured - fall back to the local file
                logger.warning("sheets_storage_unavailable", error=str(e))

        if storage is None:
            storage = LocalJSONStorage(app_settings.data_file)

    ocr_service = None
    try:
        ocr_service = GeminiOCRService(settings.gemini)
    except ValidationError as e:
        logger.warning("ocr_not_configured", error_count=e.error_count())

    return ResortOperations(
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
        ocr_service=ocr_service,
        settings=app_settings,
    )
