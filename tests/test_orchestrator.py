"""
End-to-end tests for the front desk flows.

Storage is a real JSON file under tmp_path; OCR is mocked.
"""

import io
import json
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from PIL import Image
from pydantic import ValidationError

from resort_finance.models.audit import AuditEventType
from resort_finance.models.booking import (
    BookingStatus,
    CheckInRequest,
    CustomerType,
    QuickBookRequest,
)
from resort_finance.models.transaction import (
    Category,
    ExtractionResult,
    NewTransaction,
    ReceiptIntent,
    TransactionType,
)
from resort_finance.orchestrator import ReceiptScan, ResortOperations, user_message
from resort_finance.services.image import InvalidImageError
from resort_finance.services.importer import ImportResult
from resort_finance.services.importer.ota_import import ImportRowError
from resort_finance.services.ocr import (
    ExtractionFailedError,
    GeminiOCRService,
    OCRError,
    ZeroAmountExtractionError,
)
from resort_finance.services.storage import (
    LocalJSONStorage,
    SnapshotStorageInterface,
    StorageError,
)
from resort_finance.validation import BookingValidationError
from resort_finance.views import is_booking_paid


@pytest.fixture
def slip_photo() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color=(240, 240, 240)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def ocr():
    return AsyncMock(spec=GeminiOCRService)


@pytest.fixture
def scanning_ops(store, ledger, storage, app_settings, clock, ocr):
    return ResortOperations(
        store=store,
        ledger=ledger,
        storage=storage,
        ocr_service=ocr,
        settings=app_settings,
        clock=clock,
    )


@pytest.fixture
def failing_storage():
    storage = AsyncMock(spec=SnapshotStorageInterface)
    storage.save.side_effect = StorageError("quota exceeded")
    return storage


def event_types(ops) -> list[AuditEventType]:
    return [e.event_type for e in ops.audit_logger.recent_events]


def check_in_form(guest, **overrides) -> CheckInRequest:
    values = {
        "guest": guest,
        "room_number": "101",
        "amount": Decimal("1500"),
        "check_in": date(2025, 1, 10),
        "check_out": date(2025, 1, 11),
    }
    values.update(overrides)
    return CheckInRequest(**values)


class TestQuickBook:
    """Tests for holding a room."""

    @pytest.mark.asyncio
    async def test_defaults_to_tonight_and_persists(self, ops, storage):
        booking = await ops.quick_book(QuickBookRequest(
            guest_name="Somchai",
            room_number="101",
            amount=Decimal("1500"),
            phone="0811111111",
        ))

        assert booking.status == BookingStatus.LOCKED
        assert booking.check_in == date(2025, 1, 10)
        assert booking.check_out == date(2025, 1, 11)
        assert booking.guest_details.phone == "0811111111"

        saved = await storage.load()
        assert [b.id for b in saved.bookings] == [booking.id]
        assert AuditEventType.BOOKING_LOCKED in event_types(ops)

    @pytest.mark.asyncio
    async def test_invalid_form_changes_nothing(self, ops, storage):
        with pytest.raises(BookingValidationError):
            await ops.quick_book(QuickBookRequest(guest_name="", room_number="101", amount=Decimal("0")))

        assert ops.store.bookings == ()
        assert not storage.path.exists()
        assert event_types(ops) == [AuditEventType.BOOKING_VALIDATION_FAILED]
        assert ops.audit_logger.recent_events[0].details["issues"][0]["field"] == "guest_name"


class TestCheckIn:
    """Tests for the combined booking and revenue flow."""

    @pytest.mark.asyncio
    async def test_converts_lock_and_records_revenue(self, ops, guest):
        lock = await ops.quick_book(QuickBookRequest(guest_name="Somchai", room_number="101", amount=Decimal("1500")))

        booking, tx = await ops.check_in(check_in_form(guest))

        assert booking.id == lock.id
        assert booking.status == BookingStatus.CHECKED_IN
        assert booking.locked_until is None
        assert len(ops.store.bookings) == 1

        assert tx.type == TransactionType.INCOME
        assert tx.category == Category.ROOM_REVENUE.value
        assert tx.amount == Decimal("1500")
        assert tx.is_reconciled is True
        assert tx.pms_reference_id == "101"
        assert tx.customer_type == CustomerType.WALK_IN
        assert tx.guest_data.customer_type == CustomerType.WALK_IN
        assert tx.description == "Room revenue (Walk-in) เช็คอิน 2025-01-10 - 2025-01-11"
        assert ops.ledger.transactions == (tx,)

    @pytest.mark.asyncio
    async def test_walk_in_with_custom_category(self, ops, guest):
        booking, tx = await ops.check_in(check_in_form(
            guest,
            room_number="V1",
            amount=Decimal("12000"),
            customer_type=CustomerType.CHECK_IN,
            category="แพ็กเกจห้องพัก",
        ))

        assert booking.id.startswith("PMS")
        assert tx.category == "แพ็กเกจห้องพัก"
        assert "(Check-in)" in tx.description

    @pytest.mark.asyncio
    async def test_missing_guest_changes_nothing(self, ops):
        with pytest.raises(BookingValidationError) as exc_info:
            await ops.check_in(check_in_form(None))

        assert [i.field for i in exc_info.value.issues] == ["guest"]
        assert ops.store.bookings == ()
        assert ops.ledger.transactions == ()

    @pytest.mark.asyncio
    async def test_check_out(self, ops, guest):
        booking, _ = await ops.check_in(check_in_form(guest))

        assert (await ops.check_out(booking.id)).status == BookingStatus.CHECKED_OUT
        assert await ops.check_out(booking.id) is None
        assert await ops.check_out("missing") is None


class TestPersistence:
    """Tests for load/save through the snapshot storage."""

    @pytest.mark.asyncio
    async def test_load_without_file(self, ops):
        assert await ops.load() is False
        assert ops.store.bookings == ()

    @pytest.mark.asyncio
    async def test_state_survives_restart(self, ops, storage, app_settings, clock, guest):
        await ops.update_settings(resort_name="Baan Talay", auto_reconcile=True)
        await ops.check_in(check_in_form(guest))
        await ops.add_transaction(NewTransaction(
            date=date(2025, 1, 10),
            type=TransactionType.EXPENSE,
            category=Category.UTILITIES,
            amount=Decimal("820"),
            description="PEA electricity",
        ))

        restarted = ResortOperations(storage=LocalJSONStorage(storage.path), settings=app_settings, clock=clock)
        assert await restarted.load() is True

        assert restarted.store.bookings == ops.store.bookings
        assert restarted.ledger.transactions == ops.ledger.transactions
        assert restarted.profile.resort_name == "Baan Talay"
        assert restarted.ledger.auto_reconcile is True

    @pytest.mark.asyncio
    async def test_failed_save_keeps_change_and_raises(self, app_settings, clock, failing_storage):
        ops = ResortOperations(storage=failing_storage, settings=app_settings, clock=clock)

        with pytest.raises(StorageError):
            await ops.quick_book(QuickBookRequest(guest_name="A", room_number="101", amount=Decimal("1500")))

        assert len(ops.store.bookings) == 1
        assert event_types(ops)[0] == AuditEventType.PERSISTENCE_FAILED

    @pytest.mark.asyncio
    async def test_failed_save_on_sweep_is_not_raised(self, app_settings, clock, failing_storage):
        ops = ResortOperations(storage=failing_storage, settings=app_settings, clock=clock)
        ops.store.create_quick_lock("A", "101", date(2025, 1, 10), date(2025, 1, 11), Decimal("1500"))
        clock.advance(hours=2)

        removed = await ops.sweep_now()

        assert len(removed) == 1
        assert ops.store.bookings == ()
        assert event_types(ops)[:2] == [AuditEventType.PERSISTENCE_FAILED, AuditEventType.LOCK_EXPIRED]

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_raises_on_load(self, ops, storage):
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(StorageError):
            await ops.load()
        assert event_types(ops) == [AuditEventType.PERSISTENCE_FAILED]


class TestSweep:
    """Tests for lock expiry through the orchestrator."""

    @pytest.mark.asyncio
    async def test_sweep_removes_and_persists(self, ops, storage, clock):
        await ops.quick_book(QuickBookRequest(guest_name="Somchai", room_number="101", amount=Decimal("1500")))

        clock.advance(minutes=59)
        assert await ops.sweep_now() == []

        clock.advance(minutes=2)
        removed = await ops.sweep_now()

        assert len(removed) == 1
        assert (await storage.load()).bookings == []
        assert AuditEventType.LOCK_EXPIRED in event_types(ops)

    @pytest.mark.asyncio
    async def test_hand_edited_expiry_without_offset(self, ops, storage):
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text(json.dumps({
            "bookings": [{
                "id": "LOCK-1736517600000",
                "guest_name": "Somchai",
                "room_number": "101",
                "check_in": "2025-01-10",
                "check_out": "2025-01-11",
                "total_amount": "1500",
                "status": "locked",
                "locked_until": "2025-01-10T14:00:00",
            }],
        }), encoding="utf-8")

        assert await ops.load() is True
        removed = await ops.sweep_now()

        assert [b.id for b in removed] == ["LOCK-1736517600000"]
        assert (await storage.load()).bookings == []


class TestImport:
    """Tests for confirming an OTA import."""

    @pytest.mark.asyncio
    async def test_confirm_import(self, ops, storage):
        export = (
            "Guest Name,Room,Check In Date,Check Out Date\n"
            "Anna,101,2025-01-20,2025-01-22\n"
            ",102,2025-01-20,2025-01-22\n"
        ).encode("utf-8")
        preview = ops.import_bookings(io.BytesIO(export), filename="agoda.csv")
        assert ops.store.bookings == ()

        added = await ops.confirm_import(preview)

        assert [b.guest_name for b in added] == ["Anna"]
        assert ops.store.bookings == tuple(added)
        assert len((await storage.load()).bookings) == 1
        assert AuditEventType.IMPORT_ROW_REJECTED in event_types(ops)
        assert event_types(ops)[0] == AuditEventType.BOOKINGS_IMPORTED

    @pytest.mark.asyncio
    async def test_empty_import_does_not_save(self, ops, storage):
        result = ImportResult(errors=[ImportRowError(2, "unreadable date")], source="bad.csv")
        assert await ops.confirm_import(result) == []
        assert not storage.path.exists()


class TestLedgerFlows:
    """Tests for payments, toggling and deleting."""

    @pytest.mark.asyncio
    async def test_record_booking_payment(self, ops):
        booking = await ops.quick_book(QuickBookRequest(guest_name="Anna", room_number="201", amount=Decimal("2500")))

        tx = await ops.record_booking_payment(booking.id)

        assert tx.amount == Decimal("2500")
        assert tx.description == f"Payment for Booking {booking.id} - Anna"
        assert is_booking_paid(booking.id, ops.ledger.transactions)

    @pytest.mark.asyncio
    async def test_payment_for_unknown_booking(self, ops):
        assert await ops.record_booking_payment("OTA00000000") is None
        assert ops.ledger.transactions == ()

    @pytest.mark.asyncio
    async def test_toggle_and_delete(self, ops, storage):
        tx = await ops.add_transaction(NewTransaction(
            date=date(2025, 1, 10),
            type=TransactionType.EXPENSE,
            category=Category.SALARY,
            amount=Decimal("9000"),
        ))

        assert (await ops.toggle_reconciled(tx.id)).is_reconciled is True
        assert (await storage.load()).transactions[0].is_reconciled is True

        assert await ops.delete_transaction(tx.id) is True
        assert (await storage.load()).transactions == []

    @pytest.mark.asyncio
    async def test_unknown_ids_are_noops(self, ops):
        assert await ops.toggle_reconciled("missing") is None
        assert await ops.delete_transaction("missing") is False
        assert ops.audit_logger.recent_events == []

    @pytest.mark.asyncio
    async def test_malformed_transaction_rejected(self, ops):
        with pytest.raises(ValidationError):
            await ops.add_transaction(NewTransaction(
                date=date(2025, 1, 10),
                type=TransactionType.EXPENSE,
                category="",
                amount=Decimal("10"),
            ))
        assert ops.ledger.transactions == ()


class TestScanning:
    """Tests for receipt and ID card scanning."""

    @pytest.mark.asyncio
    async def test_scan_then_confirm(self, scanning_ops, ocr, slip_photo):
        ocr.extract_transaction.return_value = ExtractionResult(
            date=date(2025, 1, 9),
            amount=Decimal("1250"),
            type=TransactionType.EXPENSE,
            category=Category.CLEANING_SUPPLIES.value,
            description="Makro",
            confidence=0.9,
        )

        scan = await scanning_ops.scan_receipt(slip_photo, ReceiptIntent.EXPENSE)

        assert scanning_ops.ledger.transactions == ()
        assert scan.image_url.startswith("data:image/jpeg;base64,")
        prepared_jpeg, intent = ocr.extract_transaction.await_args.args
        assert prepared_jpeg[:2] == b"\xff\xd8"
        assert intent == ReceiptIntent.EXPENSE

        tx = await scanning_ops.confirm_receipt(scan)
        assert tx.amount == Decimal("1250")
        assert tx.image_url == scan.image_url
        assert tx.is_reconciled is False
        assert scanning_ops.ledger.transactions == (tx,)

    @pytest.mark.asyncio
    async def test_edited_scan_is_recorded_as_edited(self, scanning_ops):
        scan = ReceiptScan(
            extraction=ExtractionResult(date=date(2025, 1, 9), amount=Decimal("300"), type=TransactionType.INCOME),
            image_url="data:image/jpeg;base64,AA",
        )
        tx = await scanning_ops.confirm_receipt(scan)
        assert tx.type == TransactionType.INCOME

    @pytest.mark.asyncio
    async def test_zero_amount_records_nothing(self, scanning_ops, ocr, slip_photo):
        ocr.extract_transaction.return_value = ExtractionResult(
            date=date(2025, 1, 9),
            amount=Decimal("0"),
            type=TransactionType.EXPENSE,
        )

        with pytest.raises(ZeroAmountExtractionError):
            await scanning_ops.scan_receipt(slip_photo)

        assert scanning_ops.ledger.transactions == ()
        assert event_types(scanning_ops) == [AuditEventType.OCR_FAILED]

    @pytest.mark.asyncio
    async def test_not_an_image(self, scanning_ops, ocr):
        with pytest.raises(InvalidImageError):
            await scanning_ops.scan_receipt(b"%PDF-1.4 not an image")
        ocr.extract_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ocr_not_configured(self, ops, slip_photo):
        assert ops.ocr_available is False
        with pytest.raises(OCRError, match="GEMINI_API_KEY"):
            await ops.scan_receipt(slip_photo)

    @pytest.mark.asyncio
    async def test_scan_guest_id(self, scanning_ops, ocr, guest, slip_photo):
        ocr.extract_guest_id.return_value = guest

        assert await scanning_ops.scan_guest_id(slip_photo) == guest
        assert event_types(scanning_ops) == [AuditEventType.OCR_COMPLETED]

    @pytest.mark.asyncio
    async def test_unreadable_id_card(self, scanning_ops, ocr, slip_photo):
        ocr.extract_guest_id.side_effect = ExtractionFailedError("Could not read the ID card")

        with pytest.raises(ExtractionFailedError):
            await scanning_ops.scan_guest_id(slip_photo)
        assert event_types(scanning_ops) == [AuditEventType.OCR_FAILED]


class TestSettingsAndData:
    """Tests for the resort profile and clearing data."""

    @pytest.mark.asyncio
    async def test_update_settings_applies_profile(self, scanning_ops, ocr):
        profile = await scanning_ops.update_settings(auto_reconcile=True, ai_model="gemini-1.5-pro")

        assert profile.auto_reconcile is True
        assert scanning_ops.ledger.auto_reconcile is True
        ocr.use_model.assert_called_once_with("gemini-1.5-pro")
        assert scanning_ops.audit_logger.recent_events[0].details["changed_fields"] == ["ai_model", "auto_reconcile"]

    @pytest.mark.asyncio
    async def test_unchanged_settings_not_audited(self, ops, storage):
        await ops.update_settings(resort_name=ops.profile.resort_name)
        assert ops.audit_logger.recent_events == []
        assert not storage.path.exists()

    @pytest.mark.asyncio
    async def test_invalid_settings_change_nothing(self, ops):
        with pytest.raises(ValidationError):
            await ops.update_settings(resort_name="x" * 300)
        assert ops.profile.resort_name == "Smart Resort & Spa"

    @pytest.mark.asyncio
    async def test_clear_all_data_keeps_profile(self, ops, storage, guest):
        await ops.update_settings(resort_name="Baan Talay")
        await ops.check_in(check_in_form(guest))

        await ops.clear_all_data()

        assert ops.store.bookings == ()
        assert ops.ledger.transactions == ()
        saved = await storage.load()
        assert saved.transactions == [] and saved.bookings == []
        assert saved.settings.resort_name == "Baan Talay"


class TestDashboardAndMessages:
    """Tests for the dashboard and operator error messages."""

    @pytest.mark.asyncio
    async def test_dashboard(self, ops, guest, clock):
        await ops.check_in(check_in_form(guest, check_out=date(2025, 1, 13)))
        await ops.add_transaction(NewTransaction(
            date=date(2025, 1, 10),
            type=TransactionType.EXPENSE,
            category=Category.UTILITIES,
            amount=Decimal("500"),
        ))

        dashboard = ops.dashboard()

        assert dashboard.financials.net_profit == Decimal("1000")
        assert dashboard.pending.total_count == 1
        assert dashboard.occupancy.next_departure.check_out == date(2025, 1, 13)
        assert dashboard.occupancy.next_arrival is None

    def test_user_messages(self):
        assert "NOT saved" in user_message(StorageError("offline"))
        assert user_message(ZeroAmountExtractionError("enter it manually")) == "enter it manually"
        assert user_message(OCRError("timeout")).startswith("Scanning failed")
        assert user_message(InvalidImageError("empty")) == "empty"
        assert user_message(RuntimeError("boom")) == "Unexpected error: boom"

    def test_validation_message_is_the_summary(self, ops):
        result = ops.validator.validate_quick_book(QuickBookRequest())
        message = user_message(BookingValidationError(result))
        assert message.startswith("❌ Please complete the form:")

    def test_today_follows_clock(self, ops, clock):
        clock.advance(days=1, hours=10)
        assert ops.today() == date(2025, 1, 12)
        assert ops.snapshot().saved_at == clock()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
