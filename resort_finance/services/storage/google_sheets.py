"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote backend because:
1. The owner can open the books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (one resort is fine)
- No transactions: a save rewrites each worksheet in turn
- Cells are limited to 50k characters, so large evidence images
  (data URLs) are not synced

The snapshot is spread over three worksheets: Transactions, Bookings
and Settings (key/value). Nested records (guest data) are JSON-serialized
into one column.
"""

import json
from typing import Any, Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resort_finance.config import get_settings
from resort_finance.config.settings import GoogleSheetsSettings
from resort_finance.models.audit import AuditEvent
from resort_finance.models.booking import Booking
from resort_finance.models.transaction import (
    ResortProfile,
    ResortSnapshot,
    Transaction,
)
from resort_finance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptDataError,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Google Sheets hard limit per cell
MAX_CELL_CHARS = 50000

TRANSACTION_COLUMNS = [
    "id",
    "date",
    "type",
    "category",
    "amount",
    "description",
    "is_reconciled",
    "image_url",
    "pms_reference_id",
    "customer_type",
    "guest_data_json",
]

BOOKING_COLUMNS = [
    "id",
    "guest_name",
    "room_number",
    "check_in",
    "check_out",
    "total_amount",
    "nights",
    "price_per_night",
    "deposit_amount",
    "status",
    "locked_until",
    "ota_channel",
    "confirmation_number",
    "guest_details_json",
]

SETTINGS_COLUMNS = ["key", "value"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with a header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_bookings_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.bookings_sheet_name, BOOKING_COLUMNS)

    def get_settings_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.settings_sheet_name, SETTINGS_COLUMNS, rows=50)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def _row_dict(columns: list[str], row: list) -> dict[str, str]:
    """Zip a sheet row with its header, dropping empty cells."""
    return {
        name: value
        for name, value in zip(columns, row)
        if value != ""
    }


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "value"):
        return str(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class GoogleSheetsSnapshotStorage(SnapshotStorageInterface):
    """
    Google Sheets implementation of snapshot storage.

    Each save rewrites the three worksheets completely.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, tx: Transaction) -> list:
        image_url = tx.image_url or ""
        if len(image_url) > MAX_CELL_CHARS:
            logger.warning(
                "evidence_image_not_synced",
                transaction_id=tx.id,
                size=len(image_url),
            )
            image_url = ""

        return [
            tx.id,
            tx.date.isoformat(),
            tx.type.value,
            tx.category,
            str(tx.amount),
            tx.description,
            _cell(tx.is_reconciled),
            image_url,
            tx.pms_reference_id or "",
            _cell(tx.customer_type),
            tx.guest_data.model_dump_json() if tx.guest_data else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        data: dict[str, Any] = _row_dict(TRANSACTION_COLUMNS, row)
        guest_json = data.pop("guest_data_json", None)
        if guest_json:
            data["guest_data"] = json.loads(guest_json)
        return Transaction.model_validate(data)

    def _booking_to_row(self, booking: Booking) -> list:
        return [
            booking.id,
            booking.guest_name,
            booking.room_number,
            booking.check_in.isoformat(),
            booking.check_out.isoformat(),
            str(booking.total_amount),
            _cell(booking.nights),
            _cell(booking.price_per_night),
            _cell(booking.deposit_amount),
            booking.status.value,
            _cell(booking.locked_until),
            booking.ota_channel or "",
            booking.confirmation_number or "",
            booking.guest_details.model_dump_json() if booking.guest_details else "",
        ]

    def _row_to_booking(self, row: list) -> Booking:
        data: dict[str, Any] = _row_dict(BOOKING_COLUMNS, row)
        guest_json = data.pop("guest_details_json", None)
        if guest_json:
            data["guest_details"] = json.loads(guest_json)
        return Booking.model_validate(data)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=(
            retry_if_exception_type(StorageError)
            & retry_if_not_exception_type(CorruptDataError)
        ),
        reraise=True,
    )
    async def load(self) -> Optional[ResortSnapshot]:
        """Load transactions, bookings and settings from their worksheets."""
        try:
            tx_rows = self._client.get_transactions_sheet().get_all_values()[1:]
            booking_rows = self._client.get_bookings_sheet().get_all_values()[1:]
            settings_rows = self._client.get_settings_sheet().get_all_values()[1:]
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read snapshot: {e}")

        tx_rows = [row for row in tx_rows if row and row[0]]
        booking_rows = [row for row in booking_rows if row and row[0]]
        settings_rows = [row for row in settings_rows if len(row) >= 2 and row[0]]

        if not tx_rows and not booking_rows and not settings_rows:
            return None

        try:
            profile = ResortProfile.model_validate(
                {key: value for key, value, *_ in settings_rows}
            )
            return ResortSnapshot(
                transactions=[self._row_to_transaction(row) for row in tx_rows],
                bookings=[self._row_to_booking(row) for row in booking_rows],
                settings=profile,
            )
        except (ValidationError, json.JSONDecodeError) as e:
            raise CorruptDataError(f"Spreadsheet rows do not match the snapshot schema: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save(self, snapshot: ResortSnapshot) -> bool:
        """Rewrite all three worksheets from the snapshot."""
        settings_rows = [
            [key, _cell(value)]
            for key, value in snapshot.settings.model_dump().items()
            if value is not None
        ]

        try:
            self._rewrite(
                self._client.get_transactions_sheet(),
                TRANSACTION_COLUMNS,
                [self._transaction_to_row(tx) for tx in snapshot.transactions],
            )
            self._rewrite(
                self._client.get_bookings_sheet(),
                BOOKING_COLUMNS,
                [self._booking_to_row(b) for b in snapshot.bookings],
            )
            self._rewrite(
                self._client.get_settings_sheet(),
                SETTINGS_COLUMNS,
                settings_rows,
            )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save snapshot: {e}")

        return True

    async def clear(self) -> bool:
        """Empty the data worksheets (headers are kept)."""
        try:
            self._rewrite(self._client.get_transactions_sheet(), TRANSACTION_COLUMNS, [])
            self._rewrite(self._client.get_bookings_sheet(), BOOKING_COLUMNS, [])
            self._rewrite(self._client.get_settings_sheet(), SETTINGS_COLUMNS, [])
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear snapshot: {e}")
        return True

    @staticmethod
    def _rewrite(sheet: gspread.Worksheet, columns: list[str], rows: list[list]) -> None:
        sheet.clear()
        sheet.append_rows([columns] + rows, value_input_option="RAW")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        return True
