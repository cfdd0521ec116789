"""
OTA Booking Import

Reads a reservation export from a channel manager or OTA extranet
(XLSX or CSV) and turns each row into a candidate booking.

Column names differ between channels and between English and Thai exports,
so each field is looked up through a fallback chain of synonyms.

DESIGN DECISION: Bad rows do not fail the batch. A row missing the guest
name, room, or either date is reported as an ImportRowError (with the
spreadsheet row number the operator sees) and the rest is imported.
The caller previews the result and confirms before anything is stored.
"""

import numbers
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union
from uuid import uuid4

import pandas as pd
import structlog
from pydantic import ValidationError

from resort_finance.models.booking import (
    Booking,
    BookingStatus,
    CustomerType,
    GuestData,
)
from resort_finance.pricing import (
    DEFAULT_DEPOSIT_RATE,
    deposit,
    get_room_type,
    nights,
    normalize_room_number,
    total_amount,
)


logger = structlog.get_logger(__name__)

# Header row is spreadsheet row 1; first data row is row 2
FIRST_DATA_ROW = 2

GUEST_COLUMNS = ("Guest Name", "ชื่อแขก")
ROOM_COLUMNS = ("Room", "Room Number", "ห้อง")
CHECK_IN_COLUMNS = ("Check In Date", "Check In", "เข้าพัก")
CHECK_OUT_COLUMNS = ("Check Out Date", "Check Out", "ออก")
TOTAL_COLUMNS = ("Total", "Total Amount", "Payment Total", "ยอดรวม", "ยอดชำระ")
PHONE_COLUMNS = ("Phone", "เบอร์โทร")
CONFIRMATION_COLUMNS = ("Confirmation Number", "เลขยืนยัน")
CHANNEL_COLUMNS = ("Channel", "ช่องทาง")

DEFAULT_CHANNEL = "OTA"


class ImportFileError(Exception):
    """The file itself could not be read (not a row problem)."""
    pass


@dataclass(frozen=True)
class ImportRowError:
    """One rejected row."""
    row_number: int
    reason: str

    def __str__(self) -> str:
        return f"row {self.row_number}: {self.reason}"


@dataclass
class ImportResult:
    """Candidate bookings plus per-row rejections."""
    bookings: list[Booking] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)
    source: str = ""

    @property
    def total_amount(self) -> Decimal:
        return sum((b.total_amount for b in self.bookings), Decimal("0"))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    if value is pd.NaT:
        return True
    return str(value).strip() in ("", "nan", "NaT", "None")


def _first(row: pd.Series, columns: tuple[str, ...]) -> Any:
    """First non-blank value among the synonym columns."""
    for column in columns:
        if column in row.index and not _is_blank(row[column]):
            return row[column]
    return None


def _to_date(value: Any) -> Optional[date]:
    """Excel cells come back as Timestamps, serial numbers or strings."""
    if _is_blank(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        # Excel serial day number
        return (pd.Timestamp("1899-12-30") + pd.Timedelta(days=float(value))).date()

    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _to_amount(value: Any) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    try:
        amount = Decimal(str(value).replace(",", "").replace("฿", "").strip())
    except InvalidOperation:
        return None
    return amount if amount > 0 else None


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric cells such as room 101 read as 101.0
        return str(int(value))
    return str(value).strip()


class OTAImporter:
    """Parses OTA exports into candidate bookings."""

    def __init__(self, deposit_rate: Decimal = DEFAULT_DEPOSIT_RATE):
        self._deposit_rate = deposit_rate

    def parse_file(
        self,
        source: Union[str, Path, BinaryIO],
        filename: Optional[str] = None,
    ) -> ImportResult:
        """
        Read an XLSX/XLS/CSV export.

        Args:
            source: Path or binary file object (e.g., a Streamlit upload)
            filename: Name used to pick the reader when source is a buffer
        """
        name = filename or getattr(source, "name", None) or str(source)
        suffix = Path(name).suffix.lower()

        try:
            if suffix in (".xlsx", ".xlsm"):
                frame = pd.read_excel(source, engine="openpyxl", header=0)
            elif suffix == ".xls":
                frame = pd.read_excel(source, header=0)
            elif suffix == ".csv":
                frame = pd.read_csv(source, dtype=str, na_filter=False, encoding="utf-8-sig")
            else:
                raise ImportFileError(f"Unsupported file type: {suffix or name}")
        except ImportFileError:
            raise
        except Exception as e:
            raise ImportFileError(f"Could not read {Path(name).name}: {e}")

        result = self.parse_frame(frame)
        result.source = Path(name).name
        return result

    def parse_frame(self, frame: pd.DataFrame) -> ImportResult:
        """Turn an already loaded table into candidate bookings."""
        frame = frame.rename(columns=lambda c: str(c).strip())
        result = ImportResult()

        for position, (_, row) in enumerate(frame.iterrows()):
            row_number = position + FIRST_DATA_ROW
            if all(_is_blank(v) for v in row.tolist()):
                continue

            booking, reason = self._parse_row(row)
            if booking is None:
                result.errors.append(ImportRowError(row_number, reason))
            else:
                result.bookings.append(booking)

        logger.info(
            "ota_import_parsed",
            bookings=len(result.bookings),
            rejected=len(result.errors),
        )
        return result

    def _parse_row(self, row: pd.Series) -> tuple[Optional[Booking], str]:
        guest_name = _text(_first(row, GUEST_COLUMNS))
        room = normalize_room_number(_text(_first(row, ROOM_COLUMNS)))
        raw_check_in = _first(row, CHECK_IN_COLUMNS)
        raw_check_out = _first(row, CHECK_OUT_COLUMNS)

        missing = [
            label for label, value in (
                ("guest name", guest_name),
                ("room", room),
                ("check-in", raw_check_in),
                ("check-out", raw_check_out),
            )
            if _is_blank(value)
        ]
        if missing:
            return None, f"incomplete data (missing {', '.join(missing)})"

        check_in = _to_date(raw_check_in)
        check_out = _to_date(raw_check_out)
        if check_in is None or check_out is None:
            return None, "unreadable date"
        if check_out <= check_in:
            return None, "check-out is not after check-in"

        stay_nights = nights(check_in, check_out)
        amount = _to_amount(_first(row, TOTAL_COLUMNS))
        if amount is None:
            amount = total_amount(room, check_in, check_out)
        room_type = get_room_type(room)
        phone = _text(_first(row, PHONE_COLUMNS)) or None

        try:
            booking = Booking(
                id=f"OTA{uuid4().hex[:8].upper()}",
                guest_name=guest_name,
                room_number=room,
                check_in=check_in,
                check_out=check_out,
                total_amount=amount,
                nights=stay_nights,
                price_per_night=room_type.price_per_night if room_type else None,
                deposit_amount=deposit(amount, self._deposit_rate),
                status=BookingStatus.CONFIRMED,
                ota_channel=_text(_first(row, CHANNEL_COLUMNS)) or DEFAULT_CHANNEL,
                confirmation_number=_text(_first(row, CONFIRMATION_COLUMNS)) or None,
                guest_details=GuestData(
                    first_name_th=guest_name,
                    phone=phone,
                    customer_type=CustomerType.BOOKING,
                ),
            )
        except ValidationError as e:
            return None, f"invalid values ({e.error_count()} fields)"

        return booking, ""
