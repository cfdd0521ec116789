"""
Tests for the OTA booking import.
"""

import io
from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from resort_finance.models.booking import BookingStatus, CustomerType
from resort_finance.services.importer import ImportFileError, OTAImporter


@pytest.fixture
def importer():
    return OTAImporter()


def english_export() -> pd.DataFrame:
    return pd.DataFrame([
        {"Guest Name": "Anna Berg", "Room": "101", "Check In Date": "2025-01-20",
         "Check Out Date": "2025-01-22", "Total": "2,800", "Channel": "Agoda",
         "Confirmation Number": "AG-5531"},
        {"Guest Name": None, "Room": "102", "Check In Date": "2025-01-20",
         "Check Out Date": "2025-01-21", "Total": "1500", "Channel": None,
         "Confirmation Number": None},
        {"Guest Name": None, "Room": None, "Check In Date": None,
         "Check Out Date": None, "Total": None, "Channel": None,
         "Confirmation Number": None},
        {"Guest Name": "Bob Lee", "Room": "201", "Check In Date": "21/01/2025",
         "Check Out Date": "24/01/2025", "Total": None, "Channel": None,
         "Confirmation Number": None},
        {"Guest Name": "Carl", "Room": "102", "Check In Date": "someday",
         "Check Out Date": "2025-01-24", "Total": "900", "Channel": None,
         "Confirmation Number": None},
        {"Guest Name": "Dan", "Room": "103", "Check In Date": "2025-01-25",
         "Check Out Date": "2025-01-25", "Total": "900", "Channel": None,
         "Confirmation Number": None},
    ])


class TestParseFrame:
    """Tests for turning rows into candidate bookings."""

    def test_good_rows_become_confirmed_bookings(self, importer):
        result = importer.parse_frame(english_export())

        assert [b.guest_name for b in result.bookings] == ["Anna Berg", "Bob Lee"]
        anna, bob = result.bookings

        assert anna.status == BookingStatus.CONFIRMED
        assert anna.id.startswith("OTA")
        assert anna.total_amount == Decimal("2800")
        assert anna.deposit_amount == Decimal("840")
        assert anna.nights == 2
        assert anna.price_per_night == Decimal("1500")
        assert anna.ota_channel == "Agoda"
        assert anna.confirmation_number == "AG-5531"
        assert anna.guest_details.customer_type == CustomerType.BOOKING
        assert anna.locked_until is None

    def test_missing_total_falls_back_to_catalog(self, importer):
        bob = importer.parse_frame(english_export()).bookings[1]

        assert bob.check_in == date(2025, 1, 21)
        assert bob.total_amount == Decimal("7500")
        assert bob.deposit_amount == Decimal("2250")
        assert bob.ota_channel == "OTA"

    def test_bad_rows_reported_with_sheet_row_numbers(self, importer):
        result = importer.parse_frame(english_export())

        assert [(e.row_number, e.reason) for e in result.errors] == [
            (3, "incomplete data (missing guest name)"),
            (6, "unreadable date"),
            (7, "check-out is not after check-in"),
        ]
        assert str(result.errors[0]) == "row 3: incomplete data (missing guest name)"

    def test_thai_headers(self, importer):
        frame = pd.DataFrame([{
            "ชื่อแขก": "สมหญิง รักดี",
            "ห้อง": "v2",
            "เข้าพัก": "2025-02-01",
            "ออก": "2025-02-03",
            "ยอดชำระ": "11000",
            "เบอร์โทร": "0812345678",
            "ช่องทาง": "Booking.com",
        }])
        result = importer.parse_frame(frame)

        booking = result.bookings[0]
        assert booking.room_number == "V2"
        assert booking.total_amount == Decimal("11000")
        assert booking.guest_details.phone == "0812345678"
        assert booking.ota_channel == "Booking.com"
        assert result.errors == []

    def test_numeric_rooms_and_timestamps(self, importer):
        frame = pd.DataFrame([{
            "Guest Name": "Eve",
            "Room Number": 301,
            "Check In": pd.Timestamp("2025-03-01"),
            "Check Out": pd.Timestamp("2025-03-04"),
        }])
        booking = importer.parse_frame(frame).bookings[0]

        assert booking.room_number == "301"
        assert booking.total_amount == Decimal("12000")

    def test_unique_ids(self, importer):
        frame = pd.concat([english_export()] * 3, ignore_index=True)
        result = importer.parse_frame(frame)
        assert len({b.id for b in result.bookings}) == len(result.bookings) == 6

    def test_total_sums_candidates(self, importer):
        assert importer.parse_frame(english_export()).total_amount == Decimal("10300")


class TestParseFile:
    """Tests for reading the export files."""

    def test_csv_upload(self, importer):
        csv = (
            "Guest Name,Room,Check In Date,Check Out Date,Total\n"
            "Anna Berg,101,2025-01-20,2025-01-22,2800\n"
            ",,,,\n"
            "Bob Lee,,2025-01-21,2025-01-24,\n"
        ).encode("utf-8")

        result = importer.parse_file(io.BytesIO(csv), filename="agoda_export.csv")

        assert result.source == "agoda_export.csv"
        assert [b.guest_name for b in result.bookings] == ["Anna Berg"]
        assert [(e.row_number, e.reason) for e in result.errors] == [
            (4, "incomplete data (missing room)"),
        ]

    def test_xlsx_file(self, importer, tmp_path):
        path = tmp_path / "reservations.xlsx"
        pd.DataFrame([{
            "Guest Name": "Anna Berg",
            "Room": "202",
            "Check In Date": datetime(2025, 1, 20),
            "Check Out Date": datetime(2025, 1, 21),
            "Total Amount": 2600,
        }]).to_excel(path, index=False, engine="openpyxl")

        result = importer.parse_file(path)

        assert result.source == "reservations.xlsx"
        assert result.bookings[0].check_out == date(2025, 1, 21)
        assert result.bookings[0].total_amount == Decimal("2600")

    def test_unsupported_type(self, importer):
        with pytest.raises(ImportFileError, match="Unsupported"):
            importer.parse_file(io.BytesIO(b"{}"), filename="bookings.json")

    def test_unreadable_file(self, importer):
        with pytest.raises(ImportFileError, match="Could not read"):
            importer.parse_file(io.BytesIO(b"not a zip"), filename="broken.xlsx")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
