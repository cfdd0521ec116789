"""
Tests for the Gemini OCR service.

The model is replaced with a mock; no network calls are made.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from resort_finance.config import GeminiSettings
from resort_finance.models.transaction import Category, ReceiptIntent, TransactionType
from resort_finance.services.ocr import ExtractionFailedError, GeminiOCRService
from resort_finance.services.ocr.gemini_service import (
    parse_amount,
    parse_card_date,
    parse_json_object,
)


def service_replying(text: str) -> GeminiOCRService:
    service = GeminiOCRService(GeminiSettings(api_key="test-key"))
    model = MagicMock()
    model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text=text))
    service._model = model
    return service


class TestParsingHelpers:
    """Tests for the reply parsing helpers."""

    def test_json_inside_code_fence(self):
        text = '```json\n{"amount": 120, "type": "EXPENSE"}\n```'
        assert parse_json_object(text) == {"amount": 120, "type": "EXPENSE"}

    def test_no_json_raises(self):
        with pytest.raises(ExtractionFailedError):
            parse_json_object("Sorry, I cannot read this image.")

    def test_broken_json_raises(self):
        with pytest.raises(ExtractionFailedError):
            parse_json_object('{"amount": 12,}')

    @pytest.mark.parametrize("value,expected", [
        ("2025-01-10", date(2025, 1, 10)),
        ("10/01/2025", date(2025, 1, 10)),
        ("2567-03-15", date(2024, 3, 15)),   # Buddhist era
        ("15/03/2567", date(2024, 3, 15)),
        ("29/02/2567", date(2024, 2, 29)),  # leap day, BE 2567 is CE 2024
        ("2567-02-29", date(2024, 2, 29)),
        ("29/02/2568", None),
        ("", None),
        ("not a date", None),
        (None, None),
    ])
    def test_card_dates(self, value, expected):
        assert parse_card_date(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (1250, Decimal("1250")),
        ("1,250.50", Decimal("1250.50")),
        ("฿ 300", Decimal("300")),
        ("", Decimal("0")),
        (None, Decimal("0")),
    ])
    def test_amounts(self, value, expected):
        assert parse_amount(value) == expected

    def test_unreadable_amount(self):
        with pytest.raises(ExtractionFailedError):
            parse_amount("about three hundred")


class TestExtractTransaction:
    """Tests for receipt extraction."""

    @pytest.mark.asyncio
    async def test_expense_receipt(self):
        service = service_replying(
            '{"date": "2025-01-09", "amount": "1,250.00", "type": "EXPENSE", '
            '"category": "วัสดุทำความสะอาด", "description": "Makro detergent", "confidence": 0.93}'
        )
        result = await service.extract_transaction(b"jpeg", ReceiptIntent.EXPENSE)

        assert result.date == date(2025, 1, 9)
        assert result.amount == Decimal("1250.00")
        assert result.type == TransactionType.EXPENSE
        assert result.category == Category.CLEANING_SUPPLIES.value
        assert result.confidence == pytest.approx(0.93)

    @pytest.mark.asyncio
    async def test_missing_type_follows_intent(self):
        service = service_replying('{"date": "2025-01-09", "amount": 500}')
        result = await service.extract_transaction(b"jpeg", ReceiptIntent.INCOME)

        assert result.type == TransactionType.INCOME
        assert result.category == Category.OTHER_INCOME.value

    @pytest.mark.asyncio
    async def test_general_intent_defaults_to_expense(self):
        service = service_replying('{"date": "2025-01-09", "amount": 500, "type": "?"}')
        result = await service.extract_transaction(b"jpeg")

        assert result.type == TransactionType.EXPENSE
        assert result.category == Category.SUPPLIES.value

    @pytest.mark.asyncio
    async def test_zero_amount_passed_through(self):
        """The service reports what it read; rejecting zero is the caller's job."""
        service = service_replying('{"date": "2025-01-09", "amount": 0, "type": "EXPENSE"}')
        result = await service.extract_transaction(b"jpeg")
        assert result.amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_model_failure_wrapped(self):
        service = service_replying("")
        service._model.generate_content_async.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(ExtractionFailedError, match="quota exceeded"):
            await service.extract_transaction(b"jpeg")

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        service = service_replying("   ")
        with pytest.raises(ExtractionFailedError):
            await service.extract_transaction(b"jpeg")


class TestExtractGuestId:
    """Tests for ID card extraction."""

    @pytest.mark.asyncio
    async def test_thai_id_card(self):
        service = service_replying(
            '{"id_number": "1 2345 67890 12 3", "title": "นาย", "first_name_th": "สมชาย", '
            '"last_name_th": "ใจดี", "first_name_en": "Somchai", "last_name_en": "Jaidee", '
            '"address": "99 ถ.สุขุมวิท", "dob": "15/03/2530", "issue_date": "2565-01-01", '
            '"expiry_date": "2574-01-01", "religion": "พุทธ"}'
        )
        guest = await service.extract_guest_id(b"jpeg")

        assert guest.id_number == "1234567890123"
        assert guest.display_name == "สมชาย ใจดี"
        assert guest.dob == date(1987, 3, 15)
        assert guest.expiry_date == date(2031, 1, 1)
        assert guest.religion == "พุทธ"

    @pytest.mark.asyncio
    async def test_unreadable_card(self):
        service = service_replying('{"id_number": "", "first_name_th": "", "first_name_en": ""}')
        with pytest.raises(ExtractionFailedError, match="ID card"):
            await service.extract_guest_id(b"jpeg")


class TestModelSelection:
    """Tests for the profile model override."""

    def test_override_and_reset(self):
        service = GeminiOCRService(GeminiSettings(api_key="test-key", model_name="gemini-1.5-flash"))
        service._model = MagicMock()

        service.use_model("gemini-1.5-pro")
        assert service.model_name == "gemini-1.5-pro"
        assert service._model is None

        service.use_model(None)
        assert service.model_name == "gemini-1.5-flash"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
