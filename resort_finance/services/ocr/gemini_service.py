"""
OCR Service using Gemini

DESIGN DECISION: We use a Gemini vision model because:
1. Thai receipts, bank slips and ID cards come in countless layouts
2. One prompt returns STRUCTURED JSON, not raw text to parse
3. The same model classifies into our Thai category list

This service handles:
1. Receipt / slip extraction with an intent hint (income, expense, general)
2. Thai national ID card extraction (guest identity for check-in)
3. Converting the model's JSON to ExtractionResult / GuestData

BOUNDARIES:
- This service ONLY extracts. It does not record anything.
- It does not retry: a failure is surfaced once, the operator re-scans.
- A zero amount is passed through; the orchestrator decides what it means.
"""

import json
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from resort_finance.config import get_settings
from resort_finance.config.settings import GeminiSettings
from resort_finance.models.booking import GuestData
from resort_finance.models.transaction import (
    EXPENSE_CATEGORIES,
    Category,
    INCOME_CATEGORIES,
    ExtractionResult,
    ReceiptIntent,
    TransactionType,
)


logger = structlog.get_logger(__name__)

BUDDHIST_ERA_OFFSET = 543


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class ExtractionFailedError(OCRError):
    """Failed to extract data from document."""
    pass


class ZeroAmountExtractionError(OCRError):
    """The model read the document but found no amount."""
    pass


INTENT_INSTRUCTIONS = {
    ReceiptIntent.EXPENSE: (
        "The user has identified this specifically as an EXPENSE receipt. "
        "Favor EXPENSE classification unless it is clearly an income document."
    ),
    ReceiptIntent.INCOME: (
        "The user has identified this specifically as an INCOME slip. "
        "Favor INCOME classification."
    ),
    ReceiptIntent.GENERAL: "",
}


def _quoted(categories) -> str:
    return ", ".join(f"'{c.value}'" for c in categories)


RECEIPT_PROMPT = """You are an expert accountant for a Thai resort.
Analyze the image (receipt, bank transfer slip, invoice, or handwritten note).

{intent_instruction}

SPECIAL FOCUS ON EXPENSES:
- 7-Eleven, Makro or BigC receipts: 'วัสดุอุปกรณ์/เครื่องใช้'
- Electricity (PEA) or water (PWA) bills: 'ค่าสาธารณูปโภค (น้ำ/ไฟ/เน็ต)'
- 'ค่าแรง' or 'Payroll': 'เงินเดือนและค่าแรง'
- Cleaning products (detergent, soap): 'วัสดุทำความสะอาด'
- Paper, pens, printer ink: 'วัสดุสำนักงาน'
- Software subscriptions or cloud fees: 'ค่าซอฟต์แวร์/แอปพลิเคชัน'
- Identify VAT if present but use the final total (ยอดรวมสุทธิ).

CLASSIFICATION:
- INCOME: issued BY the resort TO guests (e.g., booking payments, transfer slips to the resort)
- EXPENSE: issued TO the resort BY suppliers or utilities

Categories (use the Thai label EXACTLY):
INCOME: {income_categories}
EXPENSE: {expense_categories}

Respond with ONLY a JSON object in this exact format:
{{"date": "YYYY-MM-DD", "amount": 1234.5, "type": "INCOME or EXPENSE", "category": "Thai label", "description": "short description", "confidence": 0.9}}

If a field cannot be read, use "" for strings and 0 for numbers."""


ID_CARD_PROMPT = """You are an OCR system for Thai National ID Cards.
Extract the card into JSON.

Guidelines:
- Convert Thai Buddhist Era years to Christian Era (e.g., 2567 -> 2024).
- id_number is exactly 13 digits without spaces.
- Copy the address exactly as written.
- religion is optional.

Respond with ONLY a JSON object with these keys:
{"id_number": "", "title": "นาย/นาง/นางสาว", "first_name_th": "", "last_name_th": "",
 "first_name_en": "", "last_name_en": "", "address": "", "dob": "YYYY-MM-DD",
 "issue_date": "YYYY-MM-DD", "expiry_date": "YYYY-MM-DD", "religion": ""}"""


def parse_json_object(text: str) -> dict[str, Any]:
    """Pull the first {...} block out of a model reply (tolerates ``` fences)."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ExtractionFailedError("Model reply contained no JSON object")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"Model reply was not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ExtractionFailedError("Model reply was not a JSON object")
    return data


def parse_card_date(value: Any) -> Optional[date]:
    """
    Parse a date the model read off a card or receipt.

    Buddhist-era years (> 2400) are shifted to the Christian era.
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip()
    # Shift before parsing; leap days follow the Christian-era year
    year = re.search(r"\d{4}", value)
    if year and int(year.group()) > 2400:
        ce_year = str(int(year.group()) - BUDDHIST_ERA_OFFSET)
        value = value[:year.start()] + ce_year + value[year.end():]

    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: Any) -> Decimal:
    """Amounts may come back as numbers or strings like '1,250.00'."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value).replace(",", "").replace("฿", "").strip())
    except InvalidOperation:
        raise ExtractionFailedError(f"Unreadable amount: {value!r}")


class GeminiOCRService:
    """
    Vision extraction for receipts, slips and ID cards.

    IMPORTANT BOUNDARIES:
    1. Only extracts - never writes to the ledger or booking store
    2. Raises OCRError subclasses; never returns partial garbage silently
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model_name: Optional[str] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model_name = model_name or self._settings.model_name
        self._model: Optional[genai.GenerativeModel] = None
        genai.configure(api_key=self._settings.api_key)

    @property
    def model_name(self) -> str:
        return self._model_name

    def use_model(self, model_name: Optional[str]) -> None:
        """Switch models (resort profile override). None keeps the configured default."""
        wanted = model_name or self._settings.model_name
        if wanted != self._model_name:
            self._model_name = wanted
            self._model = None

    def _get_model(self) -> genai.GenerativeModel:
        if self._model is None:
            self._model = genai.GenerativeModel(
                model_name=self._model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                },
            )
        return self._model

    async def _generate(self, prompt: str, image_jpeg: bytes) -> dict[str, Any]:
        try:
            response = await self._get_model().generate_content_async([
                {"mime_type": "image/jpeg", "data": image_jpeg},
                prompt,
            ])
            text = response.text
        except OCRError:
            raise
        except Exception as e:
            logger.error("gemini_request_failed", model=self._model_name, error=str(e))
            raise ExtractionFailedError(f"Could not reach the AI service: {e}")

        if not text or not text.strip():
            raise ExtractionFailedError("AI could not read anything from the image")
        return parse_json_object(text)

    async def extract_transaction(
        self,
        image_jpeg: bytes,
        intent: ReceiptIntent = ReceiptIntent.GENERAL,
    ) -> ExtractionResult:
        """
        Extract date, amount, type, category and description from a receipt.

        Returns the model's proposal; the caller confirms before recording.
        """
        prompt = RECEIPT_PROMPT.format(
            intent_instruction=INTENT_INSTRUCTIONS[ReceiptIntent(intent)],
            income_categories=_quoted(INCOME_CATEGORIES),
            expense_categories=_quoted(EXPENSE_CATEGORIES),
        )
        data = await self._generate(prompt, image_jpeg)

        raw_type = str(data.get("type", "")).strip().lower()
        if raw_type not in ("income", "expense"):
            # Fall back to the operator's hint, then to expense
            raw_type = "income" if intent == ReceiptIntent.INCOME else "expense"

        extracted_date = parse_card_date(data.get("date")) or date.today()

        try:
            result = ExtractionResult(
                date=extracted_date,
                amount=parse_amount(data.get("amount")),
                type=TransactionType(raw_type),
                category=str(data.get("category") or "").strip() or self._default_category(raw_type),
                description=str(data.get("description") or "")[:500],
                confidence=min(max(float(data.get("confidence") or 0.0), 0.0), 1.0),
            )
        except (ValidationError, ValueError, TypeError) as e:
            raise ExtractionFailedError(f"Extraction did not match the expected fields: {e}")

        logger.info(
            "receipt_extracted",
            type=result.type.value,
            amount=str(result.amount),
            confidence=result.confidence,
        )
        return result

    async def extract_guest_id(self, image_jpeg: bytes) -> GuestData:
        """Read a Thai national ID card into a guest record."""
        data = await self._generate(ID_CARD_PROMPT, image_jpeg)

        id_number = re.sub(r"\D", "", str(data.get("id_number") or ""))
        if id_number and len(id_number) != 13:
            logger.warning("id_number_unexpected_length", length=len(id_number))

        try:
            guest = GuestData(
                id_number=id_number,
                title=str(data.get("title") or ""),
                first_name_th=str(data.get("first_name_th") or ""),
                last_name_th=str(data.get("last_name_th") or ""),
                first_name_en=str(data.get("first_name_en") or ""),
                last_name_en=str(data.get("last_name_en") or ""),
                address=str(data.get("address") or ""),
                dob=parse_card_date(data.get("dob")),
                issue_date=parse_card_date(data.get("issue_date")),
                expiry_date=parse_card_date(data.get("expiry_date")),
                religion=data.get("religion") or None,
            )
        except ValidationError as e:
            raise ExtractionFailedError(
                f"Could not read the ID card. Please retake a clear, well-lit photo ({e.error_count()} fields invalid)"
            )

        logger.info("id_card_extracted", has_id_number=bool(id_number))
        return guest

    @staticmethod
    def _default_category(raw_type: str) -> str:
        if raw_type == "income":
            return Category.OTHER_INCOME.value
        return Category.SUPPLIES.value
