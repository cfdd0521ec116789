"""
Ledger Models for Resort Finance Hub

DESIGN DECISION: A transaction is immutable once recorded, with ONE
exception: the `is_reconciled` flag, which the operator flips while
reviewing the books. Everything else is fixed at creation; corrections
are made by deleting and re-entering.

Transactions reference bookings loosely: a payment mentions the booking
id in its description and check-in revenue carries the room number in
`pms_reference_id`. Neither is a foreign key.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from resort_finance.models.booking import Booking, CustomerType, GuestData


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money."""
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    """
    Known ledger categories.

    DESIGN DECISION: The ledger stores categories as plain strings so that
    an operator (or the OCR model) can introduce a new one. These are the
    categories the front desk offers and the dashboard groups by.
    Values are the Thai labels shown to staff.
    """
    # Income
    ROOM_REVENUE = "ค่าห้องพัก"
    FOOD_BEVERAGE = "อาหารและเครื่องดื่ม"
    SPA = "สปาและนวด"
    OTHER_INCOME = "รายได้อื่นๆ"

    # Expense
    UTILITIES = "ค่าสาธารณูปโภค (น้ำ/ไฟ/เน็ต)"
    SALARY = "เงินเดือนและค่าแรง"
    MARKETING = "การตลาด/ค่าคอมมิชชั่น OTA"
    MAINTENANCE = "ค่าซ่อมบำรุง"
    SUPPLIES = "วัสดุอุปกรณ์/เครื่องใช้"
    TAX = "ภาษีและค่าธรรมเนียม"
    SOFTWARE = "ค่าซอฟต์แวร์/แอปพลิเคชัน"
    OFFICE_SUPPLIES = "วัสดุสำนักงาน"
    CLEANING_SUPPLIES = "วัสดุทำความสะอาด"


INCOME_CATEGORIES = (
    Category.ROOM_REVENUE,
    Category.FOOD_BEVERAGE,
    Category.SPA,
    Category.OTHER_INCOME,
)

EXPENSE_CATEGORIES = tuple(c for c in Category if c not in INCOME_CATEGORIES)


class ReceiptIntent(str, Enum):
    """Hint given to the OCR model about what the operator is scanning."""
    INCOME = "income"
    EXPENSE = "expense"
    GENERAL = "general"


# =============================================================================
# LEDGER MODELS
# =============================================================================

class NewTransaction(BaseModel):
    """
    A transaction as entered, before the ledger assigns an id.

    Created by manual entry, by a confirmed OCR extraction, or by the
    check-in flow.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date = Field(
        ...,
        description="Business date of the transaction"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category label (see Category for the known set)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in THB"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    is_reconciled: bool = Field(
        default=False,
        description="Reviewed/approved by an operator"
    )
    image_url: Optional[str] = Field(
        default=None,
        description="Evidence image (URL or data URL)"
    )
    guest_data: Optional[GuestData] = None
    pms_reference_id: Optional[str] = Field(
        default=None,
        description="Free-text correlation to a booking or room"
    )
    customer_type: Optional[CustomerType] = None

    @field_validator('category', mode='before')
    @classmethod
    def unwrap_category(cls, v):
        """Accept Category members as well as raw labels."""
        if isinstance(v, Category):
            return v.value
        return v


class Transaction(NewTransaction):
    """A recorded ledger entry."""

    id: str = Field(
        ...,
        min_length=1,
        description="Ledger-assigned id"
    )


class ExtractionResult(BaseModel):
    """
    Data extracted from a receipt or slip by the OCR service.

    CRITICAL: This is PROPOSED data, NOT verified. The orchestrator
    refuses zero amounts and the operator confirms before anything is
    recorded.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    amount: Decimal = Field(..., ge=0)
    type: TransactionType
    category: str = Field(default=Category.OTHER_INCOME.value, max_length=100)
    description: str = Field(default="", max_length=500)
    confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Model-reported confidence (0-1)"
    )

    def to_new_transaction(
        self,
        image_url: Optional[str] = None,
        is_reconciled: bool = False,
    ) -> NewTransaction:
        """Turn an accepted extraction into a ledger entry."""
        return NewTransaction(
            date=self.date,
            type=self.type,
            category=self.category,
            amount=self.amount,
            description=self.description,
            image_url=image_url,
            is_reconciled=is_reconciled,
        )


# =============================================================================
# RESORT PROFILE & SNAPSHOT
# =============================================================================

class ResortProfile(BaseModel):
    """
    Operator-editable settings, persisted with the data.

    Printed on receipts and tax documents; `auto_reconcile` changes how the
    ledger records new entries.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    resort_name: str = Field(default="Smart Resort & Spa", max_length=200)
    resort_address: str = Field(
        default="123 หมู่ 1 ต.โป่ง อ.บางละมุง จ.ชลบุรี 20150",
        max_length=500,
    )
    tax_id: str = Field(default="0-2055-5700x-xx-x", max_length=30)
    phone: str = Field(default="081-234-5678", max_length=30)
    ai_model: Optional[str] = Field(
        default=None,
        description="Gemini model override; the configured model when empty"
    )
    auto_reconcile: bool = Field(
        default=False,
        description="Mark every new transaction as reconciled"
    )


class ResortSnapshot(BaseModel):
    """
    The unit of persistence: everything the front desk knows.

    Storage adapters load and save this as a whole.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)
    settings: ResortProfile = Field(default_factory=ResortProfile)
    saved_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="When the snapshot was taken (UTC)"
    )
