"""
Document Context

Everything a printed document needs, assembled from the core's state:
the resort profile, the guest, the room and the money.

Rendering (PDF, print layout) is NOT done here. A renderer receives a
finalized DocumentContext and never feeds anything back into the core.
"""

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from resort_finance.models.booking import Booking, GuestData
from resort_finance.models.transaction import ResortProfile, Transaction


VAT_RATE = Decimal("0.07")
CENTS = Decimal("0.01")


class DocumentKind(str, Enum):
    """Documents the front desk prints."""
    RR3 = "rr3"                    # Guest registration form (ร.ร. 3)
    RECEIPT = "receipt"            # Temporary receipt / deposit
    TAX_INVOICE = "tax_invoice"    # Receipt / tax invoice, VAT inclusive

    @property
    def title(self) -> str:
        return DOCUMENT_TITLES[self]


DOCUMENT_TITLES = {
    DocumentKind.RR3: "ใบแจ้งการรับคนเข้าพัก (ร.ร. 3)",
    DocumentKind.RECEIPT: "ใบรับเงินชั่วคราว / เงินมัดจำ",
    DocumentKind.TAX_INVOICE: "ใบเสร็จรับเงิน / ใบกำกับภาษี",
}


class DocumentContext(BaseModel):
    """Finalized input for a document renderer."""

    kind: DocumentKind
    title: str
    resort: ResortProfile
    guest: GuestData
    room_number: str
    amount: Decimal = Field(..., ge=0)
    description: str = ""

    # VAT-inclusive split (tax invoices only)
    amount_before_vat: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None

    booking: Optional[Booking] = None
    transaction: Optional[Transaction] = None


def split_vat(amount: Decimal, rate: Decimal = VAT_RATE) -> tuple[Decimal, Decimal]:
    """Split a VAT-inclusive amount into (before VAT, VAT), to the satang."""
    before = (amount / (1 + rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return before, amount - before


def build_document_context(
    kind: DocumentKind,
    resort: ResortProfile,
    guest: GuestData,
    room_number: str,
    amount: Decimal,
    description: str = "",
    booking: Optional[Booking] = None,
    transaction: Optional[Transaction] = None,
) -> DocumentContext:
    """Assemble a document context; tax invoices get the VAT split."""
    kind = DocumentKind(kind)
    amount = Decimal(str(amount))

    before_vat = vat = None
    if kind == DocumentKind.TAX_INVOICE:
        before_vat, vat = split_vat(amount)

    return DocumentContext(
        kind=kind,
        title=kind.title,
        resort=resort,
        guest=guest,
        room_number=room_number,
        amount=amount,
        description=description,
        amount_before_vat=before_vat,
        vat_amount=vat,
        booking=booking,
        transaction=transaction,
    )


class DocumentRendererInterface(ABC):
    """Anything that turns a DocumentContext into a printable file."""

    @abstractmethod
    def render(self, context: DocumentContext) -> bytes:
        """
        Render the document.

        Args:
            context: Finalized document context

        Returns:
            File content (e.g., PDF bytes)
        """
        pass
