"""
Booking Models for Resort Finance Hub

These models define the strict schemas for room reservations and the
guests attached to them.

DESIGN DECISION: The booking status is the discriminator of a small state
machine:

    pending -> confirmed -> checked_in -> checked_out
    locked  -> checked_in | (removed on expiry)

A `locked` booking is a temporary hold created by the quick-book path.
It carries an expiry instant (`locked_until`) and nothing else may carry one.
The model enforces that pairing on construction; the booking store re-checks
it after every mutation because model_copy() skips validation.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BookingStatus(str, Enum):
    """
    Booking lifecycle status.

    CRITICAL: Only LOCKED bookings expire. The sweep never touches
    anything else.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    LOCKED = "locked"            # Quick-book hold, expires at locked_until
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


# Bookings that still hold the room ahead of arrival
ACTIVE_STATUSES = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.PENDING,
    BookingStatus.LOCKED,
})


class CustomerType(str, Enum):
    """How the guest reached the front desk."""
    WALK_IN = "Walk-in"
    BOOKING = "Booking"
    CHECK_IN = "Check-in"


# =============================================================================
# CORE MODELS
# =============================================================================

class GuestData(BaseModel):
    """
    Full guest identity record.

    Usually captured from a Thai national ID card (see the Gemini OCR
    service), sometimes typed in by the front desk. Dates are Gregorian;
    Buddhist-era years are converted before they reach this model.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id_number: str = Field(
        default="",
        max_length=20,
        description="National ID or passport number"
    )
    title: str = Field(
        default="",
        max_length=50,
        description="Name prefix (e.g., นาย, นาง, Mr.)"
    )
    first_name_th: str = Field(default="", max_length=100)
    last_name_th: str = Field(default="", max_length=100)
    first_name_en: str = Field(default="", max_length=100)
    last_name_en: str = Field(default="", max_length=100)
    address: str = Field(
        default="",
        max_length=500,
        description="Registered address"
    )
    dob: Optional[date] = Field(
        default=None,
        description="Date of birth"
    )
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    religion: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    phone: Optional[str] = Field(
        default=None,
        max_length=30,
    )

    @model_validator(mode='after')
    def validate_has_name(self) -> 'GuestData':
        """A guest record without any first name is useless at the desk."""
        if not self.first_name_th and not self.first_name_en:
            raise ValueError("Guest must have a Thai or English first name")
        return self

    @property
    def display_name(self) -> str:
        """Name as written on the booking (Thai first, English fallback)."""
        if self.first_name_th:
            return f"{self.first_name_th} {self.last_name_th}".strip()
        return f"{self.first_name_en} {self.last_name_en}".strip()


class Booking(BaseModel):
    """
    One room reservation.

    `total_amount` equals `price_per_night * nights` when it was derived
    from the room catalog, but an externally supplied total (e.g., from a
    channel manager export) overrides it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Generated booking id (LOCK-/PMS-/OTA- prefixed)"
    )

    guest_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Guest name as shown on the booking list"
    )
    room_number: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Room number from the room catalog (unknown numbers allowed)"
    )

    # Stay
    check_in: date = Field(..., description="Arrival date")
    check_out: date = Field(..., description="Departure date")

    # Money
    total_amount: Decimal = Field(
        ...,
        ge=0,
        description="Total stay amount in THB"
    )
    nights: Optional[int] = Field(default=None, ge=0)
    price_per_night: Optional[Decimal] = Field(default=None, ge=0)
    deposit_amount: Optional[Decimal] = Field(default=None, ge=0)

    # Lifecycle
    status: BookingStatus = Field(
        default=BookingStatus.CONFIRMED,
        description="State machine discriminator"
    )
    locked_until: Optional[datetime] = Field(
        default=None,
        description="Lock expiry instant (UTC), only while status is locked"
    )

    guest_details: Optional[GuestData] = None

    # Import provenance
    ota_channel: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Booking channel (e.g., Agoda, Booking.com)"
    )
    confirmation_number: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Channel confirmation number"
    )

    @field_validator('locked_until')
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """A lock expiry without an offset (e.g. edited by hand in Sheets) is UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode='after')
    def validate_stay(self) -> 'Booking':
        """Validate dates and the lock/expiry pairing."""
        if self.check_out <= self.check_in:
            raise ValueError("Check-out must be after check-in")

        if self.status == BookingStatus.LOCKED and self.locked_until is None:
            raise ValueError("Locked booking must have a lock expiry")
        if self.status != BookingStatus.LOCKED and self.locked_until is not None:
            raise ValueError("Only locked bookings may carry a lock expiry")

        return self

    @property
    def is_active(self) -> bool:
        """Still holding the room ahead of arrival."""
        return self.status in ACTIVE_STATUSES

    def is_lock_expired(self, now: datetime) -> bool:
        """True when this is a lock whose expiry instant has passed."""
        return (
            self.status == BookingStatus.LOCKED
            and self.locked_until is not None
            and self.locked_until < now
        )


# =============================================================================
# FRONT DESK REQUESTS - validated at the boundary before any mutation
# =============================================================================

class CheckInRequest(BaseModel):
    """
    Check-in form as submitted by the front desk.

    Fields are permissive on purpose: FrontDeskValidator reports what is
    missing instead of pydantic raising on the first problem.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    guest: Optional[GuestData] = None
    room_number: str = ""
    amount: Optional[Decimal] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    description: str = Field(
        default="Room revenue",
        description="Ledger description prefix for the room revenue entry"
    )
    customer_type: CustomerType = CustomerType.WALK_IN
    category: Optional[str] = Field(
        default=None,
        description="Ledger category; room revenue when omitted"
    )


class QuickBookRequest(BaseModel):
    """Quick-book (room lock) form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    guest_name: str = ""
    room_number: str = ""
    amount: Optional[Decimal] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    phone: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'invalid_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one front desk request."""

    request_type: str = Field(
        ...,
        description="Which form was validated (check_in, quick_book)"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
