"""
Pricing Calculator

Pure functions, no stored state:
- nights between two dates
- total stay amount from the room catalog
- deposit as a share of the total

DESIGN DECISION: nights() takes the ABSOLUTE difference, so a reversed range
yields a positive count instead of an error. Range validation belongs to
the front desk validator, not to arithmetic.
"""

import math
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from resort_finance.pricing.catalog import get_room_type


DEFAULT_DEPOSIT_RATE = Decimal("0.3")

SECONDS_PER_DAY = 24 * 60 * 60

DateLike = Union[date, datetime, str]


def _to_datetime(value: DateLike) -> datetime:
    """Accept dates, datetimes or ISO strings; naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def nights(check_in: DateLike, check_out: DateLike) -> int:
    """
    Number of nights between check-in and check-out.

    ceil(|check_out - check_in| in days). A same-day range is 0 nights for
    plain dates and rounds up to 1 when times are involved.
    """
    delta = _to_datetime(check_out) - _to_datetime(check_in)
    return math.ceil(abs(delta.total_seconds()) / SECONDS_PER_DAY)


def total_amount(room_number: str, check_in: DateLike, check_out: DateLike) -> Decimal:
    """Nightly price times nights; 0 when the room is not in the catalog."""
    room_type = get_room_type(room_number)
    if room_type is None:
        return Decimal("0")
    return room_type.price_per_night * nights(check_in, check_out)


def deposit(total: Union[Decimal, int, float, str], rate: Union[Decimal, float, str] = DEFAULT_DEPOSIT_RATE) -> Decimal:
    """Deposit rounded half-up to a whole baht."""
    amount = Decimal(str(total)) * Decimal(str(rate))
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
