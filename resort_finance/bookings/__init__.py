"""Booking store and lock lifecycle."""

from resort_finance.bookings.store import (
    DEFAULT_LOCK_DURATION,
    BookingInvariantError,
    BookingStore,
    BookingStoreError,
    CheckInOutcome,
    utc_now,
)
from resort_finance.bookings.sweeper import LockSweeper

__all__ = [
    "DEFAULT_LOCK_DURATION",
    "BookingInvariantError",
    "BookingStore",
    "BookingStoreError",
    "CheckInOutcome",
    "LockSweeper",
    "utc_now",
]
