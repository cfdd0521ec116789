"""
Booking Store

The authoritative collection of bookings and the ONLY place where a booking
changes state.

DESIGN DECISION: Every mutation builds a complete new list and swaps it in
with a single assignment. Readers always see a whole snapshot (an immutable
tuple), never a half-applied change, and no method awaits, so a sweep can
never interleave with a front desk action.

After each successful mutation the store:
1. Re-checks its invariants (model_copy() skips pydantic validation)
2. Notifies subscribers with the new snapshot

Lock lifecycle:
- create_quick_lock()    -> status LOCKED, locked_until = now + lock_duration
- check_in()             -> the room's active booking becomes CHECKED_IN in
                            place, or a new CHECKED_IN booking is created
- sweep_expired_locks()  -> every LOCKED booking whose locked_until has
                            passed is removed in one step
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence
from uuid import uuid4

import structlog

from resort_finance.models.booking import (
    Booking,
    BookingStatus,
    GuestData,
)
from resort_finance.pricing import (
    DEFAULT_DEPOSIT_RATE,
    deposit,
    get_room_type,
    nights,
    normalize_room_number,
)


logger = structlog.get_logger(__name__)

Listener = Callable[[tuple[Booking, ...]], None]
Clock = Callable[[], datetime]

DEFAULT_LOCK_DURATION = timedelta(hours=1)

LOCK_PREFIX = "LOCK"
WALK_IN_PREFIX = "PMS"
IMPORT_PREFIX = "OTA"


class BookingStoreError(Exception):
    """Base exception for booking store errors."""
    pass


class BookingInvariantError(BookingStoreError):
    """
    The booking collection reached a state the transition rules forbid.

    Unreachable through the public API; if raised, the mutation that caused
    it was NOT applied.
    """

    def __init__(self, booking_id: str, message: str):
        self.booking_id = booking_id
        super().__init__(f"{booking_id}: {message}")


@dataclass(frozen=True)
class CheckInOutcome:
    """Result of a check-in: the checked-in booking and how it got there."""
    booking: Booking
    converted_existing: bool
    previous_status: Optional[BookingStatus] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingStore:
    """In-memory booking collection with subscribe/notify."""

    def __init__(
        self,
        bookings: Optional[Iterable[Booking]] = None,
        clock: Optional[Clock] = None,
        lock_duration: timedelta = DEFAULT_LOCK_DURATION,
        deposit_rate: Decimal = DEFAULT_DEPOSIT_RATE,
    ):
        self._clock = clock or utc_now
        self._lock_duration = lock_duration
        self._deposit_rate = deposit_rate
        self._listeners: list[Listener] = []
        self._bookings: tuple[Booking, ...] = ()
        if bookings:
            self._commit(list(bookings), notify=False)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def bookings(self) -> tuple[Booking, ...]:
        """Current snapshot, newest first."""
        return self._bookings

    @property
    def lock_duration(self) -> timedelta:
        return self._lock_duration

    def now(self) -> datetime:
        return self._clock()

    def get(self, booking_id: str) -> Optional[Booking]:
        for booking in self._bookings:
            if booking.id == booking_id:
                return booking
        return None

    def active_for_room(self, room_number: str) -> Optional[Booking]:
        """First active (confirmed/pending/locked) booking for the room, in store order."""
        room = normalize_room_number(room_number)
        for booking in self._bookings:
            if booking.is_active and normalize_room_number(booking.room_number) == room:
                return booking
        return None

    def lock_remaining(self, booking_id: str) -> Optional[timedelta]:
        """Time left on a lock (zero once expired), None for unknown or unlocked bookings."""
        booking = self.get(booking_id)
        if booking is None or booking.locked_until is None:
            return None
        return max(booking.locked_until - self._clock(), timedelta(0))

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with the new snapshot after every change.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_quick_lock(
        self,
        guest_name: str,
        room_number: str,
        check_in: date,
        check_out: date,
        total_amount: Decimal,
        guest_details: Optional[GuestData] = None,
    ) -> Booking:
        """
        Hold a room for a guest who has not paid yet.

        No overlap check against other bookings for the same room.
        """
        now = self._clock()
        room = normalize_room_number(room_number)
        room_type = get_room_type(room)
        total = Decimal(str(total_amount))

        booking = Booking(
            id=self._new_id(LOCK_PREFIX),
            guest_name=guest_name,
            room_number=room,
            check_in=check_in,
            check_out=check_out,
            total_amount=total,
            nights=nights(check_in, check_out),
            price_per_night=room_type.price_per_night if room_type else None,
            deposit_amount=deposit(total, self._deposit_rate),
            status=BookingStatus.LOCKED,
            locked_until=now + self._lock_duration,
            guest_details=guest_details,
        )

        self._commit([booking, *self._bookings])
        logger.info(
            "booking_locked",
            booking_id=booking.id,
            room_number=room,
            locked_until=booking.locked_until.isoformat(),
        )
        return booking

    def check_in(
        self,
        guest: GuestData,
        room_number: str,
        amount: Decimal,
        check_in: date,
        check_out: date,
    ) -> CheckInOutcome:
        """
        Check a guest into a room. Always succeeds.

        If the room has an active booking it is converted in place (same id);
        otherwise a new CHECKED_IN booking is created.
        """
        room = normalize_room_number(room_number)
        existing = self.active_for_room(room)

        if existing is not None:
            updated = existing.model_copy(update={
                "status": BookingStatus.CHECKED_IN,
                "check_in": check_in,
                "check_out": check_out,
                "guest_details": guest,
                "guest_name": guest.display_name,
                "locked_until": None,
                "nights": nights(check_in, check_out),
            })
            self._commit([
                updated if b.id == existing.id else b
                for b in self._bookings
            ])
            logger.info(
                "booking_checked_in",
                booking_id=updated.id,
                room_number=room,
                previous_status=existing.status.value,
            )
            return CheckInOutcome(
                booking=updated,
                converted_existing=True,
                previous_status=existing.status,
            )

        room_type = get_room_type(room)
        total = Decimal(str(amount))
        booking = Booking(
            id=self._new_id(WALK_IN_PREFIX),
            guest_name=guest.display_name,
            room_number=room,
            check_in=check_in,
            check_out=check_out,
            total_amount=total,
            nights=nights(check_in, check_out),
            price_per_night=room_type.price_per_night if room_type else None,
            deposit_amount=deposit(total, self._deposit_rate),
            status=BookingStatus.CHECKED_IN,
            guest_details=guest,
        )
        self._commit([booking, *self._bookings])
        logger.info("walk_in_checked_in", booking_id=booking.id, room_number=room)
        return CheckInOutcome(booking=booking, converted_existing=False)

    def check_out(self, booking_id: str) -> Optional[Booking]:
        """
        Move a checked-in booking to CHECKED_OUT.

        Unknown ids and bookings in any other state are left alone (None).
        """
        booking = self.get(booking_id)
        if booking is None or booking.status != BookingStatus.CHECKED_IN:
            logger.warning(
                "check_out_ignored",
                booking_id=booking_id,
                status=booking.status.value if booking else None,
            )
            return None

        updated = booking.model_copy(update={"status": BookingStatus.CHECKED_OUT})
        self._commit([updated if b.id == booking_id else b for b in self._bookings])
        logger.info("booking_checked_out", booking_id=booking_id)
        return updated

    def add_confirmed(self, candidates: Sequence[Booking]) -> list[Booking]:
        """
        Store imported reservations as CONFIRMED bookings.

        Candidates get a fresh id when theirs is already taken.
        Imported rows are prepended in file order.
        """
        taken = {b.id for b in self._bookings}
        added = []
        for candidate in candidates:
            booking_id = candidate.id
            if booking_id in taken:
                booking_id = self._new_id(IMPORT_PREFIX, extra_taken=taken)
            taken.add(booking_id)
            added.append(candidate.model_copy(update={
                "id": booking_id,
                "status": BookingStatus.CONFIRMED,
                "locked_until": None,
            }))

        if added:
            self._commit([*added, *self._bookings])
            logger.info("bookings_imported", count=len(added))
        return added

    def sweep_expired_locks(self, now: Optional[datetime] = None) -> list[Booking]:
        """
        Remove every lock whose expiry instant has passed.

        Idempotent. Bookings in other states and unexpired locks are
        untouched. Returns the removed bookings.
        """
        now = now or self._clock()
        expired = [b for b in self._bookings if b.is_lock_expired(now)]
        if not expired:
            return []

        expired_ids = {b.id for b in expired}
        self._commit([b for b in self._bookings if b.id not in expired_ids])
        logger.info(
            "locks_expired",
            booking_ids=sorted(expired_ids),
            swept_at=now.isoformat(),
        )
        return expired

    def replace_all(self, bookings: Iterable[Booking]) -> None:
        """Swap in a loaded collection (e.g., from persistence)."""
        self._commit(list(bookings))

    def clear(self) -> int:
        """Remove every booking. Returns how many were removed."""
        count = len(self._bookings)
        self._commit([])
        return count

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _new_id(self, prefix: str, extra_taken: Optional[set[str]] = None) -> str:
        taken = {b.id for b in self._bookings} | (extra_taken or set())
        while True:
            candidate = f"{prefix}{uuid4().hex[:8].upper()}"
            if candidate not in taken:
                return candidate

    def _commit(self, bookings: list[Booking], notify: bool = True) -> None:
        self._check_invariants(bookings)
        self._bookings = tuple(bookings)
        if notify:
            self._notify()

    def _notify(self) -> None:
        snapshot = self._bookings
        for listener in list(self._listeners):
            listener(snapshot)

    @staticmethod
    def _check_invariants(bookings: list[Booking]) -> None:
        seen: set[str] = set()
        for booking in bookings:
            problem = None
            if booking.id in seen:
                problem = "duplicate booking id"
            elif booking.status == BookingStatus.LOCKED and booking.locked_until is None:
                problem = "locked booking without lock expiry"
            elif booking.status != BookingStatus.LOCKED and booking.locked_until is not None:
                problem = f"{booking.status.value} booking carries a lock expiry"
            elif booking.check_out <= booking.check_in:
                problem = "check-out is not after check-in"

            if problem:
                logger.error(
                    "booking_invariant_violated",
                    booking_id=booking.id,
                    problem=problem,
                )
                raise BookingInvariantError(booking.id, problem)
            seen.add(booking.id)
