"""
Shared fixtures.

Everything runs in memory or under tmp_path; no network, no real clock.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from resort_finance.bookings import BookingStore
from resort_finance.config import AppSettings
from resort_finance.ledger import TransactionLedger
from resort_finance.models.booking import GuestData
from resort_finance.models.transaction import Category, Transaction, TransactionType
from resort_finance.orchestrator import ResortOperations
from resort_finance.services.storage import LocalJSONStorage


# 15:00 UTC on a quiet weekday
FIXED_NOW = datetime(2025, 1, 10, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def store(clock):
    return BookingStore(clock=clock)


@pytest.fixture
def ledger():
    return TransactionLedger()


@pytest.fixture
def guest():
    return GuestData(
        id_number="1234567890123",
        title="นาย",
        first_name_th="สมชาย",
        last_name_th="ใจดี",
        first_name_en="Somchai",
        last_name_en="Jaidee",
    )


@pytest.fixture
def app_settings(tmp_path):
    return AppSettings(data_file=str(tmp_path / "snapshot.json"))


@pytest.fixture
def storage(tmp_path):
    return LocalJSONStorage(tmp_path / "data" / "snapshot.json")


@pytest.fixture
def ops(store, ledger, storage, app_settings, clock):
    return ResortOperations(
        store=store,
        ledger=ledger,
        storage=storage,
        settings=app_settings,
        clock=clock,
    )


@pytest.fixture
def make_transaction():
    """Factory for stored transactions with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Transaction:
        values = {
            "id": f"tx{next(counter):07d}",
            "date": date(2025, 1, 10),
            "type": TransactionType.INCOME,
            "category": Category.ROOM_REVENUE,
            "amount": Decimal("1500"),
            "description": "Room revenue",
            "is_reconciled": False,
        }
        values.update(overrides)
        return Transaction(**values)

    return _make
