"""
Reconciliation & Dashboard Views

DESIGN DECISION: Every view is a pure function of the current ledger and
booking snapshots, recomputed on each read. The datasets are one resort's
worth, so there is no caching and nothing to invalidate.

All sorts are stable: ties keep their order in the store (newest first).
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from resort_finance.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from resort_finance.models.transaction import Transaction, TransactionType


DEFAULT_PENDING_LIMIT = 4


class PendingSummary(BaseModel):
    """Unreconciled transactions for the dashboard widget."""

    items: list[Transaction] = Field(
        default_factory=list,
        description="Newest unreconciled transactions, capped"
    )
    total_count: int = Field(
        default=0,
        ge=0,
        description="All unreconciled transactions, uncapped"
    )


class OccupancyInsights(BaseModel):
    """Who arrives and who leaves next."""

    next_arrival: Optional[Booking] = None
    next_departure: Optional[Booking] = None


class MonthlyTotals(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class FinancialSummary(BaseModel):
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")

    @property
    def net_profit(self) -> Decimal:
        return self.total_income - self.total_expense


class Dashboard(BaseModel):
    """Everything the dashboard page shows, computed in one pass."""

    pending: PendingSummary
    occupancy: OccupancyInsights
    financials: FinancialSummary


def pending_items(
    transactions: Sequence[Transaction],
    limit: int = DEFAULT_PENDING_LIMIT,
) -> PendingSummary:
    """Unreconciled transactions, newest date first, capped to `limit`."""
    unreconciled = [tx for tx in transactions if not tx.is_reconciled]
    # sorted() keeps equal keys in input order even with reverse=True
    ordered = sorted(unreconciled, key=lambda tx: tx.date, reverse=True)
    return PendingSummary(items=ordered[:limit], total_count=len(unreconciled))


def occupancy_insights(
    bookings: Sequence[Booking],
    today: Optional[date] = None,
) -> OccupancyInsights:
    """
    next_arrival: earliest check-in among active bookings from today on.
    next_departure: earliest check-out among checked-in bookings from today on.
    """
    today = today or date.today()

    arrivals = sorted(
        (b for b in bookings if b.status in ACTIVE_STATUSES and b.check_in >= today),
        key=lambda b: b.check_in,
    )
    departures = sorted(
        (b for b in bookings if b.status == BookingStatus.CHECKED_IN and b.check_out >= today),
        key=lambda b: b.check_out,
    )

    return OccupancyInsights(
        next_arrival=arrivals[0] if arrivals else None,
        next_departure=departures[0] if departures else None,
    )


def is_booking_paid(booking_id: str, transactions: Sequence[Transaction]) -> bool:
    """
    A booking is paid when any income transaction mentions its id.

    Loose on purpose: payments are linked by description text, not by key.
    """
    return any(
        tx.type == TransactionType.INCOME and booking_id in tx.description
        for tx in transactions
    )


def booking_payment_statuses(
    bookings: Sequence[Booking],
    transactions: Sequence[Transaction],
) -> dict[str, bool]:
    """{booking_id: is_paid} for every booking."""
    return {b.id: is_booking_paid(b.id, transactions) for b in bookings}


def financial_summary(transactions: Sequence[Transaction]) -> FinancialSummary:
    """Total income, total expense (net profit is derived)."""
    income = sum(
        (tx.amount for tx in transactions if tx.type == TransactionType.INCOME),
        Decimal("0"),
    )
    expense = sum(
        (tx.amount for tx in transactions if tx.type == TransactionType.EXPENSE),
        Decimal("0"),
    )
    return FinancialSummary(total_income=income, total_expense=expense)


def monthly_breakdown(transactions: Sequence[Transaction]) -> list[MonthlyTotals]:
    """Income and expense per calendar month, oldest month first."""
    months: dict[str, MonthlyTotals] = {}
    for tx in transactions:
        key = tx.date.strftime("%Y-%m")
        totals = months.setdefault(key, MonthlyTotals(month=key))
        if tx.type == TransactionType.INCOME:
            totals.income += tx.amount
        else:
            totals.expense += tx.amount
    return [months[key] for key in sorted(months)]


def category_breakdown(
    transactions: Sequence[Transaction],
    tx_type: TransactionType,
) -> "OrderedDict[str, Decimal]":
    """Sum per category for one direction of money, largest first."""
    groups: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.type != tx_type:
            continue
        groups[tx.category] = groups.get(tx.category, Decimal("0")) + tx.amount

    return OrderedDict(
        sorted(groups.items(), key=lambda item: item[1], reverse=True)
    )
