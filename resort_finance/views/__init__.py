"""Read-only dashboard and reconciliation views."""

from resort_finance.views.reconciliation import (
    DEFAULT_PENDING_LIMIT,
    Dashboard,
    FinancialSummary,
    MonthlyTotals,
    OccupancyInsights,
    PendingSummary,
    booking_payment_statuses,
    category_breakdown,
    financial_summary,
    is_booking_paid,
    monthly_breakdown,
    occupancy_insights,
    pending_items,
)

__all__ = [
    "DEFAULT_PENDING_LIMIT",
    "Dashboard",
    "FinancialSummary",
    "MonthlyTotals",
    "OccupancyInsights",
    "PendingSummary",
    "booking_payment_statuses",
    "category_breakdown",
    "financial_summary",
    "is_booking_paid",
    "monthly_breakdown",
    "occupancy_insights",
    "pending_items",
]
