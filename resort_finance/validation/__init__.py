"""Boundary validation for front desk requests."""

from resort_finance.validation.validator import (
    BookingValidationError,
    FrontDeskValidator,
)

__all__ = ["BookingValidationError", "FrontDeskValidator"]
