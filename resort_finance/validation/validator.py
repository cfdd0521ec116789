"""
Front Desk Request Validation

DESIGN DECISION: Validation happens at the BOUNDARY, before any store or
ledger method is called. The booking store itself accepts whatever it is
given (check-in always succeeds); it is this validator that keeps half-filled
forms out of it.

The validator collects ALL issues instead of stopping at the first one, so
the operator can fix the whole form in one go.

IMPORTANT: Validation NEVER silently fixes issues.
Defaults (quick-book dates) are applied by the caller, visibly.
"""

from decimal import Decimal
from typing import Optional

from resort_finance.models.booking import (
    CheckInRequest,
    QuickBookRequest,
    ValidationIssue,
    ValidationResult,
)
from resort_finance.pricing import get_room_type


class BookingValidationError(Exception):
    """A front desk request was rejected before touching any state."""

    def __init__(self, result: ValidationResult):
        self.result = result
        self.issues = result.issues
        fields = ", ".join(i.field for i in result.issues if i.severity == "error")
        super().__init__(f"Invalid {result.request_type} request: {fields}")


class FrontDeskValidator:
    """Validates check-in and quick-book forms."""

    def validate_check_in(self, request: CheckInRequest) -> ValidationResult:
        """
        Check-in needs guest, room, amount and both dates.
        """
        issues = []

        if request.guest is None:
            issues.append(ValidationIssue(
                field="guest",
                issue_type="missing",
                message="Guest details are required for check-in",
                severity="error",
                suggested_fix="Scan the guest's ID card or type in their name",
            ))

        issues.extend(self._check_room(request.room_number))
        issues.extend(self._check_amount(request.amount))
        issues.extend(self._check_dates(request.check_in, request.check_out, required=True))

        return ValidationResult(request_type="check_in", issues=issues)

    def validate_quick_book(self, request: QuickBookRequest) -> ValidationResult:
        """
        Quick-book needs guest name, room and amount.

        Dates are optional here (the caller defaults them to tonight) but
        must be in order when given.
        """
        issues = []

        if not request.guest_name:
            issues.append(ValidationIssue(
                field="guest_name",
                issue_type="missing",
                message="Guest name is required to hold a room",
                severity="error",
            ))

        issues.extend(self._check_room(request.room_number))
        issues.extend(self._check_amount(request.amount))
        issues.extend(self._check_dates(request.check_in, request.check_out, required=False))

        return ValidationResult(request_type="quick_book", issues=issues)

    def require_valid(self, result: ValidationResult) -> ValidationResult:
        """Raise BookingValidationError if the result has errors."""
        if result.has_errors:
            raise BookingValidationError(result)
        return result

    def _check_room(self, room_number: str) -> list[ValidationIssue]:
        if not room_number:
            return [ValidationIssue(
                field="room_number",
                issue_type="missing",
                message="Room number is required",
                severity="error",
            )]
        if get_room_type(room_number) is None:
            # Allowed, but worth a second look
            return [ValidationIssue(
                field="room_number",
                issue_type="unknown_room",
                message=f"Room {room_number} is not in the room catalog",
                severity="warning",
                suggested_fix="Check the room number; no catalog price will be applied",
            )]
        return []

    def _check_amount(self, amount: Optional[Decimal]) -> list[ValidationIssue]:
        if amount is None:
            return [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            )]
        if amount <= 0:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the room charge for the whole stay",
            )]
        return []

    def _check_dates(self, check_in, check_out, required: bool) -> list[ValidationIssue]:
        issues = []
        if required:
            if check_in is None:
                issues.append(ValidationIssue(
                    field="check_in",
                    issue_type="missing",
                    message="Check-in date is required",
                    severity="error",
                ))
            if check_out is None:
                issues.append(ValidationIssue(
                    field="check_out",
                    issue_type="missing",
                    message="Check-out date is required",
                    severity="error",
                ))

        if check_in is not None and check_out is not None and check_out <= check_in:
            issues.append(ValidationIssue(
                field="check_out",
                issue_type="invalid_range",
                message="Check-out must be after check-in",
                severity="error",
                suggested_fix="Pick a check-out date at least one day after check-in",
            ))
        return issues

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a front-desk friendly summary of validation results.
        """
        if not result.issues:
            return "✅ All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        warnings = [i for i in result.issues if i.severity != "error"]

        if errors:
            lines.append("❌ Please complete the form:")
            for issue in errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for issue in warnings:
                lines.append(f"   • {issue.message}")

        return "\n".join(lines)
