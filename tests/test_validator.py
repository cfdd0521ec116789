"""
Tests for front desk request validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from resort_finance.models.booking import CheckInRequest, QuickBookRequest
from resort_finance.validation import BookingValidationError, FrontDeskValidator


@pytest.fixture
def validator():
    return FrontDeskValidator()


def fields_with_errors(result) -> set[str]:
    return {i.field for i in result.issues if i.severity == "error"}


class TestCheckInValidation:
    """Tests for the check-in form."""

    def test_complete_form_passes(self, validator, guest):
        request = CheckInRequest(
            guest=guest,
            room_number="101",
            amount=Decimal("1500"),
            check_in=date(2025, 1, 10),
            check_out=date(2025, 1, 11),
        )
        result = validator.validate_check_in(request)
        assert result.is_valid
        assert result.issues == []

    def test_empty_form_reports_everything(self, validator):
        result = validator.validate_check_in(CheckInRequest())
        assert fields_with_errors(result) == {"guest", "room_number", "amount", "check_in", "check_out"}
        assert result.error_count == 5

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-100")])
    def test_amount_must_be_positive(self, validator, guest, amount):
        request = CheckInRequest(
            guest=guest,
            room_number="101",
            amount=amount,
            check_in=date(2025, 1, 10),
            check_out=date(2025, 1, 11),
        )
        result = validator.validate_check_in(request)
        assert [i.issue_type for i in result.issues] == ["invalid_value"]

    def test_same_day_checkout_rejected(self, validator, guest):
        request = CheckInRequest(
            guest=guest,
            room_number="101",
            amount=Decimal("1500"),
            check_in=date(2025, 1, 10),
            check_out=date(2025, 1, 10),
        )
        result = validator.validate_check_in(request)
        assert result.has_errors
        assert result.issues[0].issue_type == "invalid_range"

    def test_unknown_room_is_only_a_warning(self, validator, guest):
        request = CheckInRequest(
            guest=guest,
            room_number="X9",
            amount=Decimal("800"),
            check_in=date(2025, 1, 10),
            check_out=date(2025, 1, 11),
        )
        result = validator.validate_check_in(request)
        assert result.is_valid
        assert result.issues[0].severity == "warning"
        assert result.issues[0].issue_type == "unknown_room"


class TestQuickBookValidation:
    """Tests for the quick-book form."""

    def test_dates_are_optional(self, validator):
        request = QuickBookRequest(guest_name="Somchai", room_number="101", amount=Decimal("1500"))
        assert validator.validate_quick_book(request).is_valid

    def test_given_dates_must_be_ordered(self, validator):
        request = QuickBookRequest(
            guest_name="Somchai",
            room_number="101",
            amount=Decimal("1500"),
            check_in=date(2025, 1, 12),
            check_out=date(2025, 1, 10),
        )
        assert fields_with_errors(validator.validate_quick_book(request)) == {"check_out"}

    def test_missing_name_room_amount(self, validator):
        result = validator.validate_quick_book(QuickBookRequest())
        assert fields_with_errors(result) == {"guest_name", "room_number", "amount"}


class TestRequireValidAndSummary:
    """Tests for raising and for the operator summary."""

    def test_require_valid_raises_with_issues(self, validator):
        result = validator.validate_quick_book(QuickBookRequest(room_number="101", amount=Decimal("1")))

        with pytest.raises(BookingValidationError) as exc_info:
            validator.require_valid(result)

        assert exc_info.value.result is result
        assert [i.field for i in exc_info.value.issues] == ["guest_name"]
        assert "quick_book" in str(exc_info.value)

    def test_require_valid_passes_warnings(self, validator):
        request = QuickBookRequest(guest_name="A", room_number="X9", amount=Decimal("1"))
        result = validator.validate_quick_book(request)
        assert validator.require_valid(result) is result

    def test_summary_all_clear(self, validator):
        request = QuickBookRequest(guest_name="A", room_number="101", amount=Decimal("1"))
        summary = validator.get_user_friendly_summary(validator.validate_quick_book(request))
        assert summary == "✅ All checks passed."

    def test_summary_lists_errors_then_warnings(self, validator):
        request = QuickBookRequest(guest_name="", room_number="X9", amount=Decimal("1"))
        summary = validator.get_user_friendly_summary(validator.validate_quick_book(request))

        assert summary.startswith("❌ Please complete the form:")
        assert "Guest name is required" in summary
        assert "⚠️ Please verify the following:" in summary
        assert summary.index("❌") < summary.index("⚠️")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
