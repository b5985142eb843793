"""Tests for booking rule validation."""

from datetime import date

import pytest

from cabinbook.config import Settings
from cabinbook.domain.errors import BookingRuleViolation, InvalidRange
from cabinbook.services.validation import validate_booking_range

_TODAY = date(2026, 3, 1)
_SETTINGS = Settings(max_booking_days=30, advance_booking_years=1)


def test_valid_range_passes():
    validate_booking_range(date(2026, 3, 5), date(2026, 3, 9), _TODAY, _SETTINGS)


def test_start_today_is_allowed():
    validate_booking_range(_TODAY, date(2026, 3, 2), _TODAY, _SETTINGS)


def test_end_not_after_start():
    with pytest.raises(InvalidRange, match="End date must be after start date"):
        validate_booking_range(date(2026, 3, 5), date(2026, 3, 5), _TODAY, _SETTINGS)


def test_past_start_rejected():
    with pytest.raises(BookingRuleViolation, match="in the past"):
        validate_booking_range(date(2026, 2, 27), date(2026, 3, 2), _TODAY, _SETTINGS)


def test_start_beyond_advance_window_rejected():
    validate_booking_range(date(2027, 3, 1), date(2027, 3, 3), _TODAY, _SETTINGS)
    with pytest.raises(BookingRuleViolation, match="in the future"):
        validate_booking_range(date(2027, 3, 2), date(2027, 3, 4), _TODAY, _SETTINGS)


def test_duration_cap():
    validate_booking_range(date(2026, 4, 1), date(2026, 5, 1), _TODAY, _SETTINGS)
    with pytest.raises(BookingRuleViolation, match="cannot exceed 30 days"):
        validate_booking_range(date(2026, 4, 1), date(2026, 5, 2), _TODAY, _SETTINGS)


def test_duration_cap_follows_settings():
    strict = Settings(max_booking_days=7)
    with pytest.raises(BookingRuleViolation, match="cannot exceed 7 days"):
        validate_booking_range(date(2026, 4, 1), date(2026, 4, 9), _TODAY, strict)
