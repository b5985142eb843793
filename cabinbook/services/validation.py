"""Booking rules applied before a stay request is stored."""

from __future__ import annotations

from datetime import date

from dateutil.relativedelta import relativedelta

from cabinbook.config import Settings, get_settings
from cabinbook.domain.errors import BookingRuleViolation, InvalidRange


def validate_booking_range(
    start_date: date,
    end_date: date,
    today: date,
    settings: Settings | None = None,
) -> None:
    """Raise if the requested stay cannot be booked.

    Raises InvalidRange when the dates are out of order and
    BookingRuleViolation for a past start, a start beyond the advance
    booking window, or a stay longer than the configured maximum.
    """
    settings = settings or get_settings()

    if start_date >= end_date:
        raise InvalidRange("End date must be after start date")

    if start_date < today:
        raise BookingRuleViolation("Booking date cannot be in the past")

    latest_start = today + relativedelta(years=settings.advance_booking_years)
    if start_date > latest_start:
        raise BookingRuleViolation(
            f"Booking date cannot be more than {settings.advance_booking_years} "
            "year(s) in the future"
        )

    if (end_date - start_date).days > settings.max_booking_days:
        raise BookingRuleViolation(
            f"Booking duration cannot exceed {settings.max_booking_days} days"
        )
