"""Exceptions raised by the booking domain."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for booking failures."""


class InvalidRange(BookingError, ValueError):
    """Raised when a date range does not start before it ends."""


class DataSourceError(BookingError):
    """Raised when the reservation source cannot be read."""


class BookingRuleViolation(BookingError, ValueError):
    """Raised when a requested stay breaks a cabin booking rule."""


class ReservationNotFound(BookingError, LookupError):
    """Raised when a reservation id is unknown to the store."""


class InvalidStatusTransition(BookingError):
    """Raised when a reservation is no longer pending."""


class ReservationOverlap(BookingError):
    """Raised when approving a stay would double-book the cabin."""
