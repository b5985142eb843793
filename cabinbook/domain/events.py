"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

from pydantic import BaseModel


class BookingRequested(BaseModel):
    """Fired when a new pending reservation is stored."""

    reservation_id: str


class BookingApproved(BaseModel):
    """Fired when a pending reservation becomes approved."""

    reservation_id: str


class BookingRejected(BaseModel):
    reservation_id: str


class ConflictDetected(BaseModel):
    """Fired when a reservation collides with approved reservations."""

    reservation_id: str
    conflicting_reservation_ids: list[str]
    kinds: list[str]
