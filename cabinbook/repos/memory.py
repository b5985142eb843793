"""In-memory repositories for reservations and their timelines."""

from __future__ import annotations

import uuid

from cabinbook.domain.errors import InvalidStatusTransition, ReservationNotFound
from cabinbook.domain.models import (
    Reservation,
    ReservationStatus,
    TimelineEntry,
)


class ReservationRepository:
    """Dict-backed store for Reservation instances, keyed by id.

    Stands in for the hosted booking table: it owns status transitions and
    serves approved reservations to the conflict engine.
    """

    def __init__(self) -> None:
        self._store: dict[str, Reservation] = {}

    def add(self, reservation: Reservation) -> Reservation:
        """Store a copy of the reservation, assigning an id when it has none."""
        stored = reservation.model_copy(update={"id": reservation.id or str(uuid.uuid4())})
        self._store[stored.id] = stored
        return stored

    def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    def require(self, reservation_id: str) -> Reservation:
        reservation = self._store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(f"Reservation {reservation_id} not found")
        return reservation

    def list_for_resource(self, resource_id: str) -> list[Reservation]:
        return sorted(
            (r for r in self._store.values() if r.resource_id == resource_id),
            key=lambda r: (r.start_date, r.end_date),
        )

    def list_pending(self, resource_id: str) -> list[Reservation]:
        return [
            r
            for r in self.list_for_resource(resource_id)
            if r.status == ReservationStatus.PENDING
        ]

    def list_approved_reservations(self, resource_id: str) -> list[Reservation]:
        """Return approved reservations for the cabin (copies, safe to hand out)."""
        return [
            r.model_copy()
            for r in self._store.values()
            if r.resource_id == resource_id and r.status == ReservationStatus.APPROVED
        ]

    def delete(self, reservation_id: str) -> None:
        self._store.pop(reservation_id, None)

    def update_status(
        self, reservation_id: str, status: ReservationStatus
    ) -> Reservation:
        """Move a pending reservation to ``status``."""
        reservation = self.require(reservation_id)
        if reservation.status != ReservationStatus.PENDING:
            raise InvalidStatusTransition(
                f"Reservation {reservation_id} is already {reservation.status}"
            )
        reservation.status = status
        return reservation


class TimelineRepository:
    """List-backed store for TimelineEntry instances."""

    def __init__(self) -> None:
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        self._entries.append(entry)

    def list_for_reservation(self, reservation_id: str) -> list[TimelineEntry]:
        return sorted(
            [e for e in self._entries if e.reservation_id == reservation_id],
            key=lambda e: e.timestamp,
        )

    def delete_for_reservation(self, reservation_id: str) -> None:
        self._entries = [e for e in self._entries if e.reservation_id != reservation_id]
