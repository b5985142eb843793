"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

from cabinbook.domain.bus import EventBus
from cabinbook.domain.events import (
    BookingApproved,
    BookingRejected,
    BookingRequested,
    ConflictDetected,
)
from cabinbook.domain.models import ConflictKind, TimelineEntry, TimelineEntryType
from cabinbook.repos.memory import ReservationRepository, TimelineRepository
from cabinbook.services.conflicts import ConflictEngine, classify_conflict
from cabinbook.utils.logger import get_logger

logger = get_logger(__name__)


class HandlerRegistry:
    """Wires booking-lifecycle handlers to the bus."""

    def __init__(
        self,
        bus: EventBus,
        reservation_repo: ReservationRepository,
        timeline_repo: TimelineRepository,
        engine: ConflictEngine,
    ) -> None:
        self.bus = bus
        self.reservation_repo = reservation_repo
        self.timeline_repo = timeline_repo
        self.engine = engine
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingRequested, self.on_booking_requested)
        self.bus.subscribe(BookingApproved, self.on_booking_approved)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_requested(self, event: BookingRequested) -> None:
        stored = self.reservation_repo.get(event.reservation_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=stored.id,
                type=TimelineEntryType.REQUESTED,
                payload={
                    "start_date": stored.start_date.isoformat(),
                    "end_date": stored.end_date.isoformat(),
                },
            )
        )
        logger.info(
            "Booking requested | reservation_id=%s | resource_id=%s",
            stored.id,
            stored.resource_id,
        )

        conflicts = self.engine.check_conflicts(
            stored.resource_id,
            stored.start_date,
            stored.end_date,
            exclude_reservation_id=stored.id,
        )
        if conflicts:
            self.bus.publish(
                ConflictDetected(
                    reservation_id=stored.id,
                    conflicting_reservation_ids=[c.against.id for c in conflicts],
                    kinds=[c.kind for c in conflicts],
                )
            )

    def on_booking_approved(self, event: BookingApproved) -> None:
        approved = self.reservation_repo.get(event.reservation_id)
        if approved is None:
            return

        self.timeline_repo.add(
            TimelineEntry(reservation_id=approved.id, type=TimelineEntryType.APPROVED)
        )
        logger.info("Booking approved | reservation_id=%s", approved.id)

        # Pending requests that now overlap the approved stay need a second look.
        for pending in self.reservation_repo.list_pending(approved.resource_id):
            conflict = classify_conflict(pending.start_date, pending.end_date, approved)
            if conflict is not None and conflict.kind == ConflictKind.OVERLAP:
                self.bus.publish(
                    ConflictDetected(
                        reservation_id=pending.id,
                        conflicting_reservation_ids=[approved.id],
                        kinds=[ConflictKind.OVERLAP],
                    )
                )

    def on_booking_rejected(self, event: BookingRejected) -> None:
        stored = self.reservation_repo.get(event.reservation_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(reservation_id=stored.id, type=TimelineEntryType.REJECTED)
        )
        logger.info("Booking rejected | reservation_id=%s", stored.id)

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=event.reservation_id,
                type=TimelineEntryType.CONFLICT_DETECTED,
                payload={
                    "conflicting_reservation_ids": event.conflicting_reservation_ids,
                    "kinds": event.kinds,
                },
            )
        )
        logger.info(
            "Conflict detected | reservation_id=%s | against=%s",
            event.reservation_id,
            ",".join(event.conflicting_reservation_ids),
        )
