"""FastAPI application — entry point for the cabin booking service."""

from __future__ import annotations

from datetime import date

from fastapi import FastAPI, HTTPException, Query

from cabinbook.config import get_settings
from cabinbook.domain.bus import EventBus
from cabinbook.domain.errors import (
    BookingRuleViolation,
    DataSourceError,
    InvalidRange,
    InvalidStatusTransition,
    ReservationNotFound,
    ReservationOverlap,
)
from cabinbook.domain.events import BookingApproved, BookingRejected, BookingRequested
from cabinbook.domain.handlers import HandlerRegistry
from cabinbook.domain.models import (
    AlternativeSuggestion,
    AvailabilityResponse,
    BookingRequest,
    BookingResponse,
    ConflictCheckResponse,
    ConflictKind,
    DateRangeRequest,
    Reservation,
    ReservationStatus,
    SuggestionRequest,
    TimelineEntry,
)
from cabinbook.repos.memory import ReservationRepository, TimelineRepository
from cabinbook.services.conflicts import ConflictEngine
from cabinbook.services.validation import validate_booking_range
from cabinbook.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
reservation_repo = ReservationRepository()
timeline_repo = TimelineRepository()
engine = ConflictEngine(
    reservation_repo.list_approved_reservations,
    search_window_days=settings.search_window_days,
)

handler_registry = HandlerRegistry(
    bus=event_bus,
    reservation_repo=reservation_repo,
    timeline_repo=timeline_repo,
    engine=engine,
)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ReservationNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidStatusTransition, ReservationOverlap)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidRange, BookingRuleViolation)):
        return HTTPException(status_code=422, detail=str(exc))
    logger.error("Reservation store unavailable: %s", exc)
    return HTTPException(status_code=503, detail="Reservation store unavailable")


_HANDLED = (
    BookingRuleViolation,
    DataSourceError,
    InvalidRange,
    InvalidStatusTransition,
    ReservationNotFound,
    ReservationOverlap,
)


# ── Routes ────────────────────────────────────────────────────────────


@app.post(
    "/cabins/{cabin_id}/bookings", response_model=BookingResponse, status_code=201
)
def request_booking(cabin_id: str, body: BookingRequest) -> BookingResponse:
    """Store a pending booking and report what it currently collides with."""
    try:
        validate_booking_range(body.start_date, body.end_date, date.today(), settings)
        conflicts = engine.check_conflicts(cabin_id, body.start_date, body.end_date)
    except _HANDLED as exc:
        raise _http_error(exc) from exc

    reservation = reservation_repo.add(
        Reservation(
            resource_id=cabin_id,
            requester_id=body.requester_id,
            start_date=body.start_date,
            end_date=body.end_date,
        )
    )
    try:
        event_bus.publish(BookingRequested(reservation_id=reservation.id))
    except DataSourceError as exc:
        # Nothing from a half-handled request may stay behind.
        reservation_repo.delete(reservation.id)
        timeline_repo.delete_for_reservation(reservation.id)
        raise _http_error(exc) from exc
    return BookingResponse(reservation=reservation, conflicts=conflicts)


@app.get("/cabins/{cabin_id}/bookings", response_model=list[Reservation])
def list_bookings(cabin_id: str) -> list[Reservation]:
    return reservation_repo.list_for_resource(cabin_id)


@app.get("/bookings/{booking_id}", response_model=Reservation)
def get_booking(booking_id: str) -> Reservation:
    reservation = reservation_repo.get(booking_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return reservation


@app.get("/bookings/{booking_id}/timeline", response_model=list[TimelineEntry])
def get_booking_timeline(booking_id: str) -> list[TimelineEntry]:
    if reservation_repo.get(booking_id) is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return timeline_repo.list_for_reservation(booking_id)


@app.post("/bookings/{booking_id}/approve", response_model=Reservation)
def approve_booking(booking_id: str) -> Reservation:
    """Approve a pending booking unless it overlaps an approved one."""
    try:
        pending = reservation_repo.require(booking_id)
        if pending.status != ReservationStatus.PENDING:
            raise InvalidStatusTransition(
                f"Reservation {booking_id} is already {pending.status}"
            )
        if not settings.allow_overlapping:
            overlaps = [
                c
                for c in engine.check_conflicts(
                    pending.resource_id,
                    pending.start_date,
                    pending.end_date,
                    exclude_reservation_id=booking_id,
                )
                if c.kind == ConflictKind.OVERLAP
            ]
            if overlaps:
                raise ReservationOverlap(overlaps[0].message)
        reservation = reservation_repo.update_status(
            booking_id, ReservationStatus.APPROVED
        )
        event_bus.publish(BookingApproved(reservation_id=booking_id))
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return reservation


@app.post("/bookings/{booking_id}/reject", response_model=Reservation)
def reject_booking(booking_id: str) -> Reservation:
    try:
        reservation = reservation_repo.update_status(
            booking_id, ReservationStatus.REJECTED
        )
    except _HANDLED as exc:
        raise _http_error(exc) from exc

    event_bus.publish(BookingRejected(reservation_id=booking_id))
    return reservation


@app.post("/cabins/{cabin_id}/conflicts", response_model=ConflictCheckResponse)
def check_conflicts(cabin_id: str, body: DateRangeRequest) -> ConflictCheckResponse:
    """Check a candidate range against the cabin's approved bookings."""
    try:
        conflicts = engine.check_conflicts(
            cabin_id,
            body.start_date,
            body.end_date,
            exclude_reservation_id=body.exclude_reservation_id,
        )
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return ConflictCheckResponse(clear=not conflicts, conflicts=conflicts)


@app.post(
    "/cabins/{cabin_id}/suggestions", response_model=list[AlternativeSuggestion]
)
def suggest_dates(cabin_id: str, body: SuggestionRequest) -> list[AlternativeSuggestion]:
    """Return nearby conflict-free ranges of the same length."""
    limit = body.max_suggestions
    if limit is None:
        limit = settings.max_suggestions
    try:
        return engine.suggest_alternative_dates(
            cabin_id,
            body.start_date,
            body.end_date,
            limit,
        )
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@app.get("/cabins/{cabin_id}/availability", response_model=AvailabilityResponse)
def get_availability(
    cabin_id: str,
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=1900, le=2999),
) -> AvailabilityResponse:
    """Return every day of the month with no approved booking on it."""
    try:
        available = engine.get_available_dates(cabin_id, month, year)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return AvailabilityResponse(
        resource_id=cabin_id, month=month, year=year, available_dates=available
    )
