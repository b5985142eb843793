"""Tests for the booking lifecycle — store, bus handlers, timelines."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from cabinbook.domain.bus import EventBus
from cabinbook.domain.errors import InvalidStatusTransition, ReservationNotFound
from cabinbook.domain.events import (
    BookingApproved,
    BookingRejected,
    BookingRequested,
)
from cabinbook.domain.handlers import HandlerRegistry
from cabinbook.domain.models import Reservation, ReservationStatus, TimelineEntryType
from cabinbook.repos.memory import ReservationRepository, TimelineRepository
from cabinbook.services.conflicts import ConflictEngine

CABIN = "cabin-1"


@pytest.fixture()
def env():
    """Fresh bus + repos + engine + registry for each test."""
    bus = EventBus()
    reservation_repo = ReservationRepository()
    timeline_repo = TimelineRepository()
    engine = ConflictEngine(reservation_repo.list_approved_reservations)

    registry = HandlerRegistry(
        bus=bus,
        reservation_repo=reservation_repo,
        timeline_repo=timeline_repo,
        engine=engine,
    )

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.reservation_repo = reservation_repo
    e.timeline_repo = timeline_repo
    e.engine = engine
    e.registry = registry
    return e


def _reservation(start: date, end: date, **overrides) -> Reservation:
    defaults = dict(
        resource_id=CABIN,
        requester_id="guest",
        start_date=start,
        end_date=end,
    )
    defaults.update(overrides)
    return Reservation(**defaults)


def _timeline_types(env, reservation_id: str) -> list[str]:
    return [e.type for e in env.timeline_repo.list_for_reservation(reservation_id)]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def test_add_assigns_id_and_keeps_given_one(env):
    stored = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 4)))
    assert stored.id
    assert env.reservation_repo.get(stored.id) is stored

    named = env.reservation_repo.add(
        _reservation(date(2026, 7, 5), date(2026, 7, 6), id="fixed")
    )
    assert named.id == "fixed"


def test_list_approved_only_returns_approved_for_resource(env):
    repo = env.reservation_repo
    approved = repo.add(
        _reservation(date(2026, 7, 1), date(2026, 7, 4), status=ReservationStatus.APPROVED)
    )
    repo.add(_reservation(date(2026, 7, 5), date(2026, 7, 8)))
    repo.add(
        _reservation(date(2026, 7, 9), date(2026, 7, 10), status=ReservationStatus.REJECTED)
    )
    repo.add(
        _reservation(
            date(2026, 7, 1),
            date(2026, 7, 4),
            resource_id="other-cabin",
            status=ReservationStatus.APPROVED,
        )
    )

    listed = repo.list_approved_reservations(CABIN)

    assert [r.id for r in listed] == [approved.id]
    listed[0].status = ReservationStatus.REJECTED
    assert repo.get(approved.id).status == ReservationStatus.APPROVED


def test_status_changes_only_from_pending(env):
    stored = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 4)))

    env.reservation_repo.update_status(stored.id, ReservationStatus.APPROVED)

    with pytest.raises(InvalidStatusTransition):
        env.reservation_repo.update_status(stored.id, ReservationStatus.REJECTED)


def test_require_unknown_id(env):
    with pytest.raises(ReservationNotFound):
        env.reservation_repo.require("missing")


def test_reservation_rejects_inverted_dates():
    with pytest.raises(ValueError):
        _reservation(date(2026, 7, 4), date(2026, 7, 1))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def test_clear_request_only_records_requested(env):
    stored = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 4)))

    env.bus.publish(BookingRequested(reservation_id=stored.id))

    assert _timeline_types(env, stored.id) == [TimelineEntryType.REQUESTED]


def test_conflicting_request_records_conflict(env):
    approved = env.reservation_repo.add(
        _reservation(date(2026, 7, 1), date(2026, 7, 5), status=ReservationStatus.APPROVED)
    )
    pending = env.reservation_repo.add(_reservation(date(2026, 7, 3), date(2026, 7, 6)))

    env.bus.publish(BookingRequested(reservation_id=pending.id))

    entries = env.timeline_repo.list_for_reservation(pending.id)
    assert [e.type for e in entries] == [
        TimelineEntryType.REQUESTED,
        TimelineEntryType.CONFLICT_DETECTED,
    ]
    assert entries[1].payload["conflicting_reservation_ids"] == [approved.id]
    assert entries[1].payload["kinds"] == ["overlap"]


def test_adjacent_request_is_flagged_as_warning_kind(env):
    env.reservation_repo.add(
        _reservation(date(2026, 7, 1), date(2026, 7, 5), status=ReservationStatus.APPROVED)
    )
    pending = env.reservation_repo.add(_reservation(date(2026, 7, 5), date(2026, 7, 7)))

    env.bus.publish(BookingRequested(reservation_id=pending.id))

    entries = env.timeline_repo.list_for_reservation(pending.id)
    assert entries[-1].payload["kinds"] == ["adjacent"]


def test_approval_flags_overlapping_pending_requests(env):
    first = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 5)))
    overlapping = env.reservation_repo.add(
        _reservation(date(2026, 7, 4), date(2026, 7, 8))
    )
    elsewhere = env.reservation_repo.add(
        _reservation(date(2026, 7, 20), date(2026, 7, 22))
    )

    env.reservation_repo.update_status(first.id, ReservationStatus.APPROVED)
    env.bus.publish(BookingApproved(reservation_id=first.id))

    assert _timeline_types(env, first.id) == [TimelineEntryType.APPROVED]
    assert _timeline_types(env, overlapping.id) == [TimelineEntryType.CONFLICT_DETECTED]
    assert _timeline_types(env, elsewhere.id) == []


def test_rejection_recorded(env):
    stored = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 4)))

    env.reservation_repo.update_status(stored.id, ReservationStatus.REJECTED)
    env.bus.publish(BookingRejected(reservation_id=stored.id))

    assert _timeline_types(env, stored.id) == [TimelineEntryType.REJECTED]


def test_unknown_reservation_is_ignored(env):
    env.bus.publish(BookingRequested(reservation_id="missing"))
    env.bus.publish(BookingApproved(reservation_id="missing"))
    env.bus.publish(BookingRejected(reservation_id="missing"))

    assert env.timeline_repo.list_for_reservation("missing") == []


def test_bus_rejects_events_without_reservation_id(env):
    class Unrelated(BaseModel):
        name: str

    with pytest.raises(TypeError):
        env.bus.subscribe(Unrelated, lambda event: None)


def test_approval_flagging_does_not_read_the_store(env):
    first = env.reservation_repo.add(_reservation(date(2026, 7, 1), date(2026, 7, 5)))
    overlapping = env.reservation_repo.add(
        _reservation(date(2026, 7, 4), date(2026, 7, 8))
    )
    env.reservation_repo.update_status(first.id, ReservationStatus.APPROVED)

    with patch.object(
        env.engine, "_list_approved_reservations", side_effect=ConnectionError("down")
    ):
        env.bus.publish(BookingApproved(reservation_id=first.id))

    assert _timeline_types(env, overlapping.id) == [TimelineEntryType.CONFLICT_DETECTED]
