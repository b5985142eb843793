"""Service for detecting booking conflicts and suggesting free date ranges.

All arithmetic is on calendar dates. A reservation occupies the half-open
range ``[start_date, end_date)``: the check-out day is free for the next
guest to check in, which is reported as an ``adjacent`` warning rather than
an overlap.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Iterable, Iterator

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, rrule

from cabinbook.domain.errors import DataSourceError, InvalidRange
from cabinbook.domain.models import (
    AlternativeSuggestion,
    Conflict,
    ConflictKind,
    ConflictSeverity,
    Reservation,
)
from cabinbook.utils.logger import get_logger

logger = get_logger(__name__)

ReservationSource = Callable[[str], Iterable[Reservation]]

SEARCH_WINDOW_DAYS = 30

_ONE_DAY = timedelta(days=1)

_MESSAGE_PREFIX = {
    ConflictKind.OVERLAP: "Conflicts with",
    ConflictKind.ADJACENT: "Adjacent to",
    ConflictKind.SAME_DAY: "Same day as",
}


# ---------------------------------------------------------------------------
# Range predicates
# ---------------------------------------------------------------------------


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Return True when the half-open ranges share at least one day.

    Exact boundary touches (end_a == start_b) are NOT overlaps.
    """
    return start_a < end_b and start_b < end_a


def ranges_adjacent(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Return True when a boundary of one range is within a day of the other's."""
    return abs(start_a - end_b) < _ONE_DAY or abs(end_a - start_b) < _ONE_DAY


def shares_boundary_date(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return bool({start_a, end_a} & {start_b, end_b})


def classify_conflict(
    candidate_start: date, candidate_end: date, existing: Reservation
) -> Conflict | None:
    """Return the first matching conflict (overlap, adjacent, same day) or None."""
    bounds = (candidate_start, candidate_end, existing.start_date, existing.end_date)

    if ranges_overlap(*bounds):
        kind, severity = ConflictKind.OVERLAP, ConflictSeverity.ERROR
    elif ranges_adjacent(*bounds):
        kind, severity = ConflictKind.ADJACENT, ConflictSeverity.WARNING
    elif shares_boundary_date(*bounds):
        kind, severity = ConflictKind.SAME_DAY, ConflictSeverity.WARNING
    else:
        return None

    return Conflict(
        kind=kind,
        against=existing,
        severity=severity,
        message=(
            f"{_MESSAGE_PREFIX[kind]} existing booking from "
            f"{format_date(existing.start_date)} to {format_date(existing.end_date)}"
        ),
    )


def format_date(value: date) -> str:
    """Render a date as e.g. ``Jan 5, 2024``."""
    return f"{value:%b} {value.day}, {value.year}"


def _require_range(start: date, end: date) -> None:
    if start >= end:
        raise InvalidRange(f"start {start.isoformat()} must be before end {end.isoformat()}")


def _days_inclusive(first: date, last: date) -> list[date]:
    return [moment.date() for moment in rrule(DAILY, dtstart=first, until=last)]


def _offsets_nearest_first(window_days: int) -> Iterator[int]:
    # Equal distances yield the earlier date first.
    for distance in range(1, window_days + 1):
        yield -distance
        yield distance


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ConflictEngine:
    """Stateless conflict checks over one cabin's approved reservations.

    ``list_approved_reservations`` is called once per operation and must
    raise on failure; any exception it raises reaches the caller as a
    :class:`DataSourceError`.
    """

    def __init__(
        self,
        list_approved_reservations: ReservationSource,
        search_window_days: int = SEARCH_WINDOW_DAYS,
    ) -> None:
        self._list_approved_reservations = list_approved_reservations
        self.search_window_days = search_window_days

    def _fetch(self, resource_id: str) -> list[Reservation]:
        try:
            return list(self._list_approved_reservations(resource_id))
        except DataSourceError:
            logger.warning("Reservation source failed | resource_id=%s", resource_id)
            raise
        except Exception as exc:
            logger.warning(
                "Reservation source failed | resource_id=%s | error=%r", resource_id, exc
            )
            raise DataSourceError(
                f"Could not load approved reservations for {resource_id}"
            ) from exc

    @staticmethod
    def _find_conflicts(
        candidate_start: date, candidate_end: date, reservations: list[Reservation]
    ) -> list[Conflict]:
        ordered = sorted(reservations, key=lambda r: (r.start_date, r.end_date))
        conflicts = []
        for existing in ordered:
            conflict = classify_conflict(candidate_start, candidate_end, existing)
            if conflict is not None:
                conflicts.append(conflict)
        return conflicts

    def check_conflicts(
        self,
        resource_id: str,
        candidate_start: date,
        candidate_end: date,
        exclude_reservation_id: str | None = None,
    ) -> list[Conflict]:
        """Return one conflict per approved reservation that collides with the range.

        An empty list means the range is clear.
        """
        _require_range(candidate_start, candidate_end)

        reservations = self._fetch(resource_id)
        if exclude_reservation_id is not None:
            reservations = [r for r in reservations if r.id != exclude_reservation_id]

        conflicts = self._find_conflicts(candidate_start, candidate_end, reservations)
        logger.debug(
            "Checked range | resource_id=%s | range=%s..%s | conflicts=%d",
            resource_id,
            candidate_start,
            candidate_end,
            len(conflicts),
        )
        return conflicts

    def suggest_alternative_dates(
        self,
        resource_id: str,
        preferred_start: date,
        preferred_end: date,
        max_suggestions: int = 3,
    ) -> list[AlternativeSuggestion]:
        """Return conflict-free ranges of the same length near the preferred one.

        Offsets are scanned -1, +1, -2, +2, ... up to the search window, so the
        result is ordered by distance from the preferred start with earlier
        dates winning ties. The preferred range itself is never suggested.
        """
        _require_range(preferred_start, preferred_end)
        if max_suggestions <= 0:
            return []

        duration = preferred_end - preferred_start
        reservations = self._fetch(resource_id)

        suggestions: list[AlternativeSuggestion] = []
        for offset in _offsets_nearest_first(self.search_window_days):
            start = preferred_start + timedelta(days=offset)
            end = start + duration
            if self._find_conflicts(start, end, reservations):
                continue
            suggestions.append(
                AlternativeSuggestion(start_date=start, end_date=end, offset_days=offset)
            )
            if len(suggestions) >= max_suggestions:
                break

        logger.debug(
            "Suggested alternatives | resource_id=%s | preferred=%s..%s | found=%d",
            resource_id,
            preferred_start,
            preferred_end,
            len(suggestions),
        )
        return suggestions

    def get_available_dates(self, resource_id: str, month: int, year: int) -> list[date]:
        """Return the days of the month not covered by any approved reservation.

        Here a reservation covers its check-out day as well.
        """
        if not 1 <= month <= 12:
            raise InvalidRange(f"month must be between 1 and 12, got {month}")

        first_day = date(year, month, 1)
        last_day = first_day + relativedelta(months=1, days=-1)

        booked: set[date] = set()
        for reservation in self._fetch(resource_id):
            if reservation.end_date < first_day or reservation.start_date > last_day:
                continue
            booked.update(
                _days_inclusive(
                    max(reservation.start_date, first_day),
                    min(reservation.end_date, last_day),
                )
            )

        return [day for day in _days_inclusive(first_day, last_day) if day not in booked]
