"""Domain models for cabin reservations and conflict detection."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class ReservationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ConflictKind(StrEnum):
    OVERLAP = "overlap"
    ADJACENT = "adjacent"
    SAME_DAY = "same_day"


class ConflictSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class TimelineEntryType(StrEnum):
    REQUESTED = "requested"
    CONFLICT_DETECTED = "conflict_detected"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Reservation(BaseModel):
    """A stay in one cabin, from check-in date up to check-out date."""

    id: str | None = None
    resource_id: str
    requester_id: str
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Reservation:
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class Conflict(BaseModel):
    kind: ConflictKind
    against: Reservation
    severity: ConflictSeverity
    message: str


class AlternativeSuggestion(BaseModel):
    start_date: date
    end_date: date
    offset_days: int

    @property
    def distance_days(self) -> int:
        return abs(self.offset_days)


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    reservation_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: TimelineEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class DateRangeRequest(BaseModel):
    start_date: date
    end_date: date
    exclude_reservation_id: str | None = None


class SuggestionRequest(BaseModel):
    start_date: date
    end_date: date
    max_suggestions: int | None = Field(default=None, ge=0, le=61)


class BookingRequest(BaseModel):
    requester_id: str = Field(min_length=1)
    start_date: date
    end_date: date


class ConflictCheckResponse(BaseModel):
    clear: bool
    conflicts: list[Conflict] = Field(default_factory=list)


class BookingResponse(BaseModel):
    reservation: Reservation
    conflicts: list[Conflict] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    resource_id: str
    month: int
    year: int
    available_dates: list[date]
