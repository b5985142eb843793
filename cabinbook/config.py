"""Runtime settings read from ``CABINBOOK_*`` environment variables."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field

_ENV_PREFIX = "CABINBOOK_"


class Settings(BaseModel):
    app_name: str = "Cabin Booking Service"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    log_to_stderr: bool = False
    search_window_days: int = Field(default=30, ge=1)
    max_suggestions: int = Field(default=3, ge=0)
    max_booking_days: int = Field(default=30, ge=1)
    advance_booking_years: int = Field(default=1, ge=0)
    allow_overlapping: bool = False


def _read_environment() -> dict[str, str]:
    values: dict[str, str] = {}
    for field_name in Settings.model_fields:
        raw = os.environ.get(_ENV_PREFIX + field_name.upper())
        if raw is not None:
            values[field_name] = raw
    return values


@lru_cache
def get_settings() -> Settings:
    """Return process-wide settings; pydantic coerces the raw strings."""
    return Settings(**_read_environment())
