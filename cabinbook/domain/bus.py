"""Synchronous in-process bus for booking lifecycle events."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

from pydantic import BaseModel

from cabinbook.utils.logger import get_logger

logger = get_logger(__name__)

BookingHandler = Callable[[BaseModel], None]


class EventBus:
    """Publish/subscribe bus for booking events.

    Events are pydantic models carrying a ``reservation_id``. Handlers run
    synchronously in registration order and their exceptions reach the
    publisher, so a route can roll back what it already stored.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[BaseModel], list[BookingHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[BaseModel], handler: BookingHandler) -> None:
        if "reservation_id" not in event_type.model_fields:
            raise TypeError(f"{event_type.__name__} has no reservation_id field")
        self._subscribers[event_type].append(handler)

    def publish(self, event: BaseModel) -> None:
        handlers = self._subscribers.get(type(event), [])
        logger.debug(
            "Publishing %s | reservation_id=%s | handlers=%d",
            type(event).__name__,
            getattr(event, "reservation_id", None),
            len(handlers),
        )
        for handler in handlers:
            handler(event)
