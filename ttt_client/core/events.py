from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[T], Awaitable[None]]


class EventSlot(Generic[T]):
    """Single-subscriber event source.

    Contract:
      - `subscribe(handler)` *replaces* the current handler; handlers never stack.
      - `clear()` detaches the current handler (this is how teardown is expressed).
      - `emit(value)` awaits the handler, or drops the value when nobody listens.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handler: Handler[T] | None = None

    @property
    def has_subscriber(self) -> bool:
        return self._handler is not None

    def subscribe(self, handler: Handler[T]) -> Handler[T] | None:
        previous = self._handler
        self._handler = handler
        if previous is not None:
            logger.debug("event slot %s: replaced previous subscriber", self.name)
        return previous

    def clear(self) -> None:
        self._handler = None

    async def emit(self, value: T) -> bool:
        handler = self._handler
        if handler is None:
            logger.debug("event slot %s: no subscriber, dropping event", self.name)
            return False
        await handler(value)
        return True


@dataclass(frozen=True, slots=True)
class StateEnvelope:
    """Raw op-coded match data as delivered by the transport."""

    match_id: str
    op_code: int
    data: bytes


@dataclass(frozen=True, slots=True)
class MatchedNotification:
    """Matchmaker found an opponent; `match_ref` is what the transport joins by."""

    match_ref: str
    ticket: str | None = None
