from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ttt_client.core.events import EventSlot, MatchedNotification, StateEnvelope

if TYPE_CHECKING:
    from ttt_client.config import ClientSettings


class TransportError(RuntimeError):
    """A send/join/leave/matchmaker call against the realtime channel failed."""


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """Opaque reference to a joined match."""

    match_id: str


@dataclass(frozen=True, slots=True)
class MatchmakerTicket:
    ticket: str


class Transport(Protocol):
    """Realtime channel to the match host.

    Inbound traffic is delivered through two single-subscriber slots:
    `state_pushed` (op-coded match data) and `matched` (matchmaker result).
    """

    state_pushed: EventSlot[StateEnvelope]
    matched: EventSlot[MatchedNotification]

    async def send(self, match_id: str, op_code: int, payload: bytes) -> None: ...

    async def join(self, match_ref: str) -> SessionHandle: ...

    async def leave(self, match_id: str) -> None: ...

    async def add_matchmaker(
        self,
        *,
        query: str,
        min_count: int,
        max_count: int,
        string_properties: Mapping[str, str],
    ) -> MatchmakerTicket: ...

    async def remove_matchmaker(self, ticket: MatchmakerTicket) -> None: ...

    async def disconnect(self) -> None: ...


@dataclass(frozen=True, slots=True)
class AuthenticatedSession:
    user_id: str
    username: str
    transport: Transport


class Authenticator(Protocol):
    """Authenticate a device id and hand back a connected realtime channel."""

    async def authenticate(self, *, device_id: str, settings: "ClientSettings") -> AuthenticatedSession: ...
