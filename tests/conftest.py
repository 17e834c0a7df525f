from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import fakeredis
import pytest
import pytest_asyncio

from ttt_client.api.models import OpCode
from ttt_client.config import ClientSettings
from ttt_client.context import SessionContext
from ttt_client.core.events import EventSlot, MatchedNotification, StateEnvelope
from ttt_client.identity import DeviceIdentityStore
from ttt_client.transport import AuthenticatedSession, MatchmakerTicket, SessionHandle, TransportError

ME = "user-a"
OPPONENT = "user-b"
MATCH_ID = "match-1"


class FakeTransport:
    """In-memory realtime channel that records outbound calls.

    Tests drive inbound traffic with `push_state` / `push_raw` / `push_matched`.
    Set a `fail_*` flag to make the matching call raise a `TransportError`.
    """

    def __init__(self) -> None:
        self.state_pushed: EventSlot[StateEnvelope] = EventSlot("state_pushed")
        self.matched: EventSlot[MatchedNotification] = EventSlot("matched")
        self.calls: list[str] = []
        self.sent: list[tuple[str, int, dict[str, Any]]] = []
        self.matchmaker_requests: list[dict[str, Any]] = []
        self.removed_tickets: list[str] = []
        self.left: list[str] = []
        self.disconnected = False
        self.join_gate: asyncio.Event | None = None

        self.fail_send = False
        self.fail_join = False
        self.fail_leave = False
        self.fail_matchmaker = False

    async def send(self, match_id: str, op_code: int, payload: bytes) -> None:
        self.calls.append("send")
        if self.fail_send:
            raise TransportError("socket closed")
        self.sent.append((match_id, op_code, json.loads(payload)))

    async def join(self, match_ref: str) -> SessionHandle:
        self.calls.append("join")
        if self.join_gate is not None:
            await self.join_gate.wait()
        if self.fail_join:
            raise TransportError("match not found")
        return SessionHandle(match_id=match_ref)

    async def leave(self, match_id: str) -> None:
        self.calls.append("leave")
        if self.fail_leave:
            raise TransportError("socket closed")
        self.left.append(match_id)

    async def add_matchmaker(
        self,
        *,
        query: str,
        min_count: int,
        max_count: int,
        string_properties: Mapping[str, str],
    ) -> MatchmakerTicket:
        self.calls.append("add_matchmaker")
        if self.fail_matchmaker:
            raise TransportError("matchmaker unavailable")
        self.matchmaker_requests.append(
            {"query": query, "min_count": min_count, "max_count": max_count, "properties": dict(string_properties)}
        )
        return MatchmakerTicket(ticket=f"ticket-{len(self.matchmaker_requests)}")

    async def remove_matchmaker(self, ticket: MatchmakerTicket) -> None:
        self.calls.append("remove_matchmaker")
        self.removed_tickets.append(ticket.ticket)

    async def disconnect(self) -> None:
        self.disconnected = True

    async def push_raw(self, data: bytes, *, match_id: str = MATCH_ID, op_code: int = OpCode.state) -> None:
        await self.state_pushed.emit(StateEnvelope(match_id=match_id, op_code=op_code, data=data))

    async def push_state(self, state: dict[str, Any], *, match_id: str = MATCH_ID) -> None:
        await self.push_raw(json.dumps(state).encode("utf-8"), match_id=match_id)

    async def push_matched(self, match_ref: str = MATCH_ID) -> None:
        await self.matched.emit(MatchedNotification(match_ref=match_ref, ticket="ticket-1"))

    def sent_ops(self, op_code: int) -> list[dict[str, Any]]:
        return [payload for _, op, payload in self.sent if op == op_code]


class FakeAuthenticator:
    def __init__(self, transport: FakeTransport, *, user_id: str = ME, error: Exception | None = None) -> None:
        self.transport = transport
        self.user_id = user_id
        self.error = error
        self.device_ids: list[str] = []

    async def authenticate(self, *, device_id: str, settings: ClientSettings) -> AuthenticatedSession:
        self.device_ids.append(device_id)
        if self.error is not None:
            raise self.error
        return AuthenticatedSession(user_id=self.user_id, username=f"{self.user_id}-name", transport=self.transport)


def make_state(**overrides: Any) -> dict[str, Any]:
    """Wire-format state for a started two-player game; override any field."""

    state: dict[str, Any] = {
        "board": [""] * 9,
        "players": [ME, OPPONENT],
        "turn": 0,
        "winner": None,
        "started": True,
        "playersReady": {ME: True, OPPONENT: True},
        "playerNicknames": {ME: "alice", OPPONENT: "bob"},
    }
    state.update(overrides)
    return state


@pytest.fixture()
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def settings() -> ClientSettings:
    return ClientSettings()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def authenticator(transport: FakeTransport) -> FakeAuthenticator:
    return FakeAuthenticator(transport)


@pytest.fixture()
def session(
    settings: ClientSettings,
    authenticator: FakeAuthenticator,
    redis_client: fakeredis.FakeRedis,
) -> SessionContext:
    store = DeviceIdentityStore(r=redis_client, key=settings.device_id_key)
    return SessionContext(settings=settings, authenticator=authenticator, identity_store=store)


@pytest_asyncio.fixture()
async def idle_session(session: SessionContext) -> AsyncGenerator[SessionContext, None]:
    assert await session.start()
    assert await session.set_nickname("alice")
    yield session


@pytest_asyncio.fixture()
async def joined_session(idle_session: SessionContext, transport: FakeTransport) -> AsyncGenerator[SessionContext, None]:
    assert await idle_session.search()
    await transport.push_matched(MATCH_ID)
    assert idle_session.lifecycle.handle is not None
    yield idle_session
