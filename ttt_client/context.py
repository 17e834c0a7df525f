from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ttt_client.api.models import SessionPhase, ViewState
from ttt_client.config import ClientSettings
from ttt_client.controller import MatchSessionController
from ttt_client.core.events import EventSlot, MatchedNotification, StateEnvelope
from ttt_client.fsm import SessionFSM
from ttt_client.identity import DeviceIdentityStore, LocalIdentity, normalize_nickname
from ttt_client.lifecycle import SessionLifecycle
from ttt_client.lobby import LobbyHandshake
from ttt_client.matchmaking import MatchmakingClient
from ttt_client.transport import Authenticator, Transport
from ttt_client.view import build_view

logger = logging.getLogger(__name__)

R = TypeVar("R")


class SessionContext:
    """Process-wide client session: identity, channel, and match components.

    Created on startup (`start()`), torn down on exit (`close()`).

    Every inbound event and every user action runs under one update lock, so
    no two of them interleave mid-processing. Suspension only happens inside
    that lock (join, leave, sends), which keeps the cached snapshot consistent
    with the phase. `view_changed` fires after each one with the new view.
    """

    def __init__(
        self,
        *,
        settings: ClientSettings,
        authenticator: Authenticator,
        identity_store: DeviceIdentityStore,
    ) -> None:
        self.settings = settings
        self._authenticator = authenticator
        self._identity_store = identity_store
        self._transport: Transport | None = None
        self._update_lock = asyncio.Lock()

        self.fsm = SessionFSM()
        self.identity: LocalIdentity | None = None
        self.status_message = "Connecting..."
        self.notice: str | None = None
        self.view_changed: EventSlot[ViewState] = EventSlot("view_changed")

        self.controller = MatchSessionController(self)
        self.lobby = LobbyHandshake(self)
        self.matchmaking = MatchmakingClient(self)
        self.lifecycle = SessionLifecycle(self)

    # -- shared state used by components --------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self.fsm.phase

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            raise RuntimeError("Session is not connected")
        return self._transport

    @property
    def user_id(self) -> str:
        return self.identity.user_id if self.identity is not None else ""

    @property
    def nickname(self) -> str | None:
        return self.identity.nickname if self.identity is not None else None

    def transition(self, event: str) -> SessionPhase:
        before = self.phase
        self.fsm.send(event)
        logger.info("Phase %s -> %s (%s)", before.value, self.phase.value, event)
        return self.phase

    def set_status(self, message: str) -> None:
        self.status_message = message
        self.notice = None

    def set_notice(self, message: str) -> None:
        self.notice = message

    def view(self) -> ViewState:
        return build_view(self)

    # -- lifecycle --------------------------------------------------------

    async def start(self) -> bool:
        """Authenticate the device and subscribe to the realtime channel."""

        async def _connect() -> bool:
            if self.phase != SessionPhase.connecting:
                return False
            logger.info("Connecting to %s", self.settings.ws_url)
            try:
                device_id = self._identity_store.get_or_create_device_id()
                auth = await self._authenticator.authenticate(device_id=device_id, settings=self.settings)
            except Exception as e:
                logger.warning("Connection error: %s", e, exc_info=True)
                self.set_status(f"Connection failed: {e}")
                return False

            self._transport = auth.transport
            self.identity = LocalIdentity(device_id=device_id, user_id=auth.user_id, username=auth.username)
            auth.transport.state_pushed.subscribe(self._on_state_pushed)
            auth.transport.matched.subscribe(self._on_matched)
            logger.info("Authenticated as %s (%s)", auth.user_id, auth.username)
            self.transition("connected")
            self.set_status("Choose your nickname")
            return True

        return await self._run(_connect)

    async def close(self) -> None:
        transport = self._transport
        if transport is None:
            return
        transport.state_pushed.clear()
        transport.matched.clear()

        async def _withdraw() -> bool:
            if self.phase == SessionPhase.searching:
                return await self.matchmaking.cancel()
            return await self.lifecycle.leave()

        await self._run(_withdraw)
        try:
            await transport.disconnect()
        except Exception as e:
            logger.warning("Failed to disconnect cleanly: %s", e, exc_info=True)
        self._transport = None

    # -- serialized entry points --------------------------------------------

    async def _run(self, step: Callable[[], Awaitable[R]]) -> R:
        async with self._update_lock:
            result = await step()
            view = self.view()
        await self.view_changed.emit(view)
        return result

    async def _on_state_pushed(self, envelope: StateEnvelope) -> None:
        async def _ingest() -> bool:
            accepted = self.controller.ingest(envelope)
            if accepted:
                self.notice = None
            return accepted

        await self._run(_ingest)

    async def _on_matched(self, notification: MatchedNotification) -> None:
        await self._run(lambda: self.matchmaking.on_matched(notification))

    # -- user actions ---------------------------------------------------------

    async def set_nickname(self, name: str) -> bool:
        async def _set() -> bool:
            normalized = normalize_nickname(name)
            if normalized is None or self.identity is None or self.phase != SessionPhase.nickname_entry:
                return False
            self.identity.nickname = normalized
            self.transition("nickname_confirmed")
            self.set_status(f"Welcome, {normalized}!")
            logger.info("Nickname set: %s", normalized)
            return True

        return await self._run(_set)

    async def search(self) -> bool:
        return await self._run(self.matchmaking.search)

    async def cancel(self) -> bool:
        return await self._run(self.matchmaking.cancel)

    async def set_pending_nickname(self, name: str) -> bool:
        async def _edit() -> bool:
            return self.lobby.set_pending_nickname(name)

        return await self._run(_edit)

    async def confirm_ready(self) -> bool:
        return await self._run(self.lobby.confirm_ready)

    async def attempt_move(self, cell: int) -> bool:
        return await self._run(lambda: self.controller.attempt_move(cell))

    async def leave(self) -> bool:
        return await self._run(self.lifecycle.leave)

    async def rematch(self) -> bool:
        return await self._run(self.lifecycle.rematch)
