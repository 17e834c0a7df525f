from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ttt_client.api.models import LobbyView
from ttt_client.codec import encode_ready
from ttt_client.core.status import is_seated
from ttt_client.identity import normalize_nickname
from ttt_client.turn_processing.validators import ActionRejected, ValidationContext, pipeline_for_action

if TYPE_CHECKING:
    from ttt_client.context import SessionContext

logger = logging.getLogger(__name__)


class LobbyHandshake:
    """Per-match ready-up.

    Readiness is only authoritative once a snapshot lists it in `playersReady`;
    `confirm_ready` is fire-and-forget.
    """

    def __init__(self, session: SessionContext) -> None:
        self._session = session
        self.pending_nickname = ""

    def reset(self) -> None:
        self.pending_nickname = ""

    def prefill(self, nickname: str | None) -> None:
        self.pending_nickname = nickname or ""

    def set_pending_nickname(self, name: str) -> bool:
        normalized = normalize_nickname(name)
        if normalized is None:
            return False
        self.pending_nickname = normalized
        return True

    def _ready_context(self) -> ValidationContext:
        return ValidationContext(
            action="ready",
            phase=self._session.phase,
            has_session=self._session.lifecycle.handle is not None,
            seat=self._session.controller.seat,
            nickname=self.pending_nickname,
        )

    @property
    def can_confirm(self) -> bool:
        if self.is_local_ready:
            return False
        return pipeline_for_action("ready").allows(ctx=self._ready_context(), snapshot=self._session.controller.snapshot)

    async def confirm_ready(self) -> bool:
        session = self._session
        try:
            pipeline_for_action("ready").validate(ctx=self._ready_context(), snapshot=session.controller.snapshot)
        except ActionRejected as e:
            logger.debug("Ready not sent: %s", e)
            return False

        handle = session.lifecycle.handle
        if handle is None:
            return False
        nickname = self.pending_nickname.strip()
        op_code, payload = encode_ready(nickname=nickname, user_id=session.user_id)
        try:
            await session.transport.send(handle.match_id, op_code, payload)
        except Exception as e:
            logger.warning("Failed to send ready: %s", e, exc_info=True)
            session.set_notice("Failed to send ready")
            return False

        logger.info("Sent ready with nickname: %s", nickname)
        return True

    @property
    def is_local_ready(self) -> bool:
        snapshot = self._session.controller.snapshot
        return snapshot is not None and snapshot.is_ready(self._session.user_id)

    @property
    def opponent_id(self) -> str | None:
        snapshot = self._session.controller.snapshot
        if snapshot is None:
            return None
        return snapshot.opponent_of(self._session.user_id)

    @property
    def opponent_ready(self) -> bool:
        snapshot = self._session.controller.snapshot
        return snapshot is not None and snapshot.is_ready(self.opponent_id)

    @property
    def opponent_nickname(self) -> str | None:
        snapshot = self._session.controller.snapshot
        opponent = self.opponent_id
        if snapshot is None or opponent is None:
            return None
        return snapshot.player_nicknames.get(opponent)

    def view(self) -> LobbyView:
        snapshot = self._session.controller.snapshot
        user_id = self._session.user_id
        local_nickname = None
        if snapshot is not None:
            local_nickname = snapshot.player_nicknames.get(user_id)
        return LobbyView(
            is_local_ready=self.is_local_ready,
            local_nickname=local_nickname or self._session.nickname,
            opponent_ready=self.opponent_ready,
            opponent_nickname=self.opponent_nickname if self.opponent_ready else None,
            # A roster we are not on is someone else's lobby.
            all_ready=snapshot is not None and is_seated(self._session.controller.seat) and snapshot.all_ready,
        )
