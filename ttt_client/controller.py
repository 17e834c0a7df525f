from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ttt_client.api.models import MatchSnapshot, OpCode, SessionPhase
from ttt_client.codec import ProtocolError, decode_state, encode_move
from ttt_client.core.events import StateEnvelope
from ttt_client.turn_processing.validators import ActionRejected, ValidationContext, pipeline_for_action

if TYPE_CHECKING:
    from ttt_client.context import SessionContext

logger = logging.getLogger(__name__)


class MatchSessionController:
    """Single source of truth for playable state.

    Owns the cached `MatchSnapshot` and the local seat. Snapshots are replaced
    wholesale in arrival order; board/turn/winner are never edited locally.
    """

    def __init__(self, session: SessionContext) -> None:
        self._session = session
        self.snapshot: MatchSnapshot | None = None
        self.seat: int = -1

    def reset(self) -> None:
        self.snapshot = None
        self.seat = -1

    def ingest(self, envelope: StateEnvelope) -> bool:
        """Cache an inbound state push and advance the phase it implies.

        Returns False when the message was skipped (wrong op code, no joined
        match, or an undecodable payload); the previous snapshot is kept.
        """

        if envelope.op_code != OpCode.state:
            logger.debug("Ignoring inbound op code %s on match %s", envelope.op_code, envelope.match_id)
            return False

        if self._session.lifecycle.handle is None:
            logger.debug("Dropping state for match %s: no joined match", envelope.match_id)
            return False

        try:
            snapshot = decode_state(envelope.data)
        except ProtocolError:
            logger.warning("Skipping undecodable state on match %s", envelope.match_id, exc_info=True)
            return False

        self.snapshot = snapshot
        self.seat = snapshot.seat_of(self._session.user_id)
        if self.seat < 0 and snapshot.players:
            logger.warning("Local user %s is not seated in match %s", self._session.user_id, envelope.match_id)

        logger.debug("Game state updated: %s", snapshot.model_dump(by_alias=True))
        self._advance_phase(snapshot)
        return True

    def _advance_phase(self, snapshot: MatchSnapshot) -> None:
        phase = self._session.phase
        if not snapshot.started:
            return
        if snapshot.winner is not None:
            if phase in (SessionPhase.pre_game_lobby, SessionPhase.active_game):
                self._session.transition("game_ended")
        elif phase == SessionPhase.pre_game_lobby:
            self._session.transition("game_started")

    def _move_context(self, cell: int) -> ValidationContext:
        return ValidationContext(
            action="move",
            phase=self._session.phase,
            has_session=self._session.lifecycle.handle is not None,
            seat=self.seat,
            cell=cell,
        )

    def can_move(self, cell: int) -> bool:
        return pipeline_for_action("move").allows(ctx=self._move_context(cell), snapshot=self.snapshot)

    async def attempt_move(self, cell: int) -> bool:
        """Send a move if the cached snapshot says it could be legal.

        The host re-validates; whatever the next snapshot says wins.
        """

        try:
            pipeline_for_action("move").validate(ctx=self._move_context(cell), snapshot=self.snapshot)
        except ActionRejected as e:
            logger.debug("Move on cell %s not sent: %s", cell, e)
            return False

        handle = self._session.lifecycle.handle
        if handle is None:
            return False
        op_code, payload = encode_move(cell)
        try:
            await self._session.transport.send(handle.match_id, op_code, payload)
        except Exception as e:
            logger.warning("Failed to send move on cell %s: %s", cell, e, exc_info=True)
            self._session.set_notice("Failed to send move")
            return False

        logger.info("Sent move: cell %s", cell)
        return True
