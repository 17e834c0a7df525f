from __future__ import annotations

from typing import TYPE_CHECKING

from ttt_client.api.models import (
    SEAT_MARKS,
    BoardCellView,
    MatchSnapshot,
    PlayerSeatView,
    SessionPhase,
    ViewState,
)
from ttt_client.core.status import status_text
from ttt_client.fsm import IN_MATCH_PHASES

if TYPE_CHECKING:
    from ttt_client.context import SessionContext


def _board(session: SessionContext, snapshot: MatchSnapshot) -> list[BoardCellView]:
    playable = session.phase == SessionPhase.active_game
    return [
        BoardCellView(index=i, mark=mark, enabled=playable and session.controller.can_move(i))
        for i, mark in enumerate(snapshot.board)
    ]


def _players(snapshot: MatchSnapshot, seat: int) -> list[PlayerSeatView]:
    return [
        PlayerSeatView(
            seat=i,
            mark=SEAT_MARKS[i],
            nickname=snapshot.player_nicknames.get(player_id) or f"Player {i + 1}",
            is_local=i == seat,
        )
        for i, player_id in enumerate(snapshot.players)
    ]


def build_view(session: SessionContext) -> ViewState:
    """Project the session into what the rendering layer paints.

    Inside a match the status comes from the cached snapshot; everywhere else
    (and before the first snapshot arrives) it is the last phase message.
    """

    phase = session.phase
    controller = session.controller
    snapshot = controller.snapshot if phase in IN_MATCH_PHASES else None

    view = ViewState(
        phase=phase,
        status=session.status_message,
        notice=session.notice,
        nickname=session.nickname,
        pending_nickname=session.lobby.pending_nickname,
        can_cancel=phase == SessionPhase.searching,
    )

    if phase == SessionPhase.pre_game_lobby:
        view.lobby = session.lobby.view()
        view.can_confirm_ready = session.lobby.can_confirm

    if snapshot is None:
        return view

    view.status = status_text(snapshot, controller.seat)
    view.local_seat = controller.seat
    view.board = _board(session, snapshot)
    view.players = _players(snapshot, controller.seat)
    view.can_rematch = snapshot.winner is not None
    return view
