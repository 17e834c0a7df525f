from __future__ import annotations

from enum import StrEnum

from ttt_client.api.models import WINNER_SEATS, MatchSnapshot, Winner


class MatchStatus(StrEnum):
    waiting_for_ready = "waiting_for_ready"
    starting = "starting"
    draw = "draw"
    opponent_left = "opponent_left"
    won = "won"
    lost = "lost"
    your_turn = "your_turn"
    opponent_turn = "opponent_turn"
    not_seated = "not_seated"


STATUS_TEXT: dict[MatchStatus, str] = {
    MatchStatus.waiting_for_ready: "Waiting for players to ready up...",
    MatchStatus.starting: "Starting game...",
    MatchStatus.draw: "Game ended in a draw!",
    MatchStatus.opponent_left: "Opponent left the game",
    MatchStatus.won: "You won!",
    MatchStatus.lost: "You lost!",
    MatchStatus.your_turn: "Your turn!",
    MatchStatus.opponent_turn: "Opponent's turn...",
    MatchStatus.not_seated: "Not seated in this match",
}


def is_seated(seat: int) -> bool:
    return seat in (0, 1)


def derive_status(snapshot: MatchSnapshot, seat: int) -> MatchStatus:
    """Map a snapshot and the local seat to exactly one status.

    Precedence: lobby (ready / starting), draw, abandoned, win/loss, turn.
    A seat of -1 during play maps to `not_seated` instead of guessing a side.
    """

    if not snapshot.started:
        return MatchStatus.starting if snapshot.all_ready else MatchStatus.waiting_for_ready

    winner = snapshot.winner
    if winner == Winner.draw:
        return MatchStatus.draw
    if winner == Winner.abandoned:
        return MatchStatus.opponent_left

    if not is_seated(seat):
        return MatchStatus.not_seated

    if winner is not None:
        return MatchStatus.won if WINNER_SEATS[winner] == seat else MatchStatus.lost

    return MatchStatus.your_turn if snapshot.turn == seat else MatchStatus.opponent_turn


def status_text(snapshot: MatchSnapshot, seat: int) -> str:
    return STATUS_TEXT[derive_status(snapshot, seat)]
