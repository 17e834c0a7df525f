from __future__ import annotations

import json

import pytest

from ttt_client.api.models import Cell, MatchSnapshot, OpCode, Winner
from ttt_client.codec import ProtocolError, decode_state, encode_move, encode_ready

from conftest import ME, OPPONENT, make_state


def test_decode_state_reads_wire_aliases() -> None:
    board = ["X", "", "O", "", "", "", "", "", ""]
    snap = decode_state(json.dumps(make_state(board=board, turn=1)).encode())

    assert snap.board[0] == Cell.x
    assert snap.board[2] == Cell.o
    assert snap.players == [ME, OPPONENT]
    assert snap.turn == 1
    assert snap.winner is None
    assert snap.players_ready == {ME: True, OPPONENT: True}
    assert snap.player_nicknames[OPPONENT] == "bob"


def test_decode_state_tolerates_null_maps_and_blank_winner() -> None:
    raw = json.dumps(make_state(playersReady=None, playerNicknames=None, winner="")).encode()
    snap = decode_state(raw)

    assert snap.players_ready == {}
    assert snap.player_nicknames == {}
    assert snap.winner is None


def test_missing_board_defaults_to_empty_cells() -> None:
    snap = MatchSnapshot.model_validate({"started": False, "players": [], "playersReady": {}})
    assert snap.board == [Cell.empty] * 9


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[]",
        json.dumps(make_state(board=[""] * 8)).encode(),
        json.dumps(make_state(players=["a", "b", "c"])).encode(),
        json.dumps(make_state(players=["a", "a"], playersReady={}, playerNicknames={})).encode(),
        json.dumps(make_state(playersReady={"ghost": True})).encode(),
        json.dumps(make_state(winner="Z")).encode(),
        json.dumps(make_state(board=["Q"] + [""] * 8)).encode(),
    ],
)
def test_decode_state_rejects_bad_payloads(raw: bytes) -> None:
    with pytest.raises(ProtocolError):
        decode_state(raw)


def test_encode_move_carries_only_the_cell() -> None:
    op, payload = encode_move(4)
    assert op == OpCode.move == 1
    assert json.loads(payload) == {"cell": 4}


def test_encode_ready_uses_wire_field_names() -> None:
    op, payload = encode_ready(nickname="alice", user_id=ME)
    assert op == OpCode.ready == 3
    assert json.loads(payload) == {"nickname": "alice", "userId": ME}


def test_snapshot_helpers() -> None:
    snap = MatchSnapshot.model_validate(make_state(playersReady={ME: True}))

    assert snap.seat_of(ME) == 0
    assert snap.seat_of(OPPONENT) == 1
    assert snap.seat_of("stranger") == -1
    assert snap.opponent_of(ME) == OPPONENT
    assert snap.opponent_of("stranger") is None
    assert snap.is_ready(ME)
    assert not snap.is_ready(OPPONENT)
    assert not snap.all_ready


def test_all_ready_is_false_for_empty_roster() -> None:
    snap = MatchSnapshot.model_validate({"started": False, "players": [], "playersReady": {}})
    assert not snap.all_ready


def test_snapshot_is_immutable() -> None:
    snap = MatchSnapshot.model_validate(make_state(winner="draw"))
    assert snap.winner == Winner.draw
    with pytest.raises(Exception):
        snap.turn = 1  # type: ignore[misc]
