from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

BOARD_SIZE = 9
SEAT_COUNT = 2


class Cell(StrEnum):
    empty = ""
    x = "X"
    o = "O"


class Winner(StrEnum):
    x = "X"
    o = "O"
    draw = "draw"
    abandoned = "abandoned"


# Seat index is the position in `players`; seat 0 plays X, seat 1 plays O.
SEAT_MARKS: tuple[Cell, Cell] = (Cell.x, Cell.o)
WINNER_SEATS: dict[Winner, int] = {Winner.x: 0, Winner.o: 1}


class OpCode(IntEnum):
    move = 1
    state = 2
    ready = 3


class SessionPhase(StrEnum):
    connecting = "connecting"
    nickname_entry = "nickname_entry"
    idle = "idle"
    searching = "searching"
    joining = "joining"
    pre_game_lobby = "pre_game_lobby"
    active_game = "active_game"
    terminal = "terminal"


def _empty_board() -> list[Cell]:
    return [Cell.empty] * BOARD_SIZE


class MatchSnapshot(BaseModel):
    """Authoritative match state pushed by the host (op code 2).

    Each snapshot replaces the previous one wholesale; nothing here is ever
    mutated on the client.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    board: list[Cell] = Field(default_factory=_empty_board, min_length=BOARD_SIZE, max_length=BOARD_SIZE)
    players: list[str] = Field(default_factory=list, max_length=SEAT_COUNT)
    turn: int = 0
    winner: Winner | None = None
    started: bool = False
    players_ready: dict[str, bool] = Field(default_factory=dict, alias="playersReady")
    player_nicknames: dict[str, str] = Field(default_factory=dict, alias="playerNicknames")

    @field_validator("players_ready", "player_nicknames", mode="before")
    @classmethod
    def _null_mapping_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("winner", mode="before")
    @classmethod
    def _blank_winner_is_none(cls, v: Any) -> Any:
        return None if v == "" else v

    @model_validator(mode="after")
    def _check_participants(self) -> "MatchSnapshot":
        if len(set(self.players)) != len(self.players):
            raise ValueError("players must be distinct")
        known = set(self.players)
        for field_name, mapping in (("playersReady", self.players_ready), ("playerNicknames", self.player_nicknames)):
            unknown = set(mapping) - known
            if unknown:
                raise ValueError(f"{field_name} references unknown participants: {sorted(unknown)}")
        return self

    def seat_of(self, user_id: str | None) -> int:
        if user_id is None or user_id not in self.players:
            return -1
        return self.players.index(user_id)

    def opponent_of(self, user_id: str | None) -> str | None:
        if user_id is None or user_id not in self.players:
            return None
        return next((p for p in self.players if p != user_id), None)

    def is_ready(self, user_id: str | None) -> bool:
        return user_id is not None and self.players_ready.get(user_id, False) is True

    @property
    def all_ready(self) -> bool:
        # An empty roster is never "all ready".
        return bool(self.players) and all(self.is_ready(p) for p in self.players)


class MovePayload(BaseModel):
    cell: int


class ReadyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nickname: str
    user_id: str = Field(..., alias="userId")


class BoardCellView(BaseModel):
    index: int
    mark: Cell
    enabled: bool


class PlayerSeatView(BaseModel):
    seat: int
    mark: Cell
    nickname: str
    is_local: bool


class LobbyView(BaseModel):
    is_local_ready: bool
    local_nickname: str | None = None
    opponent_ready: bool
    # Only revealed once the opponent has readied up.
    opponent_nickname: str | None = None
    all_ready: bool


class ViewState(BaseModel):
    """Everything a rendering layer needs to paint the current screen."""

    phase: SessionPhase
    status: str
    notice: str | None = None
    nickname: str | None = None
    pending_nickname: str = ""
    local_seat: int = -1
    board: list[BoardCellView] = Field(default_factory=list)
    players: list[PlayerSeatView] = Field(default_factory=list)
    lobby: LobbyView | None = None
    can_cancel: bool = False
    can_confirm_ready: bool = False
    can_rematch: bool = False


class NicknameRequest(BaseModel):
    nickname: str = Field(..., max_length=200)


class MoveRequest(BaseModel):
    cell: int


class ActionResponse(BaseModel):
    accepted: bool
    view: ViewState
