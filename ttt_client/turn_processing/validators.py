from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ttt_client.api.models import BOARD_SIZE, Cell, MatchSnapshot, SessionPhase


class ActionRejected(ValueError):
    """A local guard refused an action before anything was sent.

    Rejections are expected outcomes, not failures.
    """


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """What a guard sees about the attempted action.

    `seat` is -1 until a snapshot places the local user; `cell` is only set
    for moves and `nickname` only for ready-ups.
    """

    action: str
    phase: SessionPhase
    has_session: bool
    seat: int = -1
    cell: int | None = None
    nickname: str = ""


class ActionValidator(ABC):
    """One check a local action must pass before it goes out."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class ActiveMatchValidator(ActionValidator):
    """Require a joined match and a cached snapshot to judge against."""

    require_snapshot: bool = True

    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if not ctx.has_session:
            raise ActionRejected("No active match")
        if self.require_snapshot and snapshot is None:
            raise ActionRejected("No match state received yet")


@dataclass(frozen=True, slots=True)
class PhaseValidator(ActionValidator):
    allowed_phases: frozenset[SessionPhase]

    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if ctx.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise ActionRejected(f"Action '{ctx.action}' not allowed in phase '{ctx.phase.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class CellRangeValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        size = len(snapshot.board) if snapshot is not None else BOARD_SIZE
        if ctx.cell is None or not 0 <= ctx.cell < size:
            raise ActionRejected(f"Cell {ctx.cell} is outside the board")


@dataclass(frozen=True, slots=True)
class StartedValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if snapshot is None or not snapshot.started:
            raise ActionRejected("Game has not started")


@dataclass(frozen=True, slots=True)
class NoWinnerValidator(ActionValidator):
    """Deny moves once the host has recorded an outcome."""

    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if snapshot is not None and snapshot.winner is not None:
            raise ActionRejected(f"Game is over ({snapshot.winner.value})")


@dataclass(frozen=True, slots=True)
class LocalTurnValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if snapshot is None or ctx.seat < 0 or snapshot.turn != ctx.seat:
            raise ActionRejected("Not your turn")


@dataclass(frozen=True, slots=True)
class EmptyCellValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if snapshot is None or ctx.cell is None or snapshot.board[ctx.cell] != Cell.empty:
            raise ActionRejected(f"Cell {ctx.cell} is occupied")


@dataclass(frozen=True, slots=True)
class SeatedValidator(ActionValidator):
    """Deny once the roster is known and does not include the local user."""

    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if snapshot is not None and snapshot.players and ctx.seat < 0:
            raise ActionRejected("Not seated in this match")


@dataclass(frozen=True, slots=True)
class NicknameValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        if not ctx.nickname.strip():
            raise ActionRejected("Nickname is required")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    """Guards run in order; the first rejection wins."""

    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> None:
        for guard in self.validators:
            guard.validate(ctx=ctx, snapshot=snapshot)

    def allows(self, *, ctx: ValidationContext, snapshot: MatchSnapshot | None) -> bool:
        try:
            self.validate(ctx=ctx, snapshot=snapshot)
        except ActionRejected:
            return False
        return True


# The cached snapshot is only a guard against wasted round-trips; the host re-validates every move.
DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "move": ValidatorPipeline(
        validators=(
            ActiveMatchValidator(),
            CellRangeValidator(),
            StartedValidator(),
            NoWinnerValidator(),
            LocalTurnValidator(),
            EmptyCellValidator(),
        )
    ),
    "ready": ValidatorPipeline(
        validators=(
            ActiveMatchValidator(require_snapshot=False),
            PhaseValidator(allowed_phases=frozenset({SessionPhase.pre_game_lobby})),
            SeatedValidator(),
            NicknameValidator(),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
