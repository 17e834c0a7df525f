from __future__ import annotations

from statemachine import State, StateMachine

from ttt_client.api.models import SessionPhase


def _state(phase: SessionPhase, *, initial: bool = False) -> State:
    return State(phase.value, value=phase.value, initial=initial)


class SessionFSM(StateMachine):
    """Explicit phase machine for one client session.

    connecting -> nickname_entry -> idle -> searching -> joining -> pre_game_lobby
    -> active_game -> terminal, with the fallbacks back to idle (cancel, failures,
    leave). Components decide *when* to fire an event; this class only guards
    which transitions exist.
    """

    connecting = _state(SessionPhase.connecting, initial=True)
    nickname_entry = _state(SessionPhase.nickname_entry)
    idle = _state(SessionPhase.idle)
    searching = _state(SessionPhase.searching)
    joining = _state(SessionPhase.joining)
    pre_game_lobby = _state(SessionPhase.pre_game_lobby)
    active_game = _state(SessionPhase.active_game)
    terminal = _state(SessionPhase.terminal)

    connected = connecting.to(nickname_entry)
    nickname_confirmed = nickname_entry.to(idle)

    search_started = idle.to(searching)
    search_failed = searching.to(idle)
    search_cancelled = searching.to(idle)
    matched = searching.to(joining)

    join_failed = joining.to(idle)
    joined = joining.to(pre_game_lobby)

    game_started = pre_game_lobby.to(active_game)
    game_ended = pre_game_lobby.to(terminal) | active_game.to(terminal)

    left = pre_game_lobby.to(idle) | active_game.to(idle) | terminal.to(idle)

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))


# Phases in which a joined match (SessionHandle) exists.
IN_MATCH_PHASES: frozenset[SessionPhase] = frozenset(
    {SessionPhase.pre_game_lobby, SessionPhase.active_game, SessionPhase.terminal}
)
