from __future__ import annotations

from pydantic import ValidationError

from ttt_client.api.models import MatchSnapshot, MovePayload, OpCode, ReadyPayload


class ProtocolError(ValueError):
    """An inbound payload could not be decoded into a valid message."""


def encode_move(cell: int) -> tuple[OpCode, bytes]:
    return OpCode.move, MovePayload(cell=cell).model_dump_json().encode("utf-8")


def encode_ready(*, nickname: str, user_id: str) -> tuple[OpCode, bytes]:
    payload = ReadyPayload(nickname=nickname, user_id=user_id)
    return OpCode.ready, payload.model_dump_json(by_alias=True).encode("utf-8")


def decode_state(data: bytes | str) -> MatchSnapshot:
    try:
        return MatchSnapshot.model_validate_json(data)
    except ValidationError as e:
        raise ProtocolError(f"invalid state payload: {e.error_count()} error(s): {e.errors()[0]['msg']}") from e
