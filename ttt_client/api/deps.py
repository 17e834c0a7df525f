from __future__ import annotations

from fastapi import Request

from ttt_client.context import SessionContext


def get_session(request: Request) -> SessionContext:
    return request.app.state.session
