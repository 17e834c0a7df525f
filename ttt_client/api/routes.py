from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from ttt_client.api.deps import get_session
from ttt_client.api.models import ActionResponse, MoveRequest, NicknameRequest, ViewState
from ttt_client.context import SessionContext

router = APIRouter()

NO_BODY_ACTIONS = {"search", "cancel", "confirm_ready", "leave", "rematch"}
NICKNAME_ACTIONS = {"set_nickname", "set_pending_nickname"}


@router.websocket("/ws/view")
async def view_updates_ws(websocket: WebSocket) -> None:
    hub = websocket.app.state.hub
    session: SessionContext = websocket.app.state.session
    await hub.connect(websocket)
    await websocket.send_json(session.view().model_dump(mode="json"))

    try:
        # Keep the socket open; the renderer can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/view", response_model=ViewState)
async def get_view_route(session: SessionContext = Depends(get_session)) -> ViewState:
    return session.view()


@router.post("/actions/{action}", response_model=ActionResponse)
async def action_route(
    action: str,
    body: dict[str, Any] | None = None,
    session: SessionContext = Depends(get_session),
) -> ActionResponse:
    payload = body or {}
    try:
        if action in NO_BODY_ACTIONS:
            accepted = await getattr(session, action)()
        elif action in NICKNAME_ACTIONS:
            req = NicknameRequest.model_validate(payload)
            accepted = await getattr(session, action)(req.nickname)
        elif action == "move":
            move = MoveRequest.model_validate(payload)
            accepted = await session.attempt_move(move.cell)
        else:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown action: {action}")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return ActionResponse(accepted=accepted, view=session.view())
