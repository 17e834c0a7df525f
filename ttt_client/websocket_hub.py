from __future__ import annotations

import asyncio

from fastapi import WebSocket

from ttt_client.api.models import ViewState


class ViewWebSocketHub:
    """In-process WebSocket fan-out of the current view-state.

    Contract:
      - register a rendering client via `connect(websocket)`.
      - push the full view with `broadcast_view(view)` after every change.

    Payloads are the JSON form of `ViewState`.
    """

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(websocket)

    async def broadcast_view(self, view: ViewState) -> None:
        async with self._lock:
            conns = list(self._conns)

        if not conns:
            return

        payload = view.model_dump(mode="json")
        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._conns.discard(ws)
