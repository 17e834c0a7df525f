from __future__ import annotations

import logging

from fastapi import FastAPI

from ttt_client.api.routes import router
from ttt_client.config import ClientSettings, get_settings
from ttt_client.context import SessionContext
from ttt_client.identity import DeviceIdentityStore
from ttt_client.infra.redis_client import create_redis
from ttt_client.transport import Authenticator
from ttt_client.websocket_hub import ViewWebSocketHub

logger = logging.getLogger(__name__)


def configure_logging(settings: ClientSettings) -> None:
    logging.basicConfig(level=settings.log_level)


def build_session(*, settings: ClientSettings, authenticator: Authenticator) -> SessionContext:
    store = DeviceIdentityStore(r=create_redis(settings), key=settings.device_id_key)
    return SessionContext(settings=settings, authenticator=authenticator, identity_store=store)


def create_app(session: SessionContext) -> FastAPI:
    """Expose one client session to a rendering layer over HTTP + WebSocket.

    The session is started with the app and torn down when it shuts down.
    """

    configure_logging(session.settings)
    app = FastAPI(title="ttt-client", version="0.1.0")
    app.include_router(router)

    hub = ViewWebSocketHub()
    app.state.session = session
    app.state.hub = hub
    session.view_changed.subscribe(hub.broadcast_view)

    @app.on_event("startup")
    async def _startup() -> None:
        await session.start()
        logger.info("Session bridge ready (phase=%s)", session.phase.value)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await session.close()

    @app.get("/info")
    async def info() -> dict[str, str]:
        return {"name": "ttt-client", "version": "0.1.0"}

    return app


def create_app_from_env(*, authenticator: Authenticator) -> FastAPI:
    """Build the bridge from environment settings (and a local .env, if any)."""

    settings = get_settings()
    return create_app(build_session(settings=settings, authenticator=authenticator))
