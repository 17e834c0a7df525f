from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ttt_client.fsm import IN_MATCH_PHASES
from ttt_client.transport import SessionHandle

if TYPE_CHECKING:
    from ttt_client.context import SessionContext

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """Owns the joined-match handle; sequences leave and rematch."""

    def __init__(self, session: SessionContext) -> None:
        self._session = session
        self.handle: SessionHandle | None = None

    def attach(self, handle: SessionHandle) -> None:
        self.handle = handle
        self._session.controller.reset()

    async def leave(self) -> bool:
        """Ask the host to drop us, then tear down locally no matter what it says.

        The client proceeds without waiting for a host acknowledgement; a
        failed leave call is logged and shown as a notice, but the local
        teardown still happens.
        Calling this without a joined match is a no-op.
        """

        handle = self.handle
        if handle is None:
            logger.debug("leave ignored: no joined match")
            return False

        failed = False
        try:
            await self._session.transport.leave(handle.match_id)
        except Exception as e:
            failed = True
            logger.warning("Failed to leave match %s: %s", handle.match_id, e, exc_info=True)
        finally:
            self._teardown()

        if failed:
            self._session.set_notice("Failed to leave match cleanly")

        logger.info("Left match %s", handle.match_id)
        return True

    def _teardown(self) -> None:
        session = self._session
        self.handle = None
        session.controller.reset()
        session.lobby.reset()
        if session.phase in IN_MATCH_PHASES:
            session.transition("left")
        session.set_status("Left match")

    async def rematch(self) -> bool:
        # leave() only returns once local teardown is done, so the new search
        # always starts from a clean idle phase.
        await self.leave()
        return await self._session.matchmaking.search()
