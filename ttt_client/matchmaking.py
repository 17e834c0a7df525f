from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ttt_client.api.models import SEAT_COUNT, SessionPhase
from ttt_client.core.events import MatchedNotification
from ttt_client.transport import MatchmakerTicket

if TYPE_CHECKING:
    from ttt_client.context import SessionContext

logger = logging.getLogger(__name__)

MATCHMAKER_QUERY = "*"


class MatchmakingClient:
    """Idle -> searching -> joining -> pre-game lobby.

    A cancel is only honoured while searching; once a join is in flight it
    runs to completion.
    """

    def __init__(self, session: SessionContext) -> None:
        self._session = session
        self.ticket: MatchmakerTicket | None = None

    async def search(self) -> bool:
        session = self._session
        if session.phase != SessionPhase.idle:
            logger.debug("search ignored in phase %s", session.phase.value)
            return False

        session.transition("search_started")
        session.set_status("Searching for opponent...")
        try:
            self.ticket = await session.transport.add_matchmaker(
                query=MATCHMAKER_QUERY,
                min_count=SEAT_COUNT,
                max_count=SEAT_COUNT,
                string_properties={},
            )
        except Exception as e:
            logger.warning("Matchmaker failed: %s", e, exc_info=True)
            self.ticket = None
            session.transition("search_failed")
            session.set_status(f"Matchmaking failed: {e}")
            return False

        logger.info("Added to matchmaker queue: %s", self.ticket.ticket)
        return True

    async def cancel(self) -> bool:
        session = self._session
        if session.phase != SessionPhase.searching:
            logger.debug("cancel ignored in phase %s", session.phase.value)
            return False

        ticket, self.ticket = self.ticket, None
        session.transition("search_cancelled")
        session.set_status("Search cancelled")
        if ticket is not None:
            # Best effort: the local search is over whatever the host says.
            try:
                await session.transport.remove_matchmaker(ticket)
            except Exception as e:
                logger.warning("Failed to withdraw matchmaker ticket %s: %s", ticket.ticket, e, exc_info=True)
        logger.info("Cancelled matchmaking")
        return True

    async def on_matched(self, notification: MatchedNotification) -> bool:
        session = self._session
        if session.phase != SessionPhase.searching:
            logger.info("Ignoring matchmaker result %s in phase %s", notification.match_ref, session.phase.value)
            return False

        logger.info("Matchmaker found opponent: %s", notification.match_ref)
        self.ticket = None
        session.transition("matched")
        try:
            handle = await session.transport.join(notification.match_ref)
        except Exception as e:
            logger.warning("Failed to join matchmade game %s: %s", notification.match_ref, e, exc_info=True)
            session.transition("join_failed")
            session.set_status("Failed to join match")
            return False

        session.lifecycle.attach(handle)
        session.lobby.prefill(session.nickname)
        session.transition("joined")
        session.set_status("Match found! Confirm your nickname...")
        logger.info("Joined matchmade game: %s", handle.match_id)
        return True
