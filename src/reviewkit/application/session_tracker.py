"""
Session tracker: bounds a run of reviews into a study session.

States: NoSession --start--> Open --end--> NoSession.
Each engine owns exactly one tracker, so at most one session is open per
engine. Studying several decks at once means running several engines.
"""

import logging
from datetime import datetime

from reviewkit.application.utils.time import ensure_utc, utc_now
from reviewkit.domain.constants import MS_PER_SECOND
from reviewkit.domain.errors import SessionActive
from reviewkit.domain.models import CardState, Grade, StudySession
from reviewkit.domain.ports import Storage

logger = logging.getLogger(__name__)


class SessionTracker:
    def __init__(self, storage: Storage):
        self._storage = storage
        self._current: StudySession | None = None

    @property
    def current(self) -> StudySession | None:
        """The open session, or None."""
        return self._current

    @property
    def is_open(self) -> bool:
        return self._current is not None

    async def start(self, deck_id: str | None = None, now: datetime | None = None) -> StudySession:
        """
        Open a new session.

        Raises:
            SessionActive: If a session is already open on this tracker.
        """
        if self._current is not None:
            raise SessionActive(self._current.id)

        session = await self._storage.create_session(deck_id, ensure_utc(now or utc_now()))
        self._current = session
        logger.info(f"Started session {session.id} (deck={deck_id})")
        return session

    def record(self, grade: Grade, state_before: CardState) -> StudySession | None:
        """
        Count one review in the open session.

        Returns the updated session, or None when no session is open.
        """
        session = self._current
        if session is None:
            return None

        session.cards_reviewed += 1
        if state_before == CardState.NEW:
            session.new_cards += 1
        else:
            session.review_cards += 1
        session.counts_by_grade[grade] = session.counts_by_grade.get(grade, 0) + 1
        return session

    async def end(self, now: datetime | None = None) -> StudySession | None:
        """
        Close and persist the open session.

        Calling this with no open session does nothing and returns None.
        """
        session = self._current
        if session is None:
            return None

        end_time = ensure_utc(now or utc_now())
        session.end_time = end_time
        elapsed = (end_time - session.start_time).total_seconds()
        session.total_duration_ms = max(0, int(elapsed * MS_PER_SECOND))
        session.average_duration_ms = (
            session.total_duration_ms / session.cards_reviewed if session.cards_reviewed else 0.0
        )

        await self._storage.update_session(session)
        self._current = None
        logger.info(
            f"Ended session {session.id}: {session.cards_reviewed} cards "
            f"in {session.total_duration_ms} ms"
        )
        return session
