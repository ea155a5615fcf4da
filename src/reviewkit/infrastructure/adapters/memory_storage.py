"""
In-Memory Storage: reference adapter for the Storage port.

Keeps everything in process-local dicts and hands out copies, so callers can
never change stored state without going through a save. Suitable for tests,
demos and hosts that persist snapshots themselves.
"""

import copy
import logging
from datetime import datetime

from reviewkit.application.id_service import generate_session_id
from reviewkit.application.utils.time import ensure_utc, utc_now
from reviewkit.domain.errors import ValidationError
from reviewkit.domain.models import (
    Card,
    CardFilter,
    DeckSettings,
    ReviewLogEntry,
    SearchOptions,
    SearchResult,
    StudySession,
)
from reviewkit.domain.ports import Storage

logger = logging.getLogger(__name__)

_SORT_KEYS = {
    "due": lambda c: c.due,
    "created": lambda c: c.created_at,
    "difficulty": lambda c: c.memory_model.difficulty,
    "stability": lambda c: c.memory_model.stability,
}


class InMemoryStorage(Storage):
    """Dict-backed Storage. Not shared between processes."""

    def __init__(self):
        self._cards: dict[str, Card] = {}
        self._reviews: dict[str, list[ReviewLogEntry]] = {}
        self._sessions: dict[str, StudySession] = {}
        self._decks: dict[str, DeckSettings | None] = {}

    # ---------- Decks ----------

    def add_deck(self, deck_id: str, settings: DeckSettings | None = None) -> None:
        """Register a deck, optionally with its settings."""
        if settings is not None:
            settings.validate()
        self._decks[deck_id] = settings

    async def deck_exists(self, deck_id: str) -> bool:
        return deck_id in self._decks

    async def load_deck_settings(self, deck_id: str) -> DeckSettings | None:
        return self._decks.get(deck_id)

    async def save_deck_settings(self, deck_id: str, settings: DeckSettings) -> None:
        self._decks[deck_id] = settings

    # ---------- Cards ----------

    async def load_card(self, card_id: str) -> Card | None:
        card = self._cards.get(card_id)
        return copy.deepcopy(card) if card else None

    async def save_card(self, card: Card) -> None:
        self._store_card(card)

    async def save_cards(self, cards: list[Card]) -> None:
        for card in cards:
            self._store_card(card)

    def _store_card(self, card: Card) -> None:
        # A card always belongs to a deck
        self._decks.setdefault(card.deck_id, None)
        self._cards[card.id] = copy.deepcopy(card)

    async def load_cards_by_deck(self, deck_id: str) -> list[Card]:
        cards = [c for c in self._cards.values() if c.deck_id == deck_id]
        return copy.deepcopy(sorted(cards, key=lambda c: (c.created_at, c.id)))

    async def load_due_cards(
        self,
        deck_id: str | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[Card]:
        moment = ensure_utc(now or utc_now())
        due = sorted(
            (
                c
                for c in self._cards.values()
                if (deck_id is None or c.deck_id == deck_id)
                and not c.is_excluded
                and c.due <= moment
            ),
            key=lambda c: c.due,
        )
        if limit is not None:
            due = due[:limit]
        return copy.deepcopy(due)

    async def search_cards(self, options: SearchOptions) -> SearchResult:
        matches = [c for c in self._cards.values() if _matches(c, options)]

        if options.sort_by:
            key = _SORT_KEYS[options.sort_by]
            matches.sort(key=key, reverse=options.sort_order == "desc")

        total = len(matches)
        start = max(0, options.offset)
        end = start + options.limit if options.limit is not None else None
        return SearchResult(cards=copy.deepcopy(matches[start:end]), total=total)

    # ---------- Reviews ----------

    async def save_review(self, review: ReviewLogEntry) -> None:
        self._reviews.setdefault(review.card_id, []).append(review)

    async def commit_review(self, card: Card, review: ReviewLogEntry) -> None:
        # Validate everything before writing anything
        if review.card_id != card.id:
            raise ValidationError("review.card_id", review.card_id, f"does not match {card.id}")
        stored = copy.deepcopy(card)
        self._decks.setdefault(card.deck_id, None)
        self._cards[card.id] = stored
        self._reviews.setdefault(review.card_id, []).append(review)
        logger.debug(f"Committed review {review.id} for card {card.id}")

    async def load_card_reviews(self, card_id: str) -> list[ReviewLogEntry]:
        return sorted(self._reviews.get(card_id, []), key=lambda r: r.timestamp)

    async def load_deck_reviews(self, deck_id: str) -> list[ReviewLogEntry]:
        card_ids = {c.id for c in self._cards.values() if c.deck_id == deck_id}
        reviews = [r for cid in card_ids for r in self._reviews.get(cid, [])]
        return sorted(reviews, key=lambda r: r.timestamp)

    # ---------- Sessions ----------

    async def create_session(
        self, deck_id: str | None = None, now: datetime | None = None
    ) -> StudySession:
        session = StudySession(
            id=generate_session_id(),
            deck_id=deck_id,
            start_time=ensure_utc(now or utc_now()),
        )
        self._sessions[session.id] = copy.deepcopy(session)
        return session

    async def update_session(self, session: StudySession) -> None:
        self._sessions[session.id] = copy.deepcopy(session)

    def get_session(self, session_id: str) -> StudySession | None:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session else None


def _matches(card: Card, options: SearchOptions) -> bool:
    if options.query:
        needle = options.query.lower()
        if needle not in card.front.lower() and needle not in card.back.lower():
            return False
    return _matches_filter(card, options.filter) if options.filter else True


def _matches_filter(card: Card, f: CardFilter) -> bool:
    if f.deck_ids and card.deck_id not in f.deck_ids:
        return False
    if f.states and card.state not in f.states:
        return False
    if f.tags and not set(f.tags) & set(card.tags):
        return False
    if f.due_before is not None and card.due > f.due_before:
        return False
    if f.due_after is not None and card.due < f.due_after:
        return False
    if f.created_before is not None and card.created_at > f.created_before:
        return False
    if f.created_after is not None and card.created_at < f.created_after:
        return False
    if f.last_review_before is not None and (
        card.last_review is None or card.last_review > f.last_review_before
    ):
        return False
    if f.last_review_after is not None and (
        card.last_review is None or card.last_review < f.last_review_after
    ):
        return False
    if f.suspended is not None and card.suspended != f.suspended:
        return False
    if f.buried is not None and card.buried != f.buried:
        return False
    if f.is_leech is not None and card.is_leech(f.leech_threshold) != f.is_leech:
        return False
    return True
