"""
Review engine: orchestrates reviews, card lifecycle operations and sessions.

The engine owns one SessionTracker, so each instance has at most one open
study session. Every operation runs to completion against Storage before the
next one should be issued; the engine itself does no locking and no
parallel work.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, TypeVar

from reviewkit.application import lifecycle, study_plan
from reviewkit.application.config import EngineConfig
from reviewkit.application.due_selector import select_due_cards
from reviewkit.application.id_service import generate_review_id
from reviewkit.application.importer import parse_import_document, to_card_import
from reviewkit.application.session_tracker import SessionTracker
from reviewkit.application.stats.metrics_calculator import MetricsCalculator
from reviewkit.application.stats.service import ReviewStatsService
from reviewkit.application.utils.time import ensure_utc, utc_now
from reviewkit.domain.errors import (
    CardBuried,
    CardNotFound,
    CardSuspended,
    DeckNotFound,
    ReviewKitError,
    StorageError,
    validate_duration,
)
from reviewkit.domain.models import (
    Card,
    CardFilter,
    CardImport,
    CardState,
    DeckSettings,
    DueCard,
    Grade,
    ImportFailure,
    ImportResult,
    ReviewLogEntry,
    SearchOptions,
    SearchResult,
    StudyPlan,
    StudySession,
)
from reviewkit.domain.ports import SchedulingOracle, Storage
from reviewkit.domain.stats.models import (
    CardStats,
    DeckStats,
    PerformanceCurve,
    SchedulingAccuracy,
    WorkloadDay,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReviewRequest:
    card_id: str
    grade: int
    duration_ms: int = 0
    now: datetime | None = None


@dataclass(frozen=True)
class ReviewResult:
    card: Card
    review: ReviewLogEntry


@dataclass(frozen=True)
class FailedReview:
    card_id: str | None
    error: str
    code: str


@dataclass
class BatchReviewResult:
    successful: list[ReviewResult] = field(default_factory=list)
    failed: list[FailedReview] = field(default_factory=list)


class ReviewEngine:
    """
    Application service driving reviews against a Storage and an Oracle.

    Args:
        storage: Persistence port.
        oracle: Scheduling port deciding every state and due-date change.
        config: Policy knobs; defaults from EngineConfig if not provided.
        clock: Returns the current time; defaults to UTC wall clock.
    """

    def __init__(
        self,
        storage: Storage,
        oracle: SchedulingOracle,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._storage = storage
        self._oracle = oracle
        self.config = config or EngineConfig()
        self._clock = clock or utc_now
        self._sessions = SessionTracker(storage)
        self._stats = ReviewStatsService(
            storage,
            calculator=MetricsCalculator(self.config.maturity_threshold_days),
            seconds_per_card=self.config.seconds_per_card,
            forecast_horizon_days=self.config.forecast_horizon_days,
        )

    # ==================== Helpers ====================

    def _now(self, now: datetime | None = None) -> datetime:
        return ensure_utc(now or self._clock())

    async def _call(self, context: str, awaitable: Awaitable[T]) -> T:
        """Await a storage call, wrapping collaborator failures in StorageError."""
        try:
            return await awaitable
        except ReviewKitError:
            raise
        except Exception as e:
            logger.error(f"Storage failure during {context}: {e}")
            raise StorageError(f"{context}: {e}", e) from e

    async def _require_card(self, card_id: str) -> Card:
        card = await self._call(f"load card {card_id}", self._storage.load_card(card_id))
        if card is None:
            raise CardNotFound(card_id)
        return card

    async def _require_deck(self, deck_id: str) -> None:
        if not await self._call(f"check deck {deck_id}", self._storage.deck_exists(deck_id)):
            raise DeckNotFound(deck_id)

    async def _effective_settings(
        self, deck_id: str, settings: DeckSettings | None = None
    ) -> DeckSettings:
        if settings is None:
            settings = await self._call(
                f"load settings for {deck_id}", self._storage.load_deck_settings(deck_id)
            )
        return (settings or self.config.default_deck_settings()).validate()

    # ==================== Sessions ====================

    @property
    def current_session(self) -> StudySession | None:
        return self._sessions.current

    async def start_session(
        self, deck_id: str | None = None, now: datetime | None = None
    ) -> StudySession:
        """
        Raises:
            SessionActive: If this engine already has an open session.
        """
        return await self._call("create session", self._sessions.start(deck_id, self._now(now)))

    async def end_session(self, now: datetime | None = None) -> StudySession | None:
        """Finalize the open session; returns None if none is open."""
        return await self._call("end session", self._sessions.end(self._now(now)))

    # ==================== Reviews ====================

    async def review_card(
        self,
        card_id: str,
        grade: int,
        duration_ms: int = 0,
        now: datetime | None = None,
    ) -> ReviewResult:
        """
        Grade one card and schedule its next review.

        Raises:
            CardNotFound: If the card does not exist.
            CardSuspended / CardBuried: If the card is excluded from study.
            ValidationError: If grade is not within 1..4 or duration_ms is not
                a non-negative number.
            StorageError: If committing the review fails. A failed session
                update after the commit is only logged.
        """
        card = await self._require_card(card_id)

        if card.suspended:
            raise CardSuspended(card_id)
        if card.buried:
            raise CardBuried(card_id)

        grade = Grade.from_number(grade)
        duration_ms = validate_duration(duration_ms)
        review_time = self._now(now)

        candidates = self._oracle.schedule(
            card.memory_model, card.state, card.last_review, review_time
        )
        outcome = candidates[grade]

        updated = replace(
            card,
            memory_model=outcome.model,
            state=outcome.state,
            due=outcome.due,
            last_review=review_time,
            updated_at=review_time,
            leech_count=card.leech_count + 1 if grade == Grade.AGAIN else card.leech_count,
        )

        session = self._sessions.current
        review = ReviewLogEntry(
            id=generate_review_id(),
            card_id=card.id,
            session_id=session.id if session else None,
            grade=grade,
            duration_ms=duration_ms,
            timestamp=review_time,
            state_before=card.state,
            due_before=card.due,
            state_after=updated.state,
            due_after=updated.due,
            oracle_log=dict(outcome.log),
        )

        await self._call(f"commit review of {card_id}", self._storage.commit_review(updated, review))
        logger.debug(
            f"Reviewed {card_id}: grade={grade.name} {card.state.name}->{updated.state.name} "
            f"due={updated.due.isoformat()}"
        )

        # Already committed: session write failures are logged, and end_session
        # persists the counters again.
        if self._sessions.record(grade, card.state) is not None:
            try:
                await self._call("update session", self._storage.update_session(session))
            except StorageError as e:
                logger.warning(f"Review of {card_id} saved but session {session.id} was not: {e}")

        return ReviewResult(card=updated, review=review)

    async def review_cards(
        self, items: Iterable[ReviewRequest | Mapping[str, Any] | Sequence[Any]]
    ) -> BatchReviewResult:
        """
        Review several cards in order, collecting failures instead of raising.

        Items may be ReviewRequest objects, mappings with card_id/grade keys,
        or (card_id, grade[, duration_ms]) tuples. Reviews already persisted
        stay persisted when later items fail.
        """
        result = BatchReviewResult()

        for item in items:
            card_id: str | None = None
            try:
                request = _to_review_request(item)
                card_id = request.card_id
                outcome = await self.review_card(
                    request.card_id, request.grade, request.duration_ms, request.now
                )
                result.successful.append(outcome)
            except Exception as e:
                code = getattr(e, "code", "UNEXPECTED_ERROR")
                logger.warning(f"Batch review failed for {card_id}: {e}")
                result.failed.append(FailedReview(card_id=card_id, error=str(e), code=code))

        logger.info(
            f"Batch review: {len(result.successful)} succeeded, {len(result.failed)} failed"
        )
        return result

    # ==================== Card lifecycle ====================

    async def create_card(
        self,
        deck_id: str,
        front: str,
        back: str,
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> Card:
        await self._require_deck(deck_id)
        card = lifecycle.initialize_card(deck_id, front, back, self._oracle, self._now(now), tags)
        await self._call(f"save card {card.id}", self._storage.save_card(card))
        return card

    async def update_card(
        self,
        card_id: str,
        front: str | None = None,
        back: str | None = None,
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> Card:
        card = await self._require_card(card_id)
        updated = lifecycle.edit(card, self._now(now), front=front, back=back, tags=tags)
        await self._call(f"save card {card_id}", self._storage.save_card(updated))
        return updated

    async def _apply(self, card_id: str, change: Callable[[Card], Card]) -> Card:
        card = await self._require_card(card_id)
        updated = change(card)
        await self._call(f"save card {card_id}", self._storage.save_card(updated))
        return updated

    async def suspend_card(self, card_id: str, now: datetime | None = None) -> Card:
        return await self._apply(card_id, lambda c: lifecycle.suspend(c, self._now(now)))

    async def unsuspend_card(self, card_id: str, now: datetime | None = None) -> Card:
        return await self._apply(card_id, lambda c: lifecycle.unsuspend(c, self._now(now)))

    async def bury_card(self, card_id: str, now: datetime | None = None) -> Card:
        return await self._apply(card_id, lambda c: lifecycle.bury(c, self._now(now)))

    async def reset_card(self, card_id: str, now: datetime | None = None) -> Card:
        return await self._apply(
            card_id, lambda c: lifecycle.reset(c, self._oracle, self._now(now))
        )

    async def unbury_cards(self, deck_id: str, now: datetime | None = None) -> int:
        """Clear the buried flag on every card of a deck. Returns how many changed."""
        await self._require_deck(deck_id)
        found = await self._call(
            f"search buried cards in {deck_id}",
            self._storage.search_cards(
                SearchOptions(filter=CardFilter(deck_ids=[deck_id], buried=True))
            ),
        )
        moment = self._now(now)
        cards = [lifecycle.unbury(card, moment) for card in found.cards]
        if cards:
            await self._call(f"save unburied cards in {deck_id}", self._storage.save_cards(cards))
        logger.info(f"Unburied {len(cards)} cards in deck {deck_id}")
        return len(cards)

    # ==================== Retrieval ====================

    async def get_card(self, card_id: str) -> Card | None:
        return await self._call(f"load card {card_id}", self._storage.load_card(card_id))

    async def get_cards_by_deck(self, deck_id: str) -> list[Card]:
        return await self._call(
            f"load cards of {deck_id}", self._storage.load_cards_by_deck(deck_id)
        )

    async def get_card_history(self, card_id: str) -> list[ReviewLogEntry]:
        return await self._call(
            f"load reviews of {card_id}", self._storage.load_card_reviews(card_id)
        )

    async def search_cards(self, options: SearchOptions) -> SearchResult:
        return await self._call("search cards", self._storage.search_cards(options))

    async def get_due_cards(
        self,
        deck_id: str | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[DueCard]:
        """
        Cards ready for study, ordered learning > overdue > review > new.

        Learning and relearning cards are included even before their due time.
        """
        moment = self._now(now)
        due = await self._call(
            "load due cards", self._storage.load_due_cards(deck_id, None, moment)
        )
        learning = await self.get_learning_cards(deck_id)
        return select_due_cards([*learning, *due], moment, limit)

    async def get_new_cards(self, deck_id: str, limit: int | None = None) -> list[Card]:
        """Unreviewed cards of a deck, oldest first."""
        if limit is None:
            limit = (await self._effective_settings(deck_id)).new_cards_per_day
        found = await self.search_cards(
            SearchOptions(
                filter=CardFilter(
                    deck_ids=[deck_id], states=[CardState.NEW], suspended=False, buried=False
                ),
                sort_by="created",
                sort_order="asc",
                limit=limit,
            )
        )
        return found.cards

    async def get_learning_cards(self, deck_id: str | None = None) -> list[Card]:
        found = await self.search_cards(
            SearchOptions(
                filter=CardFilter(
                    deck_ids=[deck_id] if deck_id else None,
                    states=[CardState.LEARNING, CardState.RELEARNING],
                    suspended=False,
                    buried=False,
                ),
                sort_by="due",
                sort_order="asc",
            )
        )
        return found.cards

    # ==================== Planning ====================

    async def generate_study_plan(
        self,
        deck_id: str,
        date: datetime | None = None,
        settings: DeckSettings | None = None,
    ) -> StudyPlan:
        """
        Build a capped plan for a deck. Reads only; nothing is modified.

        Settings resolve as: explicit argument, stored deck settings, defaults.
        """
        await self._require_deck(deck_id)
        effective = await self._effective_settings(deck_id, settings)
        cards = await self.get_cards_by_deck(deck_id)
        return study_plan.generate_study_plan(
            deck_id,
            self._now(date),
            effective,
            cards,
            seconds_per_card=self.config.seconds_per_card,
        )

    async def predict_workload(
        self,
        deck_id: str,
        days_ahead: int | None = None,
        now: datetime | None = None,
    ) -> list[WorkloadDay]:
        await self._require_deck(deck_id)
        effective = await self._effective_settings(deck_id)
        cards = await self.get_cards_by_deck(deck_id)
        return study_plan.predict_workload(
            cards,
            effective,
            self._now(now).date(),
            days_ahead if days_ahead is not None else self.config.workload_days,
            seconds_per_card=self.config.seconds_per_card,
        )

    # ==================== Statistics ====================

    async def calculate_deck_stats(self, deck_id: str, now: datetime | None = None) -> DeckStats:
        return await self._call(
            f"deck stats for {deck_id}",
            self._stats.calculate_deck_stats(deck_id, self._now(now)),
        )

    async def calculate_card_stats(self, card_id: str, now: datetime | None = None) -> CardStats:
        return await self._call(
            f"card stats for {card_id}",
            self._stats.calculate_card_stats(card_id, self._now(now)),
        )

    async def predict_performance(
        self,
        card_id: str,
        days_ahead: int = 30,
        now: datetime | None = None,
    ) -> PerformanceCurve:
        card = await self._require_card(card_id)
        return self._stats.calculator.predict_performance(card, self._now(now), days_ahead)

    async def analyze_scheduling_accuracy(self, deck_id: str) -> SchedulingAccuracy:
        return await self._call(
            f"scheduling accuracy for {deck_id}",
            self._stats.analyze_scheduling_accuracy(deck_id),
        )

    # ==================== Deck settings ====================

    async def load_deck_settings(self, deck_id: str) -> DeckSettings | None:
        return await self._call(
            f"load settings for {deck_id}", self._storage.load_deck_settings(deck_id)
        )

    async def save_deck_settings(self, deck_id: str, settings: DeckSettings) -> None:
        """
        Raises:
            ValidationError: If the settings are outside their domain.
            DeckNotFound: If the deck is unknown.
        """
        settings.validate()
        await self._require_deck(deck_id)
        await self._call(
            f"save settings for {deck_id}", self._storage.save_deck_settings(deck_id, settings)
        )

    def update_scheduling_parameters(self, settings: DeckSettings) -> None:
        """Validate deck settings and hand them to the oracle."""
        self._oracle.configure(settings.validate())
        logger.info(
            f"Scheduling parameters updated: retention={settings.requested_retention}, "
            f"max_interval={settings.maximum_interval_days}"
        )

    # ==================== Import ====================

    async def import_cards(
        self,
        items: Iterable[CardImport | Mapping[str, Any]],
        default_deck_id: str,
        now: datetime | None = None,
    ) -> ImportResult:
        """
        Create one card per item. Bad items are reported, never fatal.
        """
        result = ImportResult()
        moment = self._now(now)
        known_decks: dict[str, bool] = {}

        for index, entry in enumerate(items):
            item = entry if isinstance(entry, CardImport) else None
            try:
                item = to_card_import(entry)
                deck_id = item.deck_id or default_deck_id
                if deck_id not in known_decks:
                    known_decks[deck_id] = await self._call(
                        f"check deck {deck_id}", self._storage.deck_exists(deck_id)
                    )
                if not known_decks[deck_id]:
                    raise DeckNotFound(deck_id)

                card = lifecycle.initialize_card(
                    deck_id, item.front, item.back, self._oracle, moment, list(item.tags)
                )
                await self._call(f"save card {card.id}", self._storage.save_card(card))
                result.success += 1
                result.created_card_ids.append(card.id)
            except ReviewKitError as e:
                result.failed += 1
                result.errors.append(ImportFailure(index=index, error=str(e), item=item))

        logger.info(f"Imported {result.success} cards ({result.failed} failed)")
        return result

    async def import_document(
        self, text: str, default_deck_id: str, now: datetime | None = None
    ) -> ImportResult:
        """Import cards from a JSON or YAML document."""
        return await self.import_cards(parse_import_document(text), default_deck_id, now)


def _to_review_request(item: Any) -> ReviewRequest:
    if isinstance(item, ReviewRequest):
        return item
    if isinstance(item, Mapping):
        return ReviewRequest(
            card_id=item["card_id"],
            grade=item["grade"],
            duration_ms=item.get("duration_ms", 0),
            now=item.get("now"),
        )
    return ReviewRequest(*item)
