"""
Ports (interfaces) for persistence and scheduling.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .models import (
    Card,
    CardState,
    DeckSettings,
    Grade,
    MemoryModel,
    ReviewLogEntry,
    SearchOptions,
    SearchResult,
    StudySession,
)


@dataclass(frozen=True)
class SchedulingCandidate:
    """Outcome the oracle proposes for one grade."""

    model: MemoryModel
    state: CardState
    due: datetime
    log: dict[str, Any] = field(default_factory=dict, compare=False)


class SchedulingOracle(ABC):
    """
    Port for the memory-model algorithm.

    Implementations must be pure: the same inputs always yield the same
    candidates (modulo any randomized interval fuzzing they opt into), and
    nothing outside the returned values is modified.

    Implementations:
        - FsrsOracle: Delegates to the `fsrs` package.
    """

    @abstractmethod
    def create_empty_model(self) -> MemoryModel:
        """Return the memory model assigned to a card that was never reviewed."""
        pass

    @abstractmethod
    def schedule(
        self,
        model: MemoryModel,
        state: CardState,
        last_review: datetime | None,
        now: datetime,
    ) -> dict[Grade, SchedulingCandidate]:
        """
        Compute the outcome of every possible grade for a review at `now`.

        Args:
            model: Current memory model of the card.
            state: Current learning state of the card.
            last_review: Time of the previous review, None if never reviewed.
            now: Time of the review being scheduled.

        Returns:
            Mapping with one SchedulingCandidate per Grade.
        """
        pass

    def configure(self, settings: DeckSettings) -> None:
        """Apply deck scheduling parameters. Oracles without any may ignore this."""
        return None


class Storage(ABC):
    """
    Port for persisting cards, reviews, sessions and deck settings.

    Adapters own transactional isolation; `commit_review` must store the card
    and its review as one unit. Timeouts and retries are the adapter's concern.

    Implementations:
        - InMemoryStorage: Process-local reference adapter.
    """

    # ---------- Cards ----------

    @abstractmethod
    async def load_card(self, card_id: str) -> Card | None:
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        pass

    @abstractmethod
    async def save_cards(self, cards: list[Card]) -> None:
        pass

    @abstractmethod
    async def load_cards_by_deck(self, deck_id: str) -> list[Card]:
        pass

    @abstractmethod
    async def load_due_cards(
        self,
        deck_id: str | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[Card]:
        """
        Fetch non-suspended, non-buried cards with due <= now, ordered by due.
        """
        pass

    @abstractmethod
    async def search_cards(self, options: SearchOptions) -> SearchResult:
        pass

    # ---------- Reviews ----------

    @abstractmethod
    async def save_review(self, review: ReviewLogEntry) -> None:
        pass

    @abstractmethod
    async def commit_review(self, card: Card, review: ReviewLogEntry) -> None:
        """Persist the updated card and its review entry atomically."""
        pass

    @abstractmethod
    async def load_card_reviews(self, card_id: str) -> list[ReviewLogEntry]:
        """Return the card's reviews sorted by timestamp ascending."""
        pass

    @abstractmethod
    async def load_deck_reviews(self, deck_id: str) -> list[ReviewLogEntry]:
        """Return the reviews of every card in the deck, oldest first."""
        pass

    # ---------- Sessions ----------

    @abstractmethod
    async def create_session(
        self, deck_id: str | None = None, now: datetime | None = None
    ) -> StudySession:
        pass

    @abstractmethod
    async def update_session(self, session: StudySession) -> None:
        pass

    # ---------- Decks ----------

    @abstractmethod
    async def deck_exists(self, deck_id: str) -> bool:
        pass

    @abstractmethod
    async def load_deck_settings(self, deck_id: str) -> DeckSettings | None:
        pass

    @abstractmethod
    async def save_deck_settings(self, deck_id: str, settings: DeckSettings) -> None:
        pass
