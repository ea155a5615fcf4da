"""
Domain models for cards, reviews, sessions and deck settings.

These are pure data structures with no I/O or external dependencies.
Optional timestamps carry lifecycle meaning: a card whose last_review is
None has never been reviewed, a session whose end_time is None is open.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Literal

from .constants import (
    DEFAULT_LEARNING_STEPS_MINUTES,
    DEFAULT_LEECH_THRESHOLD,
    DEFAULT_MAX_REVIEWS_PER_DAY,
    DEFAULT_MAXIMUM_INTERVAL_DAYS,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_RELEARNING_STEPS_MINUTES,
    DEFAULT_REQUESTED_RETENTION,
)
from .errors import ValidationError, validate_grade


class CardState(IntEnum):
    """Learning state of a card. Transitions are decided by the oracle."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3

    @property
    def is_learning(self) -> bool:
        return self in (CardState.LEARNING, CardState.RELEARNING)


class Grade(IntEnum):
    """Recall quality reported by the learner (1=Again, 2=Hard, 3=Good, 4=Easy)."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def is_successful(self) -> bool:
        return self >= Grade.GOOD

    @classmethod
    def from_number(cls, value: Any) -> Grade:
        return cls(validate_grade(value))


class Priority(Enum):
    """Due-card buckets, declared in sort order."""

    LEARNING = "learning"
    OVERDUE = "overdue"
    REVIEW = "review"
    NEW = "new"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER[self]


_PRIORITY_ORDER = {p: i for i, p in enumerate(Priority)}


@dataclass(frozen=True)
class MemoryModel:
    """
    Per-card memory state consumed by the scheduling oracle.

    Attributes:
        difficulty: Oracle-defined difficulty value.
        stability: Days for recall probability to decay; always > 0.
        params: Oracle-specific extras (e.g. the current learning step).
    """

    difficulty: float
    stability: float
    params: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if not self.stability > 0:
            raise ValidationError("stability", self.stability, "must be positive")


@dataclass
class Card:
    """A learning item owned by one deck."""

    id: str
    deck_id: str
    front: str
    back: str
    memory_model: MemoryModel
    due: datetime
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    state: CardState = CardState.NEW
    last_review: datetime | None = None  # None: never reviewed
    suspended: bool = False
    buried: bool = False
    leech_count: int = 0

    @property
    def is_excluded(self) -> bool:
        """Suspended or buried cards are left out of review and selection."""
        return self.suspended or self.buried

    @property
    def exclusion_reason(self) -> Literal["suspended", "buried"] | None:
        # Suspension dominates when both flags are set
        if self.suspended:
            return "suspended"
        if self.buried:
            return "buried"
        return None

    def is_leech(self, threshold: int = DEFAULT_LEECH_THRESHOLD) -> bool:
        return self.leech_count >= threshold


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    One recorded review. Append-only.

    Attributes:
        grade: Button pressed.
        duration_ms: Time the learner spent answering.
        state_before / due_before: Card snapshot before scheduling.
        state_after / due_after: Card snapshot after scheduling.
        oracle_log: Opaque log returned by the oracle.
    """

    id: str
    card_id: str
    grade: Grade
    duration_ms: int
    timestamp: datetime
    state_before: CardState
    due_before: datetime
    state_after: CardState
    due_after: datetime
    session_id: str | None = None
    oracle_log: dict[str, Any] = field(default_factory=dict, compare=False)


def _empty_grade_counts() -> dict[Grade, int]:
    return {grade: 0 for grade in Grade}


@dataclass
class StudySession:
    """A bounded run of reviews with rolling counters."""

    id: str
    start_time: datetime
    deck_id: str | None = None
    end_time: datetime | None = None
    cards_reviewed: int = 0
    new_cards: int = 0
    review_cards: int = 0
    counts_by_grade: dict[Grade, int] = field(default_factory=_empty_grade_counts)
    total_duration_ms: int = 0
    average_duration_ms: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class DeckSettings:
    """Daily limits and scheduling parameters for a deck."""

    new_cards_per_day: int = DEFAULT_NEW_CARDS_PER_DAY
    max_reviews_per_day: int = DEFAULT_MAX_REVIEWS_PER_DAY
    requested_retention: float = DEFAULT_REQUESTED_RETENTION
    maximum_interval_days: int = DEFAULT_MAXIMUM_INTERVAL_DAYS
    learning_steps_minutes: tuple[float, ...] = DEFAULT_LEARNING_STEPS_MINUTES
    relearning_steps_minutes: tuple[float, ...] = DEFAULT_RELEARNING_STEPS_MINUTES
    leech_threshold: int = DEFAULT_LEECH_THRESHOLD

    def validate(self) -> DeckSettings:
        """Raise ValidationError if any value is outside its domain."""
        if self.new_cards_per_day < 0:
            raise ValidationError("new_cards_per_day", self.new_cards_per_day, "must be >= 0")
        if self.max_reviews_per_day < 0:
            raise ValidationError("max_reviews_per_day", self.max_reviews_per_day, "must be >= 0")
        if not 0 < self.requested_retention < 1:
            raise ValidationError(
                "requested_retention", self.requested_retention, "must be in (0, 1)"
            )
        if self.maximum_interval_days <= 0:
            raise ValidationError(
                "maximum_interval_days", self.maximum_interval_days, "must be positive"
            )
        for name in ("learning_steps_minutes", "relearning_steps_minutes"):
            steps = getattr(self, name)
            if any(step <= 0 for step in steps):
                raise ValidationError(name, steps, "steps must be positive")
        if self.leech_threshold <= 0:
            raise ValidationError("leech_threshold", self.leech_threshold, "must be positive")
        return self


@dataclass(frozen=True)
class DueCard:
    """A card ready for study, with its scheduling bucket."""

    card: Card
    due_date: datetime
    overdue_by_days: int
    priority: Priority


@dataclass
class StudyPlan:
    """Capped plan of cards to study on a given date."""

    deck_id: str
    date: datetime
    learning_cards: list[DueCard]
    review_cards: list[DueCard]
    new_cards: list[DueCard]
    new_card_limit: int
    review_limit: int
    estimated_duration_minutes: int

    @property
    def total_cards(self) -> int:
        return len(self.learning_cards) + len(self.review_cards) + len(self.new_cards)


# ---------- Search ----------

SortField = Literal["due", "created", "difficulty", "stability"]
SortOrder = Literal["asc", "desc"]


@dataclass
class CardFilter:
    """
    Card search filter. Every unset criterion is ignored.

    is_leech compares leech_count with leech_threshold.
    """

    deck_ids: list[str] | None = None
    states: list[CardState] | None = None
    tags: list[str] | None = None
    due_before: datetime | None = None
    due_after: datetime | None = None
    created_before: datetime | None = None
    created_after: datetime | None = None
    last_review_before: datetime | None = None
    last_review_after: datetime | None = None
    suspended: bool | None = None
    buried: bool | None = None
    is_leech: bool | None = None
    leech_threshold: int = DEFAULT_LEECH_THRESHOLD


@dataclass
class SearchOptions:
    query: str | None = None  # substring of front/back, case-insensitive
    filter: CardFilter | None = None
    sort_by: SortField | None = None
    sort_order: SortOrder = "asc"
    limit: int | None = None
    offset: int = 0


@dataclass
class SearchResult:
    cards: list[Card]
    total: int  # matches before limit/offset


# ---------- Import ----------


@dataclass(frozen=True)
class CardImport:
    front: str
    back: str
    tags: tuple[str, ...] = ()
    deck_id: str | None = None


@dataclass(frozen=True)
class ImportFailure:
    index: int
    error: str
    item: CardImport | None = None


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    errors: list[ImportFailure] = field(default_factory=list)
    created_card_ids: list[str] = field(default_factory=list)
