"""
Domain models for review statistics.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from ..models import CardState, Grade

Maturity = Literal["new", "young", "mature"]


@dataclass(frozen=True)
class CardStats:
    """
    Statistics for one card, combining its current state with its history.

    Attributes:
        lapse_count: Number of reviews graded Again.
        average_grade: Mean ordinal grade (0.0 with no reviews).
        retention_rate: Fraction of reviews graded Good or Easy.
        average_response_time_ms: Mean answer duration.
        retrievability: Current recall probability, 0.0 if never reviewed.
        current_interval_days: Whole days between last review and due.
    """

    card_id: str
    total_reviews: int
    lapse_count: int
    average_grade: float
    retention_rate: float
    average_response_time_ms: float
    difficulty: float
    stability: float
    retrievability: float
    first_review: datetime | None
    last_review: datetime | None
    next_review: datetime
    current_state: CardState
    current_interval_days: int
    maturity: Maturity
    leech_count: int = 0


@dataclass(frozen=True)
class PerformancePoint:
    date: datetime
    retrievability: float
    difficulty: float
    stability: float


@dataclass(frozen=True)
class PerformanceCurve:
    """
    Predicted recall for one card, one point per day, assuming no review.

    Iterating always starts over from the first point.
    """

    points: tuple[PerformancePoint, ...]

    def __iter__(self) -> Iterator[PerformancePoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> PerformancePoint:
        return self.points[index]


@dataclass(frozen=True)
class WorkloadDay:
    date: date
    new_cards: int
    review_cards: int
    estimated_minutes: int


@dataclass(frozen=True)
class SchedulingAccuracy:
    """
    How well the schedule matched recall.

    Attributes:
        overall_accuracy: Fraction of successful reviews.
        grade_distribution: Share of reviews per grade.
        retention_by_interval: (bucket start in days late, retention) pairs.
    """

    overall_accuracy: float
    grade_distribution: dict[Grade, float]
    retention_by_interval: list[tuple[int, float]] = field(default_factory=list)


@dataclass
class DeckStats:
    """Aggregated counters, performance and forecast for one deck."""

    deck_id: str

    # Card counters
    total_cards: int
    new_cards: int
    learning_cards: int
    review_cards: int
    suspended_cards: int
    buried_cards: int

    # Due cards
    due_today: int
    overdue: int

    # Performance over the full review history
    total_reviews: int
    average_retention: float
    average_grade: float
    average_response_time_ms: float

    # Forecast (calendar day -> count / minutes)
    forecasted_reviews: dict[date, int] = field(default_factory=dict)
    workload_distribution: dict[date, int] = field(default_factory=dict)
