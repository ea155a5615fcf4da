"""
Metrics calculator for deriving insights from cards and their review history.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta

from reviewkit.application.utils.time import days_between, ensure_utc, whole_days_between
from reviewkit.domain.constants import (
    ACCURACY_BUCKET_DAYS,
    FORECAST_HORIZON_DAYS,
    MATURITY_THRESHOLD_DAYS,
    PERFORMANCE_DAYS,
)
from reviewkit.domain.models import Card, CardState, Grade, ReviewLogEntry
from reviewkit.domain.stats.models import (
    CardStats,
    Maturity,
    PerformanceCurve,
    PerformancePoint,
    SchedulingAccuracy,
)


class MetricsCalculator:
    """
    Computes derived metrics from cards and review logs.

    Stateless and side-effect free.
    """

    def __init__(self, maturity_threshold_days: int = MATURITY_THRESHOLD_DAYS):
        self.maturity_threshold_days = maturity_threshold_days

    def retrievability(self, card: Card, now: datetime) -> float:
        """
        Predicted probability of recall at `now`.

        R = exp(-t/S) where t = days since last review, S = stability.
        Cards that were never reviewed have nothing to recall and get 0.0.
        """
        if card.last_review is None or card.state == CardState.NEW:
            return 0.0

        elapsed = max(0.0, days_between(card.last_review, ensure_utc(now)))
        return math.exp(-elapsed / card.memory_model.stability)

    def current_interval_days(self, card: Card) -> int:
        if card.last_review is None:
            return 0
        return max(0, whole_days_between(card.last_review, card.due))

    def maturity(self, card: Card) -> Maturity:
        if card.state == CardState.NEW:
            return "new"
        if self.current_interval_days(card) >= self.maturity_threshold_days:
            return "mature"
        return "young"

    def calculate_card_stats(
        self, card: Card, reviews: Sequence[ReviewLogEntry], now: datetime
    ) -> CardStats:
        """Summarize one card's state and history."""
        ordered = sorted(reviews, key=lambda r: r.timestamp)
        total = len(ordered)

        return CardStats(
            card_id=card.id,
            total_reviews=total,
            lapse_count=sum(1 for r in ordered if r.grade == Grade.AGAIN),
            average_grade=average_grade(ordered),
            retention_rate=retention_rate(ordered),
            average_response_time_ms=average_response_time(ordered),
            difficulty=card.memory_model.difficulty,
            stability=card.memory_model.stability,
            retrievability=self.retrievability(card, now),
            first_review=ordered[0].timestamp if ordered else None,
            last_review=card.last_review,
            next_review=card.due,
            current_state=card.state,
            current_interval_days=self.current_interval_days(card),
            maturity=self.maturity(card),
            leech_count=card.leech_count,
        )

    def predict_performance(
        self,
        card: Card,
        start: datetime,
        days_ahead: int = PERFORMANCE_DAYS,
    ) -> PerformanceCurve:
        """
        Predict recall day by day from `start`, assuming no review happens.

        Difficulty and stability stay fixed; only retrievability decays.
        """
        start = ensure_utc(start)
        points = tuple(
            PerformancePoint(
                date=moment,
                retrievability=self.retrievability(card, moment),
                difficulty=card.memory_model.difficulty,
                stability=card.memory_model.stability,
            )
            for moment in (start + timedelta(days=d) for d in range(max(0, days_ahead) + 1))
        )
        return PerformanceCurve(points=points)

    def analyze_scheduling_accuracy(
        self, reviews: Sequence[ReviewLogEntry]
    ) -> SchedulingAccuracy:
        """
        Measure how often reviews succeed, overall and by lateness.

        Lateness is the whole number of days between due_before and the
        review, grouped in weekly buckets.
        """
        total = len(reviews)
        if total == 0:
            return SchedulingAccuracy(
                overall_accuracy=0.0,
                grade_distribution={grade: 0.0 for grade in Grade},
                retention_by_interval=[],
            )

        distribution = {grade: 0.0 for grade in Grade}
        for review in reviews:
            distribution[review.grade] += 1
        distribution = {grade: count / total for grade, count in distribution.items()}

        buckets: dict[int, list[int]] = {}
        for review in reviews:
            late = whole_days_between(review.due_before, review.timestamp)
            bucket = (late // ACCURACY_BUCKET_DAYS) * ACCURACY_BUCKET_DAYS
            counts = buckets.setdefault(bucket, [0, 0])
            counts[0] += 1
            if review.grade >= Grade.GOOD:
                counts[1] += 1

        return SchedulingAccuracy(
            overall_accuracy=retention_rate(reviews),
            grade_distribution=distribution,
            retention_by_interval=[
                (bucket, successful / seen) for bucket, (seen, successful) in sorted(buckets.items())
            ],
        )

    def forecast(
        self,
        cards: Iterable[Card],
        now: datetime,
        horizon_days: int = FORECAST_HORIZON_DAYS,
    ) -> dict[date, int]:
        """
        Count active cards by the UTC calendar day they fall due.

        Day 0 is today and also absorbs every card already past due.
        Days beyond the horizon are not reported.
        """
        today = ensure_utc(now).date()
        forecast = {today + timedelta(days=d): 0 for d in range(max(0, horizon_days))}
        if not forecast:
            return forecast

        for card in cards:
            if card.is_excluded:
                continue
            day = max(card.due.date(), today)
            if day in forecast:
                forecast[day] += 1
        return forecast

    def count_overdue(self, cards: Iterable[Card], now: datetime) -> int:
        """Active cards whose due time has passed, however briefly."""
        now = ensure_utc(now)
        return sum(1 for card in cards if not card.is_excluded and card.due < now)


def average_grade(reviews: Sequence[ReviewLogEntry]) -> float:
    if not reviews:
        return 0.0
    return sum(int(r.grade) for r in reviews) / len(reviews)


def retention_rate(reviews: Sequence[ReviewLogEntry]) -> float:
    """Fraction of reviews graded Good or Easy."""
    if not reviews:
        return 0.0
    return sum(1 for r in reviews if r.grade >= Grade.GOOD) / len(reviews)


def average_response_time(reviews: Sequence[ReviewLogEntry]) -> float:
    if not reviews:
        return 0.0
    return sum(r.duration_ms for r in reviews) / len(reviews)
