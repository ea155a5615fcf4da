"""
Review Stats Service: Application layer orchestrator.

Coordinates fetching cards and review history from storage and turning them
into deck and card statistics.
"""

import logging
from datetime import datetime

from reviewkit.application.study_plan import estimate_minutes
from reviewkit.application.utils.time import ensure_utc
from reviewkit.domain.constants import FORECAST_HORIZON_DAYS, SECONDS_PER_CARD
from reviewkit.domain.errors import CardNotFound, DeckNotFound
from reviewkit.domain.models import CardState
from reviewkit.domain.ports import Storage
from reviewkit.domain.stats.models import CardStats, DeckStats, SchedulingAccuracy

from .metrics_calculator import (
    MetricsCalculator,
    average_grade,
    average_response_time,
    retention_rate,
)

logger = logging.getLogger(__name__)


class ReviewStatsService:
    """
    Application service for deck and card statistics.

    Follows Dependency Inversion: depends on the Storage abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        storage: Storage,
        calculator: MetricsCalculator | None = None,
        seconds_per_card: int = SECONDS_PER_CARD,
        forecast_horizon_days: int = FORECAST_HORIZON_DAYS,
    ):
        """
        Args:
            storage: The storage port for cards and review history.
            calculator: Optional custom calculator; uses default if not provided.
            seconds_per_card: Assumed study time per card for workload minutes.
            forecast_horizon_days: Number of days covered by deck forecasts.
        """
        self._storage = storage
        self._calc = calculator or MetricsCalculator()
        self.seconds_per_card = seconds_per_card
        self.forecast_horizon_days = forecast_horizon_days

    @property
    def calculator(self) -> MetricsCalculator:
        return self._calc

    async def calculate_deck_stats(self, deck_id: str, now: datetime) -> DeckStats:
        """
        Aggregate counters, performance and a short forecast for a deck.

        Raises:
            DeckNotFound: If the deck is unknown to storage.
        """
        if not await self._storage.deck_exists(deck_id):
            raise DeckNotFound(deck_id)

        now = ensure_utc(now)
        cards = await self._storage.load_cards_by_deck(deck_id)
        reviews = await self._storage.load_deck_reviews(deck_id)
        logger.debug(f"Computing stats for deck {deck_id}: {len(cards)} cards, {len(reviews)} reviews")

        active = [card for card in cards if not card.is_excluded]
        forecast = self._calc.forecast(cards, now, self.forecast_horizon_days)

        return DeckStats(
            deck_id=deck_id,
            total_cards=len(cards),
            new_cards=sum(1 for c in cards if c.state == CardState.NEW),
            learning_cards=sum(1 for c in cards if c.state.is_learning),
            review_cards=sum(1 for c in cards if c.state == CardState.REVIEW),
            suspended_cards=sum(1 for c in cards if c.suspended),
            buried_cards=sum(1 for c in cards if c.buried and not c.suspended),
            due_today=sum(1 for c in active if c.due <= now),
            overdue=self._calc.count_overdue(cards, now),
            total_reviews=len(reviews),
            average_retention=retention_rate(reviews),
            average_grade=average_grade(reviews),
            average_response_time_ms=average_response_time(reviews),
            forecasted_reviews=forecast,
            workload_distribution={
                day: estimate_minutes(count, self.seconds_per_card)
                for day, count in forecast.items()
            },
        )

    async def calculate_card_stats(self, card_id: str, now: datetime) -> CardStats:
        card = await self._storage.load_card(card_id)
        if card is None:
            raise CardNotFound(card_id)
        reviews = await self._storage.load_card_reviews(card_id)
        return self._calc.calculate_card_stats(card, reviews, ensure_utc(now))

    async def analyze_scheduling_accuracy(self, deck_id: str) -> SchedulingAccuracy:
        if not await self._storage.deck_exists(deck_id):
            raise DeckNotFound(deck_id)
        reviews = await self._storage.load_deck_reviews(deck_id)
        return self._calc.analyze_scheduling_accuracy(reviews)
