"""
Daily study plan generation and workload prediction.

Pure computation: nothing here mutates cards or sessions.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime

from reviewkit.application.due_selector import overdue_days, select_due_cards
from reviewkit.application.utils.time import day_range, ensure_utc
from reviewkit.domain.constants import SECONDS_PER_CARD, WORKLOAD_DAYS
from reviewkit.domain.models import (
    Card,
    CardState,
    DeckSettings,
    DueCard,
    Priority,
    StudyPlan,
)
from reviewkit.domain.stats.models import WorkloadDay


def estimate_minutes(card_count: int, seconds_per_card: int = SECONDS_PER_CARD) -> int:
    return math.ceil(card_count * seconds_per_card / 60)


def generate_study_plan(
    deck_id: str,
    date: datetime,
    settings: DeckSettings,
    cards: Iterable[Card],
    seconds_per_card: int = SECONDS_PER_CARD,
) -> StudyPlan:
    """
    Build the plan for `date` from a deck's cards.

    - Learning cards are always included.
    - Review cards (overdue or due) are capped at max_reviews_per_day,
      earliest due first.
    - New cards are capped at new_cards_per_day, oldest created first.
    """
    settings.validate()
    plan_time = ensure_utc(date)
    deck_cards = [card for card in cards if card.deck_id == deck_id]

    due = select_due_cards(deck_cards, plan_time)
    learning = [dc for dc in due if dc.priority == Priority.LEARNING]
    reviews = sorted(
        (dc for dc in due if dc.priority in (Priority.OVERDUE, Priority.REVIEW)),
        key=lambda dc: dc.due_date,
    )[: settings.max_reviews_per_day]

    fresh = sorted(
        (c for c in deck_cards if c.state == CardState.NEW and not c.is_excluded),
        key=lambda c: (c.created_at, c.id),
    )[: settings.new_cards_per_day]
    new = [
        DueCard(
            card=card,
            due_date=card.due,
            overdue_by_days=overdue_days(card, plan_time),
            priority=Priority.NEW,
        )
        for card in fresh
    ]

    total = len(learning) + len(reviews) + len(new)
    return StudyPlan(
        deck_id=deck_id,
        date=plan_time,
        learning_cards=learning,
        review_cards=reviews,
        new_cards=new,
        new_card_limit=settings.new_cards_per_day,
        review_limit=settings.max_reviews_per_day,
        estimated_duration_minutes=estimate_minutes(total, seconds_per_card),
    )


def predict_workload(
    cards: Iterable[Card],
    settings: DeckSettings,
    start: date,
    days_ahead: int = WORKLOAD_DAYS,
    seconds_per_card: int = SECONDS_PER_CARD,
) -> list[WorkloadDay]:
    """
    Count the cards falling due on each of the next `days_ahead` days.

    Only exact calendar-day matches are counted, and each day is capped by
    the deck's daily limits.
    """
    active = [card for card in cards if not card.is_excluded]
    predictions: list[WorkloadDay] = []

    for day in day_range(start, max(0, days_ahead)):
        due_that_day = [card for card in active if card.due.date() == day]
        new_count = min(
            sum(1 for c in due_that_day if c.state == CardState.NEW),
            settings.new_cards_per_day,
        )
        review_count = min(
            sum(1 for c in due_that_day if c.state != CardState.NEW),
            settings.max_reviews_per_day,
        )
        predictions.append(
            WorkloadDay(
                date=day,
                new_cards=new_count,
                review_cards=review_count,
                estimated_minutes=estimate_minutes(new_count + review_count, seconds_per_card),
            )
        )

    return predictions
