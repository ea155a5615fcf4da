"""
Due-card selection and prioritization.

Orders cards ready for study by bucket:
1. learning (Learning/Relearning, surfaced regardless of due date)
2. overdue (Review cards at least one whole day late)
3. review (everything else that is due)
4. new
Ties inside a bucket are broken by earliest due date.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from reviewkit.application.utils.time import days_between, ensure_utc
from reviewkit.domain.models import Card, CardState, DueCard, Priority


def overdue_days(card: Card, now: datetime) -> int:
    """Whole days the card is past due, never negative."""
    return max(0, math.floor(days_between(card.due, now)))


def classify(card: Card, now: datetime) -> Priority:
    if card.state == CardState.NEW:
        return Priority.NEW
    if card.state.is_learning:
        return Priority.LEARNING
    if overdue_days(card, now) > 0:
        return Priority.OVERDUE
    return Priority.REVIEW


def is_selectable(card: Card, now: datetime) -> bool:
    """True if the card should be offered for study at `now`."""
    if card.is_excluded:
        return False
    return card.state.is_learning or card.due <= now


def to_due_card(card: Card, now: datetime) -> DueCard:
    return DueCard(
        card=card,
        due_date=card.due,
        overdue_by_days=overdue_days(card, now),
        priority=classify(card, now),
    )


def sort_due_cards(due_cards: Iterable[DueCard]) -> list[DueCard]:
    return sorted(due_cards, key=lambda dc: (dc.priority.rank, dc.due_date))


def select_due_cards(
    cards: Iterable[Card],
    now: datetime,
    limit: int | None = None,
) -> list[DueCard]:
    """
    Pick and order the cards ready for study.

    Suspended and buried cards are always dropped, whatever the source.
    Duplicate ids are collapsed. The limit is applied after sorting.
    """
    now = ensure_utc(now)
    seen: set[str] = set()
    selected: list[DueCard] = []

    for card in cards:
        if card.id in seen or not is_selectable(card, now):
            continue
        seen.add(card.id)
        selected.append(to_due_card(card, now))

    ordered = sort_due_cards(selected)
    if limit is not None:
        ordered = ordered[: max(0, limit)]
    return ordered
