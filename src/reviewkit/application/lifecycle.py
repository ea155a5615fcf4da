"""
Card lifecycle: creation, suspension, burying, reset and content edits.

Every function returns a new Card and leaves its input untouched. Only
initialize_card and reset set the state to NEW directly; every other state
change comes from the scheduling oracle.
"""

from dataclasses import replace
from datetime import datetime

from reviewkit.application.id_service import generate_card_id
from reviewkit.application.utils.time import ensure_utc
from reviewkit.domain.errors import ValidationError
from reviewkit.domain.models import Card, CardState
from reviewkit.domain.ports import SchedulingOracle


def initialize_card(
    deck_id: str,
    front: str,
    back: str,
    oracle: SchedulingOracle,
    now: datetime,
    tags: list[str] | None = None,
    card_id: str | None = None,
) -> Card:
    """
    Create a never-reviewed card, due immediately.

    Raises:
        ValidationError: If deck_id, front or back is blank.
    """
    for name, value in (("deck_id", deck_id), ("front", front), ("back", back)):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(name, value, "must be a non-empty string")

    now = ensure_utc(now)
    return Card(
        id=card_id or generate_card_id(),
        deck_id=deck_id,
        front=front,
        back=back,
        tags=list(tags or []),
        memory_model=oracle.create_empty_model(),
        state=CardState.NEW,
        due=now,
        created_at=now,
        updated_at=now,
    )


def suspend(card: Card, now: datetime) -> Card:
    return replace(card, suspended=True, updated_at=ensure_utc(now))


def unsuspend(card: Card, now: datetime) -> Card:
    return replace(card, suspended=False, updated_at=ensure_utc(now))


def bury(card: Card, now: datetime) -> Card:
    """Hide the card for the rest of the day without touching its schedule."""
    return replace(card, buried=True, updated_at=ensure_utc(now))


def unbury(card: Card, now: datetime) -> Card:
    return replace(card, buried=False, updated_at=ensure_utc(now))


def reset(card: Card, oracle: SchedulingOracle, now: datetime) -> Card:
    """
    Forget all learning progress.

    The review log is kept; the card simply starts over as NEW.
    Suspension and burial flags are left as they are.
    """
    now = ensure_utc(now)
    return replace(
        card,
        memory_model=oracle.create_empty_model(),
        state=CardState.NEW,
        due=now,
        last_review=None,
        leech_count=0,
        updated_at=now,
    )


def edit(
    card: Card,
    now: datetime,
    front: str | None = None,
    back: str | None = None,
    tags: list[str] | None = None,
) -> Card:
    """Change the card's content. Scheduling fields are never touched."""
    changes: dict = {}
    for name, value in (("front", front), ("back", back)):
        if value is None:
            continue
        if not value.strip():
            raise ValidationError(name, value, "must be a non-empty string")
        changes[name] = value
    if tags is not None:
        changes["tags"] = list(tags)
    return replace(card, updated_at=ensure_utc(now), **changes)
