"""Stable, sortable ids for cards, reviews and sessions."""

from ulid import ULID

from reviewkit.domain.constants import CARD_ID_PREFIX, REVIEW_ID_PREFIX, SESSION_ID_PREFIX


def generate_card_id() -> str:
    return f"{CARD_ID_PREFIX}{ULID()}"


def generate_review_id() -> str:
    return f"{REVIEW_ID_PREFIX}{ULID()}"


def generate_session_id() -> str:
    return f"{SESSION_ID_PREFIX}{ULID()}"
