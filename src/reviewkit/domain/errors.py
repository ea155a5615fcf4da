"""
Error taxonomy for reviewkit.

Validation and lifecycle errors are raised immediately and never retried.
Storage failures are wrapped in StorageError with the original exception
kept as the cause.
"""

import math
from typing import Any

from .constants import MAX_GRADE, MIN_GRADE


class ReviewKitError(Exception):
    """Base class for every error raised by this library."""

    code = "REVIEWKIT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CardNotFound(ReviewKitError):
    code = "CARD_NOT_FOUND"

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class DeckNotFound(ReviewKitError):
    code = "DECK_NOT_FOUND"

    def __init__(self, deck_id: str):
        super().__init__(f"Deck not found: {deck_id}")
        self.deck_id = deck_id


class SessionActive(ReviewKitError):
    code = "SESSION_ACTIVE"

    def __init__(self, session_id: str | None = None):
        super().__init__("A study session is already active")
        self.session_id = session_id


class CardSuspended(ReviewKitError):
    """
    Raised when reviewing a suspended card.

    Hosts should offer to unsuspend rather than show the raw error.
    """

    code = "CARD_SUSPENDED"

    def __init__(self, card_id: str):
        super().__init__(f"Cannot operate on suspended card: {card_id}")
        self.card_id = card_id


class CardBuried(ReviewKitError):
    """
    Raised when reviewing a buried card.

    Hosts should offer to unbury rather than show the raw error.
    """

    code = "CARD_BURIED"

    def __init__(self, card_id: str):
        super().__init__(f"Cannot operate on buried card: {card_id}")
        self.card_id = card_id


class ValidationError(ReviewKitError):
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str | None = None):
        message = f"Invalid value for {field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.field = field
        self.value = value


class StorageError(ReviewKitError):
    """Wraps a failure of the Storage collaborator."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, original: BaseException | None = None):
        super().__init__(f"Storage error: {message}")
        self.original = original


def validate_grade(grade: Any) -> int:
    """
    Check that a grade is one of 1..4 and return it as an int.

    Booleans and non-integral numbers are rejected.
    """
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise ValidationError("grade", grade, "must be an integer")
    if grade < MIN_GRADE or grade > MAX_GRADE:
        raise ValidationError("grade", grade, f"must be between {MIN_GRADE} and {MAX_GRADE}")
    return int(grade)


def validate_duration(duration_ms: Any) -> int:
    """
    Check that an answer duration is a finite, non-negative number of ms.

    Returns it truncated to an int.
    """
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)):
        raise ValidationError("duration_ms", duration_ms, "must be a number")
    if not math.isfinite(duration_ms) or duration_ms < 0:
        raise ValidationError("duration_ms", duration_ms, "must be finite and >= 0")
    return int(duration_ms)
