# Domain Package
from .errors import (
    CardBuried,
    CardNotFound,
    CardSuspended,
    DeckNotFound,
    ReviewKitError,
    SessionActive,
    StorageError,
    ValidationError,
)
from .models import (
    Card,
    CardState,
    DeckSettings,
    DueCard,
    Grade,
    MemoryModel,
    Priority,
    ReviewLogEntry,
    StudyPlan,
    StudySession,
)
from .ports import SchedulingCandidate, SchedulingOracle, Storage

__all__ = [
    "Card",
    "CardBuried",
    "CardNotFound",
    "CardState",
    "CardSuspended",
    "DeckNotFound",
    "DeckSettings",
    "DueCard",
    "Grade",
    "MemoryModel",
    "Priority",
    "ReviewKitError",
    "ReviewLogEntry",
    "SchedulingCandidate",
    "SchedulingOracle",
    "SessionActive",
    "Storage",
    "StorageError",
    "StudyPlan",
    "StudySession",
    "ValidationError",
]
