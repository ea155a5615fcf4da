"""reviewkit: a spaced-repetition review engine."""

from reviewkit.application.config import EngineConfig, resolve_config
from reviewkit.application.factory import create_engine
from reviewkit.application.review_engine import (
    BatchReviewResult,
    FailedReview,
    ReviewEngine,
    ReviewRequest,
    ReviewResult,
)
from reviewkit.domain import (
    Card,
    CardBuried,
    CardNotFound,
    CardState,
    CardSuspended,
    DeckNotFound,
    DeckSettings,
    DueCard,
    Grade,
    MemoryModel,
    Priority,
    ReviewKitError,
    ReviewLogEntry,
    SchedulingCandidate,
    SchedulingOracle,
    SessionActive,
    Storage,
    StorageError,
    StudyPlan,
    StudySession,
    ValidationError,
)
from reviewkit.domain.constants import VERSION
from reviewkit.domain.models import (
    CardFilter,
    CardImport,
    ImportFailure,
    ImportResult,
    SearchOptions,
    SearchResult,
)
from reviewkit.infrastructure.adapters import FsrsOracle, InMemoryStorage

__version__ = VERSION

__all__ = [
    "BatchReviewResult",
    "Card",
    "CardBuried",
    "CardFilter",
    "CardImport",
    "CardNotFound",
    "CardState",
    "CardSuspended",
    "DeckNotFound",
    "DeckSettings",
    "DueCard",
    "EngineConfig",
    "FailedReview",
    "FsrsOracle",
    "Grade",
    "ImportFailure",
    "ImportResult",
    "InMemoryStorage",
    "MemoryModel",
    "Priority",
    "ReviewEngine",
    "ReviewKitError",
    "ReviewLogEntry",
    "ReviewRequest",
    "ReviewResult",
    "SchedulingCandidate",
    "SchedulingOracle",
    "SearchOptions",
    "SearchResult",
    "SessionActive",
    "Storage",
    "StorageError",
    "StudyPlan",
    "StudySession",
    "ValidationError",
    "create_engine",
    "resolve_config",
]
