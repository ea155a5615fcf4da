from datetime import datetime, timedelta, timezone

import pytest

from reviewkit.application.config import EngineConfig
from reviewkit.application.review_engine import ReviewEngine
from reviewkit.domain.models import Card, CardState, Grade, MemoryModel
from reviewkit.domain.ports import SchedulingCandidate, SchedulingOracle
from reviewkit.infrastructure.adapters.memory_storage import InMemoryStorage

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
DECK = "deck-1"


class FakeOracle(SchedulingOracle):
    """
    Deterministic oracle for tests.

    Again -> (Re)Learning in 10 minutes, halved stability.
    Hard  -> Review in 1 day.
    Good  -> Review in 2x stability days.
    Easy  -> Review in 4x stability days.
    """

    def __init__(self):
        self.configured = None

    def create_empty_model(self) -> MemoryModel:
        return MemoryModel(difficulty=5.0, stability=1.0)

    def configure(self, settings):
        self.configured = settings

    def schedule(self, model, state, last_review, now):
        s = model.stability
        again_state = CardState.RELEARNING if state == CardState.REVIEW else CardState.LEARNING
        plan = {
            Grade.AGAIN: (again_state, timedelta(minutes=10), max(0.1, s / 2)),
            Grade.HARD: (CardState.REVIEW, timedelta(days=1), s),
            Grade.GOOD: (CardState.REVIEW, timedelta(days=2 * s), 2 * s),
            Grade.EASY: (CardState.REVIEW, timedelta(days=4 * s), 4 * s),
        }
        return {
            grade: SchedulingCandidate(
                model=MemoryModel(difficulty=model.difficulty, stability=stability),
                state=next_state,
                due=now + delay,
                log={"grade": int(grade)},
            )
            for grade, (next_state, delay, stability) in plan.items()
        }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def storage():
    store = InMemoryStorage()
    store.add_deck(DECK)
    return store


@pytest.fixture
def config(monkeypatch, tmp_path):
    """Config isolated from the developer's environment and home directory."""
    monkeypatch.setattr("reviewkit.application.config.CONFIG_FILES", [tmp_path / "none.toml"])
    return EngineConfig()


@pytest.fixture
def engine(storage, oracle, config):
    return ReviewEngine(storage, oracle, config=config, clock=lambda: NOW)


@pytest.fixture
def make_card():
    """Factory for cards with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> Card:
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            id=f"card-{n}",
            deck_id=DECK,
            front=f"front {n}",
            back=f"back {n}",
            memory_model=MemoryModel(difficulty=5.0, stability=10.0),
            due=NOW,
            created_at=NOW - timedelta(days=30) + timedelta(minutes=n),
            updated_at=NOW - timedelta(days=30),
        )
        fields.update(overrides)
        return Card(**fields)

    return _make
