from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from reviewkit.application.session_tracker import SessionTracker
from reviewkit.domain.errors import SessionActive
from reviewkit.domain.models import CardState, Grade, StudySession


@pytest.fixture
def mock_storage(now):
    storage = AsyncMock()
    storage.create_session.return_value = StudySession(id="ses_1", start_time=now, deck_id="deck-1")
    return storage


@pytest.mark.asyncio
async def test_start_opens_one_session(mock_storage, now):
    tracker = SessionTracker(mock_storage)

    session = await tracker.start("deck-1", now)

    assert tracker.is_open
    assert tracker.current is session
    mock_storage.create_session.assert_awaited_once_with("deck-1", now)

    with pytest.raises(SessionActive) as exc:
        await tracker.start("deck-1", now)
    assert exc.value.session_id == "ses_1"


def test_record_without_session_is_noop(mock_storage):
    tracker = SessionTracker(mock_storage)
    assert tracker.record(Grade.GOOD, CardState.NEW) is None


@pytest.mark.asyncio
async def test_record_counts_reviews(mock_storage, now):
    tracker = SessionTracker(mock_storage)
    await tracker.start(None, now)

    tracker.record(Grade.GOOD, CardState.NEW)
    tracker.record(Grade.AGAIN, CardState.REVIEW)
    session = tracker.record(Grade.GOOD, CardState.LEARNING)

    assert session.cards_reviewed == 3
    assert session.new_cards == 1
    assert session.review_cards == 2
    assert session.counts_by_grade[Grade.GOOD] == 2
    assert session.counts_by_grade[Grade.AGAIN] == 1
    assert session.counts_by_grade[Grade.EASY] == 0


@pytest.mark.asyncio
async def test_end_computes_durations_and_persists(mock_storage, now):
    tracker = SessionTracker(mock_storage)
    await tracker.start(None, now)
    tracker.record(Grade.GOOD, CardState.NEW)
    tracker.record(Grade.HARD, CardState.NEW)

    ended = await tracker.end(now + timedelta(minutes=2))

    assert ended.end_time == now + timedelta(minutes=2)
    assert ended.total_duration_ms == 120_000
    assert ended.average_duration_ms == 60_000
    assert not ended.is_open
    assert not tracker.is_open
    mock_storage.update_session.assert_awaited_once_with(ended)


@pytest.mark.asyncio
async def test_end_without_session_returns_none(mock_storage):
    tracker = SessionTracker(mock_storage)
    assert await tracker.end() is None
    mock_storage.update_session.assert_not_awaited()


@pytest.mark.asyncio
async def test_end_of_empty_session_has_zero_average(mock_storage, now):
    tracker = SessionTracker(mock_storage)
    await tracker.start(None, now)
    ended = await tracker.end(now + timedelta(seconds=5))
    assert ended.cards_reviewed == 0
    assert ended.average_duration_ms == 0.0
