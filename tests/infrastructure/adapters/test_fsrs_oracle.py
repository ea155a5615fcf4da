from datetime import timedelta

import pytest

from reviewkit.domain.errors import ValidationError
from reviewkit.domain.models import CardState, DeckSettings, Grade
from reviewkit.infrastructure.adapters.fsrs_oracle import FsrsOracle


@pytest.fixture
def fsrs_oracle():
    return FsrsOracle(DeckSettings(), enable_fuzzing=False)


def test_empty_model_is_usable(fsrs_oracle):
    model = fsrs_oracle.create_empty_model()
    assert model.stability > 0
    assert model == fsrs_oracle.create_empty_model()


def test_empty_models_do_not_share_params(fsrs_oracle):
    first = fsrs_oracle.create_empty_model()
    second = fsrs_oracle.create_empty_model()

    first.params["step"] = 3

    assert first.params is not second.params
    assert second.params == {"step": None}
    assert fsrs_oracle.create_empty_model().params == {"step": None}


def test_new_card_candidates(fsrs_oracle, now):
    candidates = fsrs_oracle.schedule(fsrs_oracle.create_empty_model(), CardState.NEW, None, now)

    assert set(candidates) == set(Grade)
    good = candidates[Grade.GOOD]
    assert good.state == CardState.LEARNING
    assert good.due == now + timedelta(minutes=10)
    assert good.model.params["step"] == 1
    assert candidates[Grade.AGAIN].due == now + timedelta(minutes=1)
    assert candidates[Grade.EASY].state == CardState.REVIEW
    assert candidates[Grade.EASY].due > good.due
    assert all(c.model.stability > 0 for c in candidates.values())
    assert "rating" in good.log


def test_learning_steps_graduate_to_review(fsrs_oracle, now):
    first = fsrs_oracle.schedule(
        fsrs_oracle.create_empty_model(), CardState.NEW, None, now
    )[Grade.GOOD]
    later = first.due

    second = fsrs_oracle.schedule(first.model, first.state, now, later)[Grade.GOOD]

    assert second.state == CardState.REVIEW
    assert second.due - later >= timedelta(days=1)


def test_lapse_enters_relearning(fsrs_oracle, now):
    first = fsrs_oracle.schedule(fsrs_oracle.create_empty_model(), CardState.NEW, None, now)
    review = first[Grade.EASY]

    lapse = fsrs_oracle.schedule(review.model, review.state, now, review.due)[Grade.AGAIN]

    assert lapse.state == CardState.RELEARNING
    assert lapse.due == review.due + timedelta(minutes=10)
    assert lapse.model.stability < review.model.stability


def test_schedule_is_deterministic_without_fuzzing(fsrs_oracle, now):
    model = fsrs_oracle.create_empty_model()
    a = fsrs_oracle.schedule(model, CardState.NEW, None, now)
    b = fsrs_oracle.schedule(model, CardState.NEW, None, now)
    assert {g: c.due for g, c in a.items()} == {g: c.due for g, c in b.items()}


def test_configure_applies_new_steps(fsrs_oracle, now):
    fsrs_oracle.configure(DeckSettings(learning_steps_minutes=(5, 30)))

    good = fsrs_oracle.schedule(fsrs_oracle.create_empty_model(), CardState.NEW, None, now)[
        Grade.GOOD
    ]

    assert good.due == now + timedelta(minutes=30)


def test_configure_rejects_invalid_settings(fsrs_oracle):
    with pytest.raises(ValidationError):
        fsrs_oracle.configure(DeckSettings(requested_retention=2.0))
