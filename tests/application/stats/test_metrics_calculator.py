import math
from datetime import timedelta

import pytest

from reviewkit.application.stats.metrics_calculator import (
    MetricsCalculator,
    average_grade,
    average_response_time,
    retention_rate,
)
from reviewkit.domain.models import CardState, Grade, MemoryModel, ReviewLogEntry


@pytest.fixture
def calculator():
    return MetricsCalculator()


def make_review(card_id, grade, timestamp, due_before=None, duration_ms=1000):
    return ReviewLogEntry(
        id=f"rev-{timestamp.timestamp()}-{grade}",
        card_id=card_id,
        grade=Grade(grade),
        duration_ms=duration_ms,
        timestamp=timestamp,
        state_before=CardState.REVIEW,
        due_before=due_before or timestamp,
        state_after=CardState.REVIEW,
        due_after=timestamp + timedelta(days=1),
    )


def test_retrievability_is_one_at_last_review(calculator, make_card, now):
    card = make_card(state=CardState.REVIEW, last_review=now)
    assert calculator.retrievability(card, now) == 1.0


def test_retrievability_decays(calculator, make_card, now):
    card = make_card(
        state=CardState.REVIEW,
        last_review=now,
        memory_model=MemoryModel(difficulty=5.0, stability=10.0),
    )
    r1 = calculator.retrievability(card, now + timedelta(days=1))
    r10 = calculator.retrievability(card, now + timedelta(days=10))

    # R = exp(-t/S)
    assert r1 == pytest.approx(math.exp(-0.1))
    assert r10 == pytest.approx(math.exp(-1))
    assert 0 < r10 < r1 < 1


def test_retrievability_of_unreviewed_card_is_zero(calculator, make_card, now):
    assert calculator.retrievability(make_card(), now) == 0.0


def test_maturity(calculator, make_card, now):
    assert calculator.maturity(make_card()) == "new"
    young = make_card(state=CardState.REVIEW, last_review=now, due=now + timedelta(days=5))
    assert calculator.maturity(young) == "young"
    mature = make_card(state=CardState.REVIEW, last_review=now, due=now + timedelta(days=21))
    assert calculator.maturity(mature) == "mature"
    assert MetricsCalculator(maturity_threshold_days=30).maturity(mature) == "young"


def test_card_stats(calculator, make_card, now):
    card = make_card(
        state=CardState.REVIEW,
        last_review=now - timedelta(days=1),
        due=now + timedelta(days=4),
        leech_count=1,
    )
    reviews = [
        make_review(card.id, 3, now - timedelta(days=3), duration_ms=2000),
        make_review(card.id, 1, now - timedelta(days=2), duration_ms=4000),
        make_review(card.id, 4, now - timedelta(days=1), duration_ms=3000),
    ]

    stats = calculator.calculate_card_stats(card, list(reversed(reviews)), now)

    assert stats.total_reviews == 3
    assert stats.lapse_count == 1
    assert stats.average_grade == pytest.approx(8 / 3)
    assert stats.retention_rate == pytest.approx(2 / 3)
    assert stats.average_response_time_ms == 3000
    assert stats.first_review == now - timedelta(days=3)
    assert stats.next_review == card.due
    assert stats.current_interval_days == 5
    assert stats.maturity == "young"
    assert stats.leech_count == 1


def test_card_stats_without_history(calculator, make_card, now):
    stats = calculator.calculate_card_stats(make_card(), [], now)
    assert stats.total_reviews == 0
    assert stats.average_grade == 0.0
    assert stats.retention_rate == 0.0
    assert stats.first_review is None
    assert stats.retrievability == 0.0


def test_performance_curve_is_restartable(calculator, make_card, now):
    card = make_card(state=CardState.REVIEW, last_review=now)
    curve = calculator.predict_performance(card, now, days_ahead=5)

    assert len(curve) == 6
    first_pass = [p.retrievability for p in curve]
    second_pass = [p.retrievability for p in curve]
    assert first_pass == second_pass
    assert first_pass == sorted(first_pass, reverse=True)
    assert curve[0].retrievability == 1.0
    assert curve[5].date == now + timedelta(days=5)


def test_forecast_folds_past_due_into_today(calculator, make_card, now):
    today = now.date()
    cards = [
        make_card(due=now - timedelta(days=3)),
        make_card(due=now),
        make_card(due=now + timedelta(days=2)),
        make_card(due=now + timedelta(days=30)),
        make_card(due=now, suspended=True),
    ]

    forecast = calculator.forecast(cards, now, horizon_days=7)

    assert list(forecast) == [today + timedelta(days=d) for d in range(7)]
    assert forecast[today] == 2
    assert forecast[today + timedelta(days=2)] == 1
    assert sum(forecast.values()) == 3


def test_count_overdue_includes_any_past_due_card(calculator, make_card, now):
    cards = [
        make_card(state=CardState.REVIEW, due=now - timedelta(days=2)),
        make_card(state=CardState.REVIEW, due=now - timedelta(hours=2)),
        make_card(state=CardState.LEARNING, due=now - timedelta(minutes=1)),
        make_card(state=CardState.REVIEW, due=now),
        make_card(state=CardState.REVIEW, due=now + timedelta(hours=1)),
        make_card(state=CardState.REVIEW, due=now - timedelta(days=2), buried=True),
        make_card(state=CardState.REVIEW, due=now - timedelta(days=2), suspended=True),
    ]
    assert calculator.count_overdue(cards, now) == 3


def test_scheduling_accuracy(calculator, now):
    reviews = [
        make_review("c1", 3, now, due_before=now),
        make_review("c1", 1, now + timedelta(days=1), due_before=now - timedelta(days=9)),
        make_review("c2", 4, now + timedelta(days=2), due_before=now - timedelta(days=8)),
        make_review("c2", 2, now + timedelta(days=3), due_before=now + timedelta(days=3)),
    ]

    accuracy = calculator.analyze_scheduling_accuracy(reviews)

    assert accuracy.overall_accuracy == 0.5
    assert accuracy.grade_distribution[Grade.AGAIN] == 0.25
    assert sum(accuracy.grade_distribution.values()) == pytest.approx(1.0)
    assert accuracy.retention_by_interval == [(0, 0.5), (7, 0.5)]


def test_scheduling_accuracy_empty(calculator):
    accuracy = calculator.analyze_scheduling_accuracy([])
    assert accuracy.overall_accuracy == 0.0
    assert accuracy.retention_by_interval == []


def test_aggregates_on_empty_history():
    assert average_grade([]) == 0.0
    assert retention_rate([]) == 0.0
    assert average_response_time([]) == 0.0
