from datetime import timedelta

from reviewkit.application.study_plan import estimate_minutes, generate_study_plan, predict_workload
from reviewkit.domain.models import CardState, DeckSettings, Priority


def test_estimate_minutes_rounds_up():
    assert estimate_minutes(0) == 0
    assert estimate_minutes(1) == 1
    assert estimate_minutes(4) == 2
    assert estimate_minutes(4, seconds_per_card=60) == 4


def test_new_cards_capped_oldest_first(make_card, now):
    cards = [
        make_card(state=CardState.NEW, created_at=now - timedelta(days=20 - i)) for i in range(20)
    ]
    settings = DeckSettings(new_cards_per_day=5)

    plan = generate_study_plan("deck-1", now, settings, cards)

    assert len(plan.new_cards) == 5
    assert [dc.card.id for dc in plan.new_cards] == [c.id for c in cards[:5]]
    assert all(dc.priority == Priority.NEW for dc in plan.new_cards)
    assert plan.new_card_limit == 5


def test_reviews_capped_learning_uncapped(make_card, now):
    reviews = [
        make_card(state=CardState.REVIEW, due=now - timedelta(days=i), last_review=now - timedelta(days=30))
        for i in range(6)
    ]
    learning = [make_card(state=CardState.LEARNING, due=now + timedelta(minutes=5)) for _ in range(4)]
    settings = DeckSettings(max_reviews_per_day=3, new_cards_per_day=0)

    plan = generate_study_plan("deck-1", now, settings, [*reviews, *learning])

    assert len(plan.learning_cards) == 4
    assert len(plan.review_cards) == 3
    # earliest due first
    assert [dc.card.id for dc in plan.review_cards] == [c.id for c in reversed(reviews[-3:])]
    assert plan.new_cards == []
    assert plan.total_cards == 7
    assert plan.estimated_duration_minutes == estimate_minutes(7)


def test_plan_ignores_excluded_and_other_decks(make_card, now):
    cards = [
        make_card(state=CardState.NEW, suspended=True),
        make_card(state=CardState.REVIEW, due=now - timedelta(days=1), buried=True),
        make_card(state=CardState.NEW, deck_id="other"),
        make_card(state=CardState.REVIEW, due=now + timedelta(days=1)),
    ]

    plan = generate_study_plan("deck-1", now, DeckSettings(), cards)

    assert plan.total_cards == 0
    assert plan.estimated_duration_minutes == 0


def test_predict_workload_counts_exact_days(make_card, now):
    today = now.date()
    cards = [
        make_card(state=CardState.REVIEW, due=now + timedelta(days=1)),
        make_card(state=CardState.REVIEW, due=now + timedelta(days=1, hours=2)),
        make_card(state=CardState.NEW, due=now + timedelta(days=2)),
        make_card(state=CardState.REVIEW, due=now - timedelta(days=5)),
        make_card(state=CardState.REVIEW, due=now + timedelta(days=1), suspended=True),
    ]

    days = predict_workload(cards, DeckSettings(), today, days_ahead=3)

    assert [d.date for d in days] == [today + timedelta(days=i) for i in range(3)]
    assert [d.review_cards for d in days] == [0, 2, 0]
    assert [d.new_cards for d in days] == [0, 0, 1]
    assert days[1].estimated_minutes == 1


def test_predict_workload_applies_daily_caps(make_card, now):
    cards = [make_card(state=CardState.REVIEW, due=now) for _ in range(10)]
    days = predict_workload(cards, DeckSettings(max_reviews_per_day=4), now.date(), days_ahead=1)
    assert days[0].review_cards == 4
