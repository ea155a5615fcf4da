"""
FSRS Oracle: Infrastructure adapter for the `fsrs` package.

Implements SchedulingOracle by asking fsrs.Scheduler for the outcome of
every rating. The weight-fitted stability/difficulty formulas stay inside
the library.

FSRS has no separate "new" state: a never-reviewed card is a Learning card
at step 0 with no stability yet. NEW cards are translated to that shape and
their stored memory model is ignored.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

from fsrs import Card as FsrsCard
from fsrs import Rating, Scheduler, State

from reviewkit.domain.models import CardState, DeckSettings, Grade, MemoryModel
from reviewkit.domain.ports import SchedulingCandidate, SchedulingOracle

logger = logging.getLogger(__name__)

# fsrs needs an int id; the value is never read back
_SCRATCH_CARD_ID = 0


def _steps(minutes: tuple[float, ...]) -> tuple[timedelta, ...]:
    return tuple(timedelta(minutes=m) for m in minutes)


class FsrsOracle(SchedulingOracle):
    """
    Scheduling oracle backed by the FSRS algorithm.

    Attributes:
        settings: Deck parameters currently applied to the scheduler.
        enable_fuzzing: Whether fsrs randomizes review intervals slightly.
    """

    def __init__(
        self,
        settings: DeckSettings | None = None,
        enable_fuzzing: bool = True,
        parameters: tuple[float, ...] | None = None,
    ):
        self.settings = (settings or DeckSettings()).validate()
        self.enable_fuzzing = enable_fuzzing
        self.parameters = parameters
        self._scheduler = self._build_scheduler()
        self._empty_model: MemoryModel | None = None

    def _build_scheduler(self) -> Scheduler:
        kwargs: dict[str, Any] = {
            "desired_retention": self.settings.requested_retention,
            "learning_steps": _steps(self.settings.learning_steps_minutes),
            "relearning_steps": _steps(self.settings.relearning_steps_minutes),
            "maximum_interval": self.settings.maximum_interval_days,
            "enable_fuzzing": self.enable_fuzzing,
        }
        if self.parameters is not None:
            kwargs["parameters"] = self.parameters
        return Scheduler(**kwargs)

    def configure(self, settings: DeckSettings) -> None:
        self.settings = settings.validate()
        self._scheduler = self._build_scheduler()
        self._empty_model = None
        logger.debug(f"FSRS scheduler rebuilt with retention={settings.requested_retention}")

    def create_empty_model(self) -> MemoryModel:
        """
        Prior memory model for an unreviewed card.

        This is the model FSRS assigns after a first Good answer; it is only
        informative, since scheduling a NEW card starts from scratch.
        """
        if self._empty_model is None:
            now = datetime.now(timezone.utc)
            first, _ = self._scheduler.review_card(
                FsrsCard(card_id=_SCRATCH_CARD_ID, due=now), Rating.Good, now
            )
            self._empty_model = MemoryModel(
                difficulty=first.difficulty, stability=first.stability, params={"step": None}
            )
        return replace(self._empty_model, params=dict(self._empty_model.params))

    def schedule(
        self,
        model: MemoryModel,
        state: CardState,
        last_review: datetime | None,
        now: datetime,
    ) -> dict[Grade, SchedulingCandidate]:
        now = now.astimezone(timezone.utc)
        source = self._to_fsrs_card(model, state, last_review, now)

        candidates: dict[Grade, SchedulingCandidate] = {}
        for grade in Grade:
            card, review_log = self._scheduler.review_card(source, Rating(int(grade)), now)
            log = review_log.to_dict()
            log.update(
                state=int(card.state),
                step=card.step,
                stability=card.stability,
                difficulty=card.difficulty,
                scheduled_days=(card.due - now).total_seconds() / 86400,
            )
            candidates[grade] = SchedulingCandidate(
                model=MemoryModel(
                    difficulty=card.difficulty,
                    stability=card.stability,
                    params={"step": card.step},
                ),
                state=CardState(int(card.state)),
                due=card.due,
                log=log,
            )
        return candidates

    def _to_fsrs_card(
        self,
        model: MemoryModel,
        state: CardState,
        last_review: datetime | None,
        now: datetime,
    ) -> FsrsCard:
        if state == CardState.NEW:
            return FsrsCard(card_id=_SCRATCH_CARD_ID, state=State.Learning, step=0, due=now)

        step = model.params.get("step")
        if state == CardState.REVIEW:
            step = None
        elif step is None:
            step = 0

        return FsrsCard(
            card_id=_SCRATCH_CARD_ID,
            state=State(int(state)),
            step=step,
            stability=model.stability,
            difficulty=model.difficulty,
            due=now,
            last_review=last_review.astimezone(timezone.utc) if last_review else None,
        )
