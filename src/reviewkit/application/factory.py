"""
Engine Factory
Centralizes wiring of a ReviewEngine from configuration and adapters.
"""

import logging

from reviewkit.application.config import EngineConfig, resolve_config
from reviewkit.application.review_engine import ReviewEngine
from reviewkit.domain.ports import SchedulingOracle, Storage
from reviewkit.infrastructure.adapters.fsrs_oracle import FsrsOracle
from reviewkit.infrastructure.adapters.memory_storage import InMemoryStorage


def get_oracle(config: EngineConfig) -> SchedulingOracle:
    """
    Returns the default FSRS oracle configured with the default deck settings.
    """
    return FsrsOracle(config.default_deck_settings(), enable_fuzzing=config.enable_fuzzing)


def create_engine(
    config: EngineConfig | None = None,
    storage: Storage | None = None,
    oracle: SchedulingOracle | None = None,
) -> ReviewEngine:
    """
    Build a ReviewEngine.

    Missing collaborators fall back to FsrsOracle and InMemoryStorage.
    """
    config = config or resolve_config()
    logging.getLogger("reviewkit").setLevel(config.log_level)

    return ReviewEngine(
        storage=storage or InMemoryStorage(),
        oracle=oracle or get_oracle(config),
        config=config,
    )
