from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from reviewkit.domain import constants
from reviewkit.domain.models import DeckSettings

CONFIG_FILES = [
    Path.home() / ".config/reviewkit/config.toml",
    Path.home() / ".reviewkit.toml",
]


class EngineConfig(BaseSettings):
    """
    Configuration model for a review engine.
    Supports loading from:
    1. Environment variables (REVIEWKIT_*)
    2. Config file (~/.config/reviewkit/config.toml)
    3. Explicit overrides passed by the host
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWKIT_",
        extra="ignore",
    )

    # Statistics policy
    maturity_threshold_days: int = Field(default=constants.MATURITY_THRESHOLD_DAYS, ge=1)
    seconds_per_card: int = Field(default=constants.SECONDS_PER_CARD, ge=1)
    forecast_horizon_days: int = Field(default=constants.FORECAST_HORIZON_DAYS, ge=1)
    workload_days: int = Field(default=constants.WORKLOAD_DAYS, ge=1)

    # Scheduling
    enable_fuzzing: bool = True

    # Defaults for decks without stored settings
    default_new_cards_per_day: int = Field(default=constants.DEFAULT_NEW_CARDS_PER_DAY, ge=0)
    default_max_reviews_per_day: int = Field(
        default=constants.DEFAULT_MAX_REVIEWS_PER_DAY, ge=0
    )
    default_requested_retention: float = constants.DEFAULT_REQUESTED_RETENTION
    default_maximum_interval_days: int = Field(
        default=constants.DEFAULT_MAXIMUM_INTERVAL_DAYS, ge=1
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        # Overrides first, then environment, then the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("default_requested_retention")
    @classmethod
    def check_retention(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("default_requested_retention must be in (0, 1)")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    def default_deck_settings(self) -> DeckSettings:
        return DeckSettings(
            new_cards_per_day=self.default_new_cards_per_day,
            max_reviews_per_day=self.default_max_reviews_per_day,
            requested_retention=self.default_requested_retention,
            maximum_interval_days=self.default_maximum_interval_days,
        )


def resolve_config(overrides: dict[str, Any] | None = None) -> EngineConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in EngineConfig
    2. ~/.config/reviewkit/config.toml (if exists)
    3. Environment variables (REVIEWKIT_*)
    4. overrides (non-None values take final precedence)
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    return EngineConfig(**cleaned)
