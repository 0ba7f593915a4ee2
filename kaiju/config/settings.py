"""
Kaiju Clash - Application Settings

Loads configuration from environment variables (prefix ``KAIJU_``) or a
``.env`` file using Pydantic Settings.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kaiju.engine.base import YIELD_WINDOW_MS

PACING_DELAYS_MS: dict[str, int] = {
    "slow": 800,
    "normal": 400,
    "fast": 150,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Pacing
    cpu_speed: Literal["slow", "normal", "fast"] = "normal"
    yield_window_ms: int = Field(default=YIELD_WINDOW_MS, ge=0)
    watchdog_ms: int = Field(default=5000, ge=0)
    human_buy_window_ms: int = Field(default=20000, ge=0)

    # Persistence toggles (surfaced only)
    persist_settings: bool = False
    persist_positions: bool = False

    # Determinism
    rng_seed: int | None = None

    model_config = SettingsConfigDict(
        env_prefix="KAIJU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def pacing_delay_ms(cpu_speed: str) -> int:
    """Delay between automated steps for a speed preset."""
    return PACING_DELAYS_MS.get(cpu_speed, PACING_DELAYS_MS["normal"])


def buy_window_ms(delay_ms: int) -> int:
    """Computer buy window: three pacing steps, clamped to 400-1500ms."""
    return min(1500, max(400, delay_ms * 3))


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()
