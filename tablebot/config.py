"""
Centralized configuration with environment variable overrides.

Restaurant rules (locations, opening hours, party size bounds), dialog
limits and storage settings are configurable here. Nothing is hardcoded
in the merger or dialog logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = "Seattle,Bellevue,Renton,Kirkland,Redmond"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _csv_tuple(env_var: str, default: str) -> tuple[str, ...]:
    """Parse a comma separated env var into a tuple of non-empty items."""
    raw = os.getenv(env_var, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class RestaurantConfig:
    """Business rules used to validate reservation fields."""

    name: str = os.getenv("RESTAURANT_NAME", "Contoso Cafe")
    locations: tuple[str, ...] = _csv_tuple("RESTAURANT_LOCATIONS", DEFAULT_LOCATIONS)
    open_hour: int = _safe_int("OPEN_HOUR", "8")
    last_seating_hour: int = _safe_int("LAST_SEATING_HOUR", "22")
    min_party_size: int = _safe_int("MIN_PARTY_SIZE", "1")
    max_party_size: int = _safe_int("MAX_PARTY_SIZE", "12")


@dataclass(frozen=True)
class DialogConfig:
    """Limits applied by the booking dialogs."""

    max_confirmation_attempts: int = _safe_int("MAX_CONFIRMATION_ATTEMPTS", "3")


@dataclass(frozen=True)
class StorageConfig:
    """Where per-conversation dialog state is kept."""

    backend: str = os.getenv("STATE_BACKEND", "memory")
    sqlite_path: str = os.getenv("STATE_SQLITE_PATH", "data/tablebot_state.db")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    restaurant: RestaurantConfig = field(default_factory=RestaurantConfig)
    dialog: DialogConfig = field(default_factory=DialogConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    bot_name: str = os.getenv("BOT_NAME", "table-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    restaurant = config.restaurant
    if not restaurant.locations:
        raise ValueError("RESTAURANT_LOCATIONS must name at least one location")
    if not 0 <= restaurant.open_hour <= 23:
        raise ValueError(f"OPEN_HOUR must be between 0 and 23, got {restaurant.open_hour}")
    if not 0 <= restaurant.last_seating_hour <= 23:
        raise ValueError(
            f"LAST_SEATING_HOUR must be between 0 and 23, got {restaurant.last_seating_hour}"
        )
    if restaurant.last_seating_hour < restaurant.open_hour:
        raise ValueError(
            "LAST_SEATING_HOUR must not be earlier than OPEN_HOUR, "
            f"got {restaurant.last_seating_hour} < {restaurant.open_hour}"
        )
    if restaurant.min_party_size < 1:
        raise ValueError(f"MIN_PARTY_SIZE must be >= 1, got {restaurant.min_party_size}")
    if restaurant.max_party_size < restaurant.min_party_size:
        raise ValueError(
            "MAX_PARTY_SIZE must be >= MIN_PARTY_SIZE, "
            f"got {restaurant.max_party_size} < {restaurant.min_party_size}"
        )
    if config.dialog.max_confirmation_attempts < 1:
        raise ValueError(
            "MAX_CONFIRMATION_ATTEMPTS must be >= 1, "
            f"got {config.dialog.max_confirmation_attempts}"
        )
    if config.storage.backend not in ("memory", "sqlite"):
        raise ValueError(
            f"STATE_BACKEND must be 'memory' or 'sqlite', got {config.storage.backend!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.restaurant.name)
    return config


# Singleton instance
settings = load_config()
