"""
Centralized configuration with environment variable overrides.

Business hours, slot size, contact rules and notification settings all
live here. Scheduling and booking logic reads these values instead of
hardcoding them.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, time

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag (1/0, true/false, yes/no) from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _safe_time(env_var: str, default: str) -> time:
    """Parse an HH:MM time of day from an env var."""
    raw = os.getenv(env_var, default)
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except (ValueError, TypeError, AttributeError):
        raise ValueError(
            f"Invalid HH:MM time for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class StudioConfig:
    """Studio identity and public booking page settings."""

    name: str = os.getenv("STUDIO_NAME", "MyBeautyCrave")
    web_domain: str = os.getenv("WEB_DOMAIN", "https://mybeautycrave.com").rstrip("/")
    currency: str = os.getenv("CURRENCY", "kr")


@dataclass(frozen=True)
class SchedulingConfig:
    """Business hours and slot granularity for generated schedules."""

    opening_time: time = _safe_time("OPENING_TIME", "09:00")
    closing_time: time = _safe_time("CLOSING_TIME", "22:00")
    slot_minutes: int = _safe_int("SLOT_MINUTES", "15")
    next_available_horizon_days: int = _safe_int("NEXT_AVAILABLE_HORIZON_DAYS", "30")

    @property
    def day_minutes(self) -> int:
        """Length of the business day in minutes."""
        opening = self.opening_time.hour * 60 + self.opening_time.minute
        closing = self.closing_time.hour * 60 + self.closing_time.minute
        return closing - opening


@dataclass(frozen=True)
class ContactConfig:
    """Rules for the customer details collected on a booking."""

    phone_prefix: str = os.getenv("PHONE_PREFIX", "+45")
    phone_digits: int = _safe_int("PHONE_DIGITS", "8")
    min_name_length: int = _safe_int("MIN_NAME_LENGTH", "2")
    max_name_length: int = _safe_int("MAX_NAME_LENGTH", "50")


@dataclass(frozen=True)
class NotificationConfig:
    """Booking confirmation settings."""

    enabled: bool = _safe_bool("NOTIFICATIONS_ENABLED", "true")
    sender: str = os.getenv("EMAIL_FROM", "MyBeautyCrave <noreply@mybeautycrave.com>")
    admin_email: str = os.getenv("EMAIL_ADMIN", "admin@mybeautycrave.com")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    studio: StudioConfig = field(default_factory=StudioConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    contact: ContactConfig = field(default_factory=ContactConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    scheduling = config.scheduling
    if scheduling.closing_time <= scheduling.opening_time:
        raise ValueError(
            "CLOSING_TIME must be after OPENING_TIME, got "
            f"{scheduling.opening_time:%H:%M}-{scheduling.closing_time:%H:%M}"
        )
    if scheduling.slot_minutes < 1:
        raise ValueError(f"SLOT_MINUTES must be >= 1, got {scheduling.slot_minutes}")
    if scheduling.slot_minutes > scheduling.day_minutes:
        raise ValueError(
            f"SLOT_MINUTES must fit in the business day ({scheduling.day_minutes} min), "
            f"got {scheduling.slot_minutes}"
        )
    if scheduling.next_available_horizon_days < 1:
        raise ValueError(
            "NEXT_AVAILABLE_HORIZON_DAYS must be >= 1, "
            f"got {scheduling.next_available_horizon_days}"
        )

    contact = config.contact
    if not contact.phone_prefix.startswith("+"):
        raise ValueError(f"PHONE_PREFIX must start with '+', got {contact.phone_prefix!r}")
    if contact.phone_digits < 1:
        raise ValueError(f"PHONE_DIGITS must be >= 1, got {contact.phone_digits}")
    if contact.min_name_length < 1:
        raise ValueError(f"MIN_NAME_LENGTH must be >= 1, got {contact.min_name_length}")
    if contact.max_name_length < contact.min_name_length:
        raise ValueError(
            "MAX_NAME_LENGTH must be >= MIN_NAME_LENGTH, "
            f"got {contact.max_name_length} < {contact.min_name_length}"
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
    logger.info("Configuration loaded for '%s'", config.studio.name)
    return config


# Singleton instance
settings = load_config()
