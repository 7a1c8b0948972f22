"""Configuration loading for lessonbook."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CACHE_TTL_SECONDS = 5 * 60
DEFAULT_CLASS_CAPACITY = 12
DEFAULT_ROOM_ID = "ROOM-001"

# Latest time a lesson may end and still make the late bus, per weekday.
DEFAULT_BUS_DEADLINES = {
    "Monday": "16:45",
    "Tuesday": "16:45",
    "Wednesday": "16:15",
    "Thursday": "16:45",
    "Friday": "16:45",
}

ENV_PREFIX = "LESSONBOOK_"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class Settings:
    """Runtime settings for the registration service."""

    db_path: str = "lessonbook.db"
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    default_class_capacity: int = DEFAULT_CLASS_CAPACITY
    default_room_id: str = DEFAULT_ROOM_ID
    default_group_transportation: str = "pickup"
    use_random_registration_ids: bool = False
    waitlist_class_ids: list[str] = field(default_factory=list)
    bus_deadlines: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BUS_DEADLINES))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Unknown keys are rejected so that typos in a settings file surface
        at startup instead of silently falling back to defaults.

        Args:
            data: Settings mapping, usually parsed from YAML.

        Returns:
            Parsed settings object.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

        settings = cls(**data)
        settings.validate()
        return settings

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: If any value is out of range.
        """
        try:
            self.cache_ttl_seconds = float(self.cache_ttl_seconds)
            self.default_class_capacity = int(self.default_class_capacity)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        if self.cache_ttl_seconds < 0:
            raise ConfigError("cache_ttl_seconds must not be negative")
        if self.default_class_capacity <= 0:
            raise ConfigError("default_class_capacity must be positive")
        if not self.default_room_id:
            raise ConfigError("default_room_id must not be empty")
        if not isinstance(self.bus_deadlines, dict):
            raise ConfigError("bus_deadlines must be a mapping of weekday to HH:MM")
        self.bus_deadlines = _parse_bus_deadlines(self.bus_deadlines)

        if isinstance(self.waitlist_class_ids, str):
            self.waitlist_class_ids = _split_ids(self.waitlist_class_ids)
        if not isinstance(self.waitlist_class_ids, list | tuple):
            raise ConfigError("waitlist_class_ids must be a list of class ids")
        self.waitlist_class_ids = [str(class_id).strip() for class_id in self.waitlist_class_ids]


def _split_ids(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _parse_bus_deadlines(deadlines: dict[Any, Any]) -> dict[str, str]:
    """Canonical weekday names mapped to 24-hour deadlines.

    Raises:
        ConfigError: If a key is not a school day or a value is not a time.
    """
    from lessonbook.registrations.models import Weekday
    from lessonbook.registrations.times import format_minutes, normalize_time

    parsed: dict[str, str] = {}
    for key, value in deadlines.items():
        try:
            day = Weekday.parse(key)
        except ValueError as e:
            raise ConfigError(f"Invalid bus_deadlines day: {key!r}") from e
        if isinstance(value, int) and not isinstance(value, bool):
            # Unquoted 16:45 in YAML is read as the base-60 integer 1005.
            if not 0 <= value < 24 * 60:
                raise ConfigError(f"Invalid bus_deadlines time for {day}: {value!r}")
            parsed[day.value] = format_minutes(value)
            continue
        try:
            parsed[day.value] = normalize_time(str(value))
        except ValueError as e:
            raise ConfigError(f"Invalid bus_deadlines time for {day}: {value!r}") from e
    return parsed


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay LESSONBOOK_* environment variables onto settings data."""
    result = dict(data)
    for f in fields(Settings):
        if f.name == "bus_deadlines":
            continue
        value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value is None:
            continue
        if f.name == "use_random_registration_ids":
            result[f.name] = value.strip().lower() in ("1", "true", "yes", "on")
        elif f.name == "waitlist_class_ids":
            result[f.name] = _split_ids(value)
        else:
            result[f.name] = value
    return result


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from an optional YAML file plus environment overrides.

    Args:
        config_path: Path to a YAML settings file. When None, the
            LESSONBOOK_CONFIG environment variable is consulted; if that is
            unset too, only defaults and environment overrides apply.

    Returns:
        Parsed settings object.

    Raises:
        ConfigError: If the file doesn't exist or is invalid.
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG")

    data: dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration must be a YAML mapping, got {type(loaded).__name__}")
        data = loaded

    return Settings.from_dict(_apply_env_overrides(data))
