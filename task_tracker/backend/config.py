from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a config file or environment value cannot be used."""


@dataclass
class TrackerConfig:
    sink_url: str | None = None
    request_timeout: float = 10.0
    full_day_hours: float = 8.0
    strict_hours: bool = False
    # Bounds of the hours input widget.
    min_hours: float = 0.0
    max_hours: float = 24.0
    hours_step: float = 0.25


_FLOAT_KEYS = ("request_timeout", "full_day_hours", "min_hours", "max_hours", "hours_step")

_ENV_KEYS = {
    "TASK_TRACKER_SINK_URL": "sink_url",
    "TASK_TRACKER_TIMEOUT": "request_timeout",
    "TASK_TRACKER_FULL_DAY_HOURS": "full_day_hours",
    "TASK_TRACKER_STRICT_HOURS": "strict_hours",
}


def load_tracker_config(path: str, base: TrackerConfig | None = None) -> TrackerConfig:
    """Read a JSON config file and overlay it on `base` (or the defaults)."""
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    known = {f.name for f in fields(TrackerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    return _apply(base or TrackerConfig(), {k: v for k, v in data.items() if k in known})


def load_from_env(default_path: str | None = None) -> TrackerConfig:
    """Build the config from TASK_TRACKER_CONFIG_PATH (or `default_path`) plus env overrides."""
    config = TrackerConfig()
    path = os.environ.get("TASK_TRACKER_CONFIG_PATH") or default_path
    if path and os.path.isfile(path):
        config = load_tracker_config(path, config)
    elif path:
        logger.debug("No config file at %s; using defaults", path)
    overrides = {
        key: os.environ[name] for name, key in _ENV_KEYS.items() if os.environ.get(name)
    }
    return _apply(config, overrides)


def _apply(config: TrackerConfig, values: dict[str, Any]) -> TrackerConfig:
    coerced: dict[str, Any] = {}
    for key, value in values.items():
        if key in _FLOAT_KEYS:
            try:
                coerced[key] = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{key} must be a number, got {value!r}") from e
        elif key == "strict_hours":
            coerced[key] = _as_bool(value)
        elif key == "sink_url":
            coerced[key] = str(value) if value else None
    return replace(config, **coerced)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off", ""}:
        return False
    raise ConfigError(f"strict_hours must be a boolean, got {value!r}")
