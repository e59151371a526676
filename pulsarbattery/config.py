"""Configuration management for the Pulsar battery monitor."""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from pulsarbattery.core.types import Thresholds

log = logging.getLogger(__name__)

ENV_CONFIG_DIR = "PULSAR_BATTERY_CONFIG_DIR"
ENV_THRESHOLD_UNLOCKED = "BATTERY_LEVEL_ALERT_THRESHOLD"
ENV_THRESHOLD_LOCKED = "BATTERY_LEVEL_ALERT_THRESHOLD_LOCKED"

MIN_POLL_INTERVAL_MINUTES = 0.1


# Default configuration values
DEFAULTS = {
    # Desktop notifications
    "notifications": {
        "enabled": True,
        "beep": True,  # Audible alert on low battery
    },

    # Polling settings
    "polling": {
        "interval_minutes": 1.0,  # How often to check battery while unlocked
    },

    # History log
    "history": {
        "log_interval_minutes": 5.0,  # Minimum spacing of logged readings
        "max_entries": 500,
        "save_interval_seconds": 15,
    },
}


def get_config_dir() -> Path:
    """Get the configuration directory, creating it if needed."""
    override = os.environ.get(ENV_CONFIG_DIR, "")
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if override:
        config_dir = Path(override)
    elif xdg_config:
        config_dir = Path(xdg_config) / "pulsar-battery"
    else:
        config_dir = Path.home() / ".config" / "pulsar-battery"

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config() -> dict:
    """Load configuration from file, merging with defaults."""
    config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                user_config = json.load(f)
            return _deep_merge(DEFAULTS, user_config)
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Could not load config from %s: %s", config_path, e)
            return _deep_merge(DEFAULTS, {})

    # Create default config file on first run
    save_config(DEFAULTS)
    return _deep_merge(DEFAULTS, {})


def save_config(config: dict) -> bool:
    """Save configuration to file."""
    config_path = get_config_path()

    try:
        with open(config_path, "w") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError as e:
        log.error("Could not save config to %s: %s", config_path, e)
        return False


def get(key: str, default: Any = None) -> Any:
    """Get a config value using dot notation (e.g., 'notifications.enabled')."""
    value = load_config()
    for k in key.split("."):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default
    return value


def set(key: str, value: Any) -> bool:
    """Set a config value using dot notation."""
    config = load_config()
    keys = key.split(".")

    target = config
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            target[k] = {}
        target = target[k]

    target[keys[-1]] = value
    return save_config(config)


def _env_int(name: str, fallback: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return fallback
    try:
        return int(raw.strip())
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %d", name, raw, fallback)
        return fallback


def load_thresholds() -> Thresholds:
    """Alert thresholds from the environment (defaults 5 and 30)."""
    return Thresholds(
        unlocked=_env_int(ENV_THRESHOLD_UNLOCKED, 5),
        locked=_env_int(ENV_THRESHOLD_LOCKED, 30),
    )


class PollInterval:
    """Poll interval in minutes shared by the tray and the monitor.

    One writer, many readers; values below 0.1 minutes are clamped.
    """

    def __init__(self, minutes: float = DEFAULTS["polling"]["interval_minutes"]):
        self._lock = threading.Lock()
        self._minutes = self._clamp(minutes)

    @staticmethod
    def _clamp(minutes: float) -> float:
        return max(MIN_POLL_INTERVAL_MINUTES, float(minutes))

    @property
    def minutes(self) -> float:
        with self._lock:
            return self._minutes

    @minutes.setter
    def minutes(self, value: float):
        value = self._clamp(value)
        with self._lock:
            self._minutes = value

    @property
    def seconds(self) -> float:
        return self.minutes * 60.0

    def __repr__(self) -> str:
        return f"PollInterval({self.minutes} min)"


class Config:
    """Configuration accessor with attribute-style access."""

    def __init__(self):
        self._config = load_config()

    def reload(self):
        """Reload configuration from file."""
        self._config = load_config()

    def save(self):
        """Save current configuration to file."""
        save_config(self._config)

    @property
    def notifications(self) -> dict:
        return self._config.get("notifications", DEFAULTS["notifications"])

    @property
    def polling(self) -> dict:
        return self._config.get("polling", DEFAULTS["polling"])

    @property
    def history(self) -> dict:
        return self._config.get("history", DEFAULTS["history"])

    def poll_interval(self) -> PollInterval:
        return PollInterval(self.polling.get("interval_minutes", 1.0))

    def __getitem__(self, key: str) -> Any:
        value = self._config
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                raise KeyError(key)
            value = value[k]
        return value

    def __setitem__(self, key: str, value: Any):
        set(key, value)
        self._config = load_config()
