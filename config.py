# config.py
import os

from dotenv import load_dotenv

# Load environment variables from .env file.
load_dotenv()

# Keys that may be overridden at runtime from OUTPUT_DIR/settings.yaml.
RUNTIME_KEYS = {
    "TICK_INTERVAL_SECONDS",
    "AUTO_FLUSH_INTERVAL_SECONDS",
    "TIMEZONE",
}

_CONFIG: dict | None = None


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return float(default)


def load_config():
    """
    Loads configuration from environment variables and returns a dictionary.
    """
    config = {
        # General Settings
        "DEBUG_MODE": os.getenv("DEBUG_MODE", "False").lower() == "true",
        # Empty means DEBUG when DEBUG_MODE is on, INFO otherwise.
        "LOG_LEVEL": os.getenv("LOG_LEVEL", ""),
        "OUTPUT_DIR": os.getenv("OUTPUT_DIR", "/output"),
        "DB_FILENAME": os.getenv("DB_FILENAME", "tracker.db"),
        "TIMEZONE": os.getenv("TIMEZONE", "UTC"),

        # Session Timer Settings
        "TICK_INTERVAL_SECONDS": _env_float("TICK_INTERVAL_SECONDS", 1.0),
        # 0 disables the periodic durable flush; checkpoints then happen only on transitions.
        "AUTO_FLUSH_INTERVAL_SECONDS": _env_float("AUTO_FLUSH_INTERVAL_SECONDS", 0),

        # API Settings
        "API_HOST": os.getenv("API_HOST", "0.0.0.0"),
        "API_PORT": int(_env_float("API_PORT", 8050)),
    }
    return config


def _apply_runtime_settings(config: dict) -> dict:
    """Merges settings.yaml overrides for the whitelisted runtime keys."""
    from utils.settings import load_settings_yaml

    overrides = load_settings_yaml(config["OUTPUT_DIR"])
    for key, value in overrides.items():
        if key not in RUNTIME_KEYS:
            continue
        if key.endswith("_SECONDS"):
            try:
                value = float(value)
            except (TypeError, ValueError):
                continue
        config[key] = value
    return config


def get_config() -> dict:
    """Returns the process-wide configuration, built on first access."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _apply_runtime_settings(load_config())
    return _CONFIG


def reset_config() -> None:
    """Drops the cached configuration so the next get_config() re-reads the environment."""
    global _CONFIG
    _CONFIG = None


if __name__ == "__main__":
    # For testing purposes, print the configuration
    from pprint import pprint

    pprint(get_config())
