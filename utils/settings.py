from pathlib import Path
from typing import Any

import yaml


def get_settings_path(output_dir: str = None) -> Path:
    """Returns the path to the settings.yaml file."""
    if output_dir is None:
        from config import get_config

        output_dir = get_config()["OUTPUT_DIR"]
    return Path(output_dir) / "settings.yaml"


def load_settings_yaml(output_dir: str = None) -> dict[str, Any]:
    """Loads runtime settings from YAML; a missing or unreadable file means no overrides."""
    settings_path = get_settings_path(output_dir)
    try:
        raw = settings_path.read_text(encoding="utf-8").strip()
    except OSError:
        return {}
    if not raw:
        return {}
    try:
        data = yaml.safe_load(raw)
        return data if isinstance(data, dict) else {}
    except yaml.YAMLError:
        return {}
