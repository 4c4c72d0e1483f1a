"""Tests for environment config and settings.yaml runtime overrides."""

from config import get_config, reset_config


def _write_settings(tmp_path, text):
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "settings.yaml").write_text(text, encoding="utf-8")


def test_defaults_from_environment():
    cfg = get_config()
    assert cfg["TICK_INTERVAL_SECONDS"] == 1.0
    assert cfg["AUTO_FLUSH_INTERVAL_SECONDS"] == 0.0
    assert cfg["DB_FILENAME"] == "tracker.db"


def test_config_is_cached_until_reset(monkeypatch):
    first = get_config()
    monkeypatch.setenv("TICK_INTERVAL_SECONDS", "5")
    assert get_config() is first

    reset_config()
    assert get_config()["TICK_INTERVAL_SECONDS"] == 5.0


def test_settings_yaml_overrides_runtime_keys_only(tmp_path):
    _write_settings(
        tmp_path,
        "AUTO_FLUSH_INTERVAL_SECONDS: 30\nTIMEZONE: Europe/Berlin\nDB_FILENAME: other.db\n",
    )
    reset_config()

    cfg = get_config()
    assert cfg["AUTO_FLUSH_INTERVAL_SECONDS"] == 30.0
    assert cfg["TIMEZONE"] == "Europe/Berlin"
    assert cfg["DB_FILENAME"] == "tracker.db"


def test_broken_settings_yaml_is_ignored(tmp_path):
    _write_settings(tmp_path, "TICK_INTERVAL_SECONDS: [unclosed\n")
    reset_config()
    assert get_config()["TICK_INTERVAL_SECONDS"] == 1.0


def test_non_numeric_interval_override_is_ignored(tmp_path):
    _write_settings(tmp_path, "TICK_INTERVAL_SECONDS: fast\n")
    reset_config()
    assert get_config()["TICK_INTERVAL_SECONDS"] == 1.0
