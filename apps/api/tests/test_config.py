import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pam_api.config import AppConfig, load_config


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("PAM_CONFIG_PATH", str(tmp_path / "missing.json"))
    config = load_config()
    assert config == AppConfig()
    assert config.event_backend == "sqlite"
    assert config.pattern_window_days == 7
    assert config.resolved_database_path.name == "pam.db"


def test_file_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_jurisdiction": "VIC", "trend_window_days": 21}))
    monkeypatch.setenv("PAM_CONFIG_PATH", str(path))
    config = load_config()
    assert config.default_jurisdiction == "VIC"
    assert config.trend_window_days == 21


def test_invalid_backend_rejected(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"event_backend": "mongo"}))
    monkeypatch.setenv("PAM_CONFIG_PATH", str(path))
    with pytest.raises(ValidationError):
        load_config()


def test_example_config_only_names_known_settings(monkeypatch):
    example = Path(__file__).resolve().parents[1] / "config.example.json"
    contents = json.loads(example.read_text())
    assert set(contents) <= set(AppConfig.model_fields)
    monkeypatch.setenv("PAM_CONFIG_PATH", str(example))
    assert load_config().default_jurisdiction == "NSW"
