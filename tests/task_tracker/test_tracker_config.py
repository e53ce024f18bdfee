import json

import pytest

from task_tracker.backend.config import ConfigError, TrackerConfig, load_from_env, load_tracker_config

ENV_VARS = (
    "TASK_TRACKER_CONFIG_PATH",
    "TASK_TRACKER_SINK_URL",
    "TASK_TRACKER_TIMEOUT",
    "TASK_TRACKER_FULL_DAY_HOURS",
    "TASK_TRACKER_STRICT_HOURS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file_or_env():
    assert load_from_env() == TrackerConfig()


def test_file_values_are_loaded(tmp_path):
    path = tmp_path / "tracker.json"
    path.write_text(json.dumps({"sink_url": "https://sheet.example/exec", "strict_hours": True, "max_hours": 12}))
    config = load_tracker_config(str(path))
    assert config.sink_url == "https://sheet.example/exec"
    assert config.strict_hours is True
    assert config.max_hours == 12.0
    assert config.request_timeout == 10.0


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "tracker.json"
    path.write_text(json.dumps({"sink_url": "https://file.example", "request_timeout": 5}))
    monkeypatch.setenv("TASK_TRACKER_CONFIG_PATH", str(path))
    monkeypatch.setenv("TASK_TRACKER_SINK_URL", "https://env.example")
    monkeypatch.setenv("TASK_TRACKER_STRICT_HOURS", "yes")
    config = load_from_env()
    assert config.sink_url == "https://env.example"
    assert config.request_timeout == 5.0
    assert config.strict_hours is True


def test_missing_default_path_falls_back_to_defaults(tmp_path):
    assert load_from_env(default_path=str(tmp_path / "nope.json")) == TrackerConfig()


def test_bad_values_raise_config_error(tmp_path, monkeypatch):
    path = tmp_path / "tracker.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_tracker_config(str(path))

    monkeypatch.setenv("TASK_TRACKER_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        load_from_env()
