"""Tests for configuration loader."""

import pytest
import yaml
from pydantic import ValidationError

from convo_scheduler.config.config_loader import ConfigLoader, load_config
from convo_scheduler.config.config_schema import AppConfig, SchedulerConfig


def _write(tmp_path, data, name="config.yaml"):
    path = tmp_path / name
    path.write_text(yaml.dump(data) if data is not None else "", encoding="utf-8")
    return str(path)


def test_load_config_valid(tmp_path):
    """Test loading a valid configuration."""
    path = _write(
        tmp_path,
        {
            "llm": {"provider": "ollama", "ollama": {"model": "llama3", "base_url": "http://localhost:11434"}},
            "scheduler": {"assist_mode": "structured", "assist_timeout_seconds": 5},
            "database": {"task_db": "tmp/tasks.db"},
        },
    )

    config = load_config(path)

    assert isinstance(config, AppConfig)
    assert config.llm.provider == "ollama"
    assert config.llm.ollama.temperature == 0.2
    assert config.scheduler.assist_mode == "structured"
    assert config.scheduler.assist_timeout_seconds == 5.0
    assert config.scheduler.max_parse_attempts == 3
    assert config.database.task_db == "tmp/tasks.db"


def test_load_config_without_llm(tmp_path):
    """No llm section means deterministic mode."""
    config = load_config(_write(tmp_path, {"scheduler": {}}))

    assert config.llm is None
    assert config.scheduler == SchedulerConfig()


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("nonexistent.yaml")


def test_load_config_empty_file(tmp_path):
    with pytest.raises(ValueError, match="empty"):
        load_config(_write(tmp_path, None))


def test_load_config_non_mapping(tmp_path):
    with pytest.raises(ValueError, match="mapping"):
        load_config(_write(tmp_path, ["llm", "scheduler"]))


def test_provider_block_required(tmp_path):
    path = _write(tmp_path, {"llm": {"provider": "openai"}})
    with pytest.raises(ValueError, match="openai configuration is required"):
        load_config(path)


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        ConfigLoader.from_dict({"llm": {"provider": "llamafile"}})


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")

    config = ConfigLoader.from_dict({"llm": {"provider": "openai", "openai": {"model": "gpt-4o-mini"}}})

    assert config.llm.openai.api_key == "sk-from-env"


def test_explicit_api_key_wins(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")

    config = ConfigLoader.from_dict({"llm": {"provider": "gemini", "gemini": {"api_key": "from-file"}}})

    assert config.llm.gemini.api_key == "from-file"


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ValidationError):
        ConfigLoader.from_dict({"llm": {"provider": "openai", "openai": {}}})


@pytest.mark.parametrize(
    "scheduler",
    [
        {"assist_mode": "freeform"},
        {"assist_timeout_seconds": 0},
        {"max_parse_attempts": 0},
        {"history_limit": 7},
        {"history_limit": 4, "assist_history_turns": 6},
        {"default_duration_minutes": 20, "min_duration_minutes": 30},
        {"weekday_default_hour": 24},
        {"plan_session_count": 8},
    ],
)
def test_invalid_scheduler_settings(scheduler):
    with pytest.raises(ValidationError):
        SchedulerConfig(**scheduler)
