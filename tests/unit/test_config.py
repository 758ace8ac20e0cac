import pytest
from pydantic import ValidationError

from dumbbells.config import (
    DEFAULT_EXERCISE_NAME,
    Settings,
    build_history_store,
    load_settings,
)
from dumbbells.memory.history_store import InMemoryHistoryStore, JsonFileHistoryStore

ENV_VARS = [
    "ENV",
    "DUMBBELLS_EXERCISE_NAME",
    "DUMBBELLS_TOTAL_SETS",
    "DUMBBELLS_HISTORY_PATH",
    "DUMBBELLS_HISTORY_LIMIT",
    "DUMBBELLS_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = load_settings()

    assert settings.exercise_name == DEFAULT_EXERCISE_NAME
    assert settings.total_sets == 3
    assert settings.history_limit == 10
    assert settings.log_level == "INFO"
    assert settings.history_path.endswith("workout_history.json")


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DUMBBELLS_EXERCISE_NAME", "Squat")
    monkeypatch.setenv("DUMBBELLS_TOTAL_SETS", "5")
    monkeypatch.setenv("DUMBBELLS_HISTORY_PATH", str(tmp_path / "h.json"))
    monkeypatch.setenv("DUMBBELLS_HISTORY_LIMIT", "4")
    monkeypatch.setenv("DUMBBELLS_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.exercise_name == "Squat"
    assert settings.total_sets == 5
    assert settings.history_limit == 4
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("DUMBBELLS_EXERCISE_NAME=Overhead Press\n", encoding="utf-8")

    settings = load_settings()

    assert settings.exercise_name == "Overhead Press"


def test_invalid_values_raise(monkeypatch):
    monkeypatch.setenv("DUMBBELLS_TOTAL_SETS", "0")

    with pytest.raises(ValidationError):
        load_settings()


def test_unknown_log_level_raises():
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_build_history_store(tmp_path):
    file_store = build_history_store(Settings(history_path=str(tmp_path / "h.json"), history_limit=3))
    memory_store = build_history_store(Settings(history_path=""))

    assert isinstance(file_store, JsonFileHistoryStore)
    assert file_store.max_entries == 3
    assert isinstance(memory_store, InMemoryHistoryStore)
