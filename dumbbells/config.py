"""Application settings loaded from the environment."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from dumbbells.memory.history_store import (
    InMemoryHistoryStore,
    JsonFileHistoryStore,
    WorkoutHistoryStore,
)

logger = logging.getLogger(__name__)

DEFAULT_EXERCISE_NAME = "Bench Press (Dumbbell)"
DEFAULT_HISTORY_PATH = "~/.dumbbells/workout_history.json"


class Settings(BaseModel):
    """Runtime settings for the workout logger."""

    exercise_name: str = Field(default=DEFAULT_EXERCISE_NAME, min_length=1)
    total_sets: int = Field(default=3, ge=1)
    history_path: Optional[str] = Field(
        default=DEFAULT_HISTORY_PATH, description="JSON history file, None keeps history in memory"
    )
    history_limit: int = Field(default=WorkoutHistoryStore.MAX_ENTRIES, ge=1)
    log_level: str = "INFO"

    @field_validator("history_path")
    @classmethod
    def empty_path_means_memory(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_settings() -> Settings:
    """Read settings from ``.env`` (``.env.production`` when ENV=production) and the environment."""
    env_file = ".env.production" if os.getenv("ENV") == "production" else ".env"
    load_dotenv(dotenv_path=env_file)

    values = {
        "exercise_name": os.getenv("DUMBBELLS_EXERCISE_NAME"),
        "total_sets": os.getenv("DUMBBELLS_TOTAL_SETS"),
        "history_path": os.getenv("DUMBBELLS_HISTORY_PATH"),
        "history_limit": os.getenv("DUMBBELLS_HISTORY_LIMIT"),
        "log_level": os.getenv("DUMBBELLS_LOG_LEVEL"),
    }
    return Settings(**{key: value for key, value in values.items() if value is not None})


def build_history_store(settings: Settings) -> WorkoutHistoryStore:
    """Pick the history backend for the configured path."""
    if settings.history_path is None:
        logger.info("No history path configured, keeping workout history in memory")
        return InMemoryHistoryStore(max_entries=settings.history_limit)

    path = Path(settings.history_path).expanduser()
    logger.info(f"Using workout history file {path}")
    return JsonFileHistoryStore(path, max_entries=settings.history_limit)
