"""Pill state machine data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from dumbbells.models.workout_set import FieldSelection


class PillMode(str, Enum):
    """What the pill control currently shows."""

    START = "start"
    ACTIVE_TIMER = "active_timer"
    KEYBOARD = "keyboard"
    REST_PICKER = "rest_picker"
    COUNTDOWN = "countdown"


TRANSIENT_MODES = frozenset({PillMode.KEYBOARD, PillMode.REST_PICKER})


class FlowState(BaseModel):
    """Mutable UI state owned by one flow controller."""

    mode: PillMode = PillMode.START
    previous_mode: PillMode = Field(
        default=PillMode.START, description="Mode restored when Keyboard or RestPicker closes"
    )
    selected_field: Optional[FieldSelection] = None

    workout_started: bool = False
    workout_start_timestamp: Optional[datetime] = None
    elapsed_seconds: int = Field(default=0, ge=0)

    rest_duration_seconds: int = Field(default=0, ge=0)
    rest_remaining_seconds: int = Field(default=0, ge=0)
    is_rest_active: bool = False

    show_summary: bool = False

    @property
    def running_mode(self) -> PillMode:
        """Non-transient mode matching whether the workout timer runs."""
        return PillMode.ACTIVE_TIMER if self.workout_started else PillMode.START

    def reset_workout(self) -> None:
        """Clear the active-set timer fields and return to Start."""
        self.selected_field = None
        self.workout_started = False
        self.workout_start_timestamp = None
        self.elapsed_seconds = 0
        self.mode = PillMode.START

    def clear_rest(self) -> None:
        self.is_rest_active = False
        self.rest_remaining_seconds = 0
