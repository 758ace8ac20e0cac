"""Intents accepted by the flow controller."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from dumbbells.models.workout_set import InputField


class TimerKind(str, Enum):
    WORKOUT = "workout"
    REST = "rest"


class IntentKind(str, Enum):
    START = "start"
    FINISH = "finish"
    TAP_TIMER_ICON = "tap_timer_icon"
    TAP_FIELD = "tap_field"
    KEY = "key"
    BACKSPACE = "backspace"
    NEXT_FIELD = "next_field"
    DISMISS_KEYBOARD = "dismiss_keyboard"
    PICK_REST = "pick_rest"
    DISMISS_REST_PICKER = "dismiss_rest_picker"
    SKIP_REST = "skip_rest"
    TICK = "tick"
    START_NEW_WORKOUT = "start_new_workout"
    DESELECT_FIELD = "deselect_field"


class Intent(BaseModel):
    """A user action or timer tick. Only the fields its kind needs are set."""

    kind: IntentKind
    key: Optional[str] = None
    set_number: Optional[int] = None
    field: Optional[InputField] = None
    duration: Optional[int] = None
    timer: Optional[TimerKind] = None
    generation: Optional[int] = None

    class Config:
        frozen = True

    @classmethod
    def tick(cls, timer: TimerKind, generation: int) -> "Intent":
        return cls(kind=IntentKind.TICK, timer=timer, generation=generation)
