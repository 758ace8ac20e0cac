"""Set ledger data models."""

import logging
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from dumbbells.models.workout_log import CompletedSet
from dumbbells.utils.keypad import can_append

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_SETS = 3


class InputField(str, Enum):
    """Editable column of a set row."""

    WEIGHT = "weight"
    REPS = "reps"


class FieldSelection(BaseModel):
    """Focused input field: a set number and one of its columns."""

    set_number: int = Field(..., ge=1)
    field: InputField

    class Config:
        frozen = True


class SetRecord(BaseModel):
    """Input and completion status of one set."""

    set_number: int = Field(..., ge=1, description="1-based position in the ledger")
    weight: str = Field(default="", description="Weight as typed, empty when unset")
    reps: str = Field(default="", description="Reps as typed, empty when unset")
    is_completed: bool = False
    completion_time: str = Field(
        default="", description="Formatted elapsed time, set only on completion"
    )

    @property
    def has_data(self) -> bool:
        return bool(self.weight) and bool(self.reps)

    def value(self, field: InputField) -> str:
        return self.weight if field == InputField.WEIGHT else self.reps

    def set_value(self, field: InputField, value: str) -> None:
        if field == InputField.WEIGHT:
            self.weight = value
        else:
            self.reps = value

    def complete(self, completion_time: str) -> None:
        """Mark the set completed. Weight and reps become read-only."""
        if not completion_time:
            raise ValueError("completion_time must not be empty")
        self.is_completed = True
        self.completion_time = completion_time

    def to_completed_set(self) -> CompletedSet:
        return CompletedSet(
            set_number=self.set_number,
            weight=self.weight,
            reps=self.reps,
            elapsed_time=self.completion_time,
        )


class SetLedger(BaseModel):
    """Fixed-length list of set records plus the cursor of the active set.

    ``current_set_index`` ranges from 0 to ``len(sets)``; the upper bound means
    every set was consumed and the session waits for a reset.
    """

    sets: List[SetRecord] = Field(default_factory=list)
    current_set_index: int = Field(default=0, ge=0)

    @classmethod
    def fresh(cls, total_sets: int = DEFAULT_TOTAL_SETS) -> "SetLedger":
        """Create a ledger of ``total_sets`` empty records numbered from 1."""
        if total_sets < 1:
            raise ValueError(f"total_sets must be at least 1, got {total_sets}")
        return cls(sets=[SetRecord(set_number=n) for n in range(1, total_sets + 1)])

    @property
    def total_sets(self) -> int:
        return len(self.sets)

    def record_at(self, index: int) -> Optional[SetRecord]:
        if 0 <= index < len(self.sets):
            return self.sets[index]
        return None

    def record_for(self, set_number: int) -> Optional[SetRecord]:
        for record in self.sets:
            if record.set_number == set_number:
                return record
        return None

    @property
    def current_record(self) -> Optional[SetRecord]:
        return self.record_at(self.current_set_index)

    # Input editing

    def value_for(self, set_number: int, field: Union[InputField, str]) -> str:
        """Return the field's text, or "" when the set does not exist."""
        record = self.record_for(set_number)
        if record is None:
            return ""
        return record.value(InputField(field))

    def update(self, set_number: int, field: Union[InputField, str], key: str) -> bool:
        """Append ``key`` to the field if the keypad rules allow it.

        Returns True when the value changed.
        """
        record = self.record_for(set_number)
        if record is None or record.is_completed:
            return False

        field = InputField(field)
        current = record.value(field)
        if not can_append(current, key):
            logger.debug(f"Rejected key {key!r} for set {set_number} {field.value}")
            return False

        record.set_value(field, current + key)
        return True

    def delete_last(self, set_number: int, field: Union[InputField, str]) -> bool:
        """Remove the last character of the field, if any."""
        record = self.record_for(set_number)
        if record is None or record.is_completed:
            return False

        field = InputField(field)
        current = record.value(field)
        if not current:
            return False

        record.set_value(field, current[:-1])
        return True

    # Validation predicates

    def can_start(self, index: Optional[int] = None) -> bool:
        index = self.current_set_index if index is None else index
        record = self.record_at(index)
        return record is not None and record.has_data and not record.is_completed

    def has_next_incomplete(self, index: Optional[int] = None) -> bool:
        index = self.current_set_index if index is None else index
        following = self.record_at(index + 1)
        return following is not None and following.has_data and not following.is_completed

    def is_last_actionable_set(self, index: Optional[int] = None) -> bool:
        """True when finishing the set at ``index`` should end the workout."""
        index = self.current_set_index if index is None else index
        if index == len(self.sets) - 1:
            return True
        following = self.record_at(index + 1)
        return index >= 0 and following is not None and not following.has_data

    def completed_sets(self) -> List[CompletedSet]:
        """Completed sets that carry data, in set order."""
        return [
            record.to_completed_set()
            for record in self.sets
            if record.has_data and record.is_completed
        ]
