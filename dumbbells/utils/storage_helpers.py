"""Helpers that turn live session data into storable history."""

from datetime import datetime
from typing import Optional

from dumbbells.models.workout_log import WorkoutHistoryEntry
from dumbbells.models.workout_set import SetLedger


def create_history_entry(
    exercise_name: str, ledger: SetLedger, date: Optional[datetime] = None
) -> WorkoutHistoryEntry:
    """Build a history entry from the ledger's completed sets."""
    if date is None:
        date = datetime.now()

    return WorkoutHistoryEntry(
        date=date,
        exercise_name=exercise_name,
        sets=ledger.completed_sets(),
    )
