"""Text formatting helpers shared by the controller and the UI."""

from typing import Optional

from dumbbells.models.workout_log import CompletedSet

NO_PREVIOUS_VALUE = "-N/A-"


def format_duration(total_seconds: int) -> str:
    """Format seconds as ``m:ss`` with unpadded minutes, e.g. 65 -> "1:05"."""
    total_seconds = max(0, int(total_seconds))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def format_rest_option(seconds: int) -> str:
    """Label for a rest picker option: "30 sec", "1 min", "2 min"..."""
    if seconds // 60 > 0:
        return f"{seconds // 60} min"
    return f"{seconds} sec"


def format_previous_set(completed: Optional[CompletedSet]) -> str:
    """Format the previous workout's value for a set row."""
    if completed is None:
        return NO_PREVIOUS_VALUE
    return f"{completed.weight} x {completed.reps}"


def format_summary_row(completed: CompletedSet) -> str:
    """Format one completed set for the summary dialog."""
    return f"{completed.weight}kg x {completed.reps} - {completed.elapsed_time}"
