"""Workout history data models."""

from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, Field


class CompletedSet(BaseModel):
    """Completed set with the values entered and the time it took."""

    set_number: int = Field(..., ge=1, alias="setNumber", description="1-based set number")
    # Older payloads store the weight under "kg"
    weight: str = Field(
        ...,
        validation_alias=AliasChoices("weight", "kg"),
        description="Weight as typed, e.g. '45' or '22.5'",
    )
    reps: str = Field(..., description="Reps as typed, e.g. '10'")
    elapsed_time: str = Field(
        ..., alias="elapsedTime", description="Set duration formatted as m:ss"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "setNumber": 1,
                "weight": "45",
                "reps": "10",
                "elapsedTime": "1:30",
            }
        }


class WorkoutHistoryEntry(BaseModel):
    """One finished workout for a single exercise."""

    date: datetime = Field(default_factory=datetime.now, description="When the workout ended")
    exercise_name: str = Field(..., alias="exerciseName", description="Exercise name")
    sets: List[CompletedSet] = Field(
        default_factory=list, description="Completed sets in set order"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "date": "2025-08-03T18:00:00",
                "exerciseName": "Bench Press (Dumbbell)",
                "sets": [
                    {"setNumber": 1, "weight": "45", "reps": "10", "elapsedTime": "1:30"},
                    {"setNumber": 2, "weight": "45", "reps": "10", "elapsedTime": "3:15"},
                    {"setNumber": 3, "weight": "45", "reps": "8", "elapsedTime": "4:45"},
                ],
            }
        }
