"""Data models for extracted workout programs."""
from typing import Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

SetType = Literal["warmup", "normal", "failure", "dropset"]


class RepRange(BaseModel):
    """Inclusive rep range such as 8-12."""
    min: int
    max: int


class ExerciseSet(BaseModel):
    """A single prescribed set."""
    type: Optional[SetType] = None  # the assembler treats a missing type as 'normal'
    reps: Optional[int] = None
    rep_range: Optional[RepRange] = Field(default=None, alias="repRange")
    weight: Optional[float] = None  # kg
    duration: Optional[float] = None  # seconds
    distance: Optional[float] = None  # meters
    notes: Optional[str] = None

    class Config:
        extra = "ignore"
        populate_by_name = True


class Exercise(BaseModel):
    """An exercise as written in the source document (free-text name)."""
    name: str
    sets: List[ExerciseSet] = Field(default_factory=list)
    notes: Optional[str] = None
    rest_seconds: Optional[int] = Field(default=None, alias="restSeconds")

    class Config:
        extra = "ignore"
        populate_by_name = True


class WorkoutDay(BaseModel):
    """One trainable workout; becomes one Hevy routine."""
    title: str
    description: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)

    class Config:
        extra = "ignore"


class WorkoutWeek(BaseModel):
    week_number: int = Field(alias="weekNumber")
    title: str
    workouts: List[WorkoutDay] = Field(default_factory=list)

    class Config:
        extra = "ignore"
        populate_by_name = True


class WorkoutProgram(BaseModel):
    """Root value produced by the extraction step."""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    weeks: List[WorkoutWeek] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    def iter_workouts(self) -> Iterator[Tuple[WorkoutWeek, WorkoutDay]]:
        """Yield (week, workout) pairs in program order."""
        for week in self.weeks:
            for workout in week.workouts:
                yield week, workout

    def iter_exercises(self) -> Iterator[Exercise]:
        for _, workout in self.iter_workouts():
            yield from workout.exercises

    def workout_count(self) -> int:
        return sum(len(week.workouts) for week in self.weeks)

    def exercise_count(self) -> int:
        return sum(1 for _ in self.iter_exercises())


def normalize_name(name: str) -> str:
    """Matching and deduplication key for a free-text exercise name."""
    return name.lower().strip()
