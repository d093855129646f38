"""Request and response shapes of the Hevy public API."""
from typing import List, Optional

from pydantic import BaseModel, Field

from hevy_importer.models import SetType


class ExerciseTemplate(BaseModel):
    """Canonical exercise definition from the Hevy catalog."""
    id: str
    title: str
    type: str = ""
    primary_muscle_group: Optional[str] = None
    secondary_muscle_groups: List[str] = Field(default_factory=list)
    is_custom: bool = False

    class Config:
        extra = "ignore"
        frozen = True


class RoutineFolder(BaseModel):
    id: int
    index: Optional[int] = None
    title: str
    updated_at: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        extra = "ignore"


class RoutineFolderBody(BaseModel):
    title: str


class PostRoutineFolderRequest(BaseModel):
    routine_folder: RoutineFolderBody


class PostRoutineRepRange(BaseModel):
    start: Optional[int] = None
    end: Optional[int] = None


class PostRoutineSet(BaseModel):
    type: SetType = "normal"
    weight_kg: Optional[float] = None
    reps: Optional[int] = None
    distance_meters: Optional[float] = None
    duration_seconds: Optional[float] = None
    custom_metric: Optional[float] = None
    rep_range: Optional[PostRoutineRepRange] = None


class PostRoutineExercise(BaseModel):
    exercise_template_id: str
    superset_id: Optional[int] = None
    rest_seconds: Optional[int] = None
    notes: Optional[str] = None
    sets: List[PostRoutineSet] = Field(default_factory=list)


class RoutineBody(BaseModel):
    title: str
    folder_id: Optional[int] = None
    notes: str = ""
    exercises: List[PostRoutineExercise] = Field(default_factory=list)


class PostRoutineRequest(BaseModel):
    """Body of POST /routines."""
    routine: RoutineBody
