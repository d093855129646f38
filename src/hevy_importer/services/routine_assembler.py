"""Assembly of Hevy routine-create requests from extracted workouts."""
from typing import List, Mapping, Optional

from hevy_importer.errors import AssemblyError
from hevy_importer.hevy_models import (
    PostRoutineExercise,
    PostRoutineRepRange,
    PostRoutineRequest,
    PostRoutineSet,
    RoutineBody,
)
from hevy_importer.models import (
    Exercise,
    ExerciseSet,
    WorkoutDay,
    WorkoutProgram,
    WorkoutWeek,
    normalize_name,
)
from hevy_importer.services.exercise_matcher import ExerciseMatch

MatchTable = Mapping[str, ExerciseMatch]


def routine_title(week: WorkoutWeek, workout: WorkoutDay) -> str:
    return f"{week.title} - {workout.title}"


def assemble_set(exercise_set: ExerciseSet) -> PostRoutineSet:
    rep_range = None
    if exercise_set.rep_range is not None:
        rep_range = PostRoutineRepRange(
            start=exercise_set.rep_range.min,
            end=exercise_set.rep_range.max,
        )

    return PostRoutineSet(
        type=exercise_set.type or "normal",
        weight_kg=exercise_set.weight,
        reps=exercise_set.reps,
        distance_meters=exercise_set.distance,
        duration_seconds=exercise_set.duration,
        custom_metric=None,
        rep_range=rep_range,
    )


def assemble_exercise(exercise: Exercise, match_table: MatchTable) -> PostRoutineExercise:
    """
    Map one exercise onto its matched template.

    Raises:
        AssemblyError: If the exercise name has no entry in the match table
    """
    match = match_table.get(normalize_name(exercise.name))
    if match is None:
        raise AssemblyError(exercise.name)

    return PostRoutineExercise(
        exercise_template_id=match.template_id,
        superset_id=None,  # supersets are not inferred from the source document
        rest_seconds=exercise.rest_seconds,
        notes=exercise.notes or None,
        sets=[assemble_set(exercise_set) for exercise_set in exercise.sets],
    )


def assemble_routine(
    workout: WorkoutDay,
    week: WorkoutWeek,
    folder_id: Optional[int],
    match_table: MatchTable,
) -> PostRoutineRequest:
    """
    Build the routine-create request for one workout of one week.

    Raises:
        AssemblyError: If any exercise of the workout is unmatched
    """
    return PostRoutineRequest(
        routine=RoutineBody(
            title=routine_title(week, workout),
            folder_id=folder_id,
            notes=workout.description or "",
            exercises=[assemble_exercise(exercise, match_table) for exercise in workout.exercises],
        )
    )


def assemble_program(
    program: WorkoutProgram,
    folder_id: Optional[int],
    match_table: MatchTable,
) -> List[PostRoutineRequest]:
    """All routine requests of a program, in week then workout order."""
    return [
        assemble_routine(workout, week, folder_id, match_table)
        for week, workout in program.iter_workouts()
    ]
