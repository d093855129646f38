"""Tests for routine request assembly."""
import pytest

from hevy_importer.errors import AssemblyError
from hevy_importer.models import Exercise, ExerciseSet, WorkoutDay, WorkoutProgram, WorkoutWeek
from hevy_importer.services.exercise_matcher import ExerciseMatch, TemplateRef
from hevy_importer.services.routine_assembler import (
    assemble_program,
    assemble_routine,
    assemble_set,
    routine_title,
)


def _match(name: str, template_id: str, title: str) -> ExerciseMatch:
    return ExerciseMatch(
        exercise=Exercise(name=name),
        template_id=template_id,
        confidence=0.9,
        template=TemplateRef(id=template_id, title=title, type="weight_reps"),
    )


@pytest.fixture
def match_table():
    return {
        "bench press": _match("Bench Press", "79D0BB3A", "Bench Press (Barbell)"),
        "overhead press": _match("Overhead Press", "7B8D84E8", "Overhead Press (Barbell)"),
        "squat": _match("Squat", "D04AC939", "Squat (Barbell)"),
    }


class TestAssembleRoutine:
    """One workout becomes one routine request."""

    def test_minimal_workout(self, match_table):
        week = WorkoutWeek(weekNumber=1, title="Week 1")
        workout = WorkoutDay(
            title="Day 1",
            exercises=[Exercise(name="Bench Press", sets=[ExerciseSet(type="normal", reps=8)])],
        )

        request = assemble_routine(workout, week, 42, match_table)

        routine = request.routine
        assert routine.title == "Week 1 - Day 1"
        assert routine.folder_id == 42
        assert routine.notes == ""
        assert len(routine.exercises) == 1
        exercise = routine.exercises[0]
        assert exercise.exercise_template_id == "79D0BB3A"
        assert exercise.superset_id is None
        assert exercise.notes is None
        the_set = exercise.sets[0]
        assert the_set.type == "normal"
        assert the_set.reps == 8
        assert the_set.weight_kg is None
        assert the_set.rep_range is None
        assert the_set.custom_metric is None

    def test_fields_carried_over(self, sample_program, match_table):
        week = sample_program.weeks[0]
        request = assemble_routine(week.workouts[0], week, 7, match_table)

        routine = request.routine
        assert routine.title == "Week 1 - Day 1 - Push"
        assert routine.notes == "Chest and shoulders"
        bench = routine.exercises[0]
        assert bench.rest_seconds == 120
        assert bench.notes == "Pause on chest"
        assert [s.type for s in bench.sets] == ["warmup", "normal"]
        assert bench.sets[1].rep_range.start == 8
        assert bench.sets[1].rep_range.end == 12
        assert bench.sets[1].weight_kg == 80

    def test_name_lookup_is_normalized(self, sample_program, match_table):
        """'  bench press ' in week 2 resolves through the same table entry."""
        week = sample_program.weeks[1]
        request = assemble_routine(week.workouts[0], week, 7, match_table)
        assert request.routine.exercises[0].exercise_template_id == "79D0BB3A"

    def test_unmatched_exercise_raises(self, match_table):
        week = WorkoutWeek(weekNumber=1, title="Week 1")
        workout = WorkoutDay(title="Day 1", exercises=[Exercise(name="Zercher Carry")])

        with pytest.raises(AssemblyError, match="No template found for exercise: Zercher Carry") as exc_info:
            assemble_routine(workout, week, 1, match_table)

        assert exc_info.value.exercise_name == "Zercher Carry"

    def test_request_serializes_for_api(self, match_table):
        week = WorkoutWeek(weekNumber=1, title="Week 1")
        workout = WorkoutDay(
            title="Day 1",
            exercises=[Exercise(name="Squat", sets=[ExerciseSet(reps=5, weight=100, duration=0)])],
        )

        body = assemble_routine(workout, week, 3, match_table).model_dump()

        the_set = body["routine"]["exercises"][0]["sets"][0]
        assert the_set == {
            "type": "normal",
            "weight_kg": 100,
            "reps": 5,
            "distance_meters": None,
            "duration_seconds": 0,
            "custom_metric": None,
            "rep_range": None,
        }


class TestAssembleSet:

    def test_missing_type_defaults_to_normal(self):
        assert assemble_set(ExerciseSet(reps=10)).type == "normal"

    def test_zero_weight_is_kept(self):
        assert assemble_set(ExerciseSet(reps=10, weight=0)).weight_kg == 0


class TestAssembleProgram:

    def test_one_request_per_workout_in_order(self, sample_program, match_table):
        requests_ = assemble_program(sample_program, 9, match_table)
        assert [r.routine.title for r in requests_] == [
            "Week 1 - Day 1 - Push",
            "Week 1 - Day 2 - Legs",
            "Week 2 - Day 1 - Push",
        ]
        assert all(r.routine.folder_id == 9 for r in requests_)

    def test_empty_program(self, match_table):
        assert assemble_program(WorkoutProgram(title="Empty"), 1, match_table) == []


def test_routine_title():
    week = WorkoutWeek(weekNumber=3, title="Deload")
    assert routine_title(week, WorkoutDay(title="Upper")) == "Deload - Upper"
