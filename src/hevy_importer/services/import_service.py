"""End-to-end import of a workout document into Hevy.

A run moves through these states::

    IDLE -> EXTRACTING -> MATCHING -> PREVIEWING -> DONE
                                   -> CONFIRMING -> CREATING_FOLDER -> CREATING_ROUTINES -> DONE
                                                 -> CANCELLED

Any ImporterError moves the run to FAILED and stops it. Nothing created so far
is rolled back; routines are created one at a time in program order, so a
failed run leaves the first ``routines_created`` routines in the folder.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from hevy_importer.errors import ImporterError
from hevy_importer.hevy_models import ExerciseTemplate, RoutineFolder
from hevy_importer.models import Exercise, WorkoutProgram, normalize_name
from hevy_importer.parsers.models import SourceDocument
from hevy_importer.services.exercise_matcher import ExerciseMatch, ExerciseMatcher
from hevy_importer.services.extraction_service import ExtractionClient
from hevy_importer.services.hevy_client import HevyClient
from hevy_importer.services.progress import NullProgressReporter, ProgressReporter
from hevy_importer.services.routine_assembler import assemble_routine, routine_title
from hevy_importer.services.sampling import prepare_document


logger = logging.getLogger(__name__)

# Best matches at or below this confidence fall back to the wider candidate list
CONFIDENCE_THRESHOLD = 0.6
FALLBACK_CANDIDATES = 3


class ImportState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    MATCHING = "matching"
    PREVIEWING = "previewing"
    CONFIRMING = "confirming"
    CREATING_FOLDER = "creating_folder"
    CREATING_ROUTINES = "creating_routines"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class MatchRow:
    """One line of the preview match table."""
    name: str
    template_id: str
    template_title: str
    confidence: float

    @property
    def low_confidence(self) -> bool:
        return self.confidence <= CONFIDENCE_THRESHOLD


@dataclass
class PreviewSummary:
    title: str
    week_count: int
    workout_count: int
    exercise_count: int
    matches: List[MatchRow] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    was_sampled: bool = False

    @property
    def low_confidence(self) -> List[MatchRow]:
        return [row for row in self.matches if row.low_confidence]


@dataclass
class ImportResult:
    """Outcome of one import or preview run."""
    state: ImportState = ImportState.IDLE
    program: Optional[WorkoutProgram] = None
    summary: Optional[PreviewSummary] = None
    folder: Optional[RoutineFolder] = None
    routines_created: int = 0
    routines_total: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.state is ImportState.FAILED


def resolve_match(matcher: ExerciseMatcher, exercise: Exercise) -> Optional[ExerciseMatch]:
    """
    Pick a template for one exercise.

    The best match is accepted when its confidence is above the threshold.
    Otherwise the first of a short candidate list is taken whatever its
    confidence, so only names with no candidate at all stay unmatched.
    """
    match = matcher.best_match(exercise)
    if match is not None and match.confidence > CONFIDENCE_THRESHOLD:
        return match

    candidates = matcher.top_matches(exercise, FALLBACK_CANDIDATES)
    if not candidates:
        return None

    fallback = candidates[0]
    logger.warning(
        f"Low-confidence match for '{exercise.name}': '{fallback.template.title}' "
        f"({fallback.confidence:.0%})"
    )
    return fallback


def build_match_table(program: WorkoutProgram, matcher: ExerciseMatcher) -> Dict[str, ExerciseMatch]:
    """
    Resolve every distinct exercise name of the program once.

    Keys are normalized names; the first occurrence of a name decides its
    template and every later occurrence reuses that decision.
    """
    table: Dict[str, ExerciseMatch] = {}
    decided = set()

    for exercise in program.iter_exercises():
        key = normalize_name(exercise.name)
        if key in decided:
            continue
        decided.add(key)

        match = resolve_match(matcher, exercise)
        if match is not None:
            table[key] = match
        else:
            logger.warning(f"No exercise template found for '{exercise.name}'")

    return table


def find_unmatched(program: WorkoutProgram, match_table: Dict[str, ExerciseMatch]) -> List[str]:
    """Distinct exercise names without a match, in first-seen order."""
    unmatched: List[str] = []
    seen = set()
    for exercise in program.iter_exercises():
        key = normalize_name(exercise.name)
        if key not in match_table and key not in seen:
            seen.add(key)
            unmatched.append(exercise.name.strip())
    return unmatched


def summarize(
    program: WorkoutProgram,
    match_table: Dict[str, ExerciseMatch],
    was_sampled: bool = False,
) -> PreviewSummary:
    return PreviewSummary(
        title=program.title,
        week_count=len(program.weeks),
        workout_count=program.workout_count(),
        exercise_count=program.exercise_count(),
        matches=[
            MatchRow(
                name=name,
                template_id=match.template_id,
                template_title=match.template.title,
                confidence=match.confidence,
            )
            for name, match in match_table.items()
        ],
        unmatched=find_unmatched(program, match_table),
        was_sampled=was_sampled,
    )


ConfirmCallback = Callable[[WorkoutProgram, PreviewSummary], bool]
MatcherFactory = Callable[[Sequence[ExerciseTemplate]], ExerciseMatcher]


class ImportService:
    """Runs one document through extraction, matching and routine creation."""

    def __init__(
        self,
        extractor: ExtractionClient,
        hevy_client: HevyClient,
        progress: Optional[ProgressReporter] = None,
        confirm: Optional[ConfirmCallback] = None,
        matcher_factory: MatcherFactory = ExerciseMatcher,
    ):
        self.extractor = extractor
        self.hevy_client = hevy_client
        self.progress = progress or NullProgressReporter()
        self.confirm = confirm
        self.matcher_factory = matcher_factory
        self.state = ImportState.IDLE

    def _enter(self, result: ImportResult, state: ImportState) -> None:
        logger.debug(f"Import state: {self.state.value} -> {state.value}")
        self.state = state
        result.state = state

    def preview(self, document: SourceDocument) -> ImportResult:
        return self.run(document, preview=True)

    def run(self, document: SourceDocument, preview: bool = False) -> ImportResult:
        """
        Import (or preview) one document.

        Failures do not raise: the returned result is in the FAILED state and
        carries the error message and the number of routines created before it.
        """
        result = ImportResult()
        self.state = ImportState.IDLE
        operation = "extract"

        try:
            # Extraction
            self._enter(result, ImportState.EXTRACTING)
            extraction_input = prepare_document(document)
            self.progress.start(operation, f"Extracting workout data from {document.filename}...")
            program = self.extractor.extract(extraction_input)
            result.program = program
            self.progress.succeed(operation, f"Extracted: {program.title}")

            # Matching
            self._enter(result, ImportState.MATCHING)
            operation = "catalog"
            self.progress.start(operation, "Fetching Hevy exercise templates...")
            templates = self.hevy_client.get_all_exercise_templates()
            self.progress.succeed(operation, f"Found {len(templates)} exercise templates")

            operation = "match"
            self.progress.start(operation, "Matching exercises to templates...")
            matcher = self.matcher_factory(templates)
            match_table = build_match_table(program, matcher)
            summary = summarize(program, match_table, was_sampled=extraction_input.was_sampled)
            result.summary = summary
            result.routines_total = summary.workout_count
            self.progress.succeed(operation, f"Matched {len(match_table)} unique exercises")

            if preview:
                self._enter(result, ImportState.PREVIEWING)
                self._enter(result, ImportState.DONE)
                return result

            self._enter(result, ImportState.CONFIRMING)
            if self.confirm is not None and not self.confirm(program, summary):
                logger.info("Import cancelled")
                self._enter(result, ImportState.CANCELLED)
                return result

            # Destination
            self._enter(result, ImportState.CREATING_FOLDER)
            operation = "folder"
            self.progress.start(operation, "Creating routine folder...")
            folder = self.hevy_client.create_routine_folder(program.title)
            result.folder = folder
            self.progress.succeed(operation, f"Created folder: {folder.title}")

            self._enter(result, ImportState.CREATING_ROUTINES)
            operation = "routines"
            self.progress.start(operation, f"Creating {result.routines_total} routines...")
            for week, workout in program.iter_workouts():
                self.progress.update(operation, f"Creating {routine_title(week, workout)}...")
                routine = assemble_routine(workout, week, folder.id, match_table)
                self.hevy_client.create_routine(routine)
                result.routines_created += 1

            self.progress.succeed(
                operation,
                f"Created {result.routines_created} routines in {len(program.weeks)} weeks",
            )
            self._enter(result, ImportState.DONE)

        except ImporterError as e:
            result.error = str(e)
            message = str(e)
            if result.folder is not None:
                message += (
                    f" ({result.routines_created} of {result.routines_total} routines "
                    f"created before the failure)"
                )
            logger.error(f"Import failed during {self.state.value}: {message}")
            self.progress.fail(operation, message)
            self._enter(result, ImportState.FAILED)

        return result
