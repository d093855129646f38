"""
Test fixtures for hevy-importer.

Provides sample programs, catalogs and HTTP doubles so the pipeline can be
tested offline and without real sleeps.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# Repo root: .../hevy-importer
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import hevy_importer...`
p_str = str(SRC)
if p_str not in sys.path:
    sys.path.insert(0, p_str)

# Never read or write the developer's real config file
os.environ.setdefault("HEVY_IMPORTER_CONFIG_DIR", tempfile.mkdtemp(prefix="hevy-importer-test-"))

from hevy_importer.hevy_models import ExerciseTemplate
from hevy_importer.models import WorkoutProgram
from hevy_importer.parsers.models import Sheet, WorkbookDocument


# ---------------------------------------------------------------------------
# HTTP doubles
# ---------------------------------------------------------------------------


def make_response(status_code: int = 200, json_data: Any = None, text: Optional[str] = None) -> MagicMock:
    """Build a requests.Response stand-in."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text if text is not None else str(json_data)
    if json_data is None and text is not None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def no_sleep() -> MagicMock:
    """Records requested sleeps instead of sleeping."""
    return MagicMock(return_value=None)


@pytest.fixture
def response_factory():
    """Exposes make_response to tests."""
    return make_response


# ---------------------------------------------------------------------------
# Sample Data Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_program_dict() -> Dict[str, Any]:
    """Two-week program as returned by the extraction service (camelCase)."""
    return {
        "title": "Push Pull Legs",
        "description": "12 week hypertrophy block",
        "weeks": [
            {
                "weekNumber": 1,
                "title": "Week 1",
                "workouts": [
                    {
                        "title": "Day 1 - Push",
                        "description": "Chest and shoulders",
                        "exercises": [
                            {
                                "name": "Bench Press",
                                "sets": [
                                    {"type": "warmup", "reps": 10, "weight": 40},
                                    {"type": "normal", "repRange": {"min": 8, "max": 12}, "weight": 80},
                                ],
                                "notes": "Pause on chest",
                                "restSeconds": 120,
                            },
                            {
                                "name": "Overhead Press",
                                "sets": [{"type": "normal", "reps": 8}],
                            },
                        ],
                    },
                    {
                        "title": "Day 2 - Legs",
                        "exercises": [
                            {
                                "name": "Squat",
                                "sets": [{"reps": 5, "weight": 100}],
                                "restSeconds": 180,
                            },
                        ],
                    },
                ],
            },
            {
                "weekNumber": 2,
                "title": "Week 2",
                "workouts": [
                    {
                        "title": "Day 1 - Push",
                        "exercises": [
                            {
                                "name": "  bench press ",
                                "sets": [{"type": "normal", "reps": 6, "weight": 85}],
                            },
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def sample_program(sample_program_dict) -> WorkoutProgram:
    return WorkoutProgram.model_validate(sample_program_dict)


@pytest.fixture
def template_dicts() -> List[Dict[str, Any]]:
    """Hevy exercise templates as returned by the catalog endpoint."""
    return [
        {
            "id": "79D0BB3A",
            "title": "Bench Press (Barbell)",
            "type": "weight_reps",
            "primary_muscle_group": "chest",
            "secondary_muscle_groups": ["triceps", "shoulders"],
            "is_custom": False,
        },
        {
            "id": "7B8D84E8",
            "title": "Overhead Press (Barbell)",
            "type": "weight_reps",
            "primary_muscle_group": "shoulders",
            "secondary_muscle_groups": ["triceps"],
            "is_custom": False,
        },
        {
            "id": "D04AC939",
            "title": "Squat (Barbell)",
            "type": "weight_reps",
            "primary_muscle_group": "quadriceps",
            "secondary_muscle_groups": ["glutes", "hamstrings"],
            "is_custom": False,
        },
        {
            "id": "C6272009",
            "title": "Deadlift (Barbell)",
            "type": "weight_reps",
            "primary_muscle_group": "hamstrings",
            "secondary_muscle_groups": ["glutes", "lower_back"],
            "is_custom": False,
        },
    ]


@pytest.fixture
def templates(template_dicts) -> List[ExerciseTemplate]:
    return [ExerciseTemplate.model_validate(t) for t in template_dicts]


@pytest.fixture
def sample_workbook() -> WorkbookDocument:
    """Small single-sheet workbook document."""
    return WorkbookDocument(
        filename="ppl.xlsx",
        sheets=[
            Sheet(
                name="Week 1",
                rows=[
                    ["Day", "Exercise", "Sets", "Reps"],
                    ["Day 1", "Bench Press", "3", "8-12"],
                    ["Day 1", "Overhead Press", "3", "8"],
                    ["Day 2", "Squat", "5", "5"],
                ],
            )
        ],
    )


# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------

SETTINGS_ENV_VARS = (
    "HEVY_API_KEY",
    "AIRIA_API_KEY",
    "AIRIA_PIPELINE_ID",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "EXTRACTION_PROVIDER",
    "AIRIA_BASE_URL",
    "HEVY_BASE_URL",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings variable so only the config file is read."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config_store(tmp_path):
    from hevy_importer.config import ConfigStore

    return ConfigStore(tmp_path / "config")


@pytest.fixture
def make_settings(clean_env, config_store):
    """Build Settings from an isolated config file plus explicit env overrides."""
    from hevy_importer.config import Settings

    def _make(file_config: Optional[Dict[str, Any]] = None, **env: str):
        if file_config is not None:
            config_store.save(file_config)
        for name, value in env.items():
            clean_env.setenv(name, value)
        return Settings(store=config_store)

    return _make
