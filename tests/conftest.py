"""
Test fixtures for program-ingestor-api.

Provides a fake language-model client, sample workbooks and an API client
with auth, storage and parser dependencies overridden, so tests run offline
and deterministically.
"""

import sys
from pathlib import Path
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Repo root: .../program-ingestor-api
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = ROOT / "tests"

# Make src/ importable so tests can do `import program_ingestor_api...`
for p in {ROOT, SRC, TESTS}:
    p_str = str(p)
    if p_str not in sys.path:
        sys.path.insert(0, p_str)

from factories import TEST_USER_ID, RecordingSleep, make_llm_client, make_workbook
from program_ingestor_api.main import app
from program_ingestor_api.auth import get_current_user
from program_ingestor_api.api.program_routes import get_program_parser, get_storage
from program_ingestor_api.services.program_parser import ProgramParser
from program_ingestor_api.services.program_storage import MemoryProgramStorage
from program_ingestor_api.services.sheet_extractor import SheetExtractor


PROGRAM_HEADER = ["Exercise", "Warm-up Sets", "Working Sets", "Reps", "Load", "RPE", "Rest", "Notes"]


# ---------------------------------------------------------------------------
# Sample Data Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def program_workbook() -> bytes:
    """Two-sheet program workbook."""
    return make_workbook({
        "Base Hypertrophy": [
            PROGRAM_HEADER,
            ["Push #1", None, None, None, None, None, None, None],
            ["A1. Push-up", 1, 3, "8-10", None, 8, "~2 min", None],
            ["A2. Static Stretch - Chest", 0, 3, "30s HOLD", None, "N/A", "0 min", None],
        ],
        "Strength": [
            PROGRAM_HEADER,
            ["Legs #1", None, None, None, None, None, None, None],
            ["Squat", 2, 4, "5", "75% 1RM", 8, "~3-4 min", None],
        ],
    })


@pytest.fixture
def sample_phase_response() -> Dict[str, Any]:
    """Typical (slightly messy) model output for one sheet."""
    return {
        "phaseName": "Base Hypertrophy",
        "phaseNumber": 7,
        "description": "Volume block",
        "workoutDays": [
            {
                "dayName": "Push #1",
                "dayNumber": 1,
                "isRestDay": False,
                "weekNumber": 1,
                "exercises": [
                    {
                        "exerciseName": "Push-up",
                        "warmupSets": 44624,
                        "workingSets": 3,
                        "reps": "8-10",
                        "rpe": "44782",
                        "restTimer": "~2 min",
                        "supersetGroup": None,
                        "exerciseOrder": 4,
                    },
                    {
                        "exerciseName": "Static Stretch - Chest",
                        "warmupSets": 0,
                        "workingSets": 3,
                        "reps": "30s HOLD",
                        "rpe": "N/A",
                        "exerciseOrder": 4,
                    },
                ],
            },
            {
                "dayName": "REST",
                "dayNumber": 2,
                "isRestDay": True,
                "exercises": [{"exerciseName": "Walk", "workingSets": 1, "reps": "20 min"}],
            },
        ],
    }


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


async def mock_get_current_user() -> str:
    """Mock auth dependency that returns a test user."""
    return TEST_USER_ID


@pytest.fixture
def storage() -> MemoryProgramStorage:
    return MemoryProgramStorage()


@pytest.fixture
def llm_client(sample_phase_response) -> MagicMock:
    return make_llm_client(sample_phase_response)


@pytest.fixture
def client(storage, llm_client, recording_sleep):
    """Per-test FastAPI TestClient with auth, storage and the LLM client replaced."""
    parser = ProgramParser(SheetExtractor(llm_client, model="test-model", sleep=recording_sleep))

    app.dependency_overrides[get_current_user] = mock_get_current_user
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_program_parser] = lambda: parser
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Environment Variables
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables for tests."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-api-key")
    monkeypatch.setenv("API_KEYS", "sk_test_abc123")
