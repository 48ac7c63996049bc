"""
Program API Routes

Upload a training program spreadsheet, then read, edit or delete the stored result:
- POST   /programs/upload
- GET    /programs
- GET    /programs/{program_id}
- DELETE /programs/{program_id}
- GET    /workout-days/{workout_day_id}
- PATCH  /exercises/{exercise_id}
- DELETE /exercises/{exercise_id}
"""

import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import Field

from program_ingestor_api.ai import AIClientFactory, AIRequestContext
from program_ingestor_api.auth import get_current_user
from program_ingestor_api.config import settings
from program_ingestor_api.models import CamelModel, ExerciseUpdate, SheetFailure
from program_ingestor_api.parsers.workbook_reader import (
    SUPPORTED_EXTENSIONS,
    WorkbookReadError,
    file_extension,
)
from program_ingestor_api.services.program_parser import ProgramParseError, ProgramParser
from program_ingestor_api.services.program_storage import (
    MemoryProgramStorage,
    ProgramStorage,
    load_program_tree,
    persist_program,
)
from program_ingestor_api.services.sheet_extractor import SheetExtractor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Programs"])

_storage = MemoryProgramStorage()


def get_storage() -> ProgramStorage:
    return _storage


async def get_program_parser(
    user_id: str = Depends(get_current_user),
) -> AsyncIterator[ProgramParser]:
    """Build a parser whose extractor shares one client across all sheets.

    The client is closed once the request is done.
    """
    context = AIRequestContext(
        user_id=user_id,
        upload_id=str(uuid.uuid4()),
        feature_name="program_sheet_extraction",
        custom_properties={"model": settings.OPENAI_MODEL},
    )
    try:
        client = AIClientFactory.create_async_openai_client(context=context)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    extractor = SheetExtractor(
        client,
        max_attempts=settings.LLM_MAX_ATTEMPTS,
        base_wait_seconds=settings.LLM_RETRY_BASE_SECONDS,
    )
    try:
        yield ProgramParser(extractor)
    finally:
        await client.close()


class UploadProgramResponse(CamelModel):
    """Response model for POST /programs/upload"""
    program: Dict[str, Any]
    phases: List[Dict[str, Any]]
    total_exercises: int
    skipped_sheets: List[SheetFailure] = Field(default_factory=list)
    message: str


# ============================================================================
# Upload
# ============================================================================

@router.post("/programs/upload", response_model=UploadProgramResponse, response_model_by_alias=True)
async def upload_program(
    file: UploadFile = File(...),
    workout_name: Optional[str] = Form(None, alias="workoutName"),
    user_id: str = Depends(get_current_user),
    parser: ProgramParser = Depends(get_program_parser),
    storage: ProgramStorage = Depends(get_storage),
):
    """
    Parse an uploaded program spreadsheet and store it.

    Accepts .xlsx, .xlsm and .csv files up to MAX_UPLOAD_BYTES. Each sheet
    becomes one phase. The program name is the optional ``workoutName`` form
    field, falling back to the filename.
    """
    filename = file.filename or "upload.xlsx"
    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only .xlsx and .csv files are allowed.",
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB.",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    display_name = (workout_name or "").strip() or filename

    try:
        parsed_program = await parser.parse(content, display_name, filename=filename)
    except WorkbookReadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProgramParseError as e:
        logger.error(f"Upload of '{filename}' failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    stored = persist_program(storage, user_id, parsed_program)

    message = (
        f"Successfully parsed {len(parsed_program.phases)} phases "
        f"with {stored['totalExercises']} total exercises"
    )
    if parsed_program.skipped_sheets:
        skipped = ", ".join(f.sheet_name for f in parsed_program.skipped_sheets)
        message += f" (skipped sheets: {skipped})"

    return UploadProgramResponse(
        program=stored["program"],
        phases=stored["phases"],
        total_exercises=stored["totalExercises"],
        skipped_sheets=parsed_program.skipped_sheets,
        message=message,
    )


# ============================================================================
# Read / delete
# ============================================================================

def _owned_program(storage: ProgramStorage, program_id: str, user_id: str) -> Dict[str, Any]:
    program = storage.get_program(program_id)
    if not program:
        raise HTTPException(status_code=404, detail="Program not found")
    if program.get("userId") != user_id:
        raise HTTPException(status_code=403, detail="You can only access your own programs")
    return program


def _owned_workout_day(storage: ProgramStorage, workout_day_id: str, user_id: str) -> Dict[str, Any]:
    workout_day = storage.get_workout_day(workout_day_id)
    if not workout_day:
        raise HTTPException(status_code=404, detail="Workout day not found")
    phase = storage.get_phase(workout_day["phaseId"])
    if not phase:
        raise HTTPException(status_code=404, detail="Workout day not found")
    _owned_program(storage, phase["programId"], user_id)
    return workout_day


def _owned_exercise(storage: ProgramStorage, exercise_id: str, user_id: str) -> Dict[str, Any]:
    exercise = storage.get_exercise(exercise_id)
    if not exercise:
        raise HTTPException(status_code=404, detail="Exercise not found")
    _owned_workout_day(storage, exercise["workoutDayId"], user_id)
    return exercise


@router.get("/programs")
async def list_programs(
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """List the caller's programs."""
    return storage.list_programs(user_id)


@router.get("/programs/{program_id}")
async def get_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """Get a program with its phases, workout days and exercises."""
    program = _owned_program(storage, program_id, user_id)
    return {"program": program, "phases": load_program_tree(storage, program_id)}


@router.delete("/programs/{program_id}")
async def delete_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """Delete a program and everything below it."""
    _owned_program(storage, program_id, user_id)
    if not storage.delete_program(program_id):
        raise HTTPException(status_code=404, detail="Program not found")
    return {"success": True}


@router.get("/workout-days/{workout_day_id}")
async def get_workout_day(
    workout_day_id: str,
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """Get one workout day with its exercises."""
    workout_day = _owned_workout_day(storage, workout_day_id, user_id)
    return {**workout_day, "exercises": storage.list_exercises(workout_day_id)}


# ============================================================================
# Exercise edits
# ============================================================================

@router.patch("/exercises/{exercise_id}")
async def update_exercise(
    exercise_id: str,
    updates: ExerciseUpdate,
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """Apply a partial edit to one exercise; only the fields sent change."""
    _owned_exercise(storage, exercise_id, user_id)
    exercise = storage.update_exercise(
        exercise_id, updates.model_dump(by_alias=True, exclude_unset=True)
    )
    if not exercise:
        raise HTTPException(status_code=404, detail="Exercise not found")
    logger.info(f"Exercise {exercise_id} updated by {user_id}")
    return exercise


@router.delete("/exercises/{exercise_id}")
async def delete_exercise(
    exercise_id: str,
    user_id: str = Depends(get_current_user),
    storage: ProgramStorage = Depends(get_storage),
):
    """Delete one exercise."""
    _owned_exercise(storage, exercise_id, user_id)
    if not storage.delete_exercise(exercise_id):
        raise HTTPException(status_code=404, detail="Exercise not found")
    return {"success": True}
