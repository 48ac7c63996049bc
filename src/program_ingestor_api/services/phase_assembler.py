"""Builds a validated phase out of one raw model response."""

import logging
from typing import Any, List, Optional

from program_ingestor_api.models import (
    ParsedExercise,
    ParsedPhase,
    ParsedWorkoutDay,
    RawPhase,
    RawWorkoutDay,
)
from program_ingestor_api.services.exercise_sanitizer import sanitize_exercise
from program_ingestor_api.services.superset_ordering import assign_superset_groups

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "y", "1"}


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 1 else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def assemble_workout_day(raw_day: RawWorkoutDay, position: int) -> ParsedWorkoutDay:
    """Validate one raw workout day; ``position`` is its 1-based index in the phase."""
    day_name = _optional_text(raw_day.get("dayName")) or f"Day {position}"
    is_rest_day = _as_bool(raw_day.get("isRestDay"))

    raw_exercises = raw_day.get("exercises")
    if not isinstance(raw_exercises, list):
        raw_exercises = []

    exercises: List[ParsedExercise] = []
    if is_rest_day:
        if raw_exercises:
            logger.warning(
                f"Rest day '{day_name}' came back with {len(raw_exercises)} exercises; dropping them"
            )
    else:
        records = []
        for raw_exercise in raw_exercises:
            if not isinstance(raw_exercise, dict):
                logger.warning(f"Skipping malformed exercise in '{day_name}': {raw_exercise!r}")
                continue
            records.append(sanitize_exercise(raw_exercise))
        exercises = [
            ParsedExercise.model_validate(record)
            for record in assign_superset_groups(records)
        ]

    return ParsedWorkoutDay(
        day_name=day_name,
        day_number=_positive_int(raw_day.get("dayNumber")) or position,
        is_rest_day=is_rest_day,
        week_number=_positive_int(raw_day.get("weekNumber")) or 1,
        exercises=exercises,
    )


def assemble_phase(raw_phase: RawPhase, sheet_name: str, phase_number: int) -> ParsedPhase:
    """
    Validate every workout day of one extracted sheet.

    Args:
        raw_phase: Output of the sheet extractor
        sheet_name: Name of the source sheet (fallback phase name)
        phase_number: 1-based phase number assigned by the orchestrator

    Returns:
        ParsedPhase with repaired exercises and dense exercise order
    """
    raw_days = raw_phase.get("workoutDays")
    if not isinstance(raw_days, list):
        raw_days = []

    workout_days = []
    for position, raw_day in enumerate(raw_days, 1):
        if not isinstance(raw_day, dict):
            logger.warning(f"Skipping malformed workout day in sheet '{sheet_name}': {raw_day!r}")
            continue
        workout_days.append(assemble_workout_day(raw_day, position))

    return ParsedPhase(
        phase_name=_optional_text(raw_phase.get("phaseName")) or sheet_name,
        phase_number=phase_number,
        description=_optional_text(raw_phase.get("description")),
        workout_days=workout_days,
    )
