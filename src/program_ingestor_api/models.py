"""Data models for parsed training programs.

Attributes are snake_case in Python; JSON uses camelCase aliases
(``exerciseName``, ``workoutDays`` ...) which is also the shape the
extraction prompt asks the model for.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Untyped payloads straight from the language model. Only the phase
# assembler reads these; everything downstream gets the validated models.
RawPhase = Dict[str, Any]
RawWorkoutDay = Dict[str, Any]
RawExercise = Dict[str, Any]


class CamelModel(BaseModel):
    """Base model that serializes with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedExercise(CamelModel):
    """A single validated exercise within a workout day."""
    exercise_name: str
    warmup_sets: int = Field(default=0, ge=0, le=5)
    working_sets: int = Field(default=3, ge=1, le=10)
    reps: str = Field(default="", description="Free-form, e.g. '8-10', '10+5', '30s HOLD'")
    load: Optional[str] = None
    rpe: str = Field(default="N/A", description="Decimal in [1, 10], 'N/A' or a 'See Notes' style string")
    rest_timer: Optional[str] = None
    substitution_option1: Optional[str] = Field(default=None, alias="substitutionOption1")
    substitution_option2: Optional[str] = Field(default=None, alias="substitutionOption2")
    notes: Optional[str] = None
    superset_group: Optional[str] = None
    exercise_order: int = Field(..., ge=1)


class ExerciseUpdate(CamelModel):
    """Partial edit of a stored exercise; only the fields sent are applied."""
    exercise_name: Optional[str] = Field(default=None, min_length=1)
    warmup_sets: Optional[int] = Field(default=None, ge=0, le=5)
    working_sets: Optional[int] = Field(default=None, ge=1, le=10)
    reps: Optional[str] = None
    load: Optional[str] = None
    rpe: Optional[str] = None
    rest_timer: Optional[str] = None
    substitution_option1: Optional[str] = Field(default=None, alias="substitutionOption1")
    substitution_option2: Optional[str] = Field(default=None, alias="substitutionOption2")
    notes: Optional[str] = None
    superset_group: Optional[str] = None
    exercise_order: Optional[int] = Field(default=None, ge=1)


class ParsedWorkoutDay(CamelModel):
    """One training session or rest day."""
    day_name: str
    day_number: int
    is_rest_day: bool = False
    week_number: int = 1
    exercises: List[ParsedExercise] = Field(default_factory=list)


class ParsedPhase(CamelModel):
    """A training block, one per spreadsheet sheet."""
    phase_name: str
    phase_number: int = Field(..., ge=1)
    description: Optional[str] = None
    workout_days: List[ParsedWorkoutDay] = Field(default_factory=list)


class SheetFailure(CamelModel):
    """A sheet that could not be extracted and was left out of the program."""
    sheet_name: str
    sheet_position: int
    error: str


class ParsedProgram(CamelModel):
    """Root result of parsing one uploaded workbook."""
    program_name: str
    description: Optional[str] = None
    phases: List[ParsedPhase] = Field(default_factory=list)
    skipped_sheets: List[SheetFailure] = Field(default_factory=list)

    @property
    def total_exercises(self) -> int:
        return sum(
            len(day.exercises)
            for phase in self.phases
            for day in phase.workout_days
        )
