"""Storage for parsed programs.

Records mirror the relational layout the tracking UI reads: one program row,
then phase, workout day and exercise rows linked by generated ids.
``MemoryProgramStorage`` keeps them in process memory; a database backed
store only needs the same methods.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from program_ingestor_api.models import ParsedProgram

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ProgramStorage(Protocol):
    def create_program(self, data: Record) -> Record: ...
    def get_program(self, program_id: str) -> Optional[Record]: ...
    def list_programs(self, user_id: str) -> List[Record]: ...
    def delete_program(self, program_id: str) -> bool: ...

    def create_phase(self, data: Record) -> Record: ...
    def get_phase(self, phase_id: str) -> Optional[Record]: ...
    def list_phases(self, program_id: str) -> List[Record]: ...
    def delete_phase(self, phase_id: str) -> bool: ...

    def create_workout_day(self, data: Record) -> Record: ...
    def get_workout_day(self, workout_day_id: str) -> Optional[Record]: ...
    def list_workout_days(self, phase_id: str) -> List[Record]: ...
    def delete_workout_day(self, workout_day_id: str) -> bool: ...

    def create_exercise(self, data: Record) -> Record: ...
    def get_exercise(self, exercise_id: str) -> Optional[Record]: ...
    def list_exercises(self, workout_day_id: str) -> List[Record]: ...
    def update_exercise(self, exercise_id: str, updates: Record) -> Optional[Record]: ...
    def delete_exercise(self, exercise_id: str) -> bool: ...


class MemoryProgramStorage:
    """In-process ProgramStorage keyed by UUID strings.

    Deletes cascade: removing a program, phase or workout day removes every
    record below it.
    """

    # Link fields an update may not rewrite
    _FIXED_FIELDS = {"id", "workoutDayId"}

    def __init__(self):
        self._programs: Dict[str, Record] = {}
        self._phases: Dict[str, Record] = {}
        self._workout_days: Dict[str, Record] = {}
        self._exercises: Dict[str, Record] = {}

    @staticmethod
    def _insert(table: Dict[str, Record], data: Record) -> Record:
        record = {**data, "id": str(uuid.uuid4())}
        table[record["id"]] = record
        return dict(record)

    @staticmethod
    def _get(table: Dict[str, Record], record_id: str) -> Optional[Record]:
        record = table.get(record_id)
        return dict(record) if record else None

    # Programs

    def create_program(self, data: Record) -> Record:
        return self._insert(self._programs, data)

    def get_program(self, program_id: str) -> Optional[Record]:
        return self._get(self._programs, program_id)

    def list_programs(self, user_id: str) -> List[Record]:
        return [dict(p) for p in self._programs.values() if p.get("userId") == user_id]

    def delete_program(self, program_id: str) -> bool:
        if self._programs.pop(program_id, None) is None:
            return False
        for phase_id in [pid for pid, p in self._phases.items() if p["programId"] == program_id]:
            self.delete_phase(phase_id)
        return True

    # Phases

    def create_phase(self, data: Record) -> Record:
        return self._insert(self._phases, data)

    def get_phase(self, phase_id: str) -> Optional[Record]:
        return self._get(self._phases, phase_id)

    def list_phases(self, program_id: str) -> List[Record]:
        phases = [dict(p) for p in self._phases.values() if p["programId"] == program_id]
        return sorted(phases, key=lambda p: p["phaseNumber"])

    def delete_phase(self, phase_id: str) -> bool:
        if self._phases.pop(phase_id, None) is None:
            return False
        for day_id in [did for did, d in self._workout_days.items() if d["phaseId"] == phase_id]:
            self.delete_workout_day(day_id)
        return True

    # Workout days

    def create_workout_day(self, data: Record) -> Record:
        return self._insert(self._workout_days, data)

    def get_workout_day(self, workout_day_id: str) -> Optional[Record]:
        return self._get(self._workout_days, workout_day_id)

    def list_workout_days(self, phase_id: str) -> List[Record]:
        # dicts keep insertion order, which is the order the days were parsed in
        return [dict(d) for d in self._workout_days.values() if d["phaseId"] == phase_id]

    def delete_workout_day(self, workout_day_id: str) -> bool:
        if self._workout_days.pop(workout_day_id, None) is None:
            return False
        for exercise_id in [
            eid for eid, e in self._exercises.items() if e["workoutDayId"] == workout_day_id
        ]:
            del self._exercises[exercise_id]
        return True

    # Exercises

    def create_exercise(self, data: Record) -> Record:
        return self._insert(self._exercises, data)

    def get_exercise(self, exercise_id: str) -> Optional[Record]:
        return self._get(self._exercises, exercise_id)

    def list_exercises(self, workout_day_id: str) -> List[Record]:
        exercises = [dict(e) for e in self._exercises.values() if e["workoutDayId"] == workout_day_id]
        return sorted(exercises, key=lambda e: e["exerciseOrder"])

    def update_exercise(self, exercise_id: str, updates: Record) -> Optional[Record]:
        """Merge ``updates`` into an exercise; None if it does not exist."""
        record = self._exercises.get(exercise_id)
        if record is None:
            return None
        record.update({k: v for k, v in updates.items() if k not in self._FIXED_FIELDS})
        return dict(record)

    def delete_exercise(self, exercise_id: str) -> bool:
        return self._exercises.pop(exercise_id, None) is not None


def persist_program(storage: ProgramStorage, user_id: str, program: ParsedProgram) -> Dict[str, Any]:
    """
    Hand a parsed program to storage, preserving its hierarchy.

    Returns:
        ``{"program", "phases", "totalExercises"}`` with the created records
    """
    program_record = storage.create_program({
        "userId": user_id,
        "name": program.program_name,
        "uploadDate": datetime.now(timezone.utc).isoformat(),
        "description": program.description,
    })

    phase_records = []
    total_exercises = 0

    for phase in program.phases:
        phase_record = storage.create_phase({
            "programId": program_record["id"],
            "name": phase.phase_name,
            "phaseNumber": phase.phase_number,
            "description": phase.description,
        })
        phase_records.append(phase_record)

        for day in phase.workout_days:
            day_record = storage.create_workout_day({
                "phaseId": phase_record["id"],
                "dayName": day.day_name,
                "dayNumber": day.day_number,
                "isRestDay": day.is_rest_day,
                "weekNumber": day.week_number,
            })

            for exercise in day.exercises:
                storage.create_exercise({
                    "workoutDayId": day_record["id"],
                    **exercise.model_dump(by_alias=True),
                })
                total_exercises += 1

    logger.info(
        f"Stored program '{program.program_name}' ({len(phase_records)} phases, {total_exercises} exercises)"
    )

    return {
        "program": program_record,
        "phases": phase_records,
        "totalExercises": total_exercises,
    }


def load_program_tree(storage: ProgramStorage, program_id: str) -> List[Record]:
    """Phases of a stored program with their workout days and exercises nested."""
    phases = []
    for phase in storage.list_phases(program_id):
        days = []
        for day in storage.list_workout_days(phase["id"]):
            days.append({**day, "exercises": storage.list_exercises(day["id"])})
        phases.append({**phase, "workoutDays": days})
    return phases
