"""Tests for assembling a validated phase from raw model output."""

from program_ingestor_api.models import ParsedPhase
from program_ingestor_api.services.phase_assembler import assemble_phase, assemble_workout_day


class TestAssemblePhase:

    def test_phase_number_comes_from_caller_not_model(self, sample_phase_response):
        phase = assemble_phase(sample_phase_response, "Sheet1", 2)

        assert isinstance(phase, ParsedPhase)
        assert phase.phase_number == 2
        assert phase.phase_name == "Base Hypertrophy"
        assert phase.description == "Volume block"

    def test_exercises_repaired_labelled_and_ordered(self, sample_phase_response):
        phase = assemble_phase(sample_phase_response, "Sheet1", 1)
        push_day = phase.workout_days[0]

        push_up, stretch = push_day.exercises
        assert (push_up.warmup_sets, push_up.working_sets, push_up.rpe) == (2, 3, "8")
        assert (push_up.superset_group, stretch.superset_group) == ("A1", "A2")
        assert [e.exercise_order for e in push_day.exercises] == [1, 2]
        assert stretch.rpe == "N/A"

    def test_rest_day_exercises_dropped(self, sample_phase_response):
        phase = assemble_phase(sample_phase_response, "Sheet1", 1)
        rest_day = phase.workout_days[1]

        assert rest_day.is_rest_day is True
        assert rest_day.exercises == []

    def test_missing_phase_name_falls_back_to_sheet_name(self):
        phase = assemble_phase({"workoutDays": []}, "Deload", 3)

        assert phase.phase_name == "Deload"
        assert phase.workout_days == []

    def test_malformed_days_and_exercises_skipped(self):
        phase = assemble_phase(
            {
                "phaseName": "Block",
                "workoutDays": [
                    "not a day",
                    {"dayName": "Pull #1", "exercises": ["junk", {"exerciseName": "Row"}]},
                ],
            },
            "Sheet1",
            1,
        )

        assert len(phase.workout_days) == 1
        day = phase.workout_days[0]
        assert [e.exercise_name for e in day.exercises] == ["Row"]
        assert day.exercises[0].exercise_order == 1

    def test_non_list_workout_days_treated_as_empty(self):
        phase = assemble_phase({"phaseName": "Block", "workoutDays": {"day": 1}}, "Sheet1", 1)
        assert phase.workout_days == []

    def test_serializes_with_camel_case_keys(self, sample_phase_response):
        data = assemble_phase(sample_phase_response, "Sheet1", 1).model_dump(by_alias=True)

        assert data["phaseNumber"] == 1
        exercise = data["workoutDays"][0]["exercises"][0]
        assert exercise["exerciseName"] == "Push-up"
        assert exercise["supersetGroup"] == "A1"
        assert exercise["exerciseOrder"] == 1
        assert "substitutionOption1" in exercise


class TestAssembleWorkoutDay:

    def test_defaults_for_missing_fields(self):
        day = assemble_workout_day({}, 4)

        assert day.day_name == "Day 4"
        assert day.day_number == 4
        assert day.week_number == 1
        assert day.is_rest_day is False
        assert day.exercises == []

    def test_numbers_parsed_from_strings(self):
        day = assemble_workout_day({"dayName": "Legs #1", "dayNumber": "3", "weekNumber": "2"}, 1)

        assert day.day_number == 3
        assert day.week_number == 2

    def test_invalid_numbers_fall_back(self):
        day = assemble_workout_day({"dayNumber": "first", "weekNumber": 0}, 2)

        assert day.day_number == 2
        assert day.week_number == 1

    def test_rest_flag_accepts_strings(self):
        day = assemble_workout_day(
            {"dayName": "REST", "isRestDay": "true", "exercises": [{"exerciseName": "Walk"}]},
            6,
        )

        assert day.is_rest_day is True
        assert day.exercises == []
