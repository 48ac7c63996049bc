"""LLM extraction of one spreadsheet sheet into a raw phase structure."""
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional

from program_ingestor_api.ai import is_rate_limit_error, retry_async_call
from program_ingestor_api.ai.retry import DEFAULT_BASE_WAIT_SECONDS, DEFAULT_MAX_ATTEMPTS
from program_ingestor_api.config import settings
from program_ingestor_api.models import RawPhase


logger = logging.getLogger(__name__)


class SheetExtractionError(Exception):
    """Terminal failure extracting one sheet."""

    def __init__(self, sheet_name: str, message: str):
        self.sheet_name = sheet_name
        self.message = message
        super().__init__(f"Sheet '{sheet_name}': {message}")


class SheetExtractor:
    """Sends one sheet at a time to the language model and returns its raw phase."""

    SYSTEM_PROMPT = """You are an expert strength coach analyzing workout program spreadsheets. Each spreadsheet sheet is one training phase. Parse the phase and extract its structure.

Your task:
1. Extract the phase name and description
2. Identify all workout days (e.g., "Push #1", "Pull #1", "Legs #1")
3. For each workout day, extract every exercise with its details, in sheet order
4. Recognize supersets, marked with prefixes such as "A1.", "A2.", "B1.", "B2."
5. Include rest days in the weekly schedule

Column headers are free text. Treat these as synonyms:
- exercise: "Exercise", "Movement", "Lift"
- warmupSets: "Warm-up Sets", "Warmup", "WU Sets"
- workingSets: "Working Sets", "Sets", "Work Sets"
- reps: "Reps", "Rep Range", "Reps/Time"
- load: "Load", "Weight", "%1RM", "Intensity"
- rpe: "RPE", "Last-Set RPE", "Early Set RPE"
- restTimer: "Rest", "Rest Period", "Rest Time"
- substitutionOption1 / substitutionOption2: "Substitution Option 1", "Sub 1", "Alternative"
- notes: "Notes", "Cues", "Coaching Notes"

For each exercise, extract:
- exerciseName: The exercise name WITHOUT the superset prefix
- warmupSets: Number of warm-up sets, integer 0-5 (default 0)
- workingSets: Number of working sets, integer 1-10
- reps: Rep prescription as a string exactly as written (e.g., "8-10", "10+5", "30s HOLD")
- load: Load prescription if specified (e.g., "75% 1RM")
- rpe: RPE target as a string: a number from 1 to 10, "See Notes" or "N/A"
- restTimer: Rest between sets as written (e.g., "~3-4 min", "0 min")
- substitutionOption1: First substitution option
- substitutionOption2: Second substitution option
- notes: Exercise notes/cues
- supersetGroup: Superset label if applicable (e.g., "A1", "A2", "B1", "B2"), otherwise null
- exerciseOrder: Position in the workout (1, 2, 3, ...)

Return a JSON object with:
{
  "phaseName": "Phase name",
  "description": "Phase description",
  "workoutDays": [
    {
      "dayName": "Push #1",
      "dayNumber": 1,
      "isRestDay": false,
      "weekNumber": 1,
      "exercises": [ ... ]
    }
  ]
}

IMPORTANT:
- Numeric cells may hold spreadsheet date serials (five-digit numbers such as 44624) because a cell like "3" or "8-10" was auto-formatted as a date. Never copy such numbers into warmupSets, workingSets or rpe; infer the intended value or use the default.
- If the program has 5-6 workout days per week, append 1-2 rest days ({"dayName": "REST", "isRestDay": true, "exercises": []}) so each week has 7 days
- Typical patterns: Push/Pull/Legs/Push/Pull/REST/REST or Push/Pull/REST/Legs/Push/Pull/REST
- Keep all text values exactly as they appear

Return ONLY valid JSON, no additional text."""

    def __init__(
        self,
        client: Any,
        model: Optional[str] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_wait_seconds: float = DEFAULT_BASE_WAIT_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            client: AsyncOpenAI-compatible client (``client.chat.completions.create``)
            model: Model name, defaults to OPENAI_MODEL
            max_attempts: Total attempts per sheet, retried on rate limiting only
            base_wait_seconds: Backoff before the first retry, doubled after that
            sleep: Optional async sleep used between retries
        """
        self.client = client
        self.model = model or settings.OPENAI_MODEL
        self.max_attempts = max_attempts
        self.base_wait_seconds = base_wait_seconds
        self.sleep = sleep

    @classmethod
    def build_user_message(cls, sheet_name: str, rows: List[List[Any]], phase_number: int) -> str:
        return (
            f'Parse this workout phase. Sheet name: "{sheet_name}" (phase {phase_number} of the program)\n\n'
            f"Sheet data (one array per row, header row included):\n"
            f"{json.dumps(rows, ensure_ascii=False, default=str)}\n\n"
            "Return the parsed phase structure as JSON."
        )

    async def _request_completion(self, sheet_name: str, rows: List[List[Any]], phase_number: int) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": self.build_user_message(sheet_name, rows, phase_number)},
            ],
            response_format={"type": "json_object"},
            temperature=0.1,
        )

        content = None
        if response is not None and response.choices:
            content = response.choices[0].message.content
        if not content or not content.strip():
            raise SheetExtractionError(sheet_name, "No response from language model")
        return content

    async def extract(self, sheet_name: str, rows: List[List[Any]], phase_number: int) -> RawPhase:
        """
        Extract the raw phase structure of one sheet.

        Args:
            sheet_name: Name of the sheet
            rows: Truncated row grid of the sheet
            phase_number: 1-based position of the sheet, passed to the model as a hint

        Returns:
            ``{"phaseName", "description", "workoutDays"}`` with untyped contents

        Raises:
            SheetExtractionError: On any non-rate-limit failure, or when rate
                limiting outlasts every attempt
        """
        logger.info(f"Extracting sheet '{sheet_name}' ({len(rows)} rows) with {self.model}")

        try:
            content = await retry_async_call(
                self._request_completion,
                sheet_name,
                rows,
                phase_number,
                max_attempts=self.max_attempts,
                base_wait_seconds=self.base_wait_seconds,
                sleep=self.sleep,
            )
        except SheetExtractionError:
            raise
        except Exception as e:
            if is_rate_limit_error(e):
                logger.error(f"Sheet '{sheet_name}' still rate limited after {self.max_attempts} attempts")
                raise SheetExtractionError(
                    sheet_name, f"Rate limited after {self.max_attempts} attempts: {e}"
                ) from e
            logger.error(f"Language model call failed for sheet '{sheet_name}': {e}")
            raise SheetExtractionError(sheet_name, f"Language model call failed: {e}") from e

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise SheetExtractionError(sheet_name, f"Response is not valid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise SheetExtractionError(
                sheet_name, f"Expected a JSON object, got {type(parsed).__name__}"
            )

        workout_days = parsed.get("workoutDays")
        if not isinstance(workout_days, list):
            logger.warning(f"Sheet '{sheet_name}' response has no workoutDays array; phase will be empty")
            workout_days = []

        return {
            "phaseName": parsed.get("phaseName") or sheet_name,
            "description": parsed.get("description"),
            "workoutDays": workout_days,
        }
