"""Factory functions for creating test doubles and workbooks."""
import io
import json
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import httpx
from openai import APIStatusError, RateLimitError
from openpyxl import Workbook


TEST_USER_ID = "test-user-123"


def make_completion(content: Any) -> MagicMock:
    """Mock chat completion whose first choice carries ``content``."""
    if isinstance(content, dict):
        content = json.dumps(content)
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def make_llm_client(*responses: Any) -> MagicMock:
    """
    Mock AsyncOpenAI client.

    Each response is a dict/str (returned as completion content) or an
    Exception (raised), consumed one per call. A single non-error response
    is returned for every call.
    """
    client = MagicMock()
    side_effects = [
        r if isinstance(r, BaseException) else make_completion(r)
        for r in responses
    ]
    if len(side_effects) == 1 and not isinstance(side_effects[0], BaseException):
        client.chat.completions.create = AsyncMock(return_value=side_effects[0])
    else:
        client.chat.completions.create = AsyncMock(side_effect=side_effects)
    return client


def make_status_error(status_code: int, message: str) -> APIStatusError:
    """Build a real openai status error (RateLimitError for 429)."""
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    error_class = RateLimitError if status_code == 429 else APIStatusError
    return error_class(message, response=response, body=None)


class RecordingSleep:
    """Async sleep replacement that records requested waits."""

    def __init__(self):
        self.waits: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def make_workbook(sheets: Dict[str, List[List[Any]]]) -> bytes:
    """Build an .xlsx file with one sheet per entry, in insertion order."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def phase_response(phase_name: str, *day_names: str) -> Dict[str, Any]:
    """Minimal valid model output with one exercise per day."""
    return {
        "phaseName": phase_name,
        "workoutDays": [
            {
                "dayName": day_name,
                "dayNumber": number,
                "isRestDay": False,
                "exercises": [
                    {"exerciseName": f"{day_name} Lift", "workingSets": 3, "reps": "8", "rpe": "8"},
                ],
            }
            for number, day_name in enumerate(day_names, 1)
        ],
    }
