"""Field repair for exercises extracted by the language model.

The model works from spreadsheet cells and sometimes echoes garbage: set
counts out of range, text where a number belongs, or the raw serial of a
cell that the spreadsheet auto-formatted as a date (e.g. "3" stored as
44624). ``sanitize_exercise`` never raises; every bad value is replaced by a
safe default so one broken cell never costs a whole exercise.
"""

import logging
import math
import re
from typing import Any, Dict, Optional

from program_ingestor_api.models import RawExercise

logger = logging.getLogger(__name__)

# Tunable heuristics. No real set count or RPE gets anywhere near 100, while
# date serials are five-digit numbers, so anything above this is an artifact.
DATE_SERIAL_THRESHOLD = 100

WARMUP_SETS_MIN, WARMUP_SETS_MAX = 0, 5
WARMUP_SETS_DEFAULT = 0
WARMUP_SETS_SERIAL_DEFAULT = 2

WORKING_SETS_MIN, WORKING_SETS_MAX = 1, 10
WORKING_SETS_DEFAULT = 3

RPE_MIN, RPE_MAX = 1.0, 10.0
RPE_DEFAULT = "8"
RPE_NOT_APPLICABLE = "N/A"

UNNAMED_EXERCISE = "Unnamed Exercise"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_DECIMAL_RE = re.compile(r"-?\d+(?:\.\d+)?")
_RPE_PASSTHROUGH_RE = re.compile(r"\bsee\s+notes?\b|\bn/a\b", re.IGNORECASE)

_OPTIONAL_TEXT_FIELDS = (
    "load",
    "restTimer",
    "substitutionOption1",
    "substitutionOption2",
    "notes",
)


def _parse_int(value: Any) -> Optional[int]:
    """Leading integer of a cell value, None when there isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    m = _LEADING_INT_RE.match(str(value))
    if m:
        return int(m.group(1))
    return None


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _format_number(value: float) -> str:
    return f"{value:g}"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def sanitize_warmup_sets(value: Any) -> int:
    """Warm-up sets in [0, 5]; date serials become 2, junk becomes 0."""
    parsed = _parse_int(value)
    if parsed is None:
        return WARMUP_SETS_DEFAULT
    if parsed > DATE_SERIAL_THRESHOLD:
        logger.debug(f"warmupSets {value!r} looks like a date serial, using {WARMUP_SETS_SERIAL_DEFAULT}")
        return WARMUP_SETS_SERIAL_DEFAULT
    return _clamp(parsed, WARMUP_SETS_MIN, WARMUP_SETS_MAX)


def sanitize_working_sets(value: Any) -> int:
    """Working sets in [1, 10]; date serials and junk become 3."""
    parsed = _parse_int(value)
    if parsed is None:
        return WORKING_SETS_DEFAULT
    if parsed > DATE_SERIAL_THRESHOLD:
        logger.debug(f"workingSets {value!r} looks like a date serial, using {WORKING_SETS_DEFAULT}")
        return WORKING_SETS_DEFAULT
    return _clamp(parsed, WORKING_SETS_MIN, WORKING_SETS_MAX)


def sanitize_rpe(value: Any) -> str:
    """
    Normalize an RPE target.

      - missing / falsy       → "N/A"
      - "See Notes", "n/a"    → passed through unchanged
      - "RPE 7.5", 8, "8"     → "7.5", "8", "8"
      - 44782 (date serial)   → "8"
      - anything else         → "8"
    """
    if not value or isinstance(value, bool):
        if value is True:
            return RPE_DEFAULT
        return RPE_NOT_APPLICABLE

    if isinstance(value, (int, float)):
        number: Optional[float] = float(value)
    else:
        text = str(value).strip()
        if not text:
            return RPE_NOT_APPLICABLE
        if _RPE_PASSTHROUGH_RE.search(text):
            return str(value)
        m = _DECIMAL_RE.search(text)
        number = float(m.group(0)) if m else None

    if number is None or math.isnan(number) or math.isinf(number):
        logger.debug(f"rpe {value!r} is not numeric, using {RPE_DEFAULT}")
        return RPE_DEFAULT

    if number > DATE_SERIAL_THRESHOLD:
        logger.debug(f"rpe {value!r} looks like a date serial, using {RPE_DEFAULT}")
        return RPE_DEFAULT

    if RPE_MIN <= number <= RPE_MAX:
        return _format_number(number)

    logger.debug(f"rpe {value!r} out of range, using {RPE_DEFAULT}")
    return RPE_DEFAULT


def sanitize_exercise(exercise: RawExercise) -> Dict[str, Any]:
    """Repair one raw exercise record.

    Returns a new camelCase dict with every numeric field inside its valid
    range. The superset label is carried over as-is and ``exerciseOrder`` is
    left out; both belong to the superset/ordering pass. Running this on its
    own output returns the same record.
    """
    repaired: Dict[str, Any] = {
        "exerciseName": _text(exercise.get("exerciseName")) or UNNAMED_EXERCISE,
        "warmupSets": sanitize_warmup_sets(exercise.get("warmupSets")),
        "workingSets": sanitize_working_sets(exercise.get("workingSets")),
        "reps": _text(exercise.get("reps")),
        "rpe": sanitize_rpe(exercise.get("rpe")),
    }
    for key in _OPTIONAL_TEXT_FIELDS:
        repaired[key] = _optional_text(exercise.get(key))
    repaired["supersetGroup"] = _optional_text(exercise.get("supersetGroup"))
    return repaired
