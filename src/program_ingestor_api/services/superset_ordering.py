"""Superset labelling and exercise ordering for one workout day.

Programs pair a lift with a static stretch performed straight after it. The
model tags the lift fairly reliably but often forgets the stretch, so the
labels are corrected here with one exercise of lookahead:

    Push-up                  -> A1
    Static Stretch - Chest   -> A2

Every other label is kept as the model proposed it. ``exerciseOrder`` is
always rewritten to the 1-based position so a day's order is 1..N.
"""

import re
from typing import Any, Dict, List, Optional

STATIC_STRETCH_MARKER = "static stretch"
DEFAULT_GROUP_LETTER = "A"

# "A", "b", "A1", "B2" -> group letter + optional position
_GROUP_LABEL_RE = re.compile(r"^([A-Za-z])(\d*)$")


def is_static_stretch(exercise: Dict[str, Any]) -> bool:
    name = exercise.get("exerciseName") or ""
    return STATIC_STRETCH_MARKER in str(name).lower()


def group_letter(label: Optional[str]) -> Optional[str]:
    """Upper-case group letter of a label like 'b' or 'B1', None otherwise."""
    if not label:
        return None
    m = _GROUP_LABEL_RE.match(label.strip())
    if not m:
        return None
    return m.group(1).upper()


def _is_bare_letter(label: Optional[str]) -> bool:
    return bool(label) and len(label.strip()) == 1 and group_letter(label) is not None


def assign_superset_groups(exercises: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Correct superset labels and assign dense exercise order.

    Args:
        exercises: Sanitized exercise dicts for one workout day, in order

    Returns:
        New dicts, same length and order, with ``supersetGroup`` and
        ``exerciseOrder`` set
    """
    ordered = []

    for index, exercise in enumerate(exercises):
        label = exercise.get("supersetGroup") or None
        following = exercises[index + 1] if index + 1 < len(exercises) else None

        if is_static_stretch(exercise):
            label = f"{group_letter(label) or DEFAULT_GROUP_LETTER}2"
        elif following is not None and is_static_stretch(following):
            if label is None or _is_bare_letter(label):
                label = f"{group_letter(label) or DEFAULT_GROUP_LETTER}1"

        updated = dict(exercise)
        updated["supersetGroup"] = label
        updated["exerciseOrder"] = index + 1
        ordered.append(updated)

    return ordered
