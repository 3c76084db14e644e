"""
Parse the model's free-form reply into validated ``DayPlan`` objects.

The model is asked for a bare JSON array but often wraps it in prose or
markdown fences, so the first balanced ``[...]`` literal is located with a
string-aware bracket scan before decoding. Validation is all-or-nothing:
one bad day rejects the whole reply.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Iterator, Optional

from errors import MalformedResponse
from TripInfo import Activity, DayPlan

REQUIRED_ACTIVITY_FIELDS = ("time", "title", "description", "category")
OPTIONAL_TEXT_FIELDS = ("location", "duration", "tips")

_CURRENCY_CHARS = re.compile(r"[\s,$€£¥₹]")


# ---------------------------------------------------------------------------
# Locating the array
# ---------------------------------------------------------------------------

def _matching_bracket(text: str, start: int) -> Optional[int]:
    """Index of the ``]`` closing the ``[`` at ``start``, or None if unbalanced."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return None


def _array_candidates(text: str) -> Iterator[str]:
    start = text.find("[")
    while start != -1:
        end = _matching_bracket(text, start)
        if end is not None:
            yield text[start:end + 1]
        start = text.find("[", start + 1)


def extract_json_array(text: str) -> list:
    """Decode the first balanced JSON array embedded in ``text``."""
    for candidate in _array_candidates(text or ""):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            return value
    raise MalformedResponse("No JSON array found in model response", raw_response=text)


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def _day_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"expected text, got {type(value).__name__}")


def _cost(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("expected a number, got bool")
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            raise ValueError(f"cost out of range: {value!r}")
    elif isinstance(value, str):
        cleaned = _CURRENCY_CHARS.sub("", value).lower()
        if not cleaned:
            return None
        if cleaned == "free":
            return 0.0
        result = float(cleaned)  # ValueError for anything ambiguous
    else:
        raise ValueError(f"expected a number, got {type(value).__name__}")
    # NaN and infinities cannot be serialised as JSON
    if not math.isfinite(result):
        raise ValueError(f"cost is not a finite number: {value!r}")
    return result


def _parse_activity(raw: Any) -> Activity:
    if not isinstance(raw, dict):
        raise ValueError("activity is not an object")

    for key in REQUIRED_ACTIVITY_FIELDS:
        if not isinstance(raw.get(key), str):
            raise ValueError(f"activity field '{key}' missing or not a string")

    optional = {key: _optional_text(raw.get(key)) for key in OPTIONAL_TEXT_FIELDS}
    return Activity(
        time=raw["time"],
        title=raw["title"],
        description=raw["description"],
        category=raw["category"],
        cost=_cost(raw.get("cost")),
        **optional,
    )


def _parse_day(raw: Any) -> DayPlan:
    if not isinstance(raw, dict):
        raise ValueError("day is not an object")

    index = _day_index(raw.get("day"))
    if index is None or index < 1:
        raise ValueError(f"invalid day index {raw.get('day')!r}")

    activities = raw.get("activities")
    if not isinstance(activities, list):
        raise ValueError(f"day {index}: 'activities' is not an array")

    parsed = []
    for pos, activity in enumerate(activities, start=1):
        try:
            parsed.append(_parse_activity(activity))
        except ValueError as exc:
            raise ValueError(f"day {index}, activity {pos}: {exc}") from exc

    theme = raw.get("theme")
    notes = raw.get("notes")
    return DayPlan(
        day=index,
        theme=theme.strip() if isinstance(theme, str) and theme.strip() else f"Day {index}",
        activities=parsed,
        notes=notes if isinstance(notes, str) else None,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_itinerary(text: str) -> list[DayPlan]:
    """Extract and validate the day-by-day plan from raw model output.

    Raises MalformedResponse (carrying ``text``) when no array is present,
    the array is empty, or any day fails validation.
    """
    data = extract_json_array(text)
    if not data:
        raise MalformedResponse("Model returned an empty itinerary", raw_response=text)

    days: list[DayPlan] = []
    seen: set[int] = set()
    for raw_day in data:
        try:
            day = _parse_day(raw_day)
        except ValueError as exc:
            raise MalformedResponse(f"Invalid itinerary: {exc}", raw_response=text) from exc
        if day.day in seen:
            raise MalformedResponse(f"Invalid itinerary: day {day.day} appears twice", raw_response=text)
        seen.add(day.day)
        days.append(day)
    return days
