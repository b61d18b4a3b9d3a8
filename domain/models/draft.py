"""
Draft value object and snapshot (de)serialization.

A Draft is a recoverable, non-authoritative snapshot of the whole Exercise
State Store, addressed by (workout_id, user_id) and tagged with the workout
kind. Snapshots are stored as JSON:

    {"version": 1, "exercise_states": {"<exercise-instance-id>": {...}}}

Drafts written by the earlier web client used camelCase keys
(``exerciseStates``, ``setNumber``, ``cardioData``, ``runData``,
``flexibilityData``, ``currentExercise``); those are normalized on read.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from domain.errors import MalformedDraftError

SNAPSHOT_VERSION = 1
DEFAULT_DRAFT_KIND = "workout"


class Draft(BaseModel):
    """A stored draft row."""

    workout_id: str
    user_id: str
    kind: str = DEFAULT_DRAFT_KIND
    data: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @property
    def exercise_states(self) -> Dict[str, Dict[str, Any]]:
        """Per-exercise raw state dicts, normalized to the current key layout."""
        return normalize_snapshot(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.exercise_states


def build_snapshot(exercise_states: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {"version": SNAPSHOT_VERSION, "exercise_states": exercise_states}


def parse_draft_payload(payload: Any) -> Dict[str, Any]:
    """
    Decode a stored ``draft_data`` column.

    Accepts a dict, a JSON string, or None. Raises MalformedDraftError when the
    payload is a string that is not a JSON object.
    """
    if payload is None:
        return {}
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, str):
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedDraftError(f"Draft payload is not valid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise MalformedDraftError("Draft payload must be a JSON object")
        return decoded
    raise MalformedDraftError(f"Unsupported draft payload type: {type(payload).__name__}")


def normalize_snapshot(data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Return the exercise-state mapping of a snapshot in the current layout.

    Raises MalformedDraftError when the mapping is present but not an object.
    """
    if "exercise_states" in data:
        states = _state_mapping(data, "exercise_states")
        return {k: v for k, v in states.items() if isinstance(v, dict)}

    legacy = _state_mapping(data, "exerciseStates")
    return {
        exercise_id: _normalize_legacy_state(state)
        for exercise_id, state in legacy.items()
        if isinstance(state, dict)
    }


def _normalize_legacy_state(state: Dict[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    if "expanded" in state:
        normalized["expanded"] = bool(state["expanded"])

    current = state.get("currentExercise")
    if isinstance(current, dict) and current.get("id"):
        normalized["current_exercise"] = {
            "id": current["id"],
            "name": current.get("name") or "",
            "exercise_type": current.get("exercise_type") or "strength",
            "muscle_group": current.get("muscle_group"),
            "media_url": current.get("youtube_link"),
            "description": current.get("description"),
        }

    if state.get("runData"):
        normalized["kind"] = "run"
        normalized["run"] = _copy_keys(state["runData"], ("distance", "duration", "location", "completed"))
    elif state.get("cardioData"):
        normalized["kind"] = "cardio"
        normalized["cardio"] = _copy_keys(state["cardioData"], ("distance", "duration", "location", "completed"))
    elif state.get("flexibilityData"):
        normalized["kind"] = "flexibility"
        normalized["flexibility"] = _copy_keys(state["flexibilityData"], ("duration", "completed"))
    else:
        normalized["kind"] = "strength"
        normalized["sets"] = [
            {
                "set_number": s.get("setNumber", i + 1),
                "weight": _text(s.get("weight")),
                "reps": _text(s.get("reps")),
                "completed": bool(s.get("completed")),
            }
            for i, s in enumerate(state.get("sets") or [])
            if isinstance(s, dict)
        ]
    return normalized


def _state_mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    states = data.get(key) or {}
    if not isinstance(states, dict):
        raise MalformedDraftError(f"Draft {key} must be an object, got {type(states).__name__}")
    return states


def _copy_keys(source: Any, keys) -> Dict[str, Any]:
    if not isinstance(source, dict):
        return {}
    return {k: source[k] for k in keys if k in source}


def _text(value: Any) -> str:
    return "" if value is None else str(value)
