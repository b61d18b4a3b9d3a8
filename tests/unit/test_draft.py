"""
Unit tests for domain/models/draft.py

Tests for:
- Decoding stored draft payloads (dict, JSON text, malformed)
- Normalizing camelCase drafts written by the earlier web client
"""

import pytest

from domain.errors import MalformedDraftError
from domain.exercise_store import ExerciseStateStore
from domain.models.draft import Draft, build_snapshot, parse_draft_payload
from tests.fakes import create_mixed_workout


# =============================================================================
# parse_draft_payload
# =============================================================================


@pytest.mark.unit
class TestParseDraftPayload:
    def test_none_is_empty(self):
        assert parse_draft_payload(None) == {}

    def test_dict_passes_through(self):
        payload = {"version": 1, "exercise_states": {}}
        assert parse_draft_payload(payload) is payload

    def test_json_text_is_decoded(self):
        assert parse_draft_payload('{"version": 1, "exercise_states": {"we-1": {}}}') == {
            "version": 1,
            "exercise_states": {"we-1": {}},
        }

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedDraftError) as exc_info:
            parse_draft_payload("{not json")
        assert exc_info.value.code == "malformed_draft"

    @pytest.mark.parametrize("payload", ["[1, 2]", "42", 3.5, ["a"]])
    def test_non_object_raises(self, payload):
        with pytest.raises(MalformedDraftError):
            parse_draft_payload(payload)


# =============================================================================
# Draft value object
# =============================================================================


@pytest.mark.unit
class TestDraft:
    def test_current_layout(self):
        draft = Draft(
            workout_id="w-1",
            user_id="user-1",
            data=build_snapshot({"we-1": {"kind": "strength", "expanded": False}}),
        )
        assert draft.exercise_states == {"we-1": {"kind": "strength", "expanded": False}}
        assert draft.is_empty is False
        assert draft.kind == "workout"

    def test_empty_draft(self):
        assert Draft(workout_id="w-1", user_id="user-1").is_empty is True
        assert Draft(workout_id="w-1", user_id="user-1", data=build_snapshot({})).is_empty is True

    def test_non_dict_entries_are_dropped(self):
        draft = Draft(
            workout_id="w-1",
            user_id="user-1",
            data={"exercise_states": {"we-1": "garbage", "we-2": {"expanded": True}}},
        )
        assert list(draft.exercise_states) == ["we-2"]


# =============================================================================
# Legacy camelCase drafts
# =============================================================================


LEGACY_DRAFT = {
    "exerciseStates": {
        "we-strength": {
            "expanded": False,
            "sets": [
                {"setNumber": 1, "weight": 135, "reps": 8, "completed": True},
                {"setNumber": 2, "weight": None, "reps": "", "completed": False},
            ],
            "currentExercise": {
                "id": "ex-incline",
                "name": "Incline Press",
                "youtube_link": "https://example.com/incline.gif",
            },
        },
        "we-cardio": {"cardioData": {"distance": "5", "duration": "20:00", "location": "Gym"}},
        "we-run": {"runData": {"distance": "3.10", "duration": "00:27:00", "completed": True}},
        "we-flex": {"flexibilityData": {"duration": "01:00"}},
    }
}


@pytest.mark.unit
class TestLegacyDrafts:
    def test_strength_sets_are_renamed_and_stringified(self):
        states = Draft(workout_id="w-mixed", user_id="user-1", data=LEGACY_DRAFT).exercise_states
        strength = states["we-strength"]

        assert strength["kind"] == "strength"
        assert strength["expanded"] is False
        assert strength["sets"][0] == {"set_number": 1, "weight": "135", "reps": "8", "completed": True}
        assert strength["sets"][1]["weight"] == ""
        assert strength["current_exercise"]["media_url"] == "https://example.com/incline.gif"

    def test_category_payloads(self):
        states = Draft(workout_id="w-mixed", user_id="user-1", data=LEGACY_DRAFT).exercise_states
        assert states["we-cardio"]["kind"] == "cardio"
        assert states["we-cardio"]["cardio"]["location"] == "Gym"
        assert states["we-run"]["kind"] == "run"
        assert states["we-run"]["run"]["completed"] is True
        assert states["we-flex"]["kind"] == "flexibility"

    def test_legacy_draft_restores_into_store(self):
        draft = Draft(workout_id="w-mixed", user_id="user-1", data=LEGACY_DRAFT)
        store, report = ExerciseStateStore.from_definition(create_mixed_workout(), draft.exercise_states)

        assert sorted(report.restored) == ["we-cardio", "we-flex", "we-run", "we-strength"]
        strength = store.get("we-strength")
        assert strength.current_exercise.name == "Incline Press"
        assert strength.sets[0].weight == "135"
        assert len(strength.sets) == 2
        assert store.get("we-run").run.distance == "3.10"
