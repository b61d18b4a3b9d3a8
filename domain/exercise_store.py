"""
Exercise State Store.

An in-memory, keyed map from exercise-instance id to its ExerciseState,
owned exclusively by one active session. All mutations are synchronous,
local and last-write-wins per field; each one bumps ``revision`` and notifies
subscribers (the draft autosave service subscribes here).

The store is plain data: rendering is a projection of ``get()``/``items()``
and persistence is a projection of ``snapshot()``.

Usage:
    >>> store, report = ExerciseStateStore.from_definition(definition, draft.exercise_states)
    >>> store.set_field("we-1", "weight", "135", set_number=1)
    >>> store.set_completed("we-1", True, set_number=1)
    >>> store.snapshot()
    {'version': 1, 'exercise_states': {...}}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from domain.errors import UnknownExerciseError
from domain.models.draft import build_snapshot
from domain.models.exercise_state import (
    CardioState,
    ExerciseState,
    FlexibilityState,
    RunState,
    SetEntry,
    StrengthState,
    default_state_for,
    exercise_state_adapter,
)
from domain.models.workout_definition import CatalogExercise, WorkoutDefinition

logger = logging.getLogger(__name__)

Listener = Callable[["ExerciseStateStore"], None]

STRENGTH_FIELDS = ("weight", "reps")
CARDIO_FIELDS = ("distance", "duration", "location")
FLEXIBILITY_FIELDS = ("duration",)


@dataclass
class MergeReport:
    """Outcome of overlaying draft entries onto default states."""

    restored: List[str] = field(default_factory=list)
    defaulted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)

    @property
    def draft_applied(self) -> bool:
        return bool(self.restored)


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_draft_states(
    defaults: Dict[str, ExerciseState],
    draft_states: Optional[Mapping[str, Mapping[str, Any]]],
) -> Tuple[Dict[str, ExerciseState], MergeReport]:
    """
    Overlay draft entries onto default states field by field.

    Draft values win; defaults fill any exercise absent from the draft.
    Entries whose kind no longer matches the definition, or that fail
    validation, fall back to defaults. Draft entries for exercises that are
    no longer in the definition are ignored.
    """
    report = MergeReport()
    merged: Dict[str, ExerciseState] = {}
    draft_states = draft_states or {}

    for exercise_id, default in defaults.items():
        entry = draft_states.get(exercise_id)
        if entry is None:
            merged[exercise_id] = default
            report.defaulted.append(exercise_id)
            continue

        entry_kind = entry.get("kind")
        if entry_kind is not None and entry_kind != default.kind:
            logger.warning(
                f"Draft entry for {exercise_id} is '{entry_kind}' but definition expects "
                f"'{default.kind}'; using defaults"
            )
            merged[exercise_id] = default
            report.skipped.append(exercise_id)
            continue

        try:
            merged[exercise_id] = exercise_state_adapter.validate_python(
                _deep_merge(default.model_dump(), entry)
            )
            report.restored.append(exercise_id)
        except ValidationError as e:
            logger.warning(f"Draft entry for {exercise_id} is invalid, using defaults: {e}")
            merged[exercise_id] = default
            report.skipped.append(exercise_id)

    report.ignored = [k for k in draft_states if k not in defaults]
    if report.ignored:
        logger.info(f"Ignoring draft entries no longer in the workout: {report.ignored}")

    return merged, report


class ExerciseStateStore:
    """Keyed, mutable map of exercise states for one session."""

    def __init__(self, order: List[str], states: Dict[str, ExerciseState]):
        missing = [exercise_id for exercise_id in order if exercise_id not in states]
        if missing:
            raise ValueError(f"Exercise states missing for: {missing}")
        self._order = list(order)
        self._states: Dict[str, ExerciseState] = dict(states)
        self._listeners: List[Listener] = []
        self.revision = 0

    @classmethod
    def from_definition(
        cls,
        definition: WorkoutDefinition,
        draft_states: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> Tuple["ExerciseStateStore", MergeReport]:
        """Build one state per definition exercise, overlaying any draft entries."""
        defaults = {e.id: default_state_for(e) for e in definition.exercises}
        merged, report = merge_draft_states(defaults, draft_states)
        return cls(definition.exercise_ids, merged), report

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def exercise_ids(self) -> List[str]:
        return list(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._states

    def get(self, exercise_id: str) -> ExerciseState:
        """Return a copy of one exercise's state."""
        return self._require(exercise_id).model_copy(deep=True)

    def items(self) -> Iterator[Tuple[str, ExerciseState]]:
        for exercise_id in self._order:
            yield exercise_id, self._states[exercise_id].model_copy(deep=True)

    def snapshot(self) -> Dict[str, Any]:
        """Serializable snapshot of the whole store, in definition order."""
        return build_snapshot(
            {exercise_id: self._states[exercise_id].model_dump(mode="json") for exercise_id in self._order}
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a mutation listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_field(
        self,
        exercise_id: str,
        field_name: str,
        value: str,
        *,
        set_number: Optional[int] = None,
    ) -> None:
        """
        Update one text field.

        Strength exercises accept ``weight``/``reps`` and require ``set_number``;
        cardio and run exercises accept ``distance``/``duration``/``location``;
        flexibility accepts ``duration``.
        """
        state = self._copy(exercise_id)

        if isinstance(state, StrengthState):
            self._check_field(state, field_name, STRENGTH_FIELDS)
            setattr(self._set_entry(state, set_number), field_name, value)
        elif isinstance(state, CardioState):
            self._check_field(state, field_name, CARDIO_FIELDS)
            setattr(state.cardio, field_name, value)
        elif isinstance(state, RunState):
            self._check_field(state, field_name, CARDIO_FIELDS)
            setattr(state.run, field_name, value)
        elif isinstance(state, FlexibilityState):
            self._check_field(state, field_name, FLEXIBILITY_FIELDS)
            state.flexibility.duration = value

        self._commit(exercise_id, state)

    def set_completed(
        self,
        exercise_id: str,
        completed: bool,
        *,
        set_number: Optional[int] = None,
    ) -> None:
        state = self._copy(exercise_id)

        if isinstance(state, StrengthState):
            self._set_entry(state, set_number).completed = completed
        elif isinstance(state, CardioState):
            state.cardio.completed = completed
        elif isinstance(state, RunState):
            state.run.completed = completed
        elif isinstance(state, FlexibilityState):
            state.flexibility.completed = completed

        self._commit(exercise_id, state)

    def toggle_expanded(self, exercise_id: str) -> bool:
        state = self._copy(exercise_id)
        state.expanded = not state.expanded
        self._commit(exercise_id, state)
        return state.expanded

    def swap_exercise(self, exercise_id: str, replacement: CatalogExercise) -> None:
        """
        Substitute the catalog exercise for an instance.

        Only the current exercise reference (and its name/media) changes;
        entered sets and payloads are kept as they are.
        """
        state = self._copy(exercise_id)
        previous = state.current_exercise.name
        state.current_exercise = replacement.model_copy(deep=True)
        self._commit(exercise_id, state)
        logger.info(f"Swapped exercise {exercise_id}: '{previous}' -> '{replacement.name}'")

    def add_set(self, exercise_id: str) -> int:
        """Append an empty set row to a strength exercise; returns its number."""
        state = self._copy(exercise_id)
        if not isinstance(state, StrengthState):
            raise ValueError(f"Exercise {exercise_id} ({state.kind}) has no sets")
        set_number = len(state.sets) + 1
        state.sets.append(SetEntry(set_number=set_number))
        self._commit(exercise_id, state)
        return set_number

    def remove_set(self, exercise_id: str) -> None:
        """Drop the last set row; a strength exercise always keeps one."""
        state = self._copy(exercise_id)
        if not isinstance(state, StrengthState):
            raise ValueError(f"Exercise {exercise_id} ({state.kind}) has no sets")
        if len(state.sets) <= 1:
            return
        state.sets.pop()
        self._commit(exercise_id, state)

    def overlay_draft(self, draft_states: Mapping[str, Mapping[str, Any]]) -> MergeReport:
        """Overlay a draft onto the current states as one mutation."""
        merged, report = merge_draft_states(dict(self._states), draft_states)
        if report.draft_applied:
            self._states = merged
            self._notify()
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, exercise_id: str) -> ExerciseState:
        state = self._states.get(exercise_id)
        if state is None:
            raise UnknownExerciseError(exercise_id)
        return state

    def _copy(self, exercise_id: str) -> ExerciseState:
        return self._require(exercise_id).model_copy(deep=True)

    @staticmethod
    def _check_field(state: ExerciseState, field_name: str, allowed: Tuple[str, ...]) -> None:
        if field_name not in allowed:
            raise ValueError(
                f"Field '{field_name}' is not editable on {state.kind} exercises; "
                f"expected one of {allowed}"
            )

    @staticmethod
    def _set_entry(state: StrengthState, set_number: Optional[int]) -> SetEntry:
        if set_number is None:
            raise ValueError("set_number is required for strength exercises")
        for entry in state.sets:
            if entry.set_number == set_number:
                return entry
        raise ValueError(f"Set {set_number} does not exist")

    def _commit(self, exercise_id: str, state: ExerciseState) -> None:
        self._states[exercise_id] = state
        self._notify()

    def _notify(self) -> None:
        self.revision += 1
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Exercise store listener failed")
