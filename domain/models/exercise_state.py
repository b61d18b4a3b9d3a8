"""
Editable per-exercise session state.

ExerciseState is a tagged variant keyed on ``kind``. Every variant carries the
common fields (``expanded`` and the current catalog exercise, which changes
when an exercise is swapped mid-session) plus the payload for its category.

Field values are kept as the raw text the member typed; parsing to numbers
happens only when results are written.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from domain.models.workout_definition import (
    CatalogExercise,
    ExerciseCategory,
    WorkoutExercise,
)


def _filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class SetEntry(BaseModel):
    """A single strength set row."""

    set_number: int = Field(..., ge=1)
    weight: str = ""
    reps: str = ""
    completed: bool = False

    @property
    def has_data(self) -> bool:
        return self.completed or _filled(self.weight) or _filled(self.reps)


class CardioData(BaseModel):
    """Distance/duration payload shared by cardio and run-like exercises."""

    distance: str = ""
    duration: str = ""
    location: str = ""
    completed: bool = False

    @property
    def has_data(self) -> bool:
        return self.completed or _filled(self.distance) or _filled(self.duration)


class FlexibilityData(BaseModel):
    duration: str = ""
    completed: bool = False

    @property
    def has_data(self) -> bool:
        return self.completed or _filled(self.duration)


class _ExerciseStateBase(BaseModel):
    expanded: bool = True
    current_exercise: CatalogExercise = Field(
        ..., description="Catalog entry currently performed; replaced on swap"
    )

    @property
    def has_meaningful_data(self) -> bool:
        raise NotImplementedError


class StrengthState(_ExerciseStateBase):
    kind: Literal["strength"] = "strength"
    sets: List[SetEntry] = Field(default_factory=list)

    @property
    def has_meaningful_data(self) -> bool:
        return any(s.has_data for s in self.sets)


class CardioState(_ExerciseStateBase):
    kind: Literal["cardio"] = "cardio"
    cardio: CardioData = Field(default_factory=CardioData)

    @property
    def has_meaningful_data(self) -> bool:
        return self.cardio.has_data


class RunState(_ExerciseStateBase):
    kind: Literal["run"] = "run"
    run: CardioData = Field(default_factory=CardioData)

    @property
    def has_meaningful_data(self) -> bool:
        return self.run.has_data


class FlexibilityState(_ExerciseStateBase):
    kind: Literal["flexibility"] = "flexibility"
    flexibility: FlexibilityData = Field(default_factory=FlexibilityData)

    @property
    def has_meaningful_data(self) -> bool:
        return self.flexibility.has_data


ExerciseState = Annotated[
    Union[StrengthState, CardioState, RunState, FlexibilityState],
    Field(discriminator="kind"),
]

exercise_state_adapter: TypeAdapter = TypeAdapter(ExerciseState)


def default_state_for(workout_exercise: WorkoutExercise) -> ExerciseState:
    """
    Build the default state for one exercise instance.

    Strength exercises get ``prescribed_sets`` empty rows. The prescribed reps
    stay on the definition as a target and are not copied into the rows, so an
    untouched set never counts as entered data.
    """
    catalog = workout_exercise.exercise
    category = workout_exercise.category

    if category == ExerciseCategory.RUN:
        return RunState(current_exercise=catalog)
    if category == ExerciseCategory.CARDIO:
        return CardioState(current_exercise=catalog)
    if category == ExerciseCategory.FLEXIBILITY:
        return FlexibilityState(current_exercise=catalog)

    sets = [SetEntry(set_number=i + 1) for i in range(workout_exercise.prescribed_sets)]
    return StrengthState(current_exercise=catalog, sets=sets)
