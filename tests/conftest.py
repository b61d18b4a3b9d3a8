"""
Shared pytest fixtures.

Timing-sensitive components run with millisecond-scale debounce, retry and
timeout settings so the suite stays fast.
"""
import pytest

from backend.settings import Settings
from tests.fakes import (
    FakeCompletionRepository,
    FakeDraftRepository,
    FakeExercisesRepository,
    FakeGeolocationProvider,
    FakeRunSampleRepository,
    FakeWorkoutRepository,
    InMemoryTimerStateStore,
)

USER_ID = "user-1"


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        environment="test",
        draft_debounce_seconds=0.03,
        draft_min_changes=1,
        draft_max_retries=3,
        draft_retry_delay_seconds=0.02,
        draft_fetch_attempts=2,
        draft_fetch_retry_seconds=0.01,
        init_safety_timeout_seconds=0.2,
        run_sample_flush_seconds=0.02,
        _env_file=None,
    )


@pytest.fixture
def workout_repo() -> FakeWorkoutRepository:
    return FakeWorkoutRepository()


@pytest.fixture
def draft_repo() -> FakeDraftRepository:
    return FakeDraftRepository()


@pytest.fixture
def completion_repo() -> FakeCompletionRepository:
    return FakeCompletionRepository()


@pytest.fixture
def exercises_repo() -> FakeExercisesRepository:
    return FakeExercisesRepository()


@pytest.fixture
def run_sample_repo() -> FakeRunSampleRepository:
    return FakeRunSampleRepository()


@pytest.fixture
def geolocation() -> FakeGeolocationProvider:
    return FakeGeolocationProvider()


@pytest.fixture
def timer_storage() -> InMemoryTimerStateStore:
    return InMemoryTimerStateStore()
