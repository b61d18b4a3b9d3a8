"""
Session factory for the workout session core.

This module wires settings, Sentry, the Supabase client and the repositories
into WorkoutSession instances. The factory pattern allows for:
- Easy testing with custom settings or a mocked client
- Clear separation of wiring from session logic

Usage:
    from backend.main import create_session_factory
    from backend.settings import Settings

    # Default factory (uses get_settings())
    factory = create_session_factory()
    session = factory.new_session("w-123", "user-1")
    await session.open()

    # Test factory with custom settings and client
    test_settings = Settings(environment="test", _env_file=None)
    factory = create_session_factory(settings=test_settings, client=MagicMock())
"""

import logging
from typing import Optional

import sentry_sdk
from supabase import Client

from application.ports import GeolocationProvider
from application.services import WorkoutSession
from backend.database import get_supabase_client
from backend.settings import Settings, get_settings
from infrastructure.db import (
    SupabaseCompletionRepository,
    SupabaseDraftRepository,
    SupabaseExercisesRepository,
    SupabaseRunSampleRepository,
    SupabaseWorkoutRepository,
)
from infrastructure.storage import JsonFileTimerStateStore

logger = logging.getLogger(__name__)


class SessionFactory:
    """Holds the shared repositories and builds one WorkoutSession per open."""

    def __init__(self, settings: Settings, client: Client):
        self.settings = settings
        self.workout_repo = SupabaseWorkoutRepository(client)
        self.draft_repo = SupabaseDraftRepository(
            client,
            fetch_attempts=settings.draft_fetch_attempts,
            fetch_retry_seconds=settings.draft_fetch_retry_seconds,
        )
        self.completion_repo = SupabaseCompletionRepository(client)
        self.exercises_repo = SupabaseExercisesRepository(client)
        self.run_sample_repo = SupabaseRunSampleRepository(client)
        self.timer_storage = JsonFileTimerStateStore(settings.timer_state_dir)

    def new_session(
        self,
        session_id: str,
        user_id: str,
        *,
        geolocation: Optional[GeolocationProvider] = None,
        **callbacks,
    ) -> WorkoutSession:
        """
        Build an unopened session.

        Args:
            session_id: Completion, workout or standalone workout ID
            user_id: Member opening the session
            geolocation: Device position source for run recording
            **callbacks: on_save_status, on_location_error, on_complete
        """
        return WorkoutSession(
            session_id,
            user_id,
            workout_repo=self.workout_repo,
            draft_repo=self.draft_repo,
            completion_repo=self.completion_repo,
            exercises_repo=self.exercises_repo,
            geolocation=geolocation,
            run_sample_repo=self.run_sample_repo,
            timer_storage=self.timer_storage,
            settings=self.settings,
            **callbacks,
        )


def create_session_factory(
    settings: Optional[Settings] = None,
    client: Optional[Client] = None,
) -> SessionFactory:
    """
    Create and configure a SessionFactory.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.
        client: Optional Supabase client; created from settings when omitted.

    Returns:
        Configured SessionFactory.

    Raises:
        RuntimeError: When no client is given and Supabase is not configured
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    if client is None:
        client = get_supabase_client(settings)
        if client is None:
            raise RuntimeError("Supabase is not configured; set SUPABASE_URL and a Supabase key")

    logger.info(f"Session factory ready ({settings.environment})")
    return SessionFactory(settings, client)


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
        )
        logger.info("Sentry initialized for workout sessions")
