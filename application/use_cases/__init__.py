"""
Application Use Cases for the workout session core.

Use cases orchestrate domain objects and repository ports. Dependencies are
injected via constructors for testability and results are returned as
dataclasses with ``success``/``error``/``error_code`` fields.

Usage:
    from application.use_cases import (
        InitializeSessionUseCase,
        InitializeSessionResult,
        CompleteSessionUseCase,
        CompletionResult,
    )

    # Open a session
    init = InitializeSessionUseCase(workout_repo=workout_repo, draft_repo=draft_repo)
    result = await init.execute(session_id="w-123", user_id="user-1")

    # Finish it
    complete = CompleteSessionUseCase(
        completion_repo=completion_repo,
        draft_repo=draft_repo,
        workout_id=result.resolved.workout_id,
        user_id="user-1",
    )
    completion = await complete.execute(result.store, rating=4)
"""

from application.use_cases.initialize_session import (
    CompletionByIdLookup,
    CompletionByWorkoutLookup,
    DefinitionLookup,
    InitializeSessionResult,
    InitializeSessionUseCase,
    StandaloneWorkoutLookup,
    WorkoutLookup,
    default_lookup_chain,
    merge_late_draft,
    resolve_definition,
)
from application.use_cases.complete_session import (
    CompleteSessionUseCase,
    CompletionResult,
    collect_set_results,
)

__all__ = [
    # InitializeSession
    "InitializeSessionUseCase",
    "InitializeSessionResult",
    "DefinitionLookup",
    "CompletionByIdLookup",
    "CompletionByWorkoutLookup",
    "WorkoutLookup",
    "StandaloneWorkoutLookup",
    "default_lookup_chain",
    "resolve_definition",
    "merge_late_draft",
    # CompleteSession
    "CompleteSessionUseCase",
    "CompletionResult",
    "collect_set_results",
]
