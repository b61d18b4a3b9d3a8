"""
Application services owned by a live workout session.

Usage:
    from application.services import WorkoutSession, SaveStatus

    session = WorkoutSession("w-123", "user-1", workout_repo=..., draft_repo=..., completion_repo=...)
    await session.open()
"""

from application.services.draft_autosave import DraftAutosaveService, SaveStatus
from application.services.run_recorder import RecorderState, RunRecorder, apply_run_summary
from application.services.stopwatch import Stopwatch
from application.services.workout_session import SessionPhase, WorkoutSession

__all__ = [
    # Draft autosave
    "DraftAutosaveService",
    "SaveStatus",
    # Run tracking
    "RunRecorder",
    "RecorderState",
    "apply_run_summary",
    # Elapsed time
    "Stopwatch",
    # Session
    "WorkoutSession",
    "SessionPhase",
]
