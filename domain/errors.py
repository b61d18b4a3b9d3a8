"""
Error taxonomy for the workout session core.

Every error carries a human-readable ``message`` and a stable ``code`` so
callers can decide between retrying, showing a notice, or escaping back to a
workout list without matching on strings.
"""

from typing import List, Optional, Tuple


class SessionError(Exception):
    """Base class for all workout session errors."""

    code = "session_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WorkoutNotFoundError(SessionError):
    """No lookup strategy could resolve the workout definition. Fatal to the session."""

    code = "not_found"

    def __init__(self, session_id: str, message: Optional[str] = None):
        super().__init__(message or f"Workout not found for session {session_id}")
        self.session_id = session_id


class InitializationTimeoutError(SessionError):
    """The workout definition did not resolve before the safety timeout."""

    code = "init_timeout"


class DraftUnavailableError(SessionError):
    """The draft store could not be read or written. Non-fatal."""

    code = "draft_unavailable"


class MalformedDraftError(SessionError):
    """A stored draft payload could not be decoded."""

    code = "malformed_draft"


class PartialCompletionFailure(SessionError):
    """
    Some set results failed to write while finalizing a session.

    ``failed`` lists (exercise_id, set_number) pairs that were not confirmed.
    The session stays open so the member can retry.
    """

    code = "partial_completion"

    def __init__(self, message: str, failed: Optional[List[Tuple[str, int]]] = None):
        super().__init__(message)
        self.failed = failed or []


class LocationError(SessionError):
    """Device position could not be obtained. Recording does not proceed."""

    code = "location_error"

    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"

    _MESSAGES = {
        PERMISSION_DENIED: "Location access denied. Please enable location permissions.",
        POSITION_UNAVAILABLE: "Location unavailable. Please try again.",
        TIMEOUT: "Location request timed out. Please try again.",
        UNSUPPORTED: "Geolocation is not supported on this device.",
    }

    def __init__(self, reason: str, message: Optional[str] = None):
        super().__init__(message or self._MESSAGES.get(reason, "Error getting your location"))
        self.reason = reason


class SessionClosedError(SessionError):
    """An operation was attempted on a session that has been closed."""

    code = "session_closed"


class UnknownExerciseError(SessionError, KeyError):
    """A mutation referenced an exercise id that is not part of the store."""

    code = "unknown_exercise"

    def __init__(self, exercise_id: str):
        super().__init__(f"Unknown exercise instance: {exercise_id}")
        self.exercise_id = exercise_id

    def __str__(self) -> str:
        return self.message


class CompletionUnavailableError(SessionError):
    """The completion record could not be found, created or finalized."""

    code = "completion_unavailable"
