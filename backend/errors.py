"""Errors produced by failed logging intents.

Every error carries a short ``message`` suitable for showing to the user.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all logging engine failures."""

    message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class PlanNotFound(EngineError):
    message = "Workout plan not found"


class NoPlanSelected(EngineError):
    message = "Please select a workout plan first"


class NoDaySelected(EngineError):
    message = "Please select a day to log"


class ExerciseNotFound(EngineError):
    message = "Exercise not found in current session"


class InvalidSetIndex(EngineError):
    message = "Invalid set index"


class SessionNotInProgress(EngineError):
    message = "No active session found"


class PersistenceError(EngineError):
    """Saving a session failed.  The only error worth retrying."""

    message = "Could not save the workout session"

    def __init__(self, cause: BaseException | None = None, message: str | None = None) -> None:
        self.cause = cause
        super().__init__(message)
