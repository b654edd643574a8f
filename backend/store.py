"""Storage collaborator used by :class:`backend.session_controller.SessionController`."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from backend import DEFAULT_DB_PATH
from backend import plans, sessions
from backend.errors import PersistenceError
from backend.models import DayTemplate, Weekday, WorkoutPlan, WorkoutSession


class Store(Protocol):
    """What the logging engine needs from persistent storage.

    ``save`` must raise :class:`~backend.errors.PersistenceError` when the
    session could not be written.
    """

    def fetch_active_plans(self) -> list[WorkoutPlan]: ...

    def fetch_day_template(self, plan_id: int, weekday: Weekday) -> DayTemplate | None: ...

    def fetch_last_performed(self, exercise_id: int) -> tuple[int, float] | None: ...

    def save(self, session: WorkoutSession) -> WorkoutSession: ...


class SqliteStore:
    """:class:`Store` backed by the application's SQLite database."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)

    def fetch_active_plans(self) -> list[WorkoutPlan]:
        return plans.fetch_active_plans(self.db_path)

    def fetch_day_template(self, plan_id: int, weekday: Weekday) -> DayTemplate | None:
        return plans.fetch_day_template(plan_id, weekday, db_path=self.db_path)

    def fetch_last_performed(self, exercise_id: int) -> tuple[int, float] | None:
        return sessions.fetch_last_performed(exercise_id, db_path=self.db_path)

    def save(self, session: WorkoutSession) -> WorkoutSession:
        try:
            return sessions.save_workout_session(session, db_path=self.db_path)
        except (sqlite3.Error, OSError) as exc:
            logging.exception("Saving session '%s' failed", session.title)
            raise PersistenceError(exc) from exc
