"""Persistence helpers for finished workout sessions.

Sessions are written once, when the user finishes logging, and read back by
history screens and by the logging engine to prefill weights.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from backend import DEFAULT_DB_PATH, DEFAULT_SCHEMA_PATH
from backend.models import CompletedSet, SessionExercise, WorkoutSession


def init_db(
    db_path: Path = DEFAULT_DB_PATH, schema_path: Path = DEFAULT_SCHEMA_PATH
) -> Path:
    """Create the tables from ``schema_path`` in ``db_path`` if missing."""

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(db_path)) as conn:
        with open(schema_path, "r", encoding="utf-8") as fh:
            conn.executescript(fh.read())
    logging.info("Initialised database at %s", db_path)
    return db_path


def save_workout_session(
    session: WorkoutSession, db_path: Path = DEFAULT_DB_PATH
) -> WorkoutSession:
    """Persist ``session`` in a single transaction and return it with its id.

    ``sqlite3`` errors propagate to the caller; nothing is written when one
    occurs.
    """

    conn = sqlite3.connect(str(db_path))
    try:
        with conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO session_sessions
                    (plan_id, title, started_at, duration, is_complete)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    session.plan_id,
                    session.title,
                    session.date,
                    session.duration,
                    int(session.is_complete),
                ),
            )
            session_id = cursor.lastrowid

            for ex in session.exercises:
                cursor.execute(
                    """
                    INSERT INTO session_exercises
                        (session_id, library_exercise_id, exercise_name, planned_sets,
                         planned_reps, planned_weight, position, superset_id, is_completed)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session_id,
                        ex.exercise_id,
                        ex.name,
                        ex.planned_sets,
                        ex.planned_reps,
                        ex.planned_weight,
                        ex.position,
                        ex.superset_id,
                        int(ex.is_completed),
                    ),
                )
                session_ex_id = cursor.lastrowid
                cursor.executemany(
                    """
                    INSERT INTO session_exercise_sets
                        (session_exercise_id, set_number, reps, weight, is_completed)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            session_ex_id,
                            result.position + 1,
                            result.reps,
                            result.weight,
                            int(result.is_completed),
                        )
                        for result in ex.sets
                    ],
                )
    finally:
        conn.close()

    session.id = session_id
    logging.info("Saved session %s (%s)", session_id, session.title)
    return session


def get_session_history(
    limit: int | None = None, db_path: Path = DEFAULT_DB_PATH
) -> list[dict]:
    """Return past workout sessions, most recent first.

    Each item contains ``id``, ``title``, ``started_at``, ``duration`` and
    ``is_complete``.  When ``limit`` is provided only that many newest
    sessions are returned.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        query = (
            "SELECT id, title, started_at, duration, is_complete FROM session_sessions "
            "WHERE deleted = 0 ORDER BY started_at DESC, id DESC"
        )
        if limit is not None:
            cursor.execute(query + " LIMIT ?", (limit,))
        else:
            cursor.execute(query)
        rows = cursor.fetchall()
    return [
        {
            "id": sid,
            "title": title,
            "started_at": started,
            "duration": duration,
            "is_complete": bool(complete),
        }
        for sid, title, started, duration, complete in rows
    ]


def get_session_details(
    session_id: int, db_path: Path = DEFAULT_DB_PATH
) -> WorkoutSession | None:
    """Return the stored session ``session_id`` including all sets."""

    with sqlite3.connect(str(db_path)) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, plan_id, title, started_at, duration, is_complete
              FROM session_sessions
             WHERE id = ? AND deleted = 0
            """,
            (session_id,),
        )
        row = cur.fetchone()
        if row is None:
            return None
        sid, plan_id, title, started, duration, complete = row

        cur.execute(
            """
            SELECT id, library_exercise_id, exercise_name, planned_sets, planned_reps,
                   planned_weight, position, superset_id, is_completed
              FROM session_exercises
             WHERE session_id = ? AND deleted = 0
             ORDER BY position, id
            """,
            (sid,),
        )
        exercises: list[SessionExercise] = []
        for (
            ex_row_id,
            lib_id,
            name,
            planned_sets,
            planned_reps,
            planned_weight,
            position,
            superset_id,
            ex_complete,
        ) in cur.fetchall():
            cur.execute(
                """
                SELECT set_number, reps, weight, is_completed
                  FROM session_exercise_sets
                 WHERE session_exercise_id = ? AND deleted = 0
                 ORDER BY set_number
                """,
                (ex_row_id,),
            )
            sets = [
                CompletedSet(reps, weight, bool(done), number - 1)
                for number, reps, weight, done in cur.fetchall()
            ]
            exercises.append(
                SessionExercise(
                    exercise_id=lib_id,
                    name=name,
                    planned_sets=planned_sets,
                    planned_reps=planned_reps,
                    planned_weight=planned_weight,
                    position=position,
                    superset_id=superset_id,
                    is_completed=bool(ex_complete),
                    sets=sets,
                )
            )

    return WorkoutSession(
        id=sid,
        plan_id=plan_id,
        title=title,
        date=started,
        duration=duration,
        is_complete=bool(complete),
        exercises=exercises,
    )


def fetch_last_performed(
    exercise_id: int, db_path: Path = DEFAULT_DB_PATH
) -> tuple[int, float] | None:
    """Return ``(reps, weight)`` of the last completed set of ``exercise_id``.

    Only the most recent session containing a completed set of the exercise
    is considered.  ``None`` is returned when the exercise was never logged.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT st.reps, st.weight
              FROM session_exercise_sets st
              JOIN session_exercises e ON st.session_exercise_id = e.id
              JOIN session_sessions s ON e.session_id = s.id
             WHERE e.library_exercise_id = ?
               AND st.is_completed = 1
               AND st.deleted = 0 AND e.deleted = 0 AND s.deleted = 0
             ORDER BY s.started_at DESC, s.id DESC, e.position DESC, st.set_number DESC
             LIMIT 1
            """,
            (exercise_id,),
        )
        row = cur.fetchone()
    if row is None:
        return None
    reps, weight = row
    return int(reps), float(weight)
