"""Read workout plans and their templates from the SQLite catalogue."""

from __future__ import annotations

import datetime
import sqlite3
from pathlib import Path

from backend import DEFAULT_DB_PATH
from backend.models import (
    DayTemplate,
    Exercise,
    ExerciseCategory,
    ExerciseTemplate,
    Weekday,
    WorkoutPlan,
    WorkoutTemplate,
)


def _parse_date(value: str | None) -> datetime.date | None:
    if not value:
        return None
    return datetime.date.fromisoformat(value[:10])


def _load_exercise_templates(cursor: sqlite3.Cursor, day_id: int) -> list[ExerciseTemplate]:
    cursor.execute(
        """
        SELECT te.id,
               te.set_count,
               te.reps,
               te.weight,
               te.position,
               te.superset_id,
               le.id,
               le.name,
               le.category,
               le.instructions
          FROM template_exercises te
          JOIN library_exercises le ON le.id = te.library_exercise_id
         WHERE te.day_id = ? AND te.deleted = 0
         ORDER BY te.position, te.id
        """,
        (day_id,),
    )
    templates: list[ExerciseTemplate] = []
    for (
        te_id,
        set_count,
        reps,
        weight,
        position,
        superset_id,
        ex_id,
        ex_name,
        category,
        instructions,
    ) in cursor.fetchall():
        exercise = Exercise(
            id=ex_id,
            name=ex_name,
            category=ExerciseCategory(category),
            instructions=instructions or "",
        )
        templates.append(
            ExerciseTemplate(
                id=te_id,
                exercise=exercise,
                set_count=set_count,
                reps=reps,
                position=position,
                weight=weight,
                superset_id=superset_id,
            )
        )
    return templates


def _day_from_row(cursor: sqlite3.Cursor, row: tuple) -> DayTemplate:
    day_id, weekday, is_rest, notes = row
    return DayTemplate(
        id=day_id,
        weekday=Weekday(weekday),
        is_rest=bool(is_rest),
        notes=notes or "",
        exercise_templates=_load_exercise_templates(cursor, day_id),
    )


def _load_template(cursor: sqlite3.Cursor, template_id: int | None) -> WorkoutTemplate | None:
    if template_id is None:
        return None
    cursor.execute(
        "SELECT id, name, summary FROM template_workouts WHERE id = ? AND deleted = 0",
        (template_id,),
    )
    row = cursor.fetchone()
    if not row:
        return None
    t_id, name, summary = row
    cursor.execute(
        """
        SELECT id, weekday, is_rest, notes
          FROM template_days
         WHERE template_id = ? AND deleted = 0
         ORDER BY weekday
        """,
        (t_id,),
    )
    days = [_day_from_row(cursor, day_row) for day_row in cursor.fetchall()]
    return WorkoutTemplate(id=t_id, name=name, summary=summary or "", day_templates=days)


def _plan_from_row(cursor: sqlite3.Cursor, row: tuple) -> WorkoutPlan:
    (
        plan_id,
        template_id,
        custom_name,
        is_active,
        started_at,
        duration_weeks,
        notes,
    ) = row
    return WorkoutPlan(
        id=plan_id,
        custom_name=custom_name,
        template=_load_template(cursor, template_id),
        is_active=bool(is_active),
        started_at=_parse_date(started_at),
        duration_weeks=duration_weeks,
        notes=notes or "",
    )


_PLAN_COLUMNS = (
    "id, template_id, custom_name, is_active, started_at, duration_weeks, notes"
)


def fetch_active_plans(db_path: Path = DEFAULT_DB_PATH) -> list[WorkoutPlan]:
    """Return every active plan with its template fully loaded.

    Plans are ordered by name.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT {_PLAN_COLUMNS} FROM plan_plans"
            " WHERE deleted = 0 AND is_active = 1 ORDER BY custom_name, id"
        )
        rows = cursor.fetchall()
        return [_plan_from_row(cursor, row) for row in rows]


def fetch_day_template(
    plan_id: int,
    weekday: Weekday,
    db_path: Path = DEFAULT_DB_PATH,
) -> DayTemplate | None:
    """Return the day template configured for ``weekday`` in ``plan_id``."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT d.id, d.weekday, d.is_rest, d.notes
              FROM plan_plans p
              JOIN template_days d ON d.template_id = p.template_id
             WHERE p.id = ? AND d.weekday = ? AND p.deleted = 0 AND d.deleted = 0
             ORDER BY d.id
             LIMIT 1
            """,
            (plan_id, int(weekday)),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return _day_from_row(cursor, row)
