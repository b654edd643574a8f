import datetime
import os
import sqlite3
import sys
from pathlib import Path

import pytest

# Keep Kivy from parsing pytest's arguments and writing its own log files
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend import settings  # noqa: E402
from backend.sessions import init_db  # noqa: E402

# 2024-01-01 was a Monday, 2024-01-02 a Tuesday
MONDAY_NOON = datetime.datetime(2024, 1, 1, 12, 0).timestamp()
TUESDAY_NOON = datetime.datetime(2024, 1, 2, 12, 0).timestamp()

PUSH_PULL_ID = 1
BENCH_ID = 1
ROW_ID = 2
SQUAT_ID = 3


class FakeClock:
    """Callable returning a timestamp that only moves when told to."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database with a 'Push Pull' plan.

    Monday holds Bench Press and Barbell Row as superset ``A`` followed by
    Squat, Wednesday is a rest day and Friday has no exercises yet.
    """
    db_path = init_db(tmp_path / "workout.db")

    conn = sqlite3.connect(db_path)
    conn.executemany(
        "INSERT INTO library_exercises (name, category) VALUES (?, ?)",
        [("Bench Press", "strength"), ("Barbell Row", "strength"), ("Squat", "strength")],
    )
    conn.execute(
        "INSERT INTO template_workouts (name, summary) VALUES ('Push Pull', 'Upper/lower split')"
    )
    template_id = conn.execute(
        "SELECT id FROM template_workouts WHERE name='Push Pull'"
    ).fetchone()[0]
    conn.execute(
        "INSERT INTO template_days (template_id, weekday) VALUES (?, 1)", (template_id,)
    )
    conn.execute(
        "INSERT INTO template_days (template_id, weekday, is_rest) VALUES (?, 3, 1)",
        (template_id,),
    )
    conn.execute(
        "INSERT INTO template_days (template_id, weekday) VALUES (?, 5)", (template_id,)
    )
    monday_id = conn.execute(
        "SELECT id FROM template_days WHERE template_id=? AND weekday=1", (template_id,)
    ).fetchone()[0]

    # inserted out of order on purpose, position decides
    conn.execute(
        """
        INSERT INTO template_exercises
            (day_id, library_exercise_id, set_count, reps, weight, position, superset_id)
        VALUES (?, ?, 2, 5, NULL, 3, NULL)
        """,
        (monday_id, SQUAT_ID),
    )
    conn.execute(
        """
        INSERT INTO template_exercises
            (day_id, library_exercise_id, set_count, reps, weight, position, superset_id)
        VALUES (?, ?, 3, 8, 60, 1, 'A')
        """,
        (monday_id, BENCH_ID),
    )
    conn.execute(
        """
        INSERT INTO template_exercises
            (day_id, library_exercise_id, set_count, reps, weight, position, superset_id)
        VALUES (?, ?, 3, 10, 50, 2, 'A')
        """,
        (monday_id, ROW_ID),
    )

    conn.execute(
        "INSERT INTO plan_plans (template_id, custom_name, started_at) VALUES (?, 'Push Pull', '2024-01-01')",
        (template_id,),
    )
    conn.execute("INSERT INTO plan_plans (custom_name) VALUES ('Arms')")
    conn.execute(
        "INSERT INTO plan_plans (template_id, custom_name, is_active) VALUES (?, 'Archived', 0)",
        (template_id,),
    )

    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(TUESDAY_NOON)


@pytest.fixture
def settings_values() -> dict:
    return {"default_rest_duration": 90, "auto_select_today": True}


@pytest.fixture
def controller(sample_db, clock, settings_values):
    from backend.session_controller import SessionController
    from backend.store import SqliteStore

    return SessionController(
        SqliteStore(sample_db),
        now=clock,
        get_setting=lambda key, default=None: settings_values.get(key, default),
    )


@pytest.fixture
def settings_file(tmp_path, monkeypatch) -> Path:
    """Point :mod:`backend.settings` at a temporary file."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr(settings, "SETTINGS_PATH", path)
    settings.clear_cache()
    yield path
    settings.clear_cache()
