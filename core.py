from __future__ import annotations

from pathlib import Path

# Reps prescribed for an exercise when neither the template nor the history
# provide a value
DEFAULT_REPS = 10

# Default rest duration between sets in seconds
DEFAULT_REST_DURATION = 120

# Default path to the bundled SQLite database
DEFAULT_DB_PATH = Path(__file__).resolve().parent / "data" / "workout.db"

# Schema used to create a fresh database
DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "data" / "workout_schema.sql"

# Separator between the day and the plan name in a session title,
# e.g. ``"Monday - Strength Block"``
TITLE_SEPARATOR = " - "
