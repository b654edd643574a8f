"""Shared constants for backend modules."""

from __future__ import annotations

from core import (
    DEFAULT_DB_PATH,
    DEFAULT_REPS,
    DEFAULT_REST_DURATION,
    DEFAULT_SCHEMA_PATH,
)

__all__ = [
    "DEFAULT_REPS",
    "DEFAULT_REST_DURATION",
    "DEFAULT_DB_PATH",
    "DEFAULT_SCHEMA_PATH",
]
