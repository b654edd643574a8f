"""Data types shared by the logging engine.

Three families live here:

* catalog data (:class:`Exercise`, :class:`ExerciseTemplate`,
  :class:`DayTemplate`, :class:`WorkoutTemplate`, :class:`WorkoutPlan`) which
  the engine only reads,
* the runtime projection used while logging (:class:`SessionExerciseUI` and
  its :class:`CompletedSet` slots),
* the persisted history record (:class:`WorkoutSession` owning
  :class:`SessionExercise` entries).
"""

from __future__ import annotations

import datetime
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from core import DEFAULT_REPS


class Weekday(IntEnum):
    """Day of the week using ISO numbering (Monday is ``1``)."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @property
    def full_name(self) -> str:
        return self.name.capitalize()

    @property
    def abbreviation(self) -> str:
        return self.full_name[:3]

    @classmethod
    def from_date(cls, day: datetime.date) -> "Weekday":
        return cls(day.isoweekday())

    @classmethod
    def ordered(cls, days) -> list["Weekday"]:
        """Return ``days`` sorted Monday first."""

        return sorted(days)


class ExerciseCategory(str, Enum):
    STRENGTH = "strength"
    CARDIO = "cardio"
    MOBILITY = "mobility"
    BALANCE = "balance"


# ----------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------


@dataclass
class Exercise:
    id: int
    name: str
    category: ExerciseCategory = ExerciseCategory.STRENGTH
    instructions: str = ""


@dataclass
class ExerciseTemplate:
    """Prescription for one exercise on a given day."""

    id: int
    exercise: Exercise
    set_count: int
    reps: int
    position: float
    weight: float | None = None
    superset_id: str | None = None


@dataclass
class DayTemplate:
    """What to do on one weekday of a workout template.

    ``exercise_templates`` are ignored for logging when ``is_rest`` is set.
    """

    id: int
    weekday: Weekday
    is_rest: bool = False
    notes: str = ""
    exercise_templates: list[ExerciseTemplate] = field(default_factory=list)

    def sorted_templates(self) -> list[ExerciseTemplate]:
        return sorted(self.exercise_templates, key=lambda t: t.position)


@dataclass
class WorkoutTemplate:
    id: int
    name: str
    summary: str = ""
    day_templates: list[DayTemplate] = field(default_factory=list)


@dataclass
class WorkoutPlan:
    id: int
    custom_name: str
    template: WorkoutTemplate | None = None
    is_active: bool = True
    started_at: datetime.date | None = None
    duration_weeks: int = 8
    notes: str = ""

    def __post_init__(self) -> None:
        self.duration_weeks = max(self.duration_weeks, 1)

    @property
    def weekdays(self) -> list[Weekday]:
        """Weekdays configured in the plan's template, Monday first."""

        if self.template is None:
            return []
        return Weekday.ordered({d.weekday for d in self.template.day_templates})


# ----------------------------------------------------------------------
# Runtime projection
# ----------------------------------------------------------------------


@dataclass
class CompletedSet:
    reps: int
    weight: float
    is_completed: bool = False
    position: int = 0

    @property
    def volume(self) -> float:
        return self.reps * self.weight


@dataclass
class SessionExerciseUI:
    """Logging-time view of one exercise template.

    ``sets`` holds one slot per set.  A slot is ``None`` until the user logs
    it, at which point it becomes a :class:`CompletedSet`.
    """

    id: str
    exercise_id: int
    name: str
    planned_sets: int
    planned_reps: int
    planned_weight: float | None
    position: float
    superset_id: str | None = None
    is_superset_head: bool = False
    previous_reps: int | None = None
    previous_weight: float | None = None
    sets: list[CompletedSet | None] = field(default_factory=list)

    @property
    def set_count(self) -> int:
        return len(self.sets)

    @property
    def is_completed(self) -> bool:
        return bool(self.sets) and all(
            s is not None and s.is_completed for s in self.sets
        )

    @property
    def default_reps(self) -> int:
        """Reps for a slot materialized without user input.

        What was done last time wins over the template prescription.
        """
        return self.previous_reps or self.planned_reps or DEFAULT_REPS

    @property
    def default_weight(self) -> float:
        if self.previous_weight is not None:
            return float(self.previous_weight)
        return float(self.planned_weight or 0.0)

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.sets if s is not None and s.is_completed)

    def materialize(self, index: int) -> CompletedSet:
        """Return the set at ``index``, creating it from the defaults."""

        slot = self.sets[index]
        if slot is None:
            slot = CompletedSet(
                reps=self.default_reps,
                weight=self.default_weight,
                is_completed=False,
                position=index,
            )
            self.sets[index] = slot
        return slot


# ----------------------------------------------------------------------
# Persisted history
# ----------------------------------------------------------------------


@dataclass
class SessionExercise:
    exercise_id: int
    name: str
    planned_sets: int
    planned_reps: int
    planned_weight: float | None
    position: float
    superset_id: str | None = None
    is_completed: bool = False
    sets: list[CompletedSet] = field(default_factory=list)

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.sets if s.is_completed)

    @classmethod
    def from_runtime(cls, exercise: SessionExerciseUI) -> "SessionExercise":
        """Copy ``exercise`` keeping only the sets that were logged."""

        return cls(
            exercise_id=exercise.exercise_id,
            name=exercise.name,
            planned_sets=exercise.planned_sets,
            planned_reps=exercise.planned_reps,
            planned_weight=exercise.planned_weight,
            position=exercise.position,
            superset_id=exercise.superset_id,
            is_completed=exercise.is_completed,
            sets=[
                CompletedSet(s.reps, s.weight, s.is_completed, idx)
                for idx, s in enumerate(exercise.sets)
                if s is not None
            ],
        )


@dataclass
class WorkoutSession:
    """A finished logging session as stored in the history."""

    date: float
    title: str
    duration: float
    plan_id: int | None = None
    is_complete: bool = False
    exercises: list[SessionExercise] = field(default_factory=list)
    id: int | None = None

    @property
    def total_volume(self) -> float:
        return sum(ex.total_volume for ex in self.exercises)

    def summary(self) -> str:
        """Return a formatted text summary of the session."""

        lines = [f"Workout: {self.title}"]
        start = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.date))
        m, s = divmod(int(self.duration), 60)
        lines.append(f"Start: {start}")
        lines.append(f"Duration: {m}m {s}s")
        if not self.is_complete:
            lines.append("Status: partial")
        for ex in self.exercises:
            lines.append(f"\n{ex.name}")
            if not ex.sets:
                lines.append("  no sets logged")
            for idx, result in enumerate(ex.sets, 1):
                mark = "x" if result.is_completed else " "
                lines.append(
                    f"  [{mark}] Set {idx}: {result.reps} reps @ {result.weight:g}"
                )
        lines.append(f"\nTotal volume: {self.total_volume:g}")
        return "\n".join(lines)
