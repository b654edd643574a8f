"""Superset grouping for an ordered list of session exercises.

Supersets are defined by contiguity: consecutive exercises sharing a
non-``None`` ``superset_id`` form one group.  If the same id shows up again
after a different exercise it starts a new group with a new number.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple, Optional, Union

from backend.models import SessionExerciseUI


class Singleton(NamedTuple):
    """An exercise performed on its own.  ``superset_number`` is always ``None``."""

    superset_number: Optional[int]
    members: list

    @classmethod
    def of(cls, exercise: SessionExerciseUI) -> "Singleton":
        return cls(None, [exercise])

    @property
    def exercise(self) -> SessionExerciseUI:
        return self.members[0]


class Superset(NamedTuple):
    """Exercises performed back to back, labelled ``SS<number>``."""

    superset_number: int
    members: list

    @property
    def label(self) -> str:
        return f"SS{self.superset_number}"


ExerciseGroup = Union[Singleton, Superset]


def _runs(exercises: Iterable[SessionExerciseUI]) -> list[list[SessionExerciseUI]]:
    runs: list[list[SessionExerciseUI]] = []
    previous: str | None = None
    for exercise in exercises:
        sid = exercise.superset_id
        if runs and sid is not None and sid == previous:
            runs[-1].append(exercise)
        else:
            runs.append([exercise])
        previous = sid
    return runs


def group_exercises(exercises: Iterable[SessionExerciseUI]) -> list[ExerciseGroup]:
    """Group ``exercises`` in their existing order.

    Each contiguous run with a superset id gets the next number starting at
    ``1``.  Exercises without a superset id become :class:`Singleton` groups.
    Groups compare equal to plain ``(superset_number, members)`` tuples.  The
    input is never re-sorted.
    """

    groups: list[ExerciseGroup] = []
    number = 0
    for run in _runs(exercises):
        if run[0].superset_id is None:
            groups.append(Singleton.of(run[0]))
        else:
            number += 1
            groups.append(Superset(number, run))
    return groups


def mark_superset_heads(exercises: Iterable[SessionExerciseUI]) -> None:
    """Set ``is_superset_head`` on the first member of every multi-member run."""

    for run in _runs(exercises):
        for idx, exercise in enumerate(run):
            exercise.is_superset_head = idx == 0 and len(run) > 1
