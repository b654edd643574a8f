"""Set level edits on the runtime exercise list.

Each function validates its arguments before touching any state so that a
failed call leaves ``exercises`` unchanged.
"""

from __future__ import annotations

from typing import Sequence

from backend.errors import ExerciseNotFound, InvalidSetIndex
from backend.models import CompletedSet, SessionExerciseUI


def find_exercise(
    exercises: Sequence[SessionExerciseUI], exercise_id: str
) -> SessionExerciseUI:
    """Return the exercise with ``exercise_id`` or raise :class:`ExerciseNotFound`."""

    for exercise in exercises:
        if exercise.id == exercise_id:
            return exercise
    raise ExerciseNotFound()


def _check_index(exercise: SessionExerciseUI, set_index: int) -> None:
    if not 0 <= set_index < len(exercise.sets):
        raise InvalidSetIndex(
            f"Set {set_index + 1} does not exist for {exercise.name}"
        )


def add_set(exercises: Sequence[SessionExerciseUI], exercise_id: str) -> int:
    """Append an empty slot and return its index."""

    exercise = find_exercise(exercises, exercise_id)
    exercise.sets.append(None)
    return len(exercise.sets) - 1


def edit_set(
    exercises: Sequence[SessionExerciseUI],
    exercise_id: str,
    set_index: int,
    reps: int,
    weight: float,
) -> CompletedSet:
    """Record ``reps``/``weight`` for a set without changing its completion."""

    exercise = find_exercise(exercises, exercise_id)
    _check_index(exercise, set_index)
    previous = exercise.sets[set_index]
    completed = previous.is_completed if previous is not None else False
    new_set = CompletedSet(int(reps), float(weight), completed, set_index)
    exercise.sets[set_index] = new_set
    return new_set


def bulk_edit_sets(
    exercises: Sequence[SessionExerciseUI],
    exercise_id: str,
    reps: int,
    weight: float,
) -> None:
    """Apply the same ``reps``/``weight`` to every slot of the exercise."""

    exercise = find_exercise(exercises, exercise_id)
    for idx, slot in enumerate(exercise.sets):
        completed = slot.is_completed if slot is not None else False
        exercise.sets[idx] = CompletedSet(int(reps), float(weight), completed, idx)


def toggle_set_completion(
    exercises: Sequence[SessionExerciseUI], exercise_id: str, set_index: int
) -> bool:
    """Flip completion of a set and return the new flag.

    An empty slot is first filled in from the planned values, so the first
    toggle on it always completes the set.
    """

    exercise = find_exercise(exercises, exercise_id)
    _check_index(exercise, set_index)
    if exercise.sets[set_index] is None:
        slot = exercise.materialize(set_index)
        slot.is_completed = True
    else:
        slot = exercise.sets[set_index]
        slot.is_completed = not slot.is_completed
    return slot.is_completed


def mark_exercise_complete(
    exercises: Sequence[SessionExerciseUI], exercise_id: str
) -> None:
    """Fill every empty slot from the planned values and complete all sets."""

    exercise = find_exercise(exercises, exercise_id)
    for idx in range(len(exercise.sets)):
        exercise.materialize(idx).is_completed = True


def can_finish_session(exercises: Sequence[SessionExerciseUI]) -> bool:
    return bool(exercises) and all(ex.is_completed for ex in exercises)


def total_volume(exercises: Sequence[SessionExerciseUI]) -> float:
    """Sum of ``reps * weight`` over all completed sets."""

    return sum(ex.total_volume for ex in exercises)
