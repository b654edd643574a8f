"""Turn a day template into the list of exercises logged during a session."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Tuple

from backend.grouping import mark_superset_heads
from backend.models import DayTemplate, SessionExerciseUI

# ``exercise_id -> (reps, weight)`` of the most recent logged set
LastPerformed = Mapping[int, Optional[Tuple[int, float]]]


def build_exercises(
    day_template: DayTemplate | None,
    last_performed: LastPerformed | None = None,
) -> list[SessionExerciseUI]:
    """Return the runtime exercises for ``day_template``.

    Templates are taken in ``position`` order and every exercise starts with
    ``set_count`` empty slots.  Values from ``last_performed`` are attached as
    ``previous_reps``/``previous_weight`` so empty slots can be prefilled.
    Rest days and days without templates produce an empty list.
    """

    if day_template is None or day_template.is_rest:
        return []
    last_performed = last_performed or {}

    exercises: list[SessionExerciseUI] = []
    seen: dict[int, int] = {}
    for template in day_template.sorted_templates():
        ex = template.exercise
        seen[ex.id] = seen.get(ex.id, 0) + 1
        # the same exercise may be prescribed twice in one day
        ex_key = str(ex.id) if seen[ex.id] == 1 else f"{ex.id}#{seen[ex.id]}"
        previous = last_performed.get(ex.id)
        prev_reps, prev_weight = previous if previous else (None, None)
        exercises.append(
            SessionExerciseUI(
                id=ex_key,
                exercise_id=ex.id,
                name=ex.name,
                planned_sets=template.set_count,
                planned_reps=template.reps,
                planned_weight=template.weight,
                position=template.position,
                superset_id=template.superset_id,
                previous_reps=prev_reps,
                previous_weight=prev_weight,
                sets=[None] * max(template.set_count, 0),
            )
        )
        logging.debug(
            "Projected %s: %s x %s @ %s",
            ex.name,
            template.set_count,
            template.reps,
            template.weight,
        )

    mark_superset_heads(exercises)
    return exercises
