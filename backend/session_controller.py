"""Drive a workout logging session from plan selection to the saved record.

:class:`SessionController` owns the runtime exercise list for the selected
day.  Screens bind to its Kivy properties and call its intent methods; they
never mutate the exercise list themselves.

Every intent either succeeds or raises an :class:`~backend.errors.EngineError`
without changing any state.  The failure is also stored in :attr:`error` until
:meth:`SessionController.dismiss_error` is called.
"""

from __future__ import annotations

import asyncio
import datetime
import functools
import logging
import time
from typing import Any, Callable

from kivy.event import EventDispatcher
from kivy.properties import (
    BooleanProperty,
    ListProperty,
    NumericProperty,
    ObjectProperty,
    OptionProperty,
)

from backend import settings
from backend import set_mutations
from backend.errors import (
    EngineError,
    NoDaySelected,
    NoPlanSelected,
    PlanNotFound,
    SessionNotInProgress,
)
from backend.grouping import Superset, group_exercises
from backend.models import (
    DayTemplate,
    SessionExercise,
    SessionExerciseUI,
    Weekday,
    WorkoutSession,
)
from backend.projection import build_exercises
from backend.store import Store
from core import DEFAULT_REST_DURATION, TITLE_SEPARATOR

IDLE = "idle"
PLAN_SELECTED = "plan_selected"
DAY_SELECTED = "day_selected"
IN_PROGRESS = "in_progress"

# Names accepted by :meth:`SessionController.handle_intent`
INTENTS = frozenset(
    {
        "select_plan",
        "select_day",
        "start_session",
        "add_set",
        "edit_set",
        "bulk_edit_sets",
        "toggle_set_completion",
        "mark_exercise_complete",
        "finish_session",
        "cancel_session",
        "advance_to_next_exercise",
        "set_current_exercise",
        "start_rest",
        "adjust_rest_timer",
        "cancel_rest",
    }
)


def intent(func):
    """Record and log :class:`EngineError` failures raised by ``func``."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except EngineError as exc:
            self._record_error(func.__name__, exc)
            raise

    return wrapper


class SessionController(EventDispatcher):
    """Lifecycle controller for one logging session at a time.

    ``store`` provides plans and persists finished sessions.  ``now`` returns
    the current time as a UNIX timestamp and ``get_setting`` looks up user
    settings; both default to the real implementations.
    """

    state = OptionProperty(
        IDLE, options=[IDLE, PLAN_SELECTED, DAY_SELECTED, IN_PROGRESS]
    )
    available_plans = ListProperty([])
    active_plan = ObjectProperty(None, allownone=True)
    available_days = ListProperty([])
    selected_day = ObjectProperty(None, allownone=True)
    is_rest_day = BooleanProperty(False)
    exercises = ListProperty([])
    grouped_exercises = ListProperty([])
    is_workout_in_progress = BooleanProperty(False)
    can_finish_session = BooleanProperty(False)
    current_exercise_index = NumericProperty(0)
    is_resting = BooleanProperty(False)
    error = ObjectProperty(None, allownone=True)

    def __init__(
        self,
        store: Store,
        now: Callable[[], float] = time.time,
        get_setting: Callable[..., Any] = settings.get_value,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.store = store
        self._now = now
        self._get_setting = get_setting
        self._exercises: list[SessionExerciseUI] = []
        self._day_template: DayTemplate | None = None
        self.start_time: float | None = None
        self._pending_record: WorkoutSession | None = None
        self.rest_duration: float = 0
        self.rest_target_time: float | None = None
        self._resting_exercise_id: str | None = None
        self.load_plans()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_error(self, name: str, exc: EngineError) -> None:
        logging.warning("%s failed: %s", name, exc.message)
        self.error = exc

    def _refresh(self) -> None:
        """Publish the runtime list and recompute derived state."""

        self.exercises = self._exercises
        # slots are edited in place, so observers need an explicit nudge
        self.property("exercises").dispatch(self)
        self.grouped_exercises = group_exercises(self._exercises)
        self.can_finish_session = set_mutations.can_finish_session(self._exercises)

    def _set_exercises(self, exercises: list[SessionExerciseUI]) -> None:
        self._exercises = exercises
        # ListProperty keeps its old list when the new one compares equal,
        # and a fresh projection of the same day does
        self.exercises = []
        self.grouped_exercises = []
        self._refresh()

    def _today(self) -> Weekday:
        return Weekday.from_date(datetime.date.fromtimestamp(self._now()))

    def _reset_session(self) -> None:
        self.start_time = None
        self._pending_record = None
        self.is_workout_in_progress = False
        self.current_exercise_index = 0
        self._clear_rest()

    def _clear_plan(self) -> None:
        self._reset_session()
        self.active_plan = None
        self.available_days = []
        self.selected_day = None
        self._day_template = None
        self.is_rest_day = False
        self._set_exercises([])
        self.state = IDLE

    def _last_performed(self, day: DayTemplate) -> dict:
        return {
            t.exercise.id: self.store.fetch_last_performed(t.exercise.id)
            for t in day.exercise_templates
        }

    def _project_day(self, weekday: Weekday) -> None:
        day = self.store.fetch_day_template(self.active_plan.id, weekday)
        is_rest = day is None or day.is_rest or not day.exercise_templates
        exercises = [] if is_rest else build_exercises(day, self._last_performed(day))

        self._reset_session()
        self.selected_day = weekday
        self._day_template = day
        self.is_rest_day = is_rest
        self._set_exercises(exercises)
        self.state = DAY_SELECTED
        logging.info(
            "Selected %s (%s)",
            weekday.full_name,
            "rest day" if is_rest else f"{len(exercises)} exercises",
        )

    def _require_session(self) -> None:
        if self.state != IN_PROGRESS:
            raise SessionNotInProgress()

    def _session_title(self) -> str:
        plan_name = self.active_plan.custom_name if self.active_plan else ""
        return f"{self.selected_day.full_name}{TITLE_SEPARATOR}{plan_name}"

    def _snapshot(self) -> WorkoutSession:
        return WorkoutSession(
            date=self.start_time,
            title=self._session_title(),
            duration=max(0.0, self._now() - self.start_time),
            plan_id=self.active_plan.id if self.active_plan else None,
            is_complete=set_mutations.can_finish_session(self._exercises),
            exercises=[SessionExercise.from_runtime(ex) for ex in self._exercises],
        )

    def _build_record(self) -> WorkoutSession:
        if self._pending_record is not None and self._pending_record.id is not None:
            # an earlier attempt was written after its caller stopped waiting
            return self._pending_record
        self._pending_record = self._snapshot()
        return self._pending_record

    def _save(self, record: WorkoutSession) -> WorkoutSession:
        saved = self.store.save(record)
        self._pending_record = saved
        return saved

    def _end_session(self, saved: WorkoutSession | None) -> None:
        if saved is not None:
            logging.info(
                "Finished '%s' in %.0fs, volume %g",
                saved.title,
                saved.duration,
                saved.total_volume,
            )
        # fresh projection so the next session starts from the updated history
        self._project_day(self.selected_day)

    def _after_set_change(self, exercise: SessionExerciseUI) -> None:
        current = self.current_exercise
        if exercise.is_completed and current is exercise:
            self._advance()
        self._refresh()

    # ------------------------------------------------------------------
    # Plan and day selection
    # ------------------------------------------------------------------

    def load_plans(self) -> list:
        """Fetch the active plans from storage into :attr:`available_plans`."""

        plans = self.store.fetch_active_plans()
        self.available_plans = sorted(plans, key=lambda p: p.custom_name.lower())
        logging.info("Loaded %d plans", len(plans))
        if self.active_plan is not None and all(
            p.id != self.active_plan.id for p in plans
        ):
            logging.info("Active plan %s no longer exists", self.active_plan.id)
            self._clear_plan()
        return self.available_plans

    @intent
    def select_plan(self, plan_id: int) -> None:
        plan = next((p for p in self.available_plans if p.id == plan_id), None)
        if plan is None:
            raise PlanNotFound(f"Workout plan {plan_id} not found")

        self._reset_session()
        self.active_plan = plan
        self.available_days = plan.weekdays
        self.selected_day = None
        self._day_template = None
        self.is_rest_day = False
        self._set_exercises([])
        self.state = PLAN_SELECTED
        logging.info("Selected plan '%s'", plan.custom_name)

        today = self._today()
        if self._get_setting("auto_select_today", True) and today in self.available_days:
            self._project_day(today)

    @intent
    def select_day(self, weekday: Weekday | int) -> None:
        if self.active_plan is None:
            raise NoPlanSelected()
        try:
            weekday = Weekday(weekday)
        except ValueError:
            raise NoDaySelected(f"{weekday!r} is not a day of the week") from None
        self._project_day(weekday)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @intent
    def start_session(self) -> None:
        if self.state == IN_PROGRESS:
            logging.debug("Session already in progress, continuing")
            return
        if self.selected_day is None or self.is_rest_day:
            raise NoDaySelected()
        self.start_time = self._now()
        self._pending_record = None
        self.current_exercise_index = 0
        self.is_workout_in_progress = True
        self.state = IN_PROGRESS
        logging.info("Started %s", self._session_title())

    @intent
    def finish_session(self) -> WorkoutSession:
        """Save the session and return the stored record.

        Sessions may be finished before every set is completed.  On a
        :class:`~backend.errors.PersistenceError` the session stays in
        progress so finishing can be retried.
        """

        self._require_session()
        record = self._build_record()
        saved = record if record.id is not None else self._save(record)
        self._end_session(saved)
        return saved

    async def finish_session_async(self) -> WorkoutSession:
        """Like :meth:`finish_session` but writes from a worker thread.

        Cancelling the awaiting task keeps the session in progress.
        """

        try:
            self._require_session()
            saved = self._build_record()
            if saved.id is None:
                # _save keeps the stored record even if this task is cancelled
                saved = await asyncio.to_thread(self._save, saved)
        except EngineError as exc:
            self._record_error("finish_session_async", exc)
            raise
        self._end_session(saved)
        return saved

    @intent
    def cancel_session(self) -> None:
        self._require_session()
        logging.info("Cancelled %s", self._session_title())
        self._end_session(None)

    # ------------------------------------------------------------------
    # Set mutations
    # ------------------------------------------------------------------

    @intent
    def add_set(self, exercise_id: str) -> int:
        index = set_mutations.add_set(self._exercises, exercise_id)
        self._refresh()
        return index

    @intent
    def edit_set(self, exercise_id: str, set_index: int, reps: int, weight: float) -> None:
        set_mutations.edit_set(self._exercises, exercise_id, set_index, reps, weight)
        self._refresh()

    @intent
    def bulk_edit_sets(self, exercise_id: str, reps: int, weight: float) -> None:
        set_mutations.bulk_edit_sets(self._exercises, exercise_id, reps, weight)
        self._refresh()

    @intent
    def toggle_set_completion(self, exercise_id: str, set_index: int) -> bool:
        done = set_mutations.toggle_set_completion(self._exercises, exercise_id, set_index)
        self._after_set_change(set_mutations.find_exercise(self._exercises, exercise_id))
        return done

    @intent
    def mark_exercise_complete(self, exercise_id: str) -> None:
        set_mutations.mark_exercise_complete(self._exercises, exercise_id)
        self._after_set_change(set_mutations.find_exercise(self._exercises, exercise_id))

    @property
    def total_volume(self) -> float:
        return set_mutations.total_volume(self._exercises)

    # ------------------------------------------------------------------
    # Current exercise
    # ------------------------------------------------------------------

    @property
    def current_exercise(self) -> SessionExerciseUI | None:
        idx = int(self.current_exercise_index)
        if 0 <= idx < len(self._exercises):
            return self._exercises[idx]
        return None

    def _index_of(self, exercise: SessionExerciseUI) -> int:
        return next(i for i, ex in enumerate(self._exercises) if ex is exercise)

    def _advance(self) -> None:
        idx = int(self.current_exercise_index)
        current = self.current_exercise
        if current is None:
            return
        # groups are rebuilt from the owned list, members are matched by identity
        group = next(
            (
                g
                for g in group_exercises(self._exercises)
                if isinstance(g, Superset) and any(m is current for m in g.members)
            ),
            None,
        )
        if group is None or all(m.is_completed for m in group.members):
            last = group.members[-1] if group is not None else current
            next_idx = self._index_of(last) + 1
            if next_idx < len(self._exercises):
                self.current_exercise_index = next_idx
            return

        # alternate through the superset until every member is done
        members = group.members
        pos = next(i for i, m in enumerate(members) if m is current)
        candidates = members[pos + 1:] + [m for m in members[: pos + 1] if not m.is_completed]
        if candidates:
            self.current_exercise_index = self._index_of(candidates[0])
        else:
            self.current_exercise_index = idx

    @intent
    def advance_to_next_exercise(self) -> None:
        self._advance()
        logging.debug("Current exercise index %d", self.current_exercise_index)

    @intent
    def set_current_exercise(self, index: int) -> None:
        if 0 <= index < len(self._exercises):
            self.current_exercise_index = index
        else:
            logging.debug("Ignoring out of range exercise index %s", index)

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def _clear_rest(self) -> None:
        self.rest_target_time = None
        self._resting_exercise_id = None
        self.is_resting = False

    @intent
    def start_rest(self, exercise_id: str, seconds: float | None = None) -> None:
        """Start a rest countdown after a set of ``exercise_id``."""

        set_mutations.find_exercise(self._exercises, exercise_id)
        if seconds is None:
            seconds = self._get_setting("default_rest_duration", DEFAULT_REST_DURATION)
        self.rest_duration = seconds
        self.rest_target_time = self._now() + seconds
        self._resting_exercise_id = exercise_id
        self.is_resting = True

    @intent
    def adjust_rest_timer(self, seconds: float) -> None:
        """Adjust the target time for the current rest period."""
        if self.rest_target_time is None:
            return
        now = self._now()
        if self.rest_target_time <= now:
            self.rest_target_time = now
        self.rest_target_time += seconds
        if self.rest_target_time <= now:
            self.rest_target_time = now

    @intent
    def cancel_rest(self, exercise_id: str | None = None) -> None:
        if exercise_id is not None:
            set_mutations.find_exercise(self._exercises, exercise_id)
        self._clear_rest()

    def rest_remaining(self) -> float:
        """Return seconds remaining in the current rest period."""
        if self.rest_target_time is None:
            return 0.0
        remaining = max(0.0, self.rest_target_time - self._now())
        if remaining == 0.0 and self.is_resting:
            self._clear_rest()
        return remaining

    # ------------------------------------------------------------------
    # Errors and dispatch
    # ------------------------------------------------------------------

    def dismiss_error(self) -> None:
        self.error = None

    def handle_intent(self, name: str, *args, **kwargs) -> bool:
        """Run the intent called ``name``.

        Returns ``False`` when it failed with an engine error, which is then
        available from :attr:`error`.
        """

        if name not in INTENTS:
            raise ValueError(f"Unknown intent '{name}'")
        logging.debug("Intent %s %s %s", name, args, kwargs)
        try:
            getattr(self, name)(*args, **kwargs)
        except EngineError:
            return False
        return True

    def summary(self) -> str:
        """Return a text summary of the session in progress."""
        if self.state != IN_PROGRESS:
            return ""
        return self._snapshot().summary()
