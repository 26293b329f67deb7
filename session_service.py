from __future__ import annotations
import datetime
from typing import List, Optional

from loguru import logger

from gym_service import GymService
from models import Exercise, ExerciseDefinition, ExerciseSet, WorkoutSession, WorkoutTemplate, as_utc


def _now(now: datetime.datetime | None) -> datetime.datetime:
    if now is None:
        return datetime.datetime.now(datetime.timezone.utc)
    return as_utc(now)


class SessionBuilder:
    """Compose a workout session set by set before saving it."""

    def __init__(self, service: GymService) -> None:
        self.service = service
        self.current_date: Optional[datetime.datetime] = None
        self.selected: Optional[ExerciseDefinition] = None
        self.current_sets: List[ExerciseSet] = []
        self.exercises: List[Exercise] = []
        self.editing_index: Optional[int] = None
        self.started_at: Optional[datetime.datetime] = None

    def select_exercise(self, definition_id: str) -> ExerciseDefinition:
        definition = self.service.get_exercise(definition_id)
        if definition is None:
            raise ValueError("exercise not found")
        self.selected = definition
        return definition

    def add_or_update_set(
        self,
        weight: float,
        reps: int,
        rpe: int | None = None,
        is_drop_set: bool = False,
        is_super_set: bool = False,
    ) -> ExerciseSet:
        """Add a set, or replace the one being edited. ``weight`` is in the user's unit."""
        new_set = ExerciseSet(
            weight=self.service.input_weight(weight),
            reps=reps,
            rpe=rpe,
            is_drop_set=is_drop_set,
            is_super_set=is_super_set,
        )
        if self.editing_index is not None:
            if self.editing_index < len(self.current_sets):
                self.current_sets[self.editing_index] = new_set
            self.editing_index = None
        else:
            self.current_sets.append(new_set)
        return new_set

    def edit_set(self, index: int) -> ExerciseSet:
        if not 0 <= index < len(self.current_sets):
            raise ValueError("set not found")
        self.editing_index = index
        return self.current_sets[index]

    def remove_set(self, index: int) -> None:
        if not 0 <= index < len(self.current_sets):
            raise ValueError("set not found")
        del self.current_sets[index]
        if self.editing_index == index:
            self.editing_index = None
        elif self.editing_index is not None and self.editing_index > index:
            self.editing_index -= 1

    def finish_exercise(self, now: datetime.datetime | None = None) -> Optional[Exercise]:
        """Move the current sets into the session as one exercise."""
        if self.selected is None or not self.current_sets:
            return None
        exercise = Exercise(definition=self.selected, sets=list(self.current_sets))
        if not self.exercises:
            self.started_at = _now(now)
        self.exercises.append(exercise)
        self.current_sets = []
        self.editing_index = None
        return exercise

    def resume_exercise(self, exercise_id: str, now: datetime.datetime | None = None) -> Exercise:
        """Take a finished exercise back into the editor."""
        exercise = next((ex for ex in self.exercises if ex.id == exercise_id), None)
        if exercise is None:
            raise ValueError("exercise not found")
        if self.current_sets:
            self.finish_exercise(now)
        self.exercises = [ex for ex in self.exercises if ex.id != exercise_id]
        self.selected = exercise.definition
        self.current_sets = list(exercise.sets)
        self.editing_index = None
        return exercise

    def load_template(self, template: WorkoutTemplate) -> List[Exercise]:
        """Append one exercise with empty sets per template entry still in the library."""
        loaded = []
        for entry in template.exercises:
            definition = self.service.get_exercise(entry.definition_id)
            if definition is None:
                logger.debug("Template {} references missing exercise {}", template.name, entry.definition_id)
                continue
            sets = [ExerciseSet(weight=0, reps=entry.reps) for _ in range(entry.sets)]
            exercise = Exercise(definition=definition, sets=sets)
            self.exercises.append(exercise)
            loaded.append(exercise)
        return loaded

    def save_session(
        self, now: datetime.datetime | None = None, start_timer: bool = True
    ) -> tuple[Optional[WorkoutSession], bool]:
        """Store the composed session and report whether it contains a PR."""
        if not self.exercises:
            return None, False
        now = _now(now)
        duration = 0.0
        if self.started_at is not None:
            duration = max((now - self.started_at).total_seconds(), 0.0)
        session = WorkoutSession(
            date=self.current_date or now,
            duration=duration,
            exercises=list(self.exercises),
        )
        is_pr = any(self.service.is_new_pr(ex) for ex in self.exercises)
        if self.service.add_session(session) is None:
            return None, False
        if is_pr:
            logger.info("New personal record in session {}", session.id)
        if start_timer:
            self.service.timer.start()
        self.reset()
        return session, is_pr

    def reset(self) -> None:
        self.current_date = None
        self.selected = None
        self.current_sets = []
        self.exercises = []
        self.editing_index = None
        self.started_at = None
