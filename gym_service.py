from __future__ import annotations
import datetime
import random
import sqlite3
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from algorithms import WeightConverter
from analytics_service import ProgressPoint, WorkoutAnalytics
from db import (
    ExerciseDefinitionRepository,
    SessionRepository,
    SettingsRepository,
    TemplateRepository,
)
from localization import translator
from models import (
    Exercise,
    ExerciseDefinition,
    ExerciseSet,
    MuscleGroup,
    WorkoutSession,
    WorkoutTemplate,
    normalize_name,
)
from rest_timer import AlertScheduler, Notifier, RestTimer, Ticker, TimerSound


DEFAULT_EXERCISES: List[Tuple[str, MuscleGroup, str]] = [
    ("Press Banca", MuscleGroup.CHEST, "00FFFF"),
    ("Sentadilla", MuscleGroup.LEGS, "39FF14"),
    ("Peso Muerto", MuscleGroup.BACK, "FF3B30"),
    ("Press Militar", MuscleGroup.SHOULDERS, "FF9500"),
    ("Remo con Barra", MuscleGroup.BACK, "AF52DE"),
    ("Curl de Bíceps", MuscleGroup.ARMS, "FF2D55"),
]

RANDOM_COLORS = ["007AFF", "34C759", "FF9500", "FF2D55", "AF52DE", "FFCC00", "30B0C7"]

WriteErrors = (ValueError, sqlite3.Error)


class GymService:
    """In-memory view of one user's workout data kept in sync with the store.

    The three collections are replaced wholesale on every store push. Writes
    go to the store and come back through the listeners; failures are logged
    and reported through the return value, never retried.
    """

    def __init__(
        self,
        db_path: str = "liftlog.db",
        user_id: str = "local",
        yaml_path: str | None = None,
        *,
        timer: RestTimer | None = None,
        live_timer: bool = False,
    ) -> None:
        self.settings = SettingsRepository(db_path, yaml_path)
        self.exercise_repo = ExerciseDefinitionRepository(db_path, user_id)
        self.session_repo = SessionRepository(db_path, user_id)
        self.template_repo = TemplateRepository(db_path, user_id)
        self.user_id = user_id
        translator.set_language(self.settings.get_text("language", "es"))

        self.sessions: Tuple[WorkoutSession, ...] = ()
        self.definitions: Tuple[ExerciseDefinition, ...] = ()
        self.templates: Tuple[WorkoutTemplate, ...] = ()
        self.muscle_goals: Dict[MuscleGroup, int] = {}
        self._seeding = False
        self._deduplicating = False
        self._unsubscribers: List[Callable[[], None]] = []

        self.timer = timer or self._build_timer(live_timer)
        self.initialize_goals()
        self.fetch_data()

    def _build_timer(self, live: bool) -> RestTimer:
        notifier = Notifier(
            enable_sound=self.settings.get_bool("enable_sound", True),
            enable_haptics=self.settings.get_bool("enable_haptics", True),
        )
        return RestTimer(
            default_duration=self.settings.get_int("default_rest_time", 90),
            sound=TimerSound(self.settings.get_text("timer_sound", "classic")),
            notifier=notifier,
            scheduler=AlertScheduler(notifier) if live else None,
            ticker_factory=Ticker if live else None,
        )

    # store listeners -------------------------------------------------

    def fetch_data(self) -> None:
        self._unsubscribers = [
            self.exercise_repo.subscribe(self._on_definitions),
            self.session_repo.subscribe(self._on_sessions),
            self.template_repo.subscribe(self._on_templates),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.timer.stop()

    def _on_definitions(self, snapshot: Tuple[ExerciseDefinition, ...]) -> None:
        self.definitions = snapshot
        if self._seeding or self._deduplicating:
            return
        if not snapshot:
            self.create_default_exercises()
        else:
            self.deduplicate_exercises()

    def _on_sessions(self, snapshot: Tuple[WorkoutSession, ...]) -> None:
        self.sessions = snapshot

    def _on_templates(self, snapshot: Tuple[WorkoutTemplate, ...]) -> None:
        self.templates = snapshot

    # goals and units --------------------------------------------------

    def initialize_goals(self) -> None:
        goal = self.settings.get_int("weekly_set_goal", 10)
        for group in MuscleGroup:
            self.muscle_goals[group] = goal

    def set_goal(self, group: MuscleGroup, sets: int) -> None:
        if sets < 0:
            raise ValueError("goal must be non-negative")
        self.muscle_goals[group] = sets

    @property
    def weight_unit(self) -> str:
        return self.settings.get_text("weight_unit", "kg")

    def display_weight(self, kg: float) -> str:
        return WeightConverter.display(kg, self.weight_unit)

    def input_weight(self, value: float) -> float:
        return WeightConverter.to_canonical(value, self.weight_unit)

    def convert_weight(self, kg: float) -> float:
        return WeightConverter.from_canonical(kg, self.weight_unit)

    def unit_label(self) -> str:
        return WeightConverter.unit_label(self.weight_unit)

    def apply_settings(self) -> None:
        """Push timer and language settings to the live objects."""
        translator.set_language(self.settings.get_text("language", "es"))
        self.timer.default_duration = self.settings.get_int("default_rest_time", 90)
        self.timer.sound = TimerSound(self.settings.get_text("timer_sound", "classic"))
        self.timer.notifier.enable_sound = self.settings.get_bool("enable_sound", True)
        self.timer.notifier.enable_haptics = self.settings.get_bool("enable_haptics", True)

    # exercise library ---------------------------------------------------

    def create_default_exercises(self) -> None:
        self._seeding = True
        try:
            for name, group, color in DEFAULT_EXERCISES:
                self.add_exercise(name, group, color)
        finally:
            self._seeding = False
        logger.info("Seeded {} default exercises for {}", len(DEFAULT_EXERCISES), self.user_id)

    def find_exercise(self, name: str) -> Optional[ExerciseDefinition]:
        key = normalize_name(name)
        for definition in self.definitions:
            if normalize_name(definition.name) == key:
                return definition
        return None

    def get_exercise(self, definition_id: str) -> Optional[ExerciseDefinition]:
        for definition in self.definitions:
            if definition.id == definition_id:
                return definition
        return None

    def add_exercise(
        self,
        name: str,
        muscle_group: MuscleGroup = MuscleGroup.OTHER,
        color_hex: str | None = None,
    ) -> Optional[str]:
        """Add an exercise unless an equivalent name already exists."""
        trimmed = name.strip()
        if not trimmed or self.find_exercise(trimmed) is not None:
            return None
        definition = ExerciseDefinition(
            name=trimmed,
            muscle_group=muscle_group,
            color_hex=color_hex or random.choice(RANDOM_COLORS),
        )
        try:
            return self.exercise_repo.add(definition)
        except WriteErrors as e:
            logger.error("Error adding exercise {}: {}", trimmed, e)
            return None

    def update_exercise(self, definition: ExerciseDefinition) -> bool:
        try:
            self.exercise_repo.update(definition)
        except WriteErrors as e:
            logger.error("Error updating exercise {}: {}", definition.id, e)
            return False
        return True

    def delete_exercise(self, definition_id: str) -> bool:
        try:
            self.exercise_repo.delete(definition_id)
        except WriteErrors as e:
            logger.error("Error deleting exercise {}: {}", definition_id, e)
            return False
        return True

    def deduplicate_exercises(self) -> List[ExerciseDefinition]:
        duplicates = WorkoutAnalytics.deduplicate_exercises(self.definitions)
        self._deduplicating = True
        try:
            for duplicate in duplicates:
                logger.info("Removing duplicate exercise {!r}", duplicate.name)
                self.delete_exercise(duplicate.id)
        finally:
            self._deduplicating = False
        return duplicates

    # templates and sessions ---------------------------------------------

    def add_template(self, template: WorkoutTemplate) -> Optional[str]:
        try:
            return self.template_repo.add(template)
        except WriteErrors as e:
            logger.error("Error adding template {}: {}", template.name, e)
            return None

    def delete_template(self, template_id: str) -> bool:
        try:
            self.template_repo.delete(template_id)
        except WriteErrors as e:
            logger.error("Error deleting template {}: {}", template_id, e)
            return False
        return True

    def get_template(self, template_id: str) -> Optional[WorkoutTemplate]:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

    def add_session(self, session: WorkoutSession) -> Optional[str]:
        try:
            return self.session_repo.add(session)
        except WriteErrors as e:
            logger.error("Error adding session {}: {}", session.id, e)
            return None

    def delete_session(self, session_id: str) -> bool:
        try:
            self.session_repo.delete(session_id)
        except WriteErrors as e:
            logger.error("Error deleting session {}: {}", session_id, e)
            return False
        return True

    def get_session(self, session_id: str) -> Optional[WorkoutSession]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    # analytics over the current snapshot --------------------------------

    def weekly_summary(self, now: datetime.datetime | None = None) -> Dict[str, float]:
        now = now or datetime.datetime.now(datetime.timezone.utc)
        return WorkoutAnalytics.weekly_summary(
            self.sessions, now, self.settings.get_int("first_weekday", 0)
        )

    def weekly_set_counts(self, now: datetime.datetime | None = None) -> Dict[MuscleGroup, int]:
        now = now or datetime.datetime.now(datetime.timezone.utc)
        return WorkoutAnalytics.weekly_set_counts(self.sessions, now)

    def goal_progress(self, now: datetime.datetime | None = None) -> List[Dict[str, object]]:
        return WorkoutAnalytics.goal_progress(self.weekly_set_counts(now), self.muscle_goals)

    def progress(self, definition_id: str) -> List[ProgressPoint]:
        return WorkoutAnalytics.progress_series(self.sessions, definition_id)

    def is_new_pr(self, exercise: Exercise) -> bool:
        return WorkoutAnalytics.is_personal_record(self.sessions, exercise)

    def last_session_data(self, definition_id: str) -> Optional[Exercise]:
        return WorkoutAnalytics.last_exercise(self.sessions, definition_id)

    def sessions_by_month(self) -> List[Tuple[str, List[WorkoutSession]]]:
        return WorkoutAnalytics.group_by_month(self.sessions)

    # demo data ----------------------------------------------------------

    def add_mock_data(self, now: datetime.datetime | None = None) -> bool:
        """Store two sample sessions when the history is empty."""
        if self.sessions:
            return False
        bench = self.find_exercise("Press Banca")
        squat = self.find_exercise("Sentadilla")
        if bench is None or squat is None:
            return False
        now = now or datetime.datetime.now(datetime.timezone.utc)

        def sets(weight: float, reps: int, rpes: List[int]) -> List[ExerciseSet]:
            return [ExerciseSet(weight=weight, reps=reps, rpe=r) for r in rpes]

        first = WorkoutSession(
            date=now - datetime.timedelta(days=3),
            duration=3600,
            exercises=[
                Exercise(definition=bench, sets=sets(60, 10, [7, 8, 8])),
                Exercise(definition=squat, sets=sets(80, 8, [8, 9, 9])),
            ],
        )
        second = WorkoutSession(
            date=now,
            duration=4200,
            exercises=[
                Exercise(definition=bench, sets=sets(65, 8, [8, 9, 9])),
                Exercise(definition=squat, sets=sets(85, 5, [9, 9, 10])),
            ],
        )
        return self.add_session(first) is not None and self.add_session(second) is not None
