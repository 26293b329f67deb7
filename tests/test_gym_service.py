import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from loguru import logger

from db import ExerciseDefinitionRepository
from gym_service import DEFAULT_EXERCISES, GymService
from models import Exercise, ExerciseDefinition, ExerciseSet, MuscleGroup, WorkoutSession, WorkoutTemplate, TemplateExercise
from rest_timer import TimerSound


class GymServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_service.db"
        self.yaml_path = "test_service.yaml"
        self._cleanup()
        self.service = GymService(self.db_path, "athlete", self.yaml_path)

    def tearDown(self) -> None:
        self.service.close()
        self._cleanup()

    def _cleanup(self) -> None:
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)

    def test_default_exercises_seeded_once(self) -> None:
        names = [d.name for d in self.service.definitions]
        self.assertEqual(names, [name for name, _g, _c in DEFAULT_EXERCISES])
        again = GymService(self.db_path, "athlete", self.yaml_path)
        try:
            self.assertEqual(len(again.definitions), len(DEFAULT_EXERCISES))
        finally:
            again.close()

    def test_add_exercise_rejects_equivalent_names(self) -> None:
        self.assertIsNone(self.service.add_exercise("  press banca "))
        self.assertIsNone(self.service.add_exercise("CURL DE BICEPS"))
        self.assertIsNone(self.service.add_exercise("   "))
        new_id = self.service.add_exercise("Dominadas", MuscleGroup.BACK)
        self.assertIsNotNone(new_id)
        added = self.service.get_exercise(new_id)
        self.assertEqual(added.muscle_group, MuscleGroup.BACK)
        self.assertEqual(len(added.color_hex), 6)

    def test_duplicates_removed_on_push(self) -> None:
        self.service.exercise_repo.add(ExerciseDefinition(name="sentadilla "))
        names = [d.name for d in self.service.definitions]
        self.assertEqual(names.count("Sentadilla"), 1)
        self.assertNotIn("sentadilla ", names)

    def test_existing_duplicates_removed_without_errors(self) -> None:
        repo = ExerciseDefinitionRepository(self.db_path, "lifter")
        for name in ("Press Banca", "press banca", "PRESS BANCA "):
            repo.add(ExerciseDefinition(name=name))
        errors = []
        handler_id = logger.add(errors.append, level="ERROR")
        try:
            service = GymService(self.db_path, "lifter", self.yaml_path)
        finally:
            logger.remove(handler_id)
        try:
            self.assertEqual(errors, [])
            self.assertEqual([d.name for d in service.definitions], ["Press Banca"])
            self.assertEqual(len(repo.fetch_snapshot()), 1)
            self.assertEqual(service.deduplicate_exercises(), [])
        finally:
            service.close()

    def test_update_and_delete_exercise(self) -> None:
        bench = self.service.find_exercise("Press Banca")
        changed = bench.model_copy(update={"target_weight": 100.0, "target_reps": 5})
        self.assertTrue(self.service.update_exercise(changed))
        self.assertEqual(self.service.get_exercise(bench.id).target_weight, 100.0)
        self.assertTrue(self.service.delete_exercise(bench.id))
        self.assertIsNone(self.service.get_exercise(bench.id))

    def test_failed_writes_are_reported(self) -> None:
        ghost = ExerciseDefinition(name="Ghost")
        self.assertFalse(self.service.update_exercise(ghost))
        self.assertFalse(self.service.delete_exercise(ghost.id))
        self.assertFalse(self.service.delete_session("missing"))
        self.assertFalse(self.service.delete_template("missing"))
        session = WorkoutSession(date=datetime.datetime(2024, 1, 1))
        self.assertIsNotNone(self.service.add_session(session))
        self.assertIsNone(self.service.add_session(session))

    def test_sessions_snapshot_replaced(self) -> None:
        before = self.service.sessions
        bench = self.service.find_exercise("Press Banca")
        session = WorkoutSession(
            date=datetime.datetime(2024, 1, 1),
            exercises=[Exercise(definition=bench, sets=[ExerciseSet(weight=60, reps=10)])],
        )
        self.service.add_session(session)
        self.assertEqual(before, ())
        self.assertEqual(len(self.service.sessions), 1)
        self.assertTrue(self.service.delete_session(session.id))
        self.assertEqual(self.service.sessions, ())

    def test_definition_snapshot_kept_in_history(self) -> None:
        bench = self.service.find_exercise("Press Banca")
        session = WorkoutSession(
            date=datetime.datetime(2024, 1, 1),
            exercises=[Exercise(definition=bench, sets=[ExerciseSet(weight=60, reps=10)])],
        )
        self.service.add_session(session)
        self.service.update_exercise(bench.model_copy(update={"name": "Press de Banca"}))
        stored = self.service.get_session(session.id)
        self.assertEqual(stored.exercises[0].definition.name, "Press Banca")

    def test_templates(self) -> None:
        bench = self.service.find_exercise("Press Banca")
        template = WorkoutTemplate(
            name="Empuje", exercises=[TemplateExercise(definition_id=bench.id)]
        )
        self.assertEqual(self.service.add_template(template), template.id)
        self.assertEqual(self.service.get_template(template.id).name, "Empuje")
        self.assertTrue(self.service.delete_template(template.id))
        self.assertEqual(self.service.templates, ())

    def test_goals(self) -> None:
        self.assertEqual(set(self.service.muscle_goals.values()), {10})
        self.service.set_goal(MuscleGroup.CHEST, 12)
        self.assertEqual(self.service.muscle_goals[MuscleGroup.CHEST], 12)
        with self.assertRaises(ValueError):
            self.service.set_goal(MuscleGroup.CHEST, -1)

    def test_unit_helpers(self) -> None:
        self.assertEqual(self.service.display_weight(100), "100.0")
        self.assertEqual(self.service.unit_label(), "kg")
        self.service.settings.set_text("weight_unit", "lbs")
        self.assertEqual(self.service.display_weight(100), "220.5")
        self.assertAlmostEqual(self.service.input_weight(220.462), 100.0)
        self.assertAlmostEqual(self.service.convert_weight(1), 2.20462)
        self.assertEqual(self.service.unit_label(), "lbs")

    def test_apply_settings_updates_timer(self) -> None:
        self.service.settings.set_int("default_rest_time", 120)
        self.service.settings.set_text("timer_sound", "zen")
        self.service.settings.set_bool("enable_sound", False)
        self.service.apply_settings()
        self.assertEqual(self.service.timer.default_duration, 120)
        self.assertEqual(self.service.timer.sound, TimerSound.ZEN)
        self.assertFalse(self.service.timer.notifier.enable_sound)

    def test_mock_data_and_analytics(self) -> None:
        now = datetime.datetime(2024, 5, 15, 12, tzinfo=datetime.timezone.utc)
        self.assertTrue(self.service.add_mock_data(now))
        self.assertFalse(self.service.add_mock_data(now))
        self.assertEqual(len(self.service.sessions), 2)
        bench = self.service.find_exercise("Press Banca")
        series = self.service.progress(bench.id)
        self.assertEqual([p.weight for p in series], [60, 65])
        latest = self.service.last_session_data(bench.id)
        self.assertEqual(latest.max_weight, 65)
        counts = self.service.weekly_set_counts(now)
        self.assertEqual(counts[MuscleGroup.CHEST], 6)
        self.assertEqual(counts[MuscleGroup.LEGS], 6)
        goals = self.service.goal_progress(now)
        chest = next(g for g in goals if g["muscle_group"] == "chest")
        self.assertAlmostEqual(chest["ratio"], 0.6)
        self.assertEqual(len(self.service.sessions_by_month()), 1)
        summary = self.service.weekly_summary(now)
        self.assertGreater(summary["current_volume"], 0)


if __name__ == "__main__":
    unittest.main()
