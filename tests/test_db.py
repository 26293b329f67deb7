import os
import sys
import datetime
import unittest
import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import (
    ExerciseDefinitionRepository,
    SessionRepository,
    SettingsRepository,
    TemplateRepository,
)
from models import ExerciseDefinition, MuscleGroup, TemplateExercise, WorkoutSession, WorkoutTemplate


class DocumentRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_documents.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.exercises = ExerciseDefinitionRepository(self.db_path, "user-a")
        self.sessions = SessionRepository(self.db_path, "user-a")

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_add_update_delete(self) -> None:
        definition = ExerciseDefinition(name="Press Banca", muscle_group=MuscleGroup.CHEST)
        self.exercises.add(definition)
        fetched = self.exercises.fetch(definition.id)
        self.assertEqual(fetched, definition)

        updated = definition.model_copy(update={"target_weight": 80.0})
        self.exercises.update(updated)
        self.assertEqual(self.exercises.fetch(definition.id).target_weight, 80.0)

        self.exercises.delete(definition.id)
        self.assertEqual(self.exercises.fetch_snapshot(), ())

    def test_missing_records_raise(self) -> None:
        ghost = ExerciseDefinition(name="Ghost")
        with self.assertRaises(ValueError):
            self.exercises.update(ghost)
        with self.assertRaises(ValueError):
            self.exercises.delete(ghost.id)
        with self.assertRaises(ValueError):
            self.exercises.fetch(ghost.id)

    def test_collections_are_user_scoped(self) -> None:
        other = ExerciseDefinitionRepository(self.db_path, "user-b")
        self.exercises.add(ExerciseDefinition(name="Sentadilla"))
        self.assertEqual(len(self.exercises.fetch_snapshot()), 1)
        self.assertEqual(other.fetch_snapshot(), ())

    def test_listener_receives_full_snapshots(self) -> None:
        received = []
        unsubscribe = self.exercises.subscribe(received.append)
        self.assertEqual(received, [()])
        a = ExerciseDefinition(name="A")
        b = ExerciseDefinition(name="B")
        self.exercises.add(a)
        self.exercises.add(b)
        self.assertEqual(received[-1], (a, b))
        self.assertIsNot(received[-1], received[-2])
        unsubscribe()
        self.exercises.delete(a.id)
        self.assertEqual(len(received), 3)

    def test_sessions_ordered_newest_first(self) -> None:
        old = WorkoutSession(date=datetime.datetime(2024, 1, 1))
        new = WorkoutSession(date=datetime.datetime(2024, 3, 1))
        self.sessions.add(old)
        self.sessions.add(new)
        snapshot = self.sessions.fetch_snapshot()
        self.assertEqual([s.id for s in snapshot], [new.id, old.id])
        self.assertEqual(snapshot[0].date.utcoffset(), datetime.timedelta(0))

    def test_corrupt_documents_are_skipped(self) -> None:
        good = ExerciseDefinition(name="Good")
        self.exercises.add(good)
        self.exercises.execute(
            "INSERT INTO documents (user_id, collection, doc_id, body) VALUES (?, ?, ?, ?);",
            ("user-a", "exercises", "broken", '{"name": 5, "muscle_group": "nope"}'),
        )
        self.exercises.execute(
            "INSERT INTO documents (user_id, collection, doc_id, body) VALUES (?, ?, ?, ?);",
            ("user-a", "exercises", "not-json", "{{{"),
        )
        self.assertEqual(self.exercises.fetch_snapshot(), (good,))

    def test_templates_round_trip(self) -> None:
        templates = TemplateRepository(self.db_path, "user-a")
        template = WorkoutTemplate(
            name="Pierna",
            exercises=[TemplateExercise(definition_id="abc")],
        )
        templates.add(template)
        stored = templates.fetch(template.id)
        self.assertEqual(stored.exercises[0].sets, 4)
        self.assertEqual(stored.exercises[0].reps, 10)


class SettingsRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_settings.db"
        self.yaml_path = "test_settings.yaml"
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)
        self.settings = SettingsRepository(self.db_path, self.yaml_path)

    def tearDown(self) -> None:
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)

    def test_defaults(self) -> None:
        self.assertEqual(self.settings.get_text("weight_unit", ""), "kg")
        self.assertEqual(self.settings.get_int("default_rest_time", 0), 90)
        self.assertTrue(self.settings.get_bool("enable_sound", False))
        self.assertEqual(self.settings.get_int("weekly_set_goal", 0), 10)

    def test_set_values_sync_to_yaml(self) -> None:
        self.settings.set_text("weight_unit", "lbs")
        self.settings.set_int("default_rest_time", 120)
        self.settings.set_bool("enable_haptics", False)
        with open(self.yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        self.assertEqual(data["weight_unit"], "lbs")
        self.assertEqual(data["default_rest_time"], 120)
        self.assertFalse(data["enable_haptics"])

    def test_yaml_edits_are_picked_up(self) -> None:
        with open(self.yaml_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"language": "en", "timer_sound": "zen"}, f)
        self.assertEqual(self.settings.get_text("language", "es"), "en")
        self.assertEqual(self.settings.get_text("timer_sound", "classic"), "zen")

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.settings.set_text("weight_unit", "stone")
        with self.assertRaises(ValueError):
            self.settings.set_int("first_weekday", 9)


if __name__ == "__main__":
    unittest.main()
