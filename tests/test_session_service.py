import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from gym_service import GymService
from models import TemplateExercise, WorkoutTemplate
from rest_timer import TimerState
from session_service import SessionBuilder

UTC = datetime.timezone.utc


class SessionBuilderTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_builder.db"
        self.yaml_path = "test_builder.yaml"
        self._cleanup()
        self.service = GymService(self.db_path, "athlete", self.yaml_path)
        self.builder = SessionBuilder(self.service)
        self.bench = self.service.find_exercise("Press Banca")
        self.squat = self.service.find_exercise("Sentadilla")

    def tearDown(self) -> None:
        self.service.close()
        self._cleanup()

    def _cleanup(self) -> None:
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)

    def test_select_unknown_exercise(self) -> None:
        with self.assertRaises(ValueError):
            self.builder.select_exercise("missing")

    def test_edit_and_remove_sets(self) -> None:
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(60, 10)
        self.builder.add_or_update_set(62.5, 8)
        self.builder.add_or_update_set(65, 6)

        self.builder.edit_set(2)
        self.builder.remove_set(0)
        self.assertEqual(self.builder.editing_index, 1)
        self.builder.add_or_update_set(70, 5, rpe=9)
        self.assertEqual([s.weight for s in self.builder.current_sets], [62.5, 70])
        self.assertIsNone(self.builder.editing_index)

        with self.assertRaises(ValueError):
            self.builder.edit_set(5)
        with self.assertRaises(ValueError):
            self.builder.remove_set(-1)

    def test_weights_entered_in_pounds(self) -> None:
        self.service.settings.set_text("weight_unit", "lbs")
        self.builder.select_exercise(self.bench.id)
        added = self.builder.add_or_update_set(220.462, 5)
        self.assertAlmostEqual(added.weight, 100.0)

    def test_finish_and_resume(self) -> None:
        start = datetime.datetime(2024, 5, 15, 10, tzinfo=UTC)
        self.assertIsNone(self.builder.finish_exercise(start))
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(60, 10)
        finished = self.builder.finish_exercise(start)
        self.assertEqual(self.builder.started_at, start)
        self.assertEqual(self.builder.current_sets, [])

        resumed = self.builder.resume_exercise(finished.id)
        self.assertEqual(resumed.id, finished.id)
        self.assertEqual(self.builder.exercises, [])
        self.assertEqual(len(self.builder.current_sets), 1)
        self.assertEqual(self.builder.selected, self.bench)
        with self.assertRaises(ValueError):
            self.builder.resume_exercise("missing")

    def test_load_template_skips_missing_definitions(self) -> None:
        template = WorkoutTemplate(
            name="Pierna",
            exercises=[
                TemplateExercise(definition_id=self.squat.id),
                TemplateExercise(definition_id="deleted", sets=3),
            ],
        )
        loaded = self.builder.load_template(template)
        self.assertEqual(len(loaded), 1)
        self.assertEqual(len(loaded[0].sets), 4)
        self.assertEqual(loaded[0].sets[0].reps, 10)

    def test_save_session(self) -> None:
        start = datetime.datetime(2024, 5, 15, 10, tzinfo=UTC)
        end = start + datetime.timedelta(minutes=50)
        self.assertEqual(self.builder.save_session(end), (None, False))

        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(60, 10)
        self.builder.finish_exercise(start)
        session, is_pr = self.builder.save_session(end)

        self.assertTrue(is_pr)
        self.assertEqual(session.duration, 3000)
        self.assertEqual(self.service.sessions[0].id, session.id)
        self.assertEqual(self.service.timer.state, TimerState.RUNNING)
        self.assertEqual(self.service.timer.remaining, 90)
        self.assertEqual(self.builder.exercises, [])

    def test_second_lighter_session_is_not_pr(self) -> None:
        start = datetime.datetime(2024, 5, 15, 10, tzinfo=UTC)
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(80, 5)
        self.builder.finish_exercise(start)
        self.builder.save_session(start, start_timer=False)

        later = start + datetime.timedelta(days=2)
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(70, 5)
        self.builder.finish_exercise(later)
        session, is_pr = self.builder.save_session(later, start_timer=False)
        self.assertIsNotNone(session)
        self.assertFalse(is_pr)
        self.assertEqual(self.service.timer.state, TimerState.IDLE)

    def test_naive_and_aware_times_can_be_mixed(self) -> None:
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(60, 10)
        self.builder.finish_exercise(datetime.datetime(2024, 5, 15, 10, tzinfo=UTC))
        session, _ = self.builder.save_session(
            datetime.datetime(2024, 5, 15, 10, 30), start_timer=False
        )
        self.assertEqual(session.duration, 1800)
        self.assertEqual(session.date.utcoffset(), datetime.timedelta(0))

        self.builder.select_exercise(self.squat.id)
        self.builder.add_or_update_set(80, 5)
        self.builder.finish_exercise(datetime.datetime(2024, 5, 16, 9))
        session, _ = self.builder.save_session(
            datetime.datetime(2024, 5, 16, 9, 20, tzinfo=UTC), start_timer=False
        )
        self.assertEqual(session.duration, 1200)

    def test_default_start_with_naive_save_time(self) -> None:
        self.builder.select_exercise(self.bench.id)
        self.builder.add_or_update_set(60, 10)
        self.builder.finish_exercise()
        session, _ = self.builder.save_session(datetime.datetime.now(), start_timer=False)
        self.assertIsNotNone(session)
        self.assertGreaterEqual(session.duration, 0)


if __name__ == "__main__":
    unittest.main()
