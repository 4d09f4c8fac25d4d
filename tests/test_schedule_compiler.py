import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from date_key import DateKey
from schedule_compiler import (
    ScheduleCompiler,
    WorkoutDayTemplate,
    parse_workout_days,
)

START = DateKey(2024, 1, 1)


def flatten(store):
    return [(d.format(), r.workout_id) for d, refs in store.items() for r in refs]


class ScheduleCompilerTest(unittest.TestCase):
    def test_push_pull_legs_single_week(self) -> None:
        store = ScheduleCompiler.compile(["push", "pull", "legs"], START, 1)
        self.assertEqual(
            flatten(store),
            [("2024-01-01", "push"), ("2024-01-02", "pull"), ("2024-01-03", "legs")],
        )

    def test_default_four_weeks(self) -> None:
        store = ScheduleCompiler.compile(["push", "pull", "legs"], START)
        self.assertEqual(len(store), 12)
        self.assertEqual(
            [r.workout_id for r in store.workouts_for_date(DateKey(2024, 1, 22))],
            ["push"],
        )
        self.assertEqual(store.date_range(), (START, DateKey(2024, 1, 24)))

    def test_empty_templates(self) -> None:
        store = ScheduleCompiler.compile([], START, 4)
        self.assertFalse(store.has_scheduled_workouts)

    def test_zero_weeks_and_negative_weeks(self) -> None:
        self.assertEqual(len(ScheduleCompiler.compile(["push"], START, 0)), 0)
        with self.assertRaises(ValueError):
            ScheduleCompiler.compile(["push"], START, -1)

    def test_deterministic(self) -> None:
        days = ["upper", "lower", {"id": "full", "name": "Full Body"}]
        first = ScheduleCompiler.compile(days, START, 3)
        second = ScheduleCompiler.compile(days, START, 3)
        end = DateKey(2024, 2, 29)
        self.assertEqual(
            first.workouts_in_range(START, end), second.workouts_in_range(START, end)
        )
        self.assertEqual(first, second)

    def test_mapping_templates(self) -> None:
        days = [
            {"id": "push-workout-a", "name": "Push Day", "exercises": [{"name": "Bench"}]},
            {"name": "No id"},
            {"id": "rest", "is_rest_day": True},
        ]
        store = ScheduleCompiler.compile(days, START, 1)
        self.assertEqual(
            flatten(store),
            [
                ("2024-01-01", "push-workout-a"),
                ("2024-01-02", "workout-1"),
                ("2024-01-03", "rest"),
            ],
        )
        self.assertTrue(store.workouts_for_date(DateKey(2024, 1, 3))[0].is_rest_day)

    def test_template_objects(self) -> None:
        days = [WorkoutDayTemplate("a", "A"), WorkoutDayTemplate("b", "B")]
        store = ScheduleCompiler.compile(days, DateKey(2024, 2, 28), 1)
        self.assertEqual(flatten(store), [("2024-02-28", "a"), ("2024-02-29", "b")])

    def test_more_than_seven_templates_spill_into_next_week(self) -> None:
        days = [f"d{i}" for i in range(9)]
        store = ScheduleCompiler.compile(days, START, 2)
        self.assertEqual(
            [r.workout_id for r in store.workouts_for_date(DateKey(2024, 1, 8))],
            ["d7", "d0"],
        )
        self.assertEqual(
            [r.workout_id for r in store.workouts_for_date(DateKey(2024, 1, 9))],
            ["d8", "d1"],
        )
        self.assertEqual(store.date_range()[1], DateKey(2024, 1, 16))

    def test_unsupported_template(self) -> None:
        with self.assertRaises(ValueError):
            ScheduleCompiler.compile([42], START, 1)

    def test_parse_workout_days(self) -> None:
        self.assertEqual(parse_workout_days(None), [])
        self.assertEqual(parse_workout_days("  "), [])
        self.assertEqual(parse_workout_days('[{"id": "push"}]'), [{"id": "push"}])
        with self.assertRaises(ValueError):
            parse_workout_days("{not json")
        with self.assertRaises(ValueError):
            parse_workout_days('{"id": "push"}')


if __name__ == "__main__":
    unittest.main()
