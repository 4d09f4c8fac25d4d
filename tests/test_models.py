import os
import sys
import datetime
import json
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from date_key import DateKey
from models import CalendarEvent, CompletionRecord, WorkoutPlan


class CalendarEventJsonTest(unittest.TestCase):
    def test_to_json_omits_unset_fields(self) -> None:
        event = CalendarEvent("p1", "push", DateKey(2024, 1, 3), 3)
        self.assertEqual(
            event.to_json(),
            {
                "plan_id": "p1",
                "workout_id": "push",
                "scheduled_date": "2024-01-03",
                "day_of_week": "wednesday",
                "sort_order": 0,
                "is_rest_day": False,
            },
        )

    def test_from_json_derives_day_of_week(self) -> None:
        event = CalendarEvent.from_json(
            {
                "plan_id": "p1",
                "workout_id": "pull",
                "scheduled_date": "2024-01-03 00:00:00.000Z",
                "day_of_week": "friday",
                "is_completed": True,
                "completion_date": "2024-01-03T18:00:00Z",
                "calendar_color": "#AABBCC",
            }
        )
        self.assertEqual(event.day_of_week, 3)
        self.assertEqual(event.day_name, "wednesday")
        self.assertTrue(event.is_completed)
        self.assertEqual(event.completion_date.hour, 18)
        self.assertEqual(event.to_json()["calendar_color"], "#AABBCC")


class CompletionRecordTest(unittest.TestCase):
    def test_json(self) -> None:
        record = CompletionRecord.from_json(
            {
                "workout_id": "push",
                "scheduled_date": "2024-01-01",
                "completed_at": "2024-01-01T10:00:00",
                "is_completed": 1,
            }
        )
        self.assertEqual(record.scheduled_date, DateKey(2024, 1, 1))
        self.assertEqual(record.completed_at, datetime.datetime(2024, 1, 1, 10, 0))
        self.assertTrue(record.is_completed)
        self.assertEqual(record.to_json()["completed_at"], "2024-01-01T10:00:00")

    def test_invalid_timestamp(self) -> None:
        with self.assertRaises(ValueError):
            CompletionRecord.from_json(
                {"workout_id": "x", "scheduled_date": "2024-01-01", "completed_at": "soon"}
            )


class WorkoutPlanTest(unittest.TestCase):
    def test_schedule_as_string(self) -> None:
        plan = WorkoutPlan.from_json(
            {
                "id": "abc",
                "name": "PPL",
                "start_date": "2024-01-01T00:00:00Z",
                "schedule": json.dumps({"2024-01-01": ["push"]}),
                "workout_days": '[{"id": "push"}]',
            }
        )
        self.assertEqual(plan.schedule, {"2024-01-01": ["push"]})
        self.assertEqual(plan.start_date, DateKey(2024, 1, 1))
        self.assertEqual(plan.workout_days, [{"id": "push"}])
        self.assertTrue(plan.is_active)

    def test_schedule_fallbacks(self) -> None:
        self.assertEqual(WorkoutPlan.from_json({"schedule": "{broken"}).schedule, {})
        self.assertEqual(WorkoutPlan.from_json({"schedule": []}).schedule, {})
        plan = WorkoutPlan.from_json({"workoutDays": {"2024-01-02": ["pull"]}})
        self.assertEqual(plan.schedule, {"2024-01-02": ["pull"]})

    def test_saved_flag(self) -> None:
        plan = WorkoutPlan("1", "PPL")
        self.assertFalse(plan.schedule_saved)
        self.assertEqual(json.loads(plan.to_json()["schedule"]), {})
        saved = WorkoutPlan.from_json({"id": 1, "schedule": "{}", "schedule_saved": True})
        self.assertTrue(saved.schedule_saved)
        self.assertEqual(saved.schedule, {})
        self.assertTrue(saved.to_json()["schedule_saved"])


if __name__ == "__main__":
    unittest.main()
