import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from calendar_projector import CalendarEventProjector
from date_key import DateKey
from errors import InvalidRangeError
from models import CompletionRecord, WorkoutRef
from schedule_store import ScheduleStore

JAN1 = DateKey(2024, 1, 1)
JAN2 = DateKey(2024, 1, 2)
JAN3 = DateKey(2024, 1, 3)


class CalendarEventProjectorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.projector = CalendarEventProjector()
        self.store = ScheduleStore()
        self.store.add_workout(JAN1, WorkoutRef("push"))
        self.store.add_workout(JAN2, WorkoutRef("pull"))
        self.store.add_workout(JAN3, WorkoutRef("legs"))

    def test_three_days_three_unknown_events(self) -> None:
        events = self.projector.project(self.store, JAN1, JAN3, [])
        self.assertEqual(len(events), 3)
        self.assertTrue(all(e.is_completed is None for e in events))
        self.assertTrue(all(e.completion_date is None for e in events))
        self.assertEqual([e.workout_id for e in events], ["push", "pull", "legs"])

    def test_day_of_week_is_derived(self) -> None:
        events = self.projector.project(self.store, JAN1, JAN3, [], plan_id="p1")
        self.assertEqual([e.day_of_week for e in events], [1, 2, 3])
        self.assertEqual(events[0].day_name, "monday")
        self.assertEqual(events[0].plan_id, "p1")

    def test_completion_matching(self) -> None:
        finished = datetime.datetime(2024, 1, 1, 19, 30)
        records = [
            CompletionRecord("push", JAN1, finished, is_completed=True),
            CompletionRecord("pull", JAN2, None, is_completed=False),
            CompletionRecord("legs", JAN1, finished, is_completed=True),
        ]
        events = self.projector.project(self.store, JAN1, JAN3, records)
        self.assertIs(events[0].is_completed, True)
        self.assertEqual(events[0].completion_date, finished)
        self.assertIs(events[1].is_completed, False)
        self.assertIsNone(events[1].completion_date)
        self.assertIsNone(events[2].is_completed)

    def test_completed_record_wins(self) -> None:
        finished = datetime.datetime(2024, 1, 1, 20, 0)
        records = [
            CompletionRecord("push", JAN1, finished, is_completed=True),
            CompletionRecord("push", JAN1, None, is_completed=False),
        ]
        events = self.projector.project(self.store, JAN1, JAN1, records)
        self.assertTrue(events[0].is_completed)

    def test_ordering_by_date_then_sort_order(self) -> None:
        self.store.add_workout(JAN2, WorkoutRef("cardio", sort_order=-1))
        self.store.add_workout(JAN2, WorkoutRef("core", sort_order=3))
        events = self.projector.project(self.store, JAN1, JAN3)
        self.assertEqual(
            [(e.date_key, e.workout_id) for e in events],
            [
                ("2024-01-01", "push"),
                ("2024-01-02", "cardio"),
                ("2024-01-02", "pull"),
                ("2024-01-02", "core"),
                ("2024-01-03", "legs"),
            ],
        )

    def test_range_filters(self) -> None:
        events = self.projector.project(self.store, JAN2, DateKey(2024, 1, 31))
        self.assertEqual([e.workout_id for e in events], ["pull", "legs"])
        self.assertEqual(
            self.projector.project(self.store, DateKey(2024, 2, 1), DateKey(2024, 2, 29)),
            [],
        )

    def test_invalid_range(self) -> None:
        with self.assertRaises(InvalidRangeError):
            self.projector.project(self.store, JAN3, JAN1)

    def test_color_passes_through_unvalidated(self) -> None:
        store = ScheduleStore()
        store.add_workout(JAN1, WorkoutRef("push", calendar_color="blue", notes="heavy"))
        event = self.projector.project(store, JAN1, JAN1)[0]
        self.assertEqual(event.calendar_color, "blue")
        self.assertEqual(event.notes, "heavy")

    def test_rest_day_flag(self) -> None:
        self.store.add_workout(JAN3, WorkoutRef("rest", is_rest_day=True))
        events = self.projector.events_for_date(self.store, JAN3)
        self.assertEqual([e.is_rest_day for e in events], [False, True])

    def test_events_by_day_of_week(self) -> None:
        self.store.add_workout(DateKey(2024, 1, 8), WorkoutRef("push"))
        mondays = self.projector.events_by_day_of_week(self.store, "Monday")
        self.assertEqual([e.date_key for e in mondays], ["2024-01-01", "2024-01-08"])
        later = self.projector.events_by_day_of_week(self.store, "monday", start=JAN2)
        self.assertEqual([e.date_key for e in later], ["2024-01-08"])
        self.assertEqual(self.projector.events_by_day_of_week(self.store, "sunday"), [])
        with self.assertRaises(ValueError):
            self.projector.events_by_day_of_week(self.store, "funday")
        self.assertEqual(
            self.projector.events_by_day_of_week(ScheduleStore(), "monday"), []
        )

    def test_event_time_helpers(self) -> None:
        events = self.projector.project(self.store, JAN1, JAN3)
        self.assertTrue(events[0].is_past(JAN2))
        self.assertTrue(events[1].is_today(JAN2))
        self.assertTrue(events[2].is_future(JAN2))


if __name__ == "__main__":
    unittest.main()
