from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from date_key import DAY_NAMES, DateKey
from errors import InvalidRangeError
from models import CalendarEvent, CompletionRecord, WorkoutRef
from schedule_store import ScheduleStore


class CalendarEventProjector:
    """Expands a schedule into calendar rows for month and week views."""

    @staticmethod
    def _index_completions(
        completions: Iterable[CompletionRecord],
    ) -> Dict[Tuple[str, DateKey], CompletionRecord]:
        index: Dict[Tuple[str, DateKey], CompletionRecord] = {}
        for record in completions:
            key = (record.workout_id, record.scheduled_date)
            current = index.get(key)
            if current is None or (record.is_completed and not current.is_completed):
                index[key] = record
        return index

    @staticmethod
    def _event(
        plan_id: str,
        date: DateKey,
        ref: WorkoutRef,
        record: Optional[CompletionRecord],
    ) -> CalendarEvent:
        return CalendarEvent(
            plan_id=plan_id,
            workout_id=ref.workout_id,
            scheduled_date=date,
            day_of_week=date.iso_weekday(),
            sort_order=ref.sort_order,
            is_rest_day=ref.is_rest_day,
            is_completed=record.is_completed if record else None,
            completion_date=record.completed_at if record else None,
            notes=ref.notes,
            calendar_color=ref.calendar_color,
        )

    def project(
        self,
        store: ScheduleStore,
        start: DateKey,
        end: DateKey,
        completions: Iterable[CompletionRecord] = (),
        plan_id: str = "",
    ) -> List[CalendarEvent]:
        if end < start:
            raise InvalidRangeError(start, end)
        index = self._index_completions(completions)
        events: List[CalendarEvent] = []
        for date, refs in store.workouts_in_range(start, end).items():
            for ref in refs:
                record = index.get((ref.workout_id, date))
                events.append(self._event(plan_id, date, ref, record))
        return events

    def events_for_date(
        self,
        store: ScheduleStore,
        date: DateKey,
        completions: Iterable[CompletionRecord] = (),
        plan_id: str = "",
    ) -> List[CalendarEvent]:
        return self.project(store, date, date, completions, plan_id)

    def events_by_day_of_week(
        self,
        store: ScheduleStore,
        day_of_week: str,
        start: Optional[DateKey] = None,
        end: Optional[DateKey] = None,
        completions: Iterable[CompletionRecord] = (),
        plan_id: str = "",
    ) -> List[CalendarEvent]:
        """All events falling on one weekday, e.g. every Monday."""
        day = day_of_week.strip().lower()
        if day not in DAY_NAMES:
            raise ValueError(f"invalid day of week: {day_of_week}")
        earliest, latest = store.date_range()
        if earliest is None:
            return []
        start = start or earliest
        end = end or latest
        if end < start:
            raise InvalidRangeError(start, end)
        iso = DAY_NAMES.index(day) + 1
        return [
            e
            for e in self.project(store, start, end, completions, plan_id)
            if e.day_of_week == iso
        ]
