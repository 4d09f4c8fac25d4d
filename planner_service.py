from __future__ import annotations

import json
from dataclasses import replace
from typing import Iterable, Optional

from loguru import logger

from calendar_projector import CalendarEventProjector
from date_key import DateKey
from db import CompletionRepository, ScheduleEntryRepository, WorkoutPlanRepository
from errors import InvalidRangeError
from models import (
    CalendarEvent,
    CompletionRecord,
    ResolvedWorkoutEntry,
    WorkoutPlan,
    WorkoutRef,
)
from next_workout_resolver import NextWorkoutResolver
from schedule_compiler import ScheduleCompiler, normalize_templates, parse_workout_days
from schedule_store import ScheduleStore
from settings_schema import SchedulerSettings


class PlannerService:
    """Connects stored plans and completions to the scheduling core."""

    def __init__(
        self,
        plan_repo: WorkoutPlanRepository,
        entry_repo: ScheduleEntryRepository,
        completion_repo: CompletionRepository,
        settings: SchedulerSettings | None = None,
    ) -> None:
        self.plans = plan_repo
        self.entries = entry_repo
        self.completions = completion_repo
        self.settings = settings or SchedulerSettings()
        self.projector = CalendarEventProjector()

    def create_plan(
        self,
        name: str,
        description: str = "",
        start_date: DateKey | None = None,
        workout_days: list | None = None,
        is_active: bool = True,
    ) -> int:
        if not name.strip():
            raise ValueError("plan name cannot be empty")
        days = workout_days or []
        normalize_templates(days)
        plan_id = self.plans.create(
            name,
            description,
            start_date.format() if start_date else None,
            json.dumps(days),
            "{}",
            is_active,
        )
        logger.info(f"Created plan {plan_id} '{name}' with {len(days)} workout days")
        return plan_id

    def get_plan(self, plan_id: int) -> WorkoutPlan:
        row = self.plans.fetch_detail(plan_id)
        row["workout_days"] = parse_workout_days(row["workout_days"])
        return WorkoutPlan.from_json(row)

    def update_workout_days(self, plan_id: int, workout_days: list) -> None:
        normalize_templates(workout_days)
        self.plans.set_workout_days(plan_id, json.dumps(workout_days))
        logger.info(f"Plan {plan_id} now has {len(workout_days)} workout days")

    def _store_from_entries(self, rows: Iterable[dict]) -> ScheduleStore:
        store = ScheduleStore()
        for row in rows:
            store.add_workout(
                DateKey.parse(row["scheduled_date"]),
                WorkoutRef(
                    row["workout_id"],
                    sort_order=row["sort_order"],
                    is_rest_day=row["is_rest_day"],
                    notes=row["notes"],
                    calendar_color=row["calendar_color"],
                ),
            )
        return store

    def _legacy_store(self, plan: WorkoutPlan) -> ScheduleStore:
        try:
            return ScheduleStore.from_schedule(plan.schedule)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable schedule of plan {plan.plan_id}: {e}")
            return ScheduleStore()

    def load_store(self, plan_id: int, today: DateKey) -> ScheduleStore:
        """Normalized entries, else the JSON schedule, else a generated one.

        A schedule is only generated for plans that never saved one.
        """
        plan = self.get_plan(plan_id)
        rows = self.entries.fetch_for_plan(plan_id)
        if rows:
            return self._store_from_entries(rows)
        store = self._legacy_store(plan)
        if store.has_scheduled_workouts or plan.schedule_saved:
            return store
        days = plan.workout_days
        logger.debug(f"Plan {plan_id} has no schedule, generating from {len(days)} days")
        return ScheduleCompiler.compile(days, today, self.settings.weeks_to_generate)

    def save_store(self, plan_id: int, store: ScheduleStore) -> int:
        entries = [
            {
                "scheduled_date": date.format(),
                "workout_id": ref.workout_id,
                "day_of_week": date.day_of_week(),
                "sort_order": ref.sort_order,
                "is_rest_day": ref.is_rest_day,
                "notes": ref.notes,
                "calendar_color": ref.calendar_color,
            }
            for date, refs in store.items()
            for ref in refs
        ]
        self.plans.fetch_detail(plan_id)
        count = self.entries.replace_for_plan(plan_id, entries)
        self.plans.update_schedule(plan_id, store.to_json())
        return count

    def compile_plan(self, plan_id: int, weeks: int | None = None) -> ScheduleStore:
        plan = self.get_plan(plan_id)
        if plan.start_date is None:
            raise ValueError("plan has no start date")
        weeks = self.settings.weeks_to_generate if weeks is None else weeks
        store = ScheduleCompiler.compile(plan.workout_days, plan.start_date, weeks)
        count = self.save_store(plan_id, store)
        logger.info(f"Compiled plan {plan_id} into {count} entries over {weeks} weeks")
        return store

    def migrate_legacy_schedule(self, plan_id: int) -> int:
        """Copy a plan's JSON schedule into normalized entries."""
        plan = self.get_plan(plan_id)
        store = self._legacy_store(plan)
        if not store.has_scheduled_workouts:
            logger.info(f"Plan {plan_id} has no JSON schedule to migrate")
            return 0
        count = self.save_store(plan_id, store)
        logger.info(f"Migrated {count} schedule entries for plan {plan_id}")
        return count

    def add_workout(
        self, plan_id: int, date: DateKey, workout: WorkoutRef, today: DateKey
    ) -> bool:
        store = self.load_store(plan_id, today)
        added = store.add_workout(date, workout)
        if added:
            self.save_store(plan_id, store)
        return added

    def remove_workout(
        self, plan_id: int, date: DateKey, workout_id: str, today: DateKey
    ) -> int:
        store = self.load_store(plan_id, today)
        removed = store.remove_workout(date, workout_id)
        if removed:
            self.save_store(plan_id, store)
        return removed

    def record_completion(
        self,
        plan_id: int,
        workout_id: str,
        scheduled_date: DateKey,
        is_completed: bool = True,
        completed_at: Optional[str] = None,
    ) -> int:
        self.plans.fetch_detail(plan_id)
        return self.completions.record(
            plan_id, workout_id, scheduled_date.format(), is_completed, completed_at
        )

    def completion_records(
        self, plan_id: int, start: DateKey, end: DateKey
    ) -> list[CompletionRecord]:
        rows = self.completions.fetch_range(plan_id, start.format(), end.format())
        return [
            CompletionRecord.from_json(
                {
                    "workout_id": w,
                    "scheduled_date": d,
                    "completed_at": c,
                    "is_completed": done,
                }
            )
            for w, d, c, done in rows
        ]

    def active_plan_id(self) -> Optional[int]:
        active = self.plans.fetch_plans(active_only=True)
        return active[0]["id"] if active else None

    def resolver(self) -> NextWorkoutResolver:
        return NextWorkoutResolver(
            self.settings.lookback_days,
            self.settings.lookahead_days,
            self.settings.max_results,
        )

    def next_workouts(self, today: DateKey) -> list[ResolvedWorkoutEntry]:
        plan_id = self.active_plan_id()
        if plan_id is None:
            return []
        resolver = self.resolver()
        store = self.load_store(plan_id, today)
        completions = self.completion_records(
            plan_id,
            today.add_days(-resolver.lookback_days),
            today.add_days(resolver.lookahead_days),
        )
        result = resolver.resolve(store, completions, today)
        logger.debug(f"Resolved {len(result)} next workouts for plan {plan_id}")
        return result

    def _with_default_color(self, events: list[CalendarEvent]) -> list[CalendarEvent]:
        color = self.settings.default_calendar_color
        return [
            e if e.calendar_color is not None else replace(e, calendar_color=color)
            for e in events
        ]

    def calendar(
        self,
        start: DateKey,
        end: DateKey,
        today: DateKey,
        plan_id: Optional[int] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> list[CalendarEvent]:
        if end < start:
            raise InvalidRangeError(start, end)
        if per_page is None:
            per_page = self.settings.calendar_page_size
        if page < 1:
            raise ValueError("page must be greater than 0")
        if not 1 <= per_page <= 500:
            raise ValueError("per_page must be between 1 and 500")
        if plan_id is not None:
            plan_ids = [plan_id]
        else:
            plan_ids = [p["id"] for p in self.plans.fetch_plans(active_only=True)]
        events: list[CalendarEvent] = []
        for pid in plan_ids:
            store = self.load_store(pid, today)
            events.extend(
                self.projector.project(
                    store,
                    start,
                    end,
                    self.completion_records(pid, start, end),
                    str(pid),
                )
            )
        events.sort(key=lambda e: (e.scheduled_date, e.sort_order))
        offset = (page - 1) * per_page
        return self._with_default_color(events[offset : offset + per_page])

    def events_by_day_of_week(
        self,
        plan_id: int,
        day_of_week: str,
        today: DateKey,
        start: Optional[DateKey] = None,
        end: Optional[DateKey] = None,
    ) -> list[CalendarEvent]:
        store = self.load_store(plan_id, today)
        earliest, latest = store.date_range()
        if earliest is None:
            return []
        completions = self.completion_records(plan_id, start or earliest, end or latest)
        events = self.projector.events_by_day_of_week(
            store, day_of_week, start, end, completions, str(plan_id)
        )
        return self._with_default_color(events)
