import datetime
from typing import List

from fastapi import FastAPI, HTTPException, Body
from loguru import logger

from config import APP_VERSION
from date_key import DateKey
from db import CompletionRepository, ScheduleEntryRepository, WorkoutPlanRepository
from models import WorkoutRef
from planner_service import PlannerService
from settings_schema import load_settings


def _http_error(e: ValueError) -> HTTPException:
    if "not found" in str(e):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


class ScheduleAPI:
    """Provides REST endpoints for workout plans and their calendars."""

    def __init__(
        self,
        db_path: str = "schedule.db",
        yaml_path: str = "settings.yaml",
    ) -> None:
        self.db_path = db_path
        self.settings = load_settings(yaml_path)
        self.plans = WorkoutPlanRepository(db_path)
        self.entries = ScheduleEntryRepository(db_path)
        self.completions = CompletionRepository(db_path)
        self.planner = PlannerService(
            self.plans,
            self.entries,
            self.completions,
            self.settings,
        )
        self.app = FastAPI(
            title="Schedule API",
            description="REST API for workout plan scheduling and calendars",
            version=APP_VERSION,
        )
        self._setup_routes()

    @staticmethod
    def _today(today: str | None) -> DateKey:
        return DateKey.parse(today) if today else DateKey.today()

    def _setup_routes(self) -> None:
        @self.app.get("/health")
        def health():
            return {"status": "ok", "version": APP_VERSION}

        @self.app.post("/plans")
        def create_plan(
            name: str,
            description: str = "",
            start_date: str | None = None,
            is_active: bool = True,
            workout_days: List[dict] | None = Body(None),
        ):
            try:
                start = DateKey.parse(start_date) if start_date else None
                pid = self.planner.create_plan(
                    name, description, start, workout_days, is_active
                )
                return {"id": pid}
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/plans")
        def list_plans(active_only: bool = False):
            return self.plans.fetch_plans(active_only)

        @self.app.get("/plans/{plan_id}")
        def get_plan(plan_id: int):
            try:
                return self.plans.fetch_detail(plan_id)
            except ValueError as e:
                raise _http_error(e)

        @self.app.put("/plans/{plan_id}/active")
        def set_plan_active(plan_id: int, active: bool = True):
            try:
                self.plans.set_active(plan_id, active)
                return {"status": "active" if active else "inactive"}
            except ValueError as e:
                raise _http_error(e)

        @self.app.put("/plans/{plan_id}/workout_days")
        def set_workout_days(plan_id: int, workout_days: List[str | dict] = Body(...)):
            try:
                self.planner.update_workout_days(plan_id, workout_days)
                return {"status": "updated"}
            except ValueError as e:
                raise _http_error(e)

        @self.app.delete("/plans/{plan_id}")
        def delete_plan(plan_id: int):
            try:
                self.plans.delete(plan_id)
                return {"status": "deleted"}
            except ValueError as e:
                raise _http_error(e)

        @self.app.post("/plans/{plan_id}/compile")
        def compile_plan(plan_id: int, weeks: int | None = None):
            try:
                store = self.planner.compile_plan(plan_id, weeks)
                return {"entries": len(store), "schedule": store.to_schedule()}
            except ValueError as e:
                raise _http_error(e)

        @self.app.post("/plans/{plan_id}/migrate")
        def migrate_plan(plan_id: int):
            try:
                return {"entries": self.planner.migrate_legacy_schedule(plan_id)}
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/plans/{plan_id}/schedule")
        def get_schedule(
            plan_id: int,
            start_date: str | None = None,
            end_date: str | None = None,
            today: str | None = None,
        ):
            try:
                store = self.planner.load_store(plan_id, self._today(today))
                if start_date is None and end_date is None:
                    return store.to_schedule()
                earliest, latest = store.date_range()
                if earliest is None:
                    return {}
                start = DateKey.parse(start_date) if start_date else earliest
                end = DateKey.parse(end_date) if end_date else latest
                return {
                    d.format(): [r.workout_id for r in refs]
                    for d, refs in store.workouts_in_range(start, end).items()
                }
            except ValueError as e:
                raise _http_error(e)

        @self.app.post("/plans/{plan_id}/schedule")
        def add_scheduled_workout(
            plan_id: int,
            date: str,
            workout_id: str,
            sort_order: int = 0,
            is_rest_day: bool = False,
            notes: str | None = None,
            calendar_color: str | None = None,
            today: str | None = None,
        ):
            try:
                ref = WorkoutRef(
                    workout_id, sort_order, is_rest_day, notes, calendar_color
                )
                added = self.planner.add_workout(
                    plan_id, DateKey.parse(date), ref, self._today(today)
                )
                return {"status": "added" if added else "unchanged"}
            except ValueError as e:
                raise _http_error(e)

        @self.app.delete("/plans/{plan_id}/schedule")
        def remove_scheduled_workout(
            plan_id: int, date: str, workout_id: str, today: str | None = None
        ):
            try:
                removed = self.planner.remove_workout(
                    plan_id, DateKey.parse(date), workout_id, self._today(today)
                )
                return {"removed": removed}
            except ValueError as e:
                raise _http_error(e)

        @self.app.post("/plans/{plan_id}/completions")
        def record_completion(
            plan_id: int,
            workout_id: str,
            scheduled_date: str,
            is_completed: bool = True,
            completed_at: str | None = None,
        ):
            try:
                if completed_at is not None:
                    datetime.datetime.fromisoformat(completed_at.replace("Z", "+00:00"))
                cid = self.planner.record_completion(
                    plan_id,
                    workout_id,
                    DateKey.parse(scheduled_date),
                    is_completed,
                    completed_at,
                )
                return {"id": cid}
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/next_workouts")
        def next_workouts(today: str | None = None):
            try:
                entries = self.planner.next_workouts(self._today(today))
                return [e.to_json() for e in entries]
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/calendar")
        def calendar(
            start_date: str,
            end_date: str,
            plan_id: int | None = None,
            today: str | None = None,
            page: int = 1,
            per_page: int | None = None,
        ):
            try:
                events = self.planner.calendar(
                    DateKey.parse(start_date),
                    DateKey.parse(end_date),
                    self._today(today),
                    plan_id,
                    page,
                    per_page,
                )
                logger.debug(f"Calendar {start_date}..{end_date}: {len(events)} events")
                return [e.to_json() for e in events]
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/calendar/date/{date}")
        def calendar_for_date(
            date: str, plan_id: int | None = None, today: str | None = None
        ):
            try:
                day = DateKey.parse(date)
                events = self.planner.calendar(day, day, self._today(today), plan_id)
                return [e.to_json() for e in events]
            except ValueError as e:
                raise _http_error(e)

        @self.app.get("/plans/{plan_id}/calendar/day_of_week/{day}")
        def calendar_by_day_of_week(
            plan_id: int,
            day: str,
            start_date: str | None = None,
            end_date: str | None = None,
            today: str | None = None,
        ):
            try:
                events = self.planner.events_by_day_of_week(
                    plan_id,
                    day,
                    self._today(today),
                    DateKey.parse(start_date) if start_date else None,
                    DateKey.parse(end_date) if end_date else None,
                )
                return [e.to_json() for e in events]
            except ValueError as e:
                raise _http_error(e)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(ScheduleAPI().app)
