from __future__ import annotations

import datetime
import json
from dataclasses import dataclass, field
from typing import Optional

from date_key import DAY_NAMES, DateKey


def _parse_timestamp(value) -> Optional[datetime.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value
    text = str(value).strip().replace("Z", "+00:00")
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"invalid timestamp {value!r}: {e}")


@dataclass(frozen=True)
class WorkoutRef:
    """A workout scheduled on some date."""

    workout_id: str
    sort_order: int = 0
    is_rest_day: bool = False
    notes: Optional[str] = None
    calendar_color: Optional[str] = None


@dataclass(frozen=True)
class CompletionRecord:
    """An executed or skipped occurrence of a scheduled workout."""

    workout_id: str
    scheduled_date: DateKey
    completed_at: Optional[datetime.datetime] = None
    is_completed: bool = False

    @classmethod
    def from_json(cls, data: dict) -> "CompletionRecord":
        return cls(
            workout_id=str(data["workout_id"]),
            scheduled_date=DateKey.coerce(data["scheduled_date"]),
            completed_at=_parse_timestamp(data.get("completed_at")),
            is_completed=bool(data.get("is_completed", False)),
        )

    def to_json(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "scheduled_date": self.scheduled_date.format(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "is_completed": self.is_completed,
        }


@dataclass(frozen=True)
class CalendarEvent:
    """A scheduled workout projected into a calendar cell."""

    plan_id: str
    workout_id: str
    scheduled_date: DateKey
    day_of_week: int
    sort_order: int = 0
    is_rest_day: bool = False
    is_completed: Optional[bool] = None
    completion_date: Optional[datetime.datetime] = None
    notes: Optional[str] = None
    calendar_color: Optional[str] = None

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week - 1]

    @property
    def date_key(self) -> str:
        return self.scheduled_date.format()

    def is_past(self, today: DateKey) -> bool:
        return self.scheduled_date < today

    def is_today(self, today: DateKey) -> bool:
        return self.scheduled_date == today

    def is_future(self, today: DateKey) -> bool:
        return self.scheduled_date > today

    @classmethod
    def from_json(cls, data: dict) -> "CalendarEvent":
        scheduled = DateKey.coerce(data["scheduled_date"])
        return cls(
            plan_id=str(data.get("plan_id") or ""),
            workout_id=str(data.get("workout_id") or ""),
            scheduled_date=scheduled,
            day_of_week=scheduled.iso_weekday(),
            sort_order=int(data.get("sort_order") or 0),
            is_rest_day=bool(data.get("is_rest_day", False)),
            is_completed=data.get("is_completed"),
            completion_date=_parse_timestamp(data.get("completion_date")),
            notes=data.get("notes"),
            calendar_color=data.get("calendar_color"),
        )

    def to_json(self) -> dict:
        data = {
            "plan_id": self.plan_id,
            "workout_id": self.workout_id,
            "scheduled_date": self.date_key,
            "day_of_week": self.day_name,
            "sort_order": self.sort_order,
            "is_rest_day": self.is_rest_day,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.calendar_color is not None:
            data["calendar_color"] = self.calendar_color
        if self.is_completed is not None:
            data["is_completed"] = self.is_completed
        if self.completion_date is not None:
            data["completion_date"] = self.completion_date.isoformat()
        return data


@dataclass(frozen=True)
class ResolvedWorkoutEntry:
    workout_id: str
    scheduled_date: DateKey
    is_overdue: bool

    def to_json(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "scheduled_date": self.scheduled_date.format(),
            "is_overdue": self.is_overdue,
        }


def _decode_schedule(raw) -> dict:
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return {}
    if isinstance(raw, dict):
        return {str(k): [str(w) for w in v] for k, v in raw.items()}
    # the backend stores an empty schedule as []
    return {}


@dataclass(frozen=True)
class WorkoutPlan:
    """A user's plan binding workout days to dates.

    ``schedule_saved`` is True once a schedule was stored for the plan, even
    an empty one. Until then callers may generate one from ``workout_days``.
    """

    plan_id: str
    name: str
    description: str = ""
    start_date: Optional[DateKey] = None
    schedule: dict = field(default_factory=dict)
    workout_days: list = field(default_factory=list)
    is_active: bool = True
    schedule_saved: bool = False

    @classmethod
    def from_json(cls, data: dict) -> "WorkoutPlan":
        raw_schedule = data.get("schedule")
        if raw_schedule in (None, "", []) and isinstance(data.get("workoutDays"), dict):
            raw_schedule = data["workoutDays"]
        workout_days = data.get("workout_days") or []
        if isinstance(workout_days, str):
            workout_days = json.loads(workout_days) if workout_days.strip() else []
        start = data.get("start_date")
        return cls(
            plan_id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            start_date=DateKey.coerce(start) if start else None,
            schedule=_decode_schedule(raw_schedule),
            workout_days=list(workout_days),
            is_active=bool(data.get("is_active", True)),
            schedule_saved=bool(data.get("schedule_saved", False)),
        )

    def to_json(self) -> dict:
        return {
            "id": self.plan_id,
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date.format() if self.start_date else None,
            "schedule": json.dumps(self.schedule),
            "workout_days": json.dumps(self.workout_days),
            "is_active": self.is_active,
            "schedule_saved": self.schedule_saved,
        }
