from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Iterable, Union

from date_key import DateKey
from models import WorkoutRef
from schedule_store import ScheduleStore


@dataclass(frozen=True)
class WorkoutDayTemplate:
    """One recurring day of a program, e.g. push, pull or legs."""

    template_id: str
    name: str = ""
    exercises: tuple = field(default_factory=tuple)
    is_rest_day: bool = False

    @classmethod
    def from_json(cls, data: dict, index: int) -> "WorkoutDayTemplate":
        return cls(
            template_id=str(data.get("id") or f"workout-{index}"),
            name=str(data.get("name") or ""),
            exercises=tuple(data.get("exercises") or ()),
            is_rest_day=bool(data.get("is_rest_day", False)),
        )


TemplateLike = Union[str, dict, WorkoutDayTemplate]


def normalize_templates(templates: Iterable[TemplateLike]) -> list[WorkoutDayTemplate]:
    out: list[WorkoutDayTemplate] = []
    for index, item in enumerate(templates):
        if isinstance(item, WorkoutDayTemplate):
            out.append(item)
        elif isinstance(item, str):
            out.append(WorkoutDayTemplate(template_id=item))
        elif isinstance(item, dict):
            out.append(WorkoutDayTemplate.from_json(item, index))
        else:
            raise ValueError(f"unsupported workout day template: {item!r}")
    return out


def parse_workout_days(raw: str | None) -> list[dict]:
    """Decode the legacy ``workoutDays`` JSON list of a program."""
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid workout days JSON: {e}")
    if not isinstance(data, list):
        raise ValueError("workout days must be a JSON list")
    return data


class ScheduleCompiler:
    """Repeats a short list of workout days forward into a dated schedule."""

    DEFAULT_WEEKS = 4

    @staticmethod
    def compile(
        templates: Iterable[TemplateLike],
        start_date: DateKey,
        weeks_to_generate: int = DEFAULT_WEEKS,
    ) -> ScheduleStore:
        """Template ``i`` of week ``w`` lands on ``start_date + 7*w + i``.

        More than seven templates spill into the following week and may share
        a date with the next week's first templates.
        """
        if weeks_to_generate < 0:
            raise ValueError("weeks_to_generate must be non-negative")
        days = normalize_templates(templates)
        store = ScheduleStore()
        for week in range(weeks_to_generate):
            for index, tpl in enumerate(days):
                date = start_date.add_days(week * 7 + index)
                store.add_workout(
                    date,
                    WorkoutRef(tpl.template_id, is_rest_day=tpl.is_rest_day),
                )
        return store
