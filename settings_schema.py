from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from config import YamlConfig

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class SchedulerSettings(BaseModel):
    lookback_days: int = Field(7, ge=0)
    lookahead_days: int = Field(30, ge=0)
    max_results: int = Field(3, ge=0)
    weeks_to_generate: int = Field(4, ge=0)
    calendar_page_size: int = Field(100, ge=1, le=500)
    default_calendar_color: str = Field("#3f51b5", pattern=HEX_COLOR)


class CalendarEventSchema(BaseModel):
    """Rules a schedule entry must satisfy before it is stored."""

    plan_id: str = Field(..., min_length=1)
    workout_id: str = Field(..., min_length=1)
    day_of_week: Literal[
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
    ]
    sort_order: int = Field(0, ge=0)
    is_rest_day: bool = False
    notes: Optional[str] = Field(None, max_length=1000)
    calendar_color: Optional[str] = Field(None, pattern=HEX_COLOR)


def validate_settings(data: dict) -> SchedulerSettings:
    try:
        return SchedulerSettings(**data)
    except ValidationError as e:
        raise ValueError(str(e))


def validate_calendar_event(data: dict) -> None:
    payload = dict(data)
    if isinstance(payload.get("day_of_week"), str):
        payload["day_of_week"] = payload["day_of_week"].lower()
    for key in ("plan_id", "workout_id"):
        if isinstance(payload.get(key), str):
            payload[key] = payload[key].strip()
    try:
        CalendarEventSchema(**payload)
    except ValidationError as e:
        raise ValueError(str(e))


def load_settings(path: str | None = None) -> SchedulerSettings:
    return validate_settings(YamlConfig(path).load())
