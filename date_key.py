from __future__ import annotations

import datetime
import re
from dataclasses import dataclass

from errors import InvalidDateError

DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_KEY_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIMESTAMP_RE = re.compile(r"^([0-9]{4}-[0-9]{2}-[0-9]{2})[T ]")


@dataclass(frozen=True, order=True)
class DateKey:
    """Calendar date without a time component, keyed as ``YYYY-MM-DD``."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        try:
            datetime.date(self.year, self.month, self.day)
        except (TypeError, ValueError) as e:
            raise InvalidDateError(
                f"invalid date {self.year}-{self.month}-{self.day}: {e}"
            )

    @classmethod
    def parse(cls, value: str) -> "DateKey":
        if not isinstance(value, str):
            raise InvalidDateError(f"date key must be a string, got {value!r}")
        match = _KEY_RE.fullmatch(value)
        if match is None:
            raise InvalidDateError(f"date must be YYYY-MM-DD: {value!r}")
        year, month, day = (int(p) for p in match.groups())
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: datetime.date) -> "DateKey":
        return cls(value.year, value.month, value.day)

    @classmethod
    def today(cls) -> "DateKey":
        return cls.from_date(datetime.date.today())

    @classmethod
    def coerce(cls, value) -> "DateKey":
        """Accept a DateKey, date, datetime or a backend date/timestamp string."""
        if isinstance(value, DateKey):
            return value
        if isinstance(value, datetime.datetime):
            return cls(value.year, value.month, value.day)
        if isinstance(value, datetime.date):
            return cls.from_date(value)
        if isinstance(value, str):
            text = value.strip()
            match = _TIMESTAMP_RE.match(text)
            if match is not None:
                text = match.group(1)
            return cls.parse(text)
        raise InvalidDateError(f"cannot convert {value!r} to a date")

    def format(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def __str__(self) -> str:
        return self.format()

    def to_date(self) -> datetime.date:
        return datetime.date(self.year, self.month, self.day)

    def iso_weekday(self) -> int:
        return self.to_date().isoweekday()

    def day_of_week(self) -> str:
        return DAY_NAMES[self.iso_weekday() - 1]

    def add_days(self, days: int) -> "DateKey":
        try:
            return DateKey.from_date(self.to_date() + datetime.timedelta(days=days))
        except OverflowError as e:
            raise InvalidDateError(str(e))

    def days_until(self, other: "DateKey") -> int:
        return (other.to_date() - self.to_date()).days
