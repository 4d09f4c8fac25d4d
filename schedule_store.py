from __future__ import annotations

import json
from typing import Dict, Iterable, List, Optional, Tuple

from date_key import DateKey
from errors import InvalidRangeError
from models import WorkoutRef


class ScheduleStore:
    """Mapping from dates to the workouts scheduled on them.

    Dates never map to an empty list. Within a date, workouts are ordered by
    ``sort_order`` and then by insertion order. Adding a workout id that is
    already scheduled on the same date does nothing.
    """

    def __init__(self) -> None:
        self._entries: Dict[DateKey, List[WorkoutRef]] = {}

    def add_workout(self, date: DateKey, workout: WorkoutRef) -> bool:
        """Schedule ``workout`` on ``date``. Returns False for a duplicate."""
        refs = self._entries.get(date)
        if refs is None:
            self._entries[date] = [workout]
            return True
        if any(r.workout_id == workout.workout_id for r in refs):
            return False
        pos = len(refs)
        while pos > 0 and refs[pos - 1].sort_order > workout.sort_order:
            pos -= 1
        refs.insert(pos, workout)
        return True

    def remove_workout(self, date: DateKey, workout_id: str) -> int:
        """Remove ``workout_id`` from ``date`` and return how many entries went."""
        refs = self._entries.get(date)
        if refs is None:
            return 0
        kept = [r for r in refs if r.workout_id != workout_id]
        removed = len(refs) - len(kept)
        if kept:
            self._entries[date] = kept
        else:
            del self._entries[date]
        return removed

    def workouts_for_date(self, date: DateKey) -> List[WorkoutRef]:
        return list(self._entries.get(date, ()))

    def workouts_in_range(
        self, start: DateKey, end: DateKey
    ) -> Dict[DateKey, List[WorkoutRef]]:
        if end < start:
            raise InvalidRangeError(start, end)
        return {
            d: list(self._entries[d])
            for d in sorted(self._entries)
            if start <= d <= end
        }

    def all_workout_ids(self) -> set[str]:
        return {r.workout_id for refs in self._entries.values() for r in refs}

    def dates(self) -> List[DateKey]:
        return sorted(self._entries)

    @property
    def has_scheduled_workouts(self) -> bool:
        return bool(self._entries)

    def date_range(self) -> Tuple[Optional[DateKey], Optional[DateKey]]:
        if not self._entries:
            return None, None
        return min(self._entries), max(self._entries)

    def items(self) -> Iterable[Tuple[DateKey, List[WorkoutRef]]]:
        for d in sorted(self._entries):
            yield d, list(self._entries[d])

    def copy(self) -> "ScheduleStore":
        other = ScheduleStore()
        other._entries = {d: list(refs) for d, refs in self._entries.items()}
        return other

    def __len__(self) -> int:
        return sum(len(refs) for refs in self._entries.values())

    def __contains__(self, date: object) -> bool:
        return date in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduleStore):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ScheduleStore(dates={len(self._entries)}, entries={len(self)})"

    # boundary shape: {"YYYY-MM-DD": ["workoutId", ...]}

    @classmethod
    def from_schedule(cls, schedule: dict) -> "ScheduleStore":
        store = cls()
        for key, workout_ids in schedule.items():
            date = DateKey.parse(key)
            for workout_id in workout_ids:
                store.add_workout(date, WorkoutRef(str(workout_id)))
        return store

    def to_schedule(self) -> Dict[str, List[str]]:
        return {
            d.format(): [r.workout_id for r in refs] for d, refs in self.items()
        }

    @classmethod
    def from_json(cls, raw: str) -> "ScheduleStore":
        data = json.loads(raw) if raw and raw.strip() else {}
        if isinstance(data, list) and not data:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("schedule must be a JSON object")
        return cls.from_schedule(data)

    def to_json(self) -> str:
        return json.dumps(self.to_schedule())
