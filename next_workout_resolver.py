from __future__ import annotations

from typing import Iterable, List, Set, Tuple

from date_key import DateKey
from models import CompletionRecord, ResolvedWorkoutEntry
from schedule_store import ScheduleStore


class NextWorkoutResolver:
    """Builds the short "what's next" list for a dashboard.

    Incomplete workouts from the lookback window (today included) come first,
    oldest first, and are flagged overdue. Remaining slots are filled with
    scheduled workouts from the days after today.
    """

    def __init__(
        self,
        lookback_days: int = 7,
        lookahead_days: int = 30,
        max_results: int = 3,
    ) -> None:
        if lookback_days < 0 or lookahead_days < 0:
            raise ValueError("lookback and lookahead windows must be non-negative")
        if max_results < 0:
            raise ValueError("max_results must be non-negative")
        self.lookback_days = lookback_days
        self.lookahead_days = lookahead_days
        self.max_results = max_results

    @staticmethod
    def _completed_pairs(
        completions: Iterable[CompletionRecord],
    ) -> Set[Tuple[str, DateKey]]:
        return {
            (c.workout_id, c.scheduled_date) for c in completions if c.is_completed
        }

    def resolve(
        self,
        store: ScheduleStore,
        completions: Iterable[CompletionRecord],
        today: DateKey,
    ) -> List[ResolvedWorkoutEntry]:
        if self.max_results == 0:
            return []
        done = self._completed_pairs(completions)
        overdue: List[ResolvedWorkoutEntry] = []
        upcoming: List[ResolvedWorkoutEntry] = []

        for offset in range(-self.lookback_days, 1):
            if len(overdue) >= self.max_results:
                break
            date = today.add_days(offset)
            for ref in store.workouts_for_date(date):
                if len(overdue) >= self.max_results:
                    break
                if (ref.workout_id, date) in done:
                    continue
                overdue.append(ResolvedWorkoutEntry(ref.workout_id, date, True))

        remaining = self.max_results - len(overdue)
        for offset in range(1, self.lookahead_days + 1):
            if len(upcoming) >= remaining:
                break
            date = today.add_days(offset)
            for ref in store.workouts_for_date(date):
                if len(upcoming) >= remaining:
                    break
                upcoming.append(ResolvedWorkoutEntry(ref.workout_id, date, False))

        # stable sorts keep store order within a date
        overdue.sort(key=lambda e: e.scheduled_date)
        upcoming.sort(key=lambda e: e.scheduled_date)
        return overdue + upcoming
