import sqlite3
import datetime
from contextlib import contextmanager
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from settings_schema import validate_calendar_event


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workout_plans": (
            """CREATE TABLE workout_plans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    start_date TEXT,
                    schedule TEXT NOT NULL DEFAULT '{}',
                    schedule_saved INTEGER NOT NULL DEFAULT 0,
                    workout_days TEXT NOT NULL DEFAULT '[]',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "description",
                "start_date",
                "schedule",
                "schedule_saved",
                "workout_days",
                "is_active",
                "created",
            ],
        ),
        "schedule_entries": (
            """CREATE TABLE schedule_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plan_id INTEGER NOT NULL,
                    scheduled_date TEXT NOT NULL,
                    workout_id TEXT NOT NULL,
                    day_of_week TEXT NOT NULL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    is_rest_day INTEGER NOT NULL DEFAULT 0,
                    notes TEXT,
                    calendar_color TEXT,
                    UNIQUE(plan_id, scheduled_date, workout_id),
                    FOREIGN KEY(plan_id) REFERENCES workout_plans(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "plan_id",
                "scheduled_date",
                "workout_id",
                "day_of_week",
                "sort_order",
                "is_rest_day",
                "notes",
                "calendar_color",
            ],
        ),
        "completions": (
            """CREATE TABLE completions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plan_id INTEGER NOT NULL,
                    workout_id TEXT NOT NULL,
                    scheduled_date TEXT NOT NULL,
                    completed_at TEXT,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    UNIQUE(plan_id, workout_id, scheduled_date),
                    FOREIGN KEY(plan_id) REFERENCES workout_plans(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "plan_id",
                "workout_id",
                "scheduled_date",
                "completed_at",
                "is_completed",
            ],
        ),
    }

    _INDEXES = [
        "CREATE INDEX IF NOT EXISTS idx_schedule_plan_date "
        "ON schedule_entries(plan_id, scheduled_date, sort_order);",
        "CREATE INDEX IF NOT EXISTS idx_schedule_day_of_week "
        "ON schedule_entries(day_of_week);",
        "CREATE INDEX IF NOT EXISTS idx_completions_plan_date "
        "ON completions(plan_id, scheduled_date);",
    ]

    def __init__(self, db_path: str = "schedule.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        connection.execute("PRAGMA foreign_keys=on;")
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA foreign_keys=off;")
            conn.execute("PRAGMA legacy_alter_table=ON;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            for sql in self._INDEXES:
                conn.execute(sql)
            conn.execute("PRAGMA foreign_keys=on;")

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info(f"Migrating table {table} to current schema")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class WorkoutPlanRepository(BaseRepository):
    """Repository for workout plans and their legacy JSON fields.

    ``schedule_saved`` is set once a schedule has been written for the plan,
    so an emptied schedule is told apart from one that was never built.
    """

    _COLUMNS = (
        "id, name, description, start_date, schedule, schedule_saved, "
        "workout_days, is_active, created"
    )

    @staticmethod
    def _row_to_dict(row: Tuple) -> dict:
        pid, name, desc, start, schedule, saved, days, active, created = row
        return {
            "id": pid,
            "name": name,
            "description": desc,
            "start_date": start,
            "schedule": schedule,
            "schedule_saved": bool(saved),
            "workout_days": days,
            "is_active": bool(active),
            "created": created,
        }

    def create(
        self,
        name: str,
        description: str = "",
        start_date: Optional[str] = None,
        workout_days: str = "[]",
        schedule: str = "{}",
        is_active: bool = True,
    ) -> int:
        created = datetime.datetime.now().isoformat(timespec="seconds")
        return self.execute(
            "INSERT INTO workout_plans (name, description, start_date, schedule, "
            "workout_days, is_active, created) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                name,
                description,
                start_date,
                schedule,
                workout_days,
                int(is_active),
                created,
            ),
        )

    def fetch_plans(self, active_only: bool = False) -> list[dict]:
        query = f"SELECT {self._COLUMNS} FROM workout_plans"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY created DESC, id DESC;"
        return [self._row_to_dict(r) for r in self.fetch_all(query)]

    def fetch_detail(self, plan_id: int) -> dict:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM workout_plans WHERE id = ?;", (plan_id,)
        )
        if not rows:
            raise ValueError("plan not found")
        return self._row_to_dict(rows[0])

    def _require(self, plan_id: int) -> None:
        rows = self.fetch_all(
            "SELECT id FROM workout_plans WHERE id = ?;", (plan_id,)
        )
        if not rows:
            raise ValueError("plan not found")

    def update_schedule(self, plan_id: int, schedule: str) -> None:
        self._require(plan_id)
        self.execute(
            "UPDATE workout_plans SET schedule = ?, schedule_saved = 1 WHERE id = ?;",
            (schedule, plan_id),
        )

    def set_workout_days(self, plan_id: int, workout_days: str) -> None:
        self._require(plan_id)
        self.execute(
            "UPDATE workout_plans SET workout_days = ? WHERE id = ?;",
            (workout_days, plan_id),
        )

    def set_active(self, plan_id: int, active: bool) -> None:
        self._require(plan_id)
        self.execute(
            "UPDATE workout_plans SET is_active = ? WHERE id = ?;",
            (int(active), plan_id),
        )

    def delete(self, plan_id: int) -> None:
        self._require(plan_id)
        self.execute("DELETE FROM workout_plans WHERE id = ?;", (plan_id,))


class ScheduleEntryRepository(BaseRepository):
    """Repository for normalized, date-indexed schedule entries."""

    _COLUMNS = (
        "scheduled_date, workout_id, day_of_week, sort_order, is_rest_day, "
        "notes, calendar_color"
    )

    @staticmethod
    def _row_to_dict(row: Tuple) -> dict:
        date, wid, dow, order, rest, notes, color = row
        return {
            "scheduled_date": date,
            "workout_id": wid,
            "day_of_week": dow,
            "sort_order": order,
            "is_rest_day": bool(rest),
            "notes": notes,
            "calendar_color": color,
        }

    @staticmethod
    def _params(plan_id: int, entry: dict) -> Tuple:
        validate_calendar_event({**entry, "plan_id": str(plan_id)})
        return (
            plan_id,
            entry["scheduled_date"],
            entry["workout_id"],
            entry["day_of_week"].lower(),
            int(entry.get("sort_order", 0)),
            int(bool(entry.get("is_rest_day", False))),
            entry.get("notes"),
            entry.get("calendar_color"),
        )

    _INSERT = (
        "INSERT OR IGNORE INTO schedule_entries (plan_id, scheduled_date, workout_id, "
        "day_of_week, sort_order, is_rest_day, notes, calendar_color) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?);"
    )

    def add(self, plan_id: int, entry: dict) -> int:
        return self.execute(self._INSERT, self._params(plan_id, entry))

    def replace_for_plan(self, plan_id: int, entries: Iterable[dict]) -> int:
        params = [self._params(plan_id, e) for e in entries]
        with self._connection() as conn:
            conn.execute("DELETE FROM schedule_entries WHERE plan_id = ?;", (plan_id,))
            conn.executemany(self._INSERT, params)
        return len(params)

    def remove(self, plan_id: int, scheduled_date: str, workout_id: str) -> None:
        self.execute(
            "DELETE FROM schedule_entries WHERE plan_id = ? AND scheduled_date = ? "
            "AND workout_id = ?;",
            (plan_id, scheduled_date, workout_id),
        )

    def fetch_for_plan(self, plan_id: int) -> list[dict]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM schedule_entries WHERE plan_id = ? "
            "ORDER BY scheduled_date, sort_order, id;",
            (plan_id,),
        )
        return [self._row_to_dict(r) for r in rows]

    def fetch_range(self, plan_id: int, start_date: str, end_date: str) -> list[dict]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM schedule_entries WHERE plan_id = ? "
            "AND scheduled_date >= ? AND scheduled_date <= ? "
            "ORDER BY scheduled_date, sort_order, id;",
            (plan_id, start_date, end_date),
        )
        return [self._row_to_dict(r) for r in rows]

    def count_for_plan(self, plan_id: int) -> int:
        rows = self.fetch_all(
            "SELECT COUNT(*) FROM schedule_entries WHERE plan_id = ?;", (plan_id,)
        )
        return int(rows[0][0])

    def delete_for_plan(self, plan_id: int) -> None:
        self.execute("DELETE FROM schedule_entries WHERE plan_id = ?;", (plan_id,))


class CompletionRepository(BaseRepository):
    """Repository for executed or skipped workout occurrences."""

    def record(
        self,
        plan_id: int,
        workout_id: str,
        scheduled_date: str,
        is_completed: bool = True,
        completed_at: Optional[str] = None,
    ) -> int:
        if is_completed and completed_at is None:
            completed_at = datetime.datetime.now().isoformat(timespec="seconds")
        self.execute(
            "INSERT INTO completions (plan_id, workout_id, scheduled_date, completed_at, "
            "is_completed) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(plan_id, workout_id, scheduled_date) DO UPDATE SET "
            "completed_at = excluded.completed_at, is_completed = excluded.is_completed;",
            (plan_id, workout_id, scheduled_date, completed_at, int(is_completed)),
        )
        rows = self.fetch_all(
            "SELECT id FROM completions WHERE plan_id = ? AND workout_id = ? "
            "AND scheduled_date = ?;",
            (plan_id, workout_id, scheduled_date),
        )
        return int(rows[0][0])

    def fetch_range(
        self, plan_id: int, start_date: str, end_date: str
    ) -> List[Tuple[str, str, Optional[str], bool]]:
        rows = self.fetch_all(
            "SELECT workout_id, scheduled_date, completed_at, is_completed "
            "FROM completions WHERE plan_id = ? AND scheduled_date >= ? "
            "AND scheduled_date <= ? ORDER BY scheduled_date, id;",
            (plan_id, start_date, end_date),
        )
        return [(w, d, c, bool(done)) for w, d, c, done in rows]

    def delete(self, plan_id: int, workout_id: str, scheduled_date: str) -> None:
        self.execute(
            "DELETE FROM completions WHERE plan_id = ? AND workout_id = ? "
            "AND scheduled_date = ?;",
            (plan_id, workout_id, scheduled_date),
        )
