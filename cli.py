import argparse
import json
from typing import Optional

from loguru import logger

from date_key import DateKey
from rest_api import ScheduleAPI
from schedule_compiler import parse_workout_days


def _today(value: Optional[str]) -> DateKey:
    return DateKey.parse(value) if value else DateKey.today()


def create_plan(db_path: str, yaml_path: str, name: str, start: str, days_file: str | None) -> int:
    api = ScheduleAPI(db_path=db_path, yaml_path=yaml_path)
    days: list = []
    if days_file:
        with open(days_file, "r", encoding="utf-8") as f:
            days = parse_workout_days(f.read())
    return api.planner.create_plan(name, start_date=DateKey.parse(start), workout_days=days)


def compile_plan(db_path: str, yaml_path: str, plan_id: int, weeks: int | None) -> None:
    api = ScheduleAPI(db_path=db_path, yaml_path=yaml_path)
    store = api.planner.compile_plan(plan_id, weeks)
    print(json.dumps(store.to_schedule(), indent=2))


def show_next(db_path: str, yaml_path: str, today: Optional[str]) -> None:
    api = ScheduleAPI(db_path=db_path, yaml_path=yaml_path)
    entries = api.planner.next_workouts(_today(today))
    if not entries:
        print("No upcoming workouts")
        return
    for e in entries:
        flag = " (overdue)" if e.is_overdue else ""
        print(f"{e.scheduled_date}  {e.workout_id}{flag}")


def show_calendar(
    db_path: str, yaml_path: str, start: str, end: str, plan_id: int | None, today: Optional[str]
) -> None:
    api = ScheduleAPI(db_path=db_path, yaml_path=yaml_path)
    events = api.planner.calendar(
        DateKey.parse(start), DateKey.parse(end), _today(today), plan_id
    )
    for ev in events:
        if ev.is_completed is None:
            status = "-"
        else:
            status = "done" if ev.is_completed else "missed"
        print(f"{ev.date_key} {ev.day_name:<9} plan={ev.plan_id} {ev.workout_id} [{status}]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Workout schedule commands")
    parser.add_argument("--db", default="schedule.db")
    parser.add_argument("--yaml", default="settings.yaml")
    sub = parser.add_subparsers(dest="cmd", required=True)

    plan = sub.add_parser("create-plan")
    plan.add_argument("--name", required=True)
    plan.add_argument("--start", required=True)
    plan.add_argument("--days", help="JSON file with the workout days list")

    comp = sub.add_parser("compile")
    comp.add_argument("--plan", type=int, required=True)
    comp.add_argument("--weeks", type=int)

    nxt = sub.add_parser("next")
    nxt.add_argument("--today")

    cal = sub.add_parser("calendar")
    cal.add_argument("--start", required=True)
    cal.add_argument("--end", required=True)
    cal.add_argument("--plan", type=int)
    cal.add_argument("--today")

    done = sub.add_parser("complete")
    done.add_argument("--plan", type=int, required=True)
    done.add_argument("--workout", required=True)
    done.add_argument("--date", required=True)
    done.add_argument("--skipped", action="store_true")

    mig = sub.add_parser("migrate")
    mig.add_argument("--plan", type=int, required=True)

    srv = sub.add_parser("serve")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    try:
        if args.cmd == "create-plan":
            pid = create_plan(args.db, args.yaml, args.name, args.start, args.days)
            print(f"Created plan {pid}")
        elif args.cmd == "compile":
            compile_plan(args.db, args.yaml, args.plan, args.weeks)
        elif args.cmd == "next":
            show_next(args.db, args.yaml, args.today)
        elif args.cmd == "calendar":
            show_calendar(args.db, args.yaml, args.start, args.end, args.plan, args.today)
        elif args.cmd == "complete":
            api = ScheduleAPI(db_path=args.db, yaml_path=args.yaml)
            api.planner.record_completion(
                args.plan, args.workout, DateKey.parse(args.date), not args.skipped
            )
            print("Recorded")
        elif args.cmd == "migrate":
            api = ScheduleAPI(db_path=args.db, yaml_path=args.yaml)
            count = api.planner.migrate_legacy_schedule(args.plan)
            print(f"Migrated {count} entries")
        elif args.cmd == "serve":
            import uvicorn

            uvicorn.run(ScheduleAPI(args.db, args.yaml).app, host=args.host, port=args.port)
    except ValueError as e:
        logger.error(str(e))
        parser.exit(1, f"error: {e}\n")


if __name__ == "__main__":
    main()
