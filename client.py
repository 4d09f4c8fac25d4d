import requests
from typing import Optional

class ScheduleClient:
    """Simple REST client for the schedule API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def create_plan(
        self,
        name: str,
        start_date: Optional[str] = None,
        workout_days: Optional[list] = None,
        **params: str,
    ) -> int:
        query = {"name": name, **params}
        if start_date:
            query["start_date"] = start_date
        resp = requests.post(
            f"{self.base_url}/plans",
            params=query,
            json=workout_days,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def compile_plan(self, plan_id: int, weeks: Optional[int] = None) -> dict:
        params = {"weeks": weeks} if weeks is not None else {}
        resp = requests.post(
            f"{self.base_url}/plans/{plan_id}/compile", params=params, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def add_workout(self, plan_id: int, date: str, workout_id: str, **params) -> str:
        resp = requests.post(
            f"{self.base_url}/plans/{plan_id}/schedule",
            params={"date": date, "workout_id": workout_id, **params},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["status"]

    def record_completion(
        self, plan_id: int, workout_id: str, scheduled_date: str, is_completed: bool = True
    ) -> int:
        resp = requests.post(
            f"{self.base_url}/plans/{plan_id}/completions",
            params={
                "workout_id": workout_id,
                "scheduled_date": scheduled_date,
                "is_completed": is_completed,
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def next_workouts(self, today: Optional[str] = None) -> list:
        params = {"today": today} if today else {}
        resp = requests.get(
            f"{self.base_url}/next_workouts", params=params, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def calendar(self, start_date: str, end_date: str, **params) -> list:
        resp = requests.get(
            f"{self.base_url}/calendar",
            params={"start_date": start_date, "end_date": end_date, **params},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()
