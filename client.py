import requests
from typing import Optional


class LiftLogClient:
    """Simple REST client for the LiftLog API."""

    def __init__(self, base_url: str = "http://localhost:8000", session=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    def list_exercises(self, muscle_group: Optional[str] = None) -> list:
        params = {"muscle_group": muscle_group} if muscle_group else {}
        resp = self.http.get(f"{self.base_url}/exercises", params=params)
        resp.raise_for_status()
        return resp.json()

    def add_exercise(self, name: str, muscle_group: str = "other") -> str:
        resp = self.http.post(
            f"{self.base_url}/exercises",
            params={"name": name, "muscle_group": muscle_group},
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def add_session(self, session: dict, start_timer: bool = False) -> str:
        resp = self.http.post(
            f"{self.base_url}/sessions",
            json=session,
            params={"start_timer": start_timer},
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def list_sessions(self) -> list:
        resp = self.http.get(f"{self.base_url}/sessions")
        resp.raise_for_status()
        return resp.json()

    def weekly_summary(self, now: Optional[str] = None) -> dict:
        params = {"now": now} if now else {}
        resp = self.http.get(f"{self.base_url}/stats/weekly_summary", params=params)
        resp.raise_for_status()
        return resp.json()

    def start_timer(self, duration: Optional[int] = None) -> dict:
        params = {"duration": duration} if duration is not None else {}
        resp = self.http.post(f"{self.base_url}/timer/start", params=params)
        resp.raise_for_status()
        return resp.json()

    def timer_state(self) -> dict:
        resp = self.http.get(f"{self.base_url}/timer")
        resp.raise_for_status()
        return resp.json()

    def stop_timer(self) -> dict:
        resp = self.http.post(f"{self.base_url}/timer/stop")
        resp.raise_for_status()
        return resp.json()
