import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, FastAPI, HTTPException, Query

from algorithms import MathTools, PlateCalculator
from analytics_service import WorkoutAnalytics, format_duration
from config import APP_VERSION
from gym_service import GymService
from models import Exercise, ExerciseDefinition, MuscleGroup, WorkoutSession, WorkoutTemplate
from rest_timer import TimerSound, format_time
from settings_schema import REST_TIME_CHOICES


def _parse_now(now: Optional[str]) -> datetime.datetime:
    if now is None:
        return datetime.datetime.now(datetime.timezone.utc)
    try:
        dt = datetime.datetime.fromisoformat(now)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid timestamp")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


class GymAPI:
    """Provides REST endpoints for workout logging, analytics and the rest timer."""

    def __init__(
        self,
        db_path: str = "liftlog.db",
        yaml_path: str | None = None,
        user_id: str = "local",
        *,
        live_timer: bool = False,
    ) -> None:
        self.service = GymService(db_path, user_id, yaml_path, live_timer=live_timer)
        self.timer = self.service.timer
        self.app = FastAPI(
            title="LiftLog API",
            description="REST API for workout logging, analytics and rest timing",
            version=APP_VERSION,
        )
        self._setup_routes()

    def _timer_state(self) -> dict:
        data = self.timer.snapshot().to_dict()
        data["display"] = format_time(data["remaining"])
        return data

    def _setup_routes(self) -> None:
        exercises_router = APIRouter(prefix="/exercises", tags=["Exercises"])
        templates_router = APIRouter(prefix="/templates", tags=["Templates"])
        sessions_router = APIRouter(prefix="/sessions", tags=["Sessions"])
        stats_router = APIRouter(prefix="/stats", tags=["Statistics"])
        timer_router = APIRouter(prefix="/timer", tags=["Rest Timer"])
        tools_router = APIRouter(prefix="/tools", tags=["Tools"])

        @self.app.get("/health")
        def health():
            return {"status": "ok", "version": APP_VERSION}

        @self.app.get("/muscle_groups")
        def muscle_groups():
            return [
                {"value": g.value, "label": g.label, "color": g.color}
                for g in MuscleGroup
            ]

        @exercises_router.get("")
        def list_exercises(muscle_group: Optional[MuscleGroup] = None):
            return [
                d.model_dump()
                for d in self.service.definitions
                if muscle_group is None or d.muscle_group == muscle_group
            ]

        @exercises_router.post("")
        def add_exercise(
            name: str,
            muscle_group: MuscleGroup = MuscleGroup.OTHER,
            color_hex: Optional[str] = None,
        ):
            ex_id = self.service.add_exercise(name, muscle_group, color_hex)
            if ex_id is None:
                raise HTTPException(status_code=400, detail="exercise exists")
            return {"id": ex_id}

        @exercises_router.put("/{definition_id}")
        def update_exercise(definition_id: str, definition: ExerciseDefinition = Body(...)):
            definition = definition.model_copy(update={"id": definition_id})
            if not self.service.update_exercise(definition):
                raise HTTPException(status_code=404, detail="exercise not found")
            return {"status": "updated"}

        @exercises_router.delete("/{definition_id}")
        def delete_exercise(definition_id: str):
            if not self.service.delete_exercise(definition_id):
                raise HTTPException(status_code=404, detail="exercise not found")
            return {"status": "deleted"}

        @exercises_router.post("/deduplicate")
        def deduplicate_exercises():
            removed = self.service.deduplicate_exercises()
            return {"removed": [d.id for d in removed]}

        @exercises_router.get("/{definition_id}/last")
        def last_exercise(definition_id: str):
            exercise = self.service.last_session_data(definition_id)
            return exercise.model_dump() if exercise else None

        @templates_router.get("")
        def list_templates():
            return [t.model_dump() for t in self.service.templates]

        @templates_router.post("")
        def add_template(template: WorkoutTemplate = Body(...)):
            tid = self.service.add_template(template)
            if tid is None:
                raise HTTPException(status_code=400, detail="template not saved")
            return {"id": tid}

        @templates_router.delete("/{template_id}")
        def delete_template(template_id: str):
            if not self.service.delete_template(template_id):
                raise HTTPException(status_code=404, detail="template not found")
            return {"status": "deleted"}

        @sessions_router.get("")
        def list_sessions():
            return [
                {**s.model_dump(mode="json"), "total_volume": s.total_volume}
                for s in self.service.sessions
            ]

        @sessions_router.post("")
        def add_session(session: WorkoutSession = Body(...), start_timer: bool = False):
            sid = self.service.add_session(session)
            if sid is None:
                raise HTTPException(status_code=400, detail="session not saved")
            if start_timer:
                self.timer.start()
            return {"id": sid}

        @sessions_router.get("/grouped")
        def grouped_sessions():
            return [
                {
                    "month": label,
                    "sessions": [
                        {
                            "id": s.id,
                            "date": s.date.isoformat(),
                            "duration": format_duration(s.duration),
                            "total_volume": s.total_volume,
                        }
                        for s in sessions
                    ],
                }
                for label, sessions in self.service.sessions_by_month()
            ]

        @sessions_router.get("/{session_id}")
        def get_session(session_id: str):
            session = self.service.get_session(session_id)
            if session is None:
                raise HTTPException(status_code=404, detail="session not found")
            return session.model_dump(mode="json")

        @sessions_router.delete("/{session_id}")
        def delete_session(session_id: str):
            if not self.service.delete_session(session_id):
                raise HTTPException(status_code=404, detail="session not found")
            return {"status": "deleted"}

        @stats_router.get("/weekly_summary")
        def weekly_summary(now: Optional[str] = None):
            return self.service.weekly_summary(_parse_now(now))

        @stats_router.get("/weekly_sets")
        def weekly_sets(now: Optional[str] = None):
            counts = self.service.weekly_set_counts(_parse_now(now))
            return {group.value: count for group, count in counts.items()}

        @stats_router.get("/goals")
        def goals(now: Optional[str] = None):
            return self.service.goal_progress(_parse_now(now))

        @stats_router.put("/goals/{muscle_group}")
        def set_goal(muscle_group: MuscleGroup, sets: int):
            try:
                self.service.set_goal(muscle_group, sets)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "updated"}

        @stats_router.get("/progress/{definition_id}")
        def progress(definition_id: str):
            return [
                {"date": p.date.isoformat(), "weight": p.weight}
                for p in self.service.progress(definition_id)
            ]

        @stats_router.post("/personal_record")
        def personal_record(exercise: Exercise = Body(...)):
            return {"personal_record": self.service.is_new_pr(exercise)}

        @stats_router.get("/daily_durations")
        def daily_durations(today: Optional[str] = None):
            day = _parse_now(today).date()
            return [
                {"date": d.isoformat(), "minutes": m}
                for d, m in WorkoutAnalytics.daily_durations(self.service.sessions, day)
            ]

        @stats_router.get("/training_days")
        def training_days():
            return sorted(d.isoformat() for d in WorkoutAnalytics.training_days(self.service.sessions))

        @timer_router.get("")
        def timer_state():
            return self._timer_state()

        @timer_router.get("/sounds")
        def timer_sounds():
            return [
                {"value": s.value, "label": s.label, "sound_id": s.sound_id}
                for s in TimerSound
            ]

        @timer_router.post("/start")
        def timer_start(duration: Optional[int] = None):
            try:
                self.timer.start(duration)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self._timer_state()

        @timer_router.post("/tick")
        def timer_tick():
            self.timer.tick()
            return self._timer_state()

        @timer_router.post("/extend")
        def timer_extend(seconds: int = 10):
            try:
                self.timer.extend(seconds)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self._timer_state()

        @timer_router.post("/reduce")
        def timer_reduce(seconds: int = 10):
            try:
                self.timer.reduce(seconds)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self._timer_state()

        @timer_router.post("/stop")
        def timer_stop():
            self.timer.stop()
            return self._timer_state()

        @tools_router.get("/plates")
        def plates(target: float, bar: Optional[float] = None, unit: str = "kg"):
            if unit not in ("kg", "lbs"):
                raise HTTPException(status_code=400, detail="unit must be kg or lbs")
            bar_weight = PlateCalculator.default_bar(unit) if bar is None else bar
            per_side, leftover = PlateCalculator.plates_per_side(target, bar_weight, unit)
            return {
                "per_side": per_side,
                "leftover": leftover,
                "bar": bar_weight,
                "bar_choices": list(PlateCalculator.bars_for(unit)),
            }

        @tools_router.get("/bar_total")
        def bar_total(
            plates: List[float] = Query(default=[]),
            bar: Optional[float] = None,
            unit: str = "kg",
        ):
            if unit not in ("kg", "lbs"):
                raise HTTPException(status_code=400, detail="unit must be kg or lbs")
            if any(p <= 0 for p in plates):
                raise HTTPException(status_code=400, detail="plates must be positive")
            bar_weight = PlateCalculator.default_bar(unit) if bar is None else bar
            return {"total": PlateCalculator.total_weight(bar_weight, plates), "bar": bar_weight}

        @tools_router.get("/one_rep_max")
        def one_rep_max(weight: float, reps: int):
            try:
                orm = MathTools.brzycki_1rm(weight, reps)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {
                "one_rep_max": orm,
                "percentages": [
                    {"percent": p, "weight": w} for p, w in MathTools.percentage_table(orm)
                ],
            }

        @self.app.get("/settings")
        def get_settings():
            data = self.service.settings.all_settings()
            data["rest_time_choices"] = list(REST_TIME_CHOICES)
            return data

        @self.app.post("/settings")
        def update_settings(data: dict = Body(...)):
            try:
                for key, value in data.items():
                    self.service.settings.set_text(key, str(value))
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            self.service.apply_settings()
            return {"status": "updated"}

        self.app.include_router(exercises_router)
        self.app.include_router(templates_router)
        self.app.include_router(sessions_router)
        self.app.include_router(stats_router)
        self.app.include_router(timer_router)
        self.app.include_router(tools_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(GymAPI(live_timer=True).app)
