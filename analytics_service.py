from __future__ import annotations
import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from localization import translator
from models import (
    Exercise,
    ExerciseDefinition,
    MuscleGroup,
    WorkoutSession,
    as_utc,
    normalize_name,
)


class ProgressPoint(NamedTuple):
    date: datetime.datetime
    weight: float


def format_duration(seconds: float) -> str:
    """Return ``seconds`` as an abbreviated hours/minutes string."""
    total_minutes = int(max(seconds, 0) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


class WorkoutAnalytics:
    """Compute derived views over a snapshot of workout sessions.

    Every query takes the session collection explicitly and scans it from
    scratch. Nothing is cached and nothing is mutated, so the same snapshot can
    be queried from any thread.
    """

    @staticmethod
    def week_start(now: datetime.datetime, first_weekday: int = 0) -> datetime.datetime:
        """Return midnight of the first day of the calendar week containing ``now``."""
        now = as_utc(now)
        offset = (now.weekday() - first_weekday) % 7
        day = now.date() - datetime.timedelta(days=offset)
        return datetime.datetime.combine(day, datetime.time.min, tzinfo=now.tzinfo)

    @staticmethod
    def weekly_summary(
        sessions: Iterable[WorkoutSession],
        now: datetime.datetime,
        first_weekday: int = 0,
    ) -> Dict[str, float]:
        """Compare volume and duration of this calendar week with the previous one."""
        this_week = WorkoutAnalytics.week_start(now, first_weekday)
        last_week = this_week - datetime.timedelta(days=7)
        next_week = this_week + datetime.timedelta(days=7)
        summary = {
            "current_volume": 0.0,
            "previous_volume": 0.0,
            "current_duration": 0.0,
            "previous_duration": 0.0,
        }
        for session in sessions:
            date = as_utc(session.date)
            if this_week <= date < next_week:
                summary["current_volume"] += session.total_volume
                summary["current_duration"] += session.duration
            elif last_week <= date < this_week:
                summary["previous_volume"] += session.total_volume
                summary["previous_duration"] += session.duration
        return summary

    @staticmethod
    def weekly_set_counts(
        sessions: Iterable[WorkoutSession], now: datetime.datetime
    ) -> Dict[MuscleGroup, int]:
        """Return sets per muscle group over the trailing 168 hours."""
        now = as_utc(now)
        cutoff = now - datetime.timedelta(days=7)
        counts: Dict[MuscleGroup, int] = {}
        for session in sessions:
            date = as_utc(session.date)
            if not cutoff <= date <= now:
                continue
            for exercise in session.exercises:
                group = exercise.definition.muscle_group
                counts[group] = counts.get(group, 0) + len(exercise.sets)
        return counts

    @staticmethod
    def goal_progress(
        counts: Dict[MuscleGroup, int], goals: Dict[MuscleGroup, int]
    ) -> List[Dict[str, object]]:
        """Return sets done against the weekly goal for every muscle group."""
        result = []
        for group in MuscleGroup:
            done = counts.get(group, 0)
            goal = goals.get(group, 0)
            result.append(
                {
                    "muscle_group": group.value,
                    "sets": done,
                    "goal": goal,
                    "ratio": done / goal if goal > 0 else 0.0,
                }
            )
        return result

    @staticmethod
    def progress_series(
        sessions: Iterable[WorkoutSession], definition_id: str
    ) -> List[ProgressPoint]:
        """Return the session-max weight of an exercise, oldest session first."""
        points = []
        for session in sessions:
            exercise = session.find_exercise(definition_id)
            if exercise is not None:
                points.append(ProgressPoint(session.date, exercise.max_weight))
        points.sort(key=lambda p: as_utc(p.date))
        return points

    @staticmethod
    def is_personal_record(
        sessions: Sequence[WorkoutSession], exercise: Exercise
    ) -> bool:
        """Return True when ``exercise`` beats every earlier session-max weight.

        If ``exercise`` already belongs to a saved session, only sessions dated
        before it count as history. An exercise still being composed is
        compared with the whole collection.
        """
        owner: Optional[WorkoutSession] = None
        for session in sessions:
            if any(ex.id == exercise.id for ex in session.exercises):
                owner = session
                break
        history = sessions
        if owner is not None:
            history = [
                s
                for s in sessions
                if s.id != owner.id and as_utc(s.date) < as_utc(owner.date)
            ]
        series = WorkoutAnalytics.progress_series(history, exercise.definition.id)
        if not series:
            return True
        previous_max = max(p.weight for p in series)
        return exercise.max_weight > previous_max

    @staticmethod
    def last_exercise(
        sessions: Iterable[WorkoutSession], definition_id: str
    ) -> Optional[Exercise]:
        """Return the most recently performed exercise for ``definition_id``."""
        latest: Optional[Tuple[datetime.datetime, Exercise]] = None
        for session in sessions:
            exercise = session.find_exercise(definition_id)
            if exercise is None:
                continue
            date = as_utc(session.date)
            if latest is None or date > latest[0]:
                latest = (date, exercise)
        return latest[1] if latest else None

    @staticmethod
    def group_by_month(
        sessions: Iterable[WorkoutSession], language: str | None = None
    ) -> List[Tuple[str, List[WorkoutSession]]]:
        """Split sessions into contiguous runs sharing the same month and year.

        Grouping is positional: a month that shows up again after a different
        month starts a new group instead of being merged with the earlier one.
        """
        groups: List[Tuple[str, List[WorkoutSession]]] = []
        current_key: Optional[Tuple[int, int]] = None
        for session in sessions:
            key = (session.date.year, session.date.month)
            if key != current_key:
                label = translator.month_label(key[0], key[1], language)
                groups.append((label, [session]))
                current_key = key
            else:
                groups[-1][1].append(session)
        return groups

    @staticmethod
    def deduplicate_exercises(
        definitions: Iterable[ExerciseDefinition],
    ) -> List[ExerciseDefinition]:
        """Return definitions whose trimmed, lowercased name was already seen."""
        seen: set[str] = set()
        duplicates = []
        for definition in definitions:
            key = normalize_name(definition.name, fold_diacritics=False)
            if key in seen:
                duplicates.append(definition)
            else:
                seen.add(key)
        return duplicates

    @staticmethod
    def daily_durations(
        sessions: Iterable[WorkoutSession], today: datetime.date
    ) -> List[Tuple[datetime.date, float]]:
        """Return minutes trained on each of the last seven days, oldest first."""
        days = [today - datetime.timedelta(days=i) for i in range(6, -1, -1)]
        minutes = {day: 0.0 for day in days}
        for session in sessions:
            day = session.date.date()
            if day in minutes:
                minutes[day] += session.duration / 60.0
        return [(day, minutes[day]) for day in days]

    @staticmethod
    def training_days(sessions: Iterable[WorkoutSession]) -> set[datetime.date]:
        return {s.date.date() for s in sessions}

    @staticmethod
    def session_on(
        sessions: Iterable[WorkoutSession], day: datetime.date
    ) -> Optional[WorkoutSession]:
        for session in sessions:
            if session.date.date() == day:
                return session
        return None
