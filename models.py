from __future__ import annotations
import datetime
import unicodedata
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from localization import translator


class MuscleGroup(str, Enum):
    CHEST = "chest"
    BACK = "back"
    LEGS = "legs"
    SHOULDERS = "shoulders"
    ARMS = "arms"
    CORE = "core"
    CARDIO = "cardio"
    OTHER = "other"

    @property
    def label(self) -> str:
        return translator.gettext(self.value.capitalize())

    @property
    def color(self) -> str:
        return _MUSCLE_COLORS[self]


_MUSCLE_COLORS = {
    MuscleGroup.CHEST: "red",
    MuscleGroup.BACK: "blue",
    MuscleGroup.LEGS: "green",
    MuscleGroup.SHOULDERS: "orange",
    MuscleGroup.ARMS: "purple",
    MuscleGroup.CORE: "yellow",
    MuscleGroup.CARDIO: "pink",
    MuscleGroup.OTHER: "gray",
}


def normalize_name(name: str, fold_diacritics: bool = True) -> str:
    """Return ``name`` trimmed and case-folded for comparisons.

    With ``fold_diacritics`` accents are stripped as well, so ``Curl de Bíceps``
    and ``curl de biceps`` compare equal.
    """
    value = name.strip().lower()
    if fold_diacritics:
        value = value.casefold()
        decomposed = unicodedata.normalize("NFKD", value)
        value = "".join(c for c in decomposed if not unicodedata.combining(c))
    return value


def as_utc(dt: datetime.datetime) -> datetime.datetime:
    """Return ``dt`` unchanged if it is aware, otherwise tagged as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def _new_id() -> str:
    return str(uuid.uuid4())


class ExerciseDefinition(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    color_hex: str = "FFFFFF"
    muscle_group: MuscleGroup = MuscleGroup.OTHER
    target_weight: Optional[float] = None
    target_reps: Optional[int] = None
    target_sets: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be empty")
        return v


class ExerciseSet(BaseModel):
    id: str = Field(default_factory=_new_id)
    weight: float = Field(ge=0)
    reps: int = Field(ge=0)
    rpe: Optional[int] = Field(default=None, ge=1, le=10)
    is_drop_set: bool = False
    is_super_set: bool = False

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class Exercise(BaseModel):
    id: str = Field(default_factory=_new_id)
    definition: ExerciseDefinition
    sets: List[ExerciseSet] = Field(default_factory=list)

    @property
    def volume(self) -> float:
        return sum(s.volume for s in self.sets)

    @property
    def max_weight(self) -> float:
        return max((s.weight for s in self.sets), default=0.0)


class WorkoutSession(BaseModel):
    id: str = Field(default_factory=_new_id)
    date: datetime.datetime
    duration: float = Field(default=0.0, ge=0)
    exercises: List[Exercise] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _aware_date(cls, v: datetime.datetime) -> datetime.datetime:
        return as_utc(v)

    @property
    def total_volume(self) -> float:
        return sum(ex.volume for ex in self.exercises)

    def find_exercise(self, definition_id: str) -> Exercise | None:
        for ex in self.exercises:
            if ex.definition.id == definition_id:
                return ex
        return None


class TemplateExercise(BaseModel):
    id: str = Field(default_factory=_new_id)
    definition_id: str
    sets: int = Field(default=4, ge=0)
    reps: int = Field(default=10, ge=0)


class WorkoutTemplate(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    exercises: List[TemplateExercise] = Field(default_factory=list)
