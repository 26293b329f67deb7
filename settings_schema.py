from typing import Literal

from pydantic import BaseModel, Field, ValidationError


class SettingsSchema(BaseModel):
    weight_unit: Literal["kg", "lbs"] = "kg"
    default_rest_time: int = Field(90, gt=0)
    enable_sound: bool = True
    enable_haptics: bool = True
    timer_sound: Literal["classic", "zen", "coach", "future"] = "classic"
    language: Literal["es", "en"] = "es"
    first_weekday: int = Field(0, ge=0, le=6)
    weekly_set_goal: int = Field(10, ge=0)
    store_api_token: str | bool | None = None
    webhook_url: str | bool | None = None


REST_TIME_CHOICES = (60, 90, 120, 180)


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
