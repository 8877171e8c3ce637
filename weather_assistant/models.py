from __future__ import annotations

from enum import Enum
import math
import time
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


T = TypeVar("T")


def now_ms() -> int:
    return int(time.time() * 1000)


def coerce_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings become floats; anything else (null, NaN, junk) is unknown."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class Category(str, Enum):
    FASHION = "fashion"
    AGRICULTURE = "agri"
    TRAVEL = "travel"
    MUSIC = "music"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.FASHION
        key = value.strip().lower()
        if key == "agriculture":
            return cls.AGRICULTURE
        for member in cls:
            if member.value == key:
                return member
        return cls.FASHION


class WeatherFacts(BaseModel):
    model_config = ConfigDict(extra="ignore")

    city: str = ""
    temp: Optional[float] = None
    condition: str = ""
    wind: Optional[float] = None

    @field_validator("temp", "wind", mode="before")
    @classmethod
    def _number_or_unknown(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("city", "condition", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @classmethod
    def from_payload(cls, payload: Any) -> "WeatherFacts":
        if not isinstance(payload, dict):
            return cls()
        return cls.model_validate(payload)

    @property
    def place(self) -> str:
        return self.city or "location"


class WeatherReport(WeatherFacts):
    icon: Optional[str] = None
    feels_like: Optional[float] = None
    raw: dict[str, Any] = Field(default_factory=dict)


class Suggestion(BaseModel):
    title: str
    bullets: list[str] = Field(min_length=3, max_length=3)
    summary: str = ""
    reason: str = ""


class GeoResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    country: str = ""
    admin1: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    timezone: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display(self) -> str:
        return ", ".join(part for part in (self.name, self.admin1, self.country) if part)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"] = "user"
    text_en: str = ""
    text_jp: str = ""
    timestamp: int = Field(default_factory=now_ms)

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatMessage":
        """Accepts history items shaped `{role, text}` (text is English) or full messages."""
        if not isinstance(payload, dict):
            return cls(text_en=str(payload or ""))
        role = payload.get("role")
        if role not in {"user", "assistant", "system"}:
            role = "user"
        text = payload.get("text_en")
        if text is None:
            text = payload.get("text")
        return cls(
            role=role,
            text_en="" if text is None else str(text),
            text_jp=str(payload.get("text_jp") or ""),
        )


class Ok(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    value: T


class Fallback(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    value: T
    reason: str


Outcome = Union[Ok, Fallback]
