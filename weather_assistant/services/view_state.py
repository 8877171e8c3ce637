"""Client-side model of the assistant screen. The API routes never import it; browser-side clients mirror it."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from weather_assistant.models import Category, ChatMessage, GeoResult, Suggestion, WeatherFacts, coerce_number, now_ms
from weather_assistant.services.fallbacks import unavailable_suggestion


REGENERATE_COOLDOWN_MS = 3000
CITY_SEARCH_DEBOUNCE_MS = 300
SUGGESTION_HISTORY_LIMIT = 10

DEFAULT_USER_TEXT = {
    "en": "What's the weather today?",
    "ja": "今日の天気は？",
}

Language = Literal["en", "ja"]


class CooldownGate:
    """Minimum-interval gate: a plain timestamp comparison, no queueing."""

    def __init__(self, cooldown_ms: int) -> None:
        self.cooldown_ms = cooldown_ms
        self.last_ms: Optional[int] = None

    def remaining_ms(self, now: Optional[int] = None) -> int:
        if self.last_ms is None:
            return 0
        current = now_ms() if now is None else now
        return max(0, self.cooldown_ms - (current - self.last_ms))

    def try_acquire(self, now: Optional[int] = None) -> tuple[bool, int]:
        current = now_ms() if now is None else now
        remaining = self.remaining_ms(current)
        if remaining > 0:
            return False, remaining
        self.last_ms = current
        return True, 0


def format_weather_for_api(weather: Any) -> WeatherFacts:
    if isinstance(weather, WeatherFacts):
        weather = weather.model_dump()
    if not isinstance(weather, dict):
        return WeatherFacts(city="Unknown", temp=None, condition="unknown", wind=None)

    def _numeric(value: Any) -> Optional[float]:
        return coerce_number(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None

    return WeatherFacts(
        city=weather.get("city") or "Unknown",
        temp=_numeric(weather.get("temp")),
        condition=weather.get("condition") or "unknown",
        wind=_numeric(weather.get("wind")),
    )


class SuggestionEntry(BaseModel):
    en: Suggestion
    jp: dict[str, Any]
    timestamp: int = Field(default_factory=now_ms)


class AssistantViewState(BaseModel):
    """
    Browser-session state of the assistant: the form inputs, the last suggestion pair and
    the chat transcript. Nothing here is persisted.
    """

    language: Language = "en"
    transcript: str = ""
    category: Category = Category.FASHION
    selected_city: Optional[GeoResult] = None
    weather: Optional[WeatherFacts] = None
    current: Optional[SuggestionEntry] = None
    history: list[SuggestionEntry] = Field(default_factory=list)
    chat: list[ChatMessage] = Field(default_factory=list)

    def toggle_language(self) -> Language:
        self.language = "ja" if self.language == "en" else "en"
        return self.language

    def select_city(self, city: GeoResult) -> None:
        self.selected_city = city
        self.weather = None

    def weather_for_request(self) -> WeatherFacts:
        if self.weather is not None:
            return format_weather_for_api(self.weather)
        city = self.selected_city.display if self.selected_city else None
        return format_weather_for_api({"city": city})

    def generate_request(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "user_text": self.transcript.strip() or DEFAULT_USER_TEXT[self.language],
            "weather": self.weather_for_request().model_dump(),
        }

    def record_suggestion(self, response: dict[str, Any], *, regenerate: bool = False) -> SuggestionEntry:
        entry = SuggestionEntry(en=Suggestion.model_validate(response["en"]), jp=dict(response.get("jp") or {}))
        self.current = entry
        if not regenerate:
            self.history = [entry, *self.history][:SUGGESTION_HISTORY_LIMIT]
        return entry

    def record_unavailable(self) -> SuggestionEntry:
        weather = self.weather_for_request()
        entry = SuggestionEntry(
            en=unavailable_suggestion(self.category, weather, "en"),
            jp=unavailable_suggestion(self.category, weather, "ja").model_dump(),
        )
        self.current = entry
        return entry

    def displayed_suggestion(self) -> Optional[dict[str, Any]]:
        if self.current is None:
            return None
        if self.language == "ja":
            return self.current.jp
        return self.current.en.model_dump()

    def chat_request(self, message: str) -> dict[str, Any]:
        return {
            "history": [{"role": m.role, "text": m.text_en} for m in self.chat],
            "message": message,
            "context": {"category": self.category.value, "weather": self.weather_for_request().model_dump()},
        }

    def add_chat_exchange(self, message: str, response: dict[str, Any]) -> None:
        message_en = str(response.get("message_en") or message)
        user_jp = message if message_en != message else ""
        self.chat.append(ChatMessage(role="user", text_en=message_en, text_jp=user_jp))
        self.chat.append(
            ChatMessage(
                role="assistant",
                text_en=str(response.get("reply_en") or ""),
                text_jp=str(response.get("reply_jp") or ""),
            )
        )

    def clear(self) -> None:
        self.transcript = ""
        self.selected_city = None
        self.weather = None
        self.current = None

    def clear_chat(self) -> None:
        self.chat = []
