from __future__ import annotations

from fastapi import Request

from weather_assistant.config import Settings
from weather_assistant.errors import ApiError
from weather_assistant.services.gemini import LlmSettings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_llm(settings: Settings) -> LlmSettings:
    if not settings.gemini_api_key:
        raise ApiError(500, "GEMINI_API_KEY missing")
    return LlmSettings.from_settings(settings)


def require_weather_key(settings: Settings) -> str:
    if not settings.openweather_key:
        raise ApiError(500, "OPENWEATHER_KEY not configured")
    return settings.openweather_key
