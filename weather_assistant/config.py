from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


SERVICE_NAME = "weather-assistant"
SERVICE_VERSION = "0.1.0"

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_GEOCODING_BASE_URL = "https://geocoding-api.open-meteo.com/v1"


def _parse_cors_origins(raw: Optional[str]) -> list[str]:
    if not raw:
        return ["*"]
    parts = [p.strip() for p in raw.split(",")]
    return [p for p in parts if p] or ["*"]


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    openweather_key: Optional[str] = None
    openweather_base_url: str = DEFAULT_OPENWEATHER_BASE_URL
    geocoding_base_url: str = DEFAULT_GEOCODING_BASE_URL
    upstream_timeout_s: float = 10.0
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            gemini_api_key=_clean(env.get("GEMINI_API_KEY")),
            gemini_model=_clean(env.get("GEMINI_MODEL")) or DEFAULT_GEMINI_MODEL,
            gemini_base_url=(_clean(env.get("GEMINI_BASE_URL")) or DEFAULT_GEMINI_BASE_URL).rstrip("/"),
            openweather_key=_clean(env.get("OPENWEATHER_KEY")),
            openweather_base_url=(_clean(env.get("OPENWEATHER_BASE_URL")) or DEFAULT_OPENWEATHER_BASE_URL).rstrip("/"),
            geocoding_base_url=(_clean(env.get("GEOCODING_BASE_URL")) or DEFAULT_GEOCODING_BASE_URL).rstrip("/"),
            upstream_timeout_s=float(env.get("UPSTREAM_TIMEOUT_S") or "10"),
            cors_origins=_parse_cors_origins(env.get("CORS_ORIGINS")),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
