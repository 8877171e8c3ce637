from __future__ import annotations

import os

from fastapi import APIRouter, Depends

from weather_assistant.config import SERVICE_NAME, SERVICE_VERSION, Settings
from weather_assistant.routes.deps import get_settings

router = APIRouter()


def _get_commit_sha() -> str | None:
    for key in (
        # Vercel / Railway
        "VERCEL_GIT_COMMIT_SHA",
        "RAILWAY_GIT_COMMIT_SHA",
        # Common CI providers
        "GITHUB_SHA",
        # Generic fallbacks
        "COMMIT_SHA",
        "GIT_SHA",
    ):
        value = os.getenv(key)
        if value:
            return value
    return None


@router.get("/healthz")
def healthz(settings: Settings = Depends(get_settings)):
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "commit_sha": _get_commit_sha(),
        "gemini_configured": bool(settings.gemini_api_key),
        "weather_configured": bool(settings.openweather_key),
    }
