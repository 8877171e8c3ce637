from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request

from weather_assistant.config import Settings
from weather_assistant.errors import ApiError
from weather_assistant.models import Category, ChatMessage, WeatherFacts, coerce_number
from weather_assistant.routes.deps import get_settings, require_llm, require_weather_key
from weather_assistant.services.chat import chat_reply
from weather_assistant.services.geocoding import reverse_geocode, search_places
from weather_assistant.services.suggestions import generate_suggestions
from weather_assistant.services.weather import fetch_current_weather


router = APIRouter()

logger = logging.getLogger("weather-assistant.api")


async def _read_json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except Exception:
        raise ApiError(400, "invalid JSON body") from None
    if not isinstance(body, dict):
        raise ApiError(400, "invalid JSON body")
    return body


def _parse_coordinates(lat: Optional[str], lon: Optional[str]) -> Optional[tuple[float, float]]:
    if not (lat and lon):
        return None
    lat_f = coerce_number(lat)
    lon_f = coerce_number(lon)
    if lat_f is None or lon_f is None:
        raise ApiError(400, "lat and lon must be numbers")
    return lat_f, lon_f


@router.get("/weather")
async def weather(
    city: Optional[str] = None,
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    city_name = (city or "").strip()
    coords = None if city_name else _parse_coordinates(lat, lon)
    if not city_name and coords is None:
        raise ApiError(400, "Provide city or lat+lon")

    api_key = require_weather_key(settings)
    try:
        report = await fetch_current_weather(
            api_key=api_key,
            base_url=settings.openweather_base_url,
            timeout_s=settings.upstream_timeout_s,
            city=city_name or None,
            lat=coords[0] if coords else None,
            lon=coords[1] if coords else None,
        )
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("Weather lookup failed. city=%r coords=%r", city_name, coords)
        raise ApiError(500, str(exc)) from exc

    return report.model_dump()


@router.get("/geocode")
async def geocode(
    query: Optional[str] = None,
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    text = (query or "").strip()
    coords = None if text else _parse_coordinates(lat, lon)
    if not text and coords is None:
        raise ApiError(400, "Provide query or lat+lon")

    try:
        if coords is not None:
            results = await reverse_geocode(
                coords[0],
                coords[1],
                base_url=settings.geocoding_base_url,
                timeout_s=settings.upstream_timeout_s,
            )
        else:
            results = await search_places(
                text,
                base_url=settings.geocoding_base_url,
                timeout_s=settings.upstream_timeout_s,
            )
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("Geocoding failed. query=%r coords=%r", text, coords)
        raise ApiError(500, str(exc)) from exc

    return {"results": [r.model_dump() for r in results]}


@router.post("/generate")
async def generate(request: Request, settings: Settings = Depends(get_settings)):
    body = await _read_json_object(request)

    user_text = body.get("user_text")
    if not isinstance(user_text, str) or not user_text.strip():
        raise ApiError(400, "user_text required")
    weather_payload = body.get("weather")
    if not isinstance(weather_payload, dict) or "temp" not in weather_payload:
        raise ApiError(400, "weather.temp required")

    llm = require_llm(settings)
    category = Category.parse(body.get("category"))
    weather_facts = WeatherFacts.from_payload(weather_payload)

    try:
        return await generate_suggestions(
            category=category,
            user_text=user_text,
            weather=weather_facts,
            llm=llm,
        )
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("Generate failed. category=%s", category.value)
        raise ApiError(500, str(exc)) from exc


@router.post("/chat")
async def chat(request: Request, settings: Settings = Depends(get_settings)):
    body = await _read_json_object(request)

    history_raw = body.get("history", [])
    if history_raw is None:
        history_raw = []
    if not isinstance(history_raw, list):
        raise ApiError(400, "history must be array")
    message = body.get("message")
    if not isinstance(message, str) or not message.strip():
        raise ApiError(400, "message required")

    llm = require_llm(settings)
    context = body.get("context") if isinstance(body.get("context"), dict) else {}
    category = context.get("category") if isinstance(context.get("category"), str) else ""
    history = [ChatMessage.from_payload(item) for item in history_raw]

    try:
        return await chat_reply(
            message=message,
            history=history,
            category=category.strip() or "general",
            weather=WeatherFacts.from_payload(context.get("weather")),
            llm=llm,
        )
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("Chat failed.")
        raise ApiError(500, str(exc)) from exc
