from __future__ import annotations

import logging
from typing import Any

import httpx

from weather_assistant.errors import UpstreamError
from weather_assistant.models import GeoResult, coerce_number


logger = logging.getLogger("weather-assistant.geocoding")

SEARCH_RESULT_LIMIT = 7


def geo_results_from_open_meteo(data: Any) -> list[GeoResult]:
    items = data.get("results") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []

    results: list[GeoResult] = []
    for it in items:
        if not isinstance(it, dict):
            continue
        results.append(
            GeoResult(
                name=str(it.get("name") or ""),
                country=str(it.get("country") or ""),
                admin1=str(it.get("admin1") or ""),
                lat=coerce_number(it.get("latitude")),
                lon=coerce_number(it.get("longitude")),
                timezone=it.get("timezone") or None,
            )
        )
    return results


async def _get_results(url: str, params: dict[str, Any], *, timeout_s: float, error: str) -> list[GeoResult]:
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        res = await client.get(url, params=params)

    if res.status_code >= 400:
        logger.warning("%s status=%s body=%s", error.replace(" ", "_"), res.status_code, res.text[:500])
        raise UpstreamError("open-meteo", res.status_code, error, details=res.text)

    return geo_results_from_open_meteo(res.json())


async def search_places(query: str, *, base_url: str, timeout_s: float) -> list[GeoResult]:
    results = await _get_results(
        f"{base_url.rstrip('/')}/search",
        {"name": query, "count": SEARCH_RESULT_LIMIT, "language": "en", "format": "json"},
        timeout_s=timeout_s,
        error="geocoding fetch failed",
    )
    return results[:SEARCH_RESULT_LIMIT]


async def reverse_geocode(lat: float, lon: float, *, base_url: str, timeout_s: float) -> list[GeoResult]:
    return await _get_results(
        f"{base_url.rstrip('/')}/reverse",
        {"latitude": lat, "longitude": lon, "format": "json"},
        timeout_s=timeout_s,
        error="reverse geocoding failed",
    )
