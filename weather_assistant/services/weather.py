from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from weather_assistant.errors import UpstreamError
from weather_assistant.models import WeatherReport, coerce_number


logger = logging.getLogger("weather-assistant.weather")


def calculate_feels_like(temp: Optional[float], wind_ms: Optional[float]) -> Optional[float]:
    """Wind chill (Environment Canada formula) below 10°C with wind above 4.8 km/h."""

    if temp is None:
        return None
    if wind_ms is None:
        return temp
    wind_kmh = wind_ms * 3.6
    if temp < 10 and wind_kmh > 4.8:
        factor = wind_kmh**0.16
        return round(13.12 + 0.6215 * temp - 11.37 * factor + 0.3965 * temp * factor, 1)
    return temp


def weather_from_openweather(data: dict[str, Any]) -> WeatherReport:
    main = data.get("main") if isinstance(data.get("main"), dict) else {}
    wind = data.get("wind") if isinstance(data.get("wind"), dict) else {}
    sys_block = data.get("sys") if isinstance(data.get("sys"), dict) else {}
    conditions = data.get("weather") if isinstance(data.get("weather"), list) else []
    first = conditions[0] if conditions and isinstance(conditions[0], dict) else {}

    temp = coerce_number(main.get("temp"))
    wind_speed = coerce_number(wind.get("speed"))

    return WeatherReport(
        city=str(data.get("name") or sys_block.get("country") or ""),
        temp=temp,
        condition=str(first.get("description") or ""),
        wind=wind_speed,
        icon=first.get("icon") or None,
        feels_like=calculate_feels_like(temp, wind_speed),
        raw=data,
    )


async def fetch_current_weather(
    *,
    api_key: str,
    base_url: str,
    timeout_s: float,
    city: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> WeatherReport:
    params: dict[str, Any] = {"units": "metric", "appid": api_key}
    if city:
        params["q"] = city
    elif lat is not None and lon is not None:
        params["lat"] = lat
        params["lon"] = lon
    else:
        raise ValueError("city or lat+lon is required")

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        res = await client.get(f"{base_url.rstrip('/')}/weather", params=params)

    if res.status_code >= 400:
        logger.warning("weather_fetch_failed status=%s body=%s", res.status_code, res.text[:500])
        raise UpstreamError("openweather", res.status_code, "weather fetch failed", details=res.text)

    data = res.json()
    return weather_from_openweather(data if isinstance(data, dict) else {})
