from __future__ import annotations

import logging
from pathlib import Path
import sys
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from weather_assistant.config import Settings
from weather_assistant.errors import UpstreamError
from weather_assistant.main import create_app
from weather_assistant.models import GeoResult
from weather_assistant.services.geocoding import geo_results_from_open_meteo
from weather_assistant.services.weather import calculate_feels_like, weather_from_openweather


OPENWEATHER_TOKYO = {
    "name": "Tokyo",
    "sys": {"country": "JP"},
    "main": {"temp": 18.4, "humidity": 80},
    "weather": [{"description": "light rain", "icon": "10d"}],
    "wind": {"speed": 3.1},
}

OPEN_METEO_SEARCH = {
    "results": [
        {"name": "Tokyo", "admin1": "Tokyo", "country": "Japan", "latitude": 35.6895, "longitude": 139.69171, "timezone": "Asia/Tokyo"},
        {"name": "Tokyo", "country": "", "latitude": 1.0, "longitude": 2.0},
    ]
}


class TestWeatherReshaping(unittest.TestCase):
    def test_openweather_payload_is_normalized(self) -> None:
        report = weather_from_openweather(OPENWEATHER_TOKYO)
        self.assertEqual(report.city, "Tokyo")
        self.assertEqual(report.temp, 18.4)
        self.assertEqual(report.condition, "light rain")
        self.assertEqual(report.wind, 3.1)
        self.assertEqual(report.icon, "10d")
        self.assertEqual(report.raw, OPENWEATHER_TOKYO)

    def test_missing_values_stay_unknown(self) -> None:
        report = weather_from_openweather({"sys": {"country": "JP"}})
        self.assertEqual(report.city, "JP")
        self.assertIsNone(report.temp)
        self.assertIsNone(report.wind)
        self.assertIsNone(report.icon)
        self.assertIsNone(report.feels_like)
        self.assertEqual(report.condition, "")

    def test_feels_like_wind_chill(self) -> None:
        self.assertEqual(calculate_feels_like(0, 5), -4.9)
        self.assertEqual(calculate_feels_like(15, 10), 15)
        self.assertEqual(calculate_feels_like(5, 1), 5)
        self.assertEqual(calculate_feels_like(5, None), 5)
        self.assertIsNone(calculate_feels_like(None, 3))


class TestGeocodeReshaping(unittest.TestCase):
    def test_results_and_display(self) -> None:
        results = geo_results_from_open_meteo(OPEN_METEO_SEARCH)
        self.assertEqual(len(results), 2)
        self.assertEqual(results[0].display, "Tokyo, Tokyo, Japan")
        self.assertEqual(results[0].lat, 35.6895)
        self.assertEqual(results[0].timezone, "Asia/Tokyo")
        self.assertEqual(results[1].display, "Tokyo")
        self.assertIsNone(results[1].timezone)

    def test_display_is_recomputed(self) -> None:
        geo = GeoResult(name="Osaka", country="Japan")
        self.assertEqual(geo.display, "Osaka, Japan")
        geo.admin1 = "Osaka"
        self.assertEqual(geo.model_dump()["display"], "Osaka, Osaka, Japan")

    def test_missing_results(self) -> None:
        self.assertEqual(geo_results_from_open_meteo({}), [])
        self.assertEqual(geo_results_from_open_meteo(None), [])


class TestWeatherEndpoint(unittest.TestCase):
    def _app(self, **overrides):
        values = {"gemini_api_key": "g", "openweather_key": "ow"}
        values.update(overrides)
        return create_app(Settings(**values))

    def test_city_lookup(self) -> None:
        calls: list[dict] = []

        async def _fake_fetch(**kwargs):
            calls.append(kwargs)
            return weather_from_openweather(OPENWEATHER_TOKYO)

        with patch("weather_assistant.routes.api.fetch_current_weather", side_effect=_fake_fetch):
            with TestClient(self._app()) as client:
                res = client.get("/api/weather", params={"city": " Tokyo "})

        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(data["city"], "Tokyo")
        self.assertEqual(data["temp"], 18.4)
        self.assertEqual(data["icon"], "10d")
        self.assertIn("raw", data)
        self.assertEqual(calls[0]["city"], "Tokyo")
        self.assertEqual(calls[0]["api_key"], "ow")

    def test_coordinates_lookup(self) -> None:
        calls: list[dict] = []

        async def _fake_fetch(**kwargs):
            calls.append(kwargs)
            return weather_from_openweather(OPENWEATHER_TOKYO)

        with patch("weather_assistant.routes.api.fetch_current_weather", side_effect=_fake_fetch):
            with TestClient(self._app()) as client:
                res = client.get("/api/weather", params={"lat": "35.68", "lon": "139.76"})

        self.assertEqual(res.status_code, 200)
        self.assertIsNone(calls[0]["city"])
        self.assertEqual((calls[0]["lat"], calls[0]["lon"]), (35.68, 139.76))

    def test_requires_city_or_coordinates(self) -> None:
        with TestClient(self._app()) as client:
            res = client.get("/api/weather")
            half = client.get("/api/weather", params={"lat": "35.6"})
            junk = client.get("/api/weather", params={"lat": "north", "lon": "east"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Provide city or lat+lon"})
        self.assertEqual(half.status_code, 400)
        self.assertEqual(junk.status_code, 400)

    def test_missing_key_returns_500(self) -> None:
        with TestClient(self._app(openweather_key=None)) as client:
            res = client.get("/api/weather", params={"city": "Tokyo"})

        self.assertEqual(res.status_code, 500)
        self.assertIn("OPENWEATHER_KEY", res.json()["error"])

    def test_upstream_status_is_propagated(self) -> None:
        async def _fake_fetch(**kwargs):
            _ = kwargs
            raise UpstreamError("openweather", 404, "weather fetch failed", details='{"cod":"404","message":"city not found"}')

        with patch("weather_assistant.routes.api.fetch_current_weather", side_effect=_fake_fetch):
            with TestClient(self._app()) as client:
                res = client.get("/api/weather", params={"city": "Atlantis"})

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["error"], "weather fetch failed")
        self.assertIn("city not found", res.json()["details"])


class TestGeocodeEndpoint(unittest.TestCase):
    def _app(self):
        return create_app(Settings(gemini_api_key="g", openweather_key="ow"))

    def test_search(self) -> None:
        async def _fake_search(query, **kwargs):
            _ = kwargs
            self.assertEqual(query, "Tokyo")
            return geo_results_from_open_meteo(OPEN_METEO_SEARCH)

        with patch("weather_assistant.routes.api.search_places", side_effect=_fake_search):
            with TestClient(self._app()) as client:
                res = client.get("/api/geocode", params={"query": "Tokyo"})

        self.assertEqual(res.status_code, 200)
        results = res.json()["results"]
        self.assertEqual(len(results), 2)
        self.assertEqual(results[0]["display"], "Tokyo, Tokyo, Japan")
        self.assertEqual(
            set(results[0].keys()),
            {"name", "country", "admin1", "lat", "lon", "timezone", "display"},
        )

    def test_reverse(self) -> None:
        async def _fake_reverse(lat, lon, **kwargs):
            _ = kwargs
            return [GeoResult(name="Shibuya", admin1="Tokyo", country="Japan", lat=lat, lon=lon)]

        with patch("weather_assistant.routes.api.reverse_geocode", side_effect=_fake_reverse):
            with TestClient(self._app()) as client:
                res = client.get("/api/geocode", params={"lat": "35.66", "lon": "139.7"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["results"][0]["display"], "Shibuya, Tokyo, Japan")

    def test_requires_query_or_coordinates(self) -> None:
        with TestClient(self._app()) as client:
            res = client.get("/api/geocode", params={"query": "  "})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Provide query or lat+lon"})

    def test_upstream_error(self) -> None:
        async def _fake_search(query, **kwargs):
            _ = (query, kwargs)
            raise UpstreamError("open-meteo", 503, "geocoding fetch failed", details="unavailable")

        with patch("weather_assistant.routes.api.search_places", side_effect=_fake_search):
            with TestClient(self._app()) as client:
                res = client.get("/api/geocode", params={"query": "Tokyo"})

        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.json(), {"error": "geocoding fetch failed", "details": "unavailable"})


class TestHealthEndpoint(unittest.TestCase):
    def test_healthz_reports_configuration(self) -> None:
        app = create_app(Settings(gemini_api_key="g", openweather_key=None))

        with TestClient(app) as client:
            res = client.get("/healthz")

        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["service"], "weather-assistant")
        self.assertTrue(data["gemini_configured"])
        self.assertFalse(data["weather_configured"])


class TestSettings(unittest.TestCase):
    def test_from_env(self) -> None:
        settings = Settings.from_env(
            {
                "GEMINI_API_KEY": " key ",
                "OPENWEATHER_KEY": "",
                "UPSTREAM_TIMEOUT_S": "3.5",
                "CORS_ORIGINS": "https://a.example, https://b.example",
                "LOG_LEVEL": "debug",
            }
        )
        self.assertEqual(settings.gemini_api_key, "key")
        self.assertIsNone(settings.openweather_key)
        self.assertEqual(settings.gemini_model, "gemini-2.0-flash")
        self.assertEqual(settings.upstream_timeout_s, 3.5)
        self.assertEqual(settings.cors_origins, ["https://a.example", "https://b.example"])
        self.assertEqual(settings.log_level, "DEBUG")


class TestLoggingSetup(unittest.TestCase):
    def test_request_url_logging_is_quieted(self) -> None:
        logging.getLogger("httpx").setLevel(logging.NOTSET)
        create_app(Settings(openweather_key="ow"))
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)
