from __future__ import annotations

import re
from typing import Callable, Optional

from weather_assistant.models import Category, Suggestion, WeatherFacts


FallbackFn = Callable[[WeatherFacts], Suggestion]

_RAIN_RE = re.compile(r"rain", re.IGNORECASE)


def _is_rainy(weather: WeatherFacts) -> bool:
    return bool(weather.condition) and _RAIN_RE.search(weather.condition) is not None


def _is_hot(weather: WeatherFacts) -> bool:
    return weather.temp is not None and weather.temp >= 30


def format_number(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def fashion_fallback(weather: WeatherFacts) -> Suggestion:
    t = weather.temp
    if t is None:
        return Suggestion(
            title="Clothing suggestions",
            bullets=["Check local forecast", "Dress in layers", "Keep hydration in mind"],
            summary="No temperature data.",
            reason="Local fallback: missing temperature.",
        )

    shown = format_number(t)
    if t <= 0:
        return Suggestion(
            title="Extreme cold — heavy protection",
            bullets=["Heavy insulated coat (down)", "Scarf, gloves, warm hat", "Insulated boots"],
            summary=f"{shown}°C — very cold, prioritize insulation.",
            reason="Local fallback: temperature indicates extreme cold.",
        )
    if t <= 8:
        return Suggestion(
            title="Cold — warm layers",
            bullets=["Thick jacket or sweater", "Scarf and gloves", "Warm shoes/boots"],
            summary=f"{shown}°C — cold; use warm layers.",
            reason="Local fallback: cool temperature.",
        )
    if t <= 20:
        return Suggestion(
            title="Mild — light jacket",
            bullets=["Light jacket or long sleeve", "Comfortable trousers", "Normal shoes fine"],
            summary=f"{shown}°C — mild; light outerwear recommended.",
            reason="Local fallback: mild temperature.",
        )
    return Suggestion(
        title="Hot — light & breathable",
        bullets=["Breathable short sleeves and shorts", "Hat and sunglasses", "Drink water frequently"],
        summary=f"{shown}°C — hot; choose breathable clothes.",
        reason="Local fallback: warm temperature.",
    )


def agri_fallback(weather: WeatherFacts) -> Suggestion:
    # Heat outranks rain for crops.
    if _is_hot(weather):
        return Suggestion(
            title=f"Irrigation & heat precautions ({weather.place})",
            bullets=[
                "Increase irrigation in early morning/late evening",
                "Provide shade for sensitive crops",
                "Monitor soil moisture closely",
            ],
            summary="High temperature; take measures to protect crops from heat stress.",
            reason="Local fallback for hot and dry conditions.",
        )
    if _is_rainy(weather):
        return Suggestion(
            title=f"Rain & drainage ({weather.place})",
            bullets=[
                "Ensure drainage to avoid waterlogging",
                "Delay fertilizer until fields dry",
                "Check for fungal signs",
            ],
            summary="Rain increases disease risk; protect fields and manage drainage.",
            reason="Local fallback for rainy conditions.",
        )
    return Suggestion(
        title=f"General farm guidance ({weather.place})",
        bullets=[
            "Inspect irrigation schedule and soil moisture",
            "Check pest/disease signs",
            "Adjust field work schedule for safety",
        ],
        summary="General actionable farm tips.",
        reason="Local fallback: default safe guidance.",
    )


def travel_fallback(weather: WeatherFacts) -> Suggestion:
    if _is_rainy(weather):
        return Suggestion(
            title=f"Rain day tips ({weather.place})",
            bullets=[
                "Carry an umbrella & waterproof shoes",
                "Prefer indoor activities or covered walks",
                "Check public transport for delays",
            ],
            summary="Rain may disrupt outdoor plans; prepare accordingly.",
            reason="Local fallback for rainy travel situations.",
        )
    if _is_hot(weather):
        return Suggestion(
            title=f"Hot day tips ({weather.place})",
            bullets=[
                "Plan activities in early morning/late evening",
                "Carry water and wear a hat",
                "Avoid strenuous activities during peak heat",
            ],
            summary="High temperature; plan accordingly for heat safety.",
            reason="Local fallback for hot travel days.",
        )
    return Suggestion(
        title=f"Travel suggestions ({weather.place})",
        bullets=[
            "Bring a light jacket",
            "Plan flexible itinerary with indoor options",
            "Check local transit & opening hours",
        ],
        summary="General travel guidance.",
        reason="Local fallback: default travel suggestions.",
    )


def music_fallback(weather: WeatherFacts) -> Suggestion:
    if _is_rainy(weather):
        return Suggestion(
            title=f"Rainy day comfort ({weather.place})",
            bullets=["Lo-fi rain beats", "Mellow jazz", "Acoustic warmth"],
            summary="Comforting tracks for rainy moods.",
            reason="Local fallback for rainy weather music.",
        )
    if _is_hot(weather):
        return Suggestion(
            title=f"Upbeat summer picks ({weather.place})",
            bullets=["Upbeat pop/dance", "Tropical house", "Summer hits playlist"],
            summary="Energizing music for hot days.",
            reason="Local fallback for sunny/hot conditions.",
        )
    return Suggestion(
        title=f"Chill suggestions ({weather.place})",
        bullets=["Indie chill playlist", "Singer-songwriter set", "Relaxed instrumental mix"],
        summary="General mellow listening suggestions.",
        reason="Local fallback: default music.",
    )


FALLBACKS: dict[Category, FallbackFn] = {
    Category.FASHION: fashion_fallback,
    Category.AGRICULTURE: agri_fallback,
    Category.TRAVEL: travel_fallback,
    Category.MUSIC: music_fallback,
}


def fallback_for(category: Category, weather: WeatherFacts) -> Suggestion:
    return FALLBACKS[category](weather)


_CATEGORY_LABELS: dict[str, dict[Category, str]] = {
    "en": {
        Category.FASHION: "Fashion",
        Category.AGRICULTURE: "Agriculture",
        Category.TRAVEL: "Travel",
        Category.MUSIC: "Music",
    },
    "ja": {
        Category.FASHION: "ファッション",
        Category.AGRICULTURE: "農業",
        Category.TRAVEL: "旅行",
        Category.MUSIC: "音楽",
    },
}


def unavailable_suggestion(category: Category, weather: Optional[WeatherFacts], language: str = "en") -> Suggestion:
    """Shown by clients when the generate endpoint itself cannot be reached."""

    lang = "ja" if language == "ja" else "en"
    label = _CATEGORY_LABELS[lang][category]
    city = weather.city if weather and weather.city else ("不明な場所" if lang == "ja" else "Unknown Location")

    if lang == "ja":
        return Suggestion(
            title=f"{city}の{label}提案",
            bullets=[
                "天気に適した活動を選択してください",
                "地域の条件を考慮してください",
                "必要に応じて計画を調整してください",
            ],
            summary="AIサービスは現在利用できません。後でもう一度お試しください。",
            reason="これは一時的なフォールバックメッセージです。",
        )
    return Suggestion(
        title=f"{label} Suggestions for {city}",
        bullets=[
            "Choose activities appropriate for the weather",
            "Consider local conditions and forecasts",
            "Adjust your plans as needed",
        ],
        summary="AI service is currently unavailable. Please try again later.",
        reason="This is a temporary fallback message.",
    )
