from __future__ import annotations

import json
import logging
from typing import Any, Callable

import httpx

from weather_assistant.models import Category, Fallback, Ok, Outcome, Suggestion, WeatherFacts
from weather_assistant.services import gemini
from weather_assistant.services.fallbacks import fallback_for, format_number
from weather_assistant.services.gemini import LlmSettings, extract_json_from_text
from weather_assistant.services.language import detect_language
from weather_assistant.services.translation import translate_object_to_japanese, translate_text_to_english


logger = logging.getLogger("weather-assistant.suggestions")

BULLET_COUNT = 3
RAW_SNIPPET_LIMIT = 800

BULLET_FILLER = {
    "en": "Adjust as needed.",
    "ja": "必要に応じて調整してください。",
}

PromptBuilder = Callable[[str, str], str]

_SCHEMA_BLOCK = (
    "{\n"
    '  "title": "string",\n'
    '  "bullets": ["string","string","string"],\n'
    '  "summary": "string",\n'
    '  "reason": "string"\n'
    "}"
)


def weather_summary(weather: WeatherFacts) -> str:
    wind = format_number(weather.wind)
    return (
        f"{weather.city or 'unknown'}, temp: {format_number(weather.temp)}°C, "
        f"condition: {weather.condition or 'unknown'}, wind: {wind} m/s."
    )


def _agri_prompt(summary: str, user_text: str) -> str:
    return (
        "You are an experienced agricultural advisor. Use the weather facts below and the user request "
        "to produce a concise JSON ONLY with the following schema:\n"
        f"{_SCHEMA_BLOCK}\n"
        "Rules:\n"
        "- Use numeric weather facts (temp, condition, wind) in reasoning.\n"
        "- Provide three practical actions for farmers.\n"
        "- Return ONLY valid JSON. No extra text.\n"
        f"Weather: {summary}\n"
        f"User: {user_text}"
    )


def _music_prompt(summary: str, user_text: str) -> str:
    return (
        "You are a music recommendation engine. Based on weather and user request, produce ONLY a JSON object:\n"
        f"{_SCHEMA_BLOCK}\n"
        "Rules:\n"
        "- Bullets should be 3 short music recommendations (genre/playlist/artist).\n"
        "- No extra text other than the JSON.\n"
        f"Weather: {summary}\n"
        f"User: {user_text}"
    )


def _travel_prompt(summary: str, user_text: str) -> str:
    return (
        "You are a travel/outings advisor. Produce ONLY a JSON object with keys: title, bullets (3), summary, reason.\n"
        "Rules:\n"
        "- Provide 3 practical tips for travel/outings based on weather.\n"
        "- No extra commentary.\n"
        f"Weather: {summary}\n"
        f"User: {user_text}"
    )


def _fashion_prompt(summary: str, user_text: str) -> str:
    return (
        "You are a clothing/outfit advisor. Produce ONLY a JSON object with keys: title, bullets (3), summary, reason.\n"
        "Rules:\n"
        "- Use numeric temperature and condition to suggest appropriate outfit components.\n"
        "- Return ONLY valid JSON and nothing else.\n"
        f"Weather: {summary}\n"
        f"User: {user_text}"
    )


PROMPT_BUILDERS: dict[Category, PromptBuilder] = {
    Category.FASHION: _fashion_prompt,
    Category.AGRICULTURE: _agri_prompt,
    Category.TRAVEL: _travel_prompt,
    Category.MUSIC: _music_prompt,
}


def build_domain_prompt(category: Category, weather: WeatherFacts, user_text: str) -> str:
    return PROMPT_BUILDERS[category](weather_summary(weather), user_text)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def normalize_bullets(bullets: Any, *, language: str = "en") -> list[str]:
    items = [_as_text(b) for b in bullets] if isinstance(bullets, list) else []
    items = items[:BULLET_COUNT]
    filler = BULLET_FILLER.get(language, BULLET_FILLER["en"])
    while len(items) < BULLET_COUNT:
        items.append(filler)
    return items


def normalize_suggestion(
    parsed: Any,
    category: Category,
    weather: WeatherFacts,
    *,
    language: str = "en",
) -> Suggestion:
    """
    Coerce a model reply into a Suggestion with exactly three bullets. Anything that is not
    a JSON object is treated as a failed model call and replaced by the category fallback.
    """

    if not isinstance(parsed, dict):
        return fallback_for(category, weather)

    return Suggestion(
        title=_as_text(parsed.get("title")) or f"{category.value} suggestions ({weather.place})",
        bullets=normalize_bullets(parsed.get("bullets"), language=language),
        summary=_as_text(parsed.get("summary")),
        reason=_as_text(parsed.get("reason")),
    )


def parse_domain_reply(raw: str, category: Category, weather: WeatherFacts) -> Outcome:
    parsed = extract_json_from_text(raw)
    if not isinstance(parsed, dict):
        return Fallback(value=fallback_for(category, weather), reason="model reply had no parsable JSON object")
    return Ok(value=normalize_suggestion(parsed, category, weather))


async def generate_suggestions(
    *,
    category: Category,
    user_text: str,
    weather: WeatherFacts,
    llm: LlmSettings,
) -> dict[str, Any]:
    detected = detect_language(user_text)

    en_user_text = user_text
    if detected == "ja":
        en_user_text = (await translate_text_to_english(user_text, llm=llm)).value

    prompt = build_domain_prompt(category, weather, en_user_text)
    try:
        reply = await gemini.generate_content(prompt, llm=llm)
        raw = reply.raw
    except httpx.HTTPError as exc:
        logger.warning("Domain generation call failed; using fallback. category=%s err=%s", category.value, exc)
        raw = ""

    domain = parse_domain_reply(raw, category, weather)
    if isinstance(domain, Fallback):
        logger.info("Using %s fallback suggestion. reason=%s", category.value, domain.reason)
    en: Suggestion = domain.value

    translated = await translate_object_to_japanese(en.model_dump(), llm=llm)
    if isinstance(translated, Ok):
        # Re-normalize so the Japanese variant also has exactly three bullets.
        jp: dict[str, Any] = normalize_suggestion(translated.value, category, weather, language="ja").model_dump()
    else:
        jp = translated.value

    return {
        "en": en.model_dump(),
        "jp": jp,
        "_meta": {
            "model": llm.model,
            "detectedUserLanguage": detected,
            "domainParsed": isinstance(domain, Ok),
            "domainRawSnippet": raw[:RAW_SNIPPET_LIMIT],
            "translationSuccess": isinstance(translated, Ok),
        },
    }
