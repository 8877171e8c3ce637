from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from weather_assistant.models import Fallback, Ok, Outcome
from weather_assistant.services import gemini
from weather_assistant.services.gemini import LlmSettings, extract_json_from_text


logger = logging.getLogger("weather-assistant.translation")

TRANSLATION_FAILED_KEY = "_translation_failed"


def _text_to_english_prompt(text: str) -> str:
    return (
        "Detect language and if the text is Japanese, translate it to fluent English. "
        "Return only the translated text as plain text (no JSON).\n"
        f'Text:\n"""{text}"""'
    )


def _object_to_japanese_prompt(obj: dict[str, Any]) -> str:
    source = json.dumps(obj, ensure_ascii=False, indent=2)
    return (
        "Translate the VALUES of this JSON into natural Japanese.\n"
        "Rules:\n"
        "- Keep the same keys and structure.\n"
        "- Return ONLY valid JSON. No extra text.\n\n"
        f"{source}"
    )


def _text_to_japanese_prompt(text: str) -> str:
    return (
        "Translate the following English text into natural Japanese. "
        "Return only the translation as plain text.\n\n"
        f"{text}"
    )


async def translate_text_to_english(text: str, *, llm: LlmSettings) -> Outcome:
    try:
        reply = await gemini.generate_content(_text_to_english_prompt(text), llm=llm)
    except httpx.HTTPError as exc:
        logger.warning("JP->EN translation failed; keeping original. err=%s", exc)
        return Fallback(value=text, reason=f"transport error: {exc}")

    translated = reply.raw.strip()
    if not translated:
        logger.warning("JP->EN translation returned nothing; keeping original. status=%s", reply.status)
        return Fallback(value=text, reason=f"empty reply (status {reply.status})")
    return Ok(value=translated)


async def translate_object_to_japanese(obj: dict[str, Any], *, llm: LlmSettings) -> Outcome:
    """
    Ask the model to translate only the values of `obj`. On any failure the English object
    comes back flagged with `_translation_failed: true`.
    """

    failed = {**obj, TRANSLATION_FAILED_KEY: True}
    try:
        reply = await gemini.generate_content(_object_to_japanese_prompt(obj), llm=llm)
    except httpx.HTTPError as exc:
        logger.warning("EN->JP object translation failed. err=%s", exc)
        return Fallback(value=failed, reason=f"transport error: {exc}")

    parsed = extract_json_from_text(reply.raw)
    if not isinstance(parsed, dict):
        logger.warning("EN->JP object translation was not JSON. status=%s raw=%r", reply.status, reply.raw[:200])
        return Fallback(value=failed, reason="translation reply was not a JSON object")
    return Ok(value=parsed)


async def translate_text_to_japanese(text: str, *, llm: LlmSettings) -> Outcome:
    try:
        reply = await gemini.generate_content(_text_to_japanese_prompt(text), llm=llm)
    except httpx.HTTPError as exc:
        logger.warning("EN->JP translation failed. err=%s", exc)
        return Fallback(value="", reason=f"transport error: {exc}")

    translated = reply.raw.strip()
    if not translated:
        return Fallback(value="", reason=f"empty reply (status {reply.status})")
    return Ok(value=translated)
