from __future__ import annotations

import logging
from typing import Any, Sequence

from weather_assistant.models import ChatMessage, Ok, WeatherFacts
from weather_assistant.services import gemini
from weather_assistant.services.fallbacks import format_number
from weather_assistant.services.gemini import LlmSettings
from weather_assistant.services.language import detect_language
from weather_assistant.services.translation import translate_text_to_english, translate_text_to_japanese


logger = logging.getLogger("weather-assistant.chat")

CHAT_HISTORY_LIMIT = 8
CHAT_MAX_OUTPUT_TOKENS = 800
CHAT_TEMPERATURE = 0.4


def history_block(history: Sequence[ChatMessage], *, limit: int = CHAT_HISTORY_LIMIT) -> str:
    turns = list(history)[-limit:] if limit > 0 else []
    lines = []
    for turn in turns:
        text = turn.text_en.replace("\r\n", " ").replace("\n", " ")
        lines.append(f"{turn.role.upper()}: {text}")
    return "\n".join(lines)


def build_chat_prompt(
    *,
    history: Sequence[ChatMessage],
    message_en: str,
    category: str,
    weather: WeatherFacts,
) -> str:
    system_text = (
        f"You are a helpful assistant specialized in {category}. Use the weather context when relevant. "
        f"Weather: {weather.city or 'unknown'}, {format_number(weather.temp)}°C, {weather.condition or 'N/A'}, "
        f"wind {format_number(weather.wind)} m/s. Keep answers practical and concise."
    )
    return (
        f"System: {system_text}\n\n"
        "Conversation history:\n"
        f"{history_block(history)}\n\n"
        f"User: {message_en}\n\n"
        "Reply in clear, helpful English. Do not return JSON; return plain text."
    )


async def chat_reply(
    *,
    message: str,
    history: Sequence[ChatMessage],
    category: str,
    weather: WeatherFacts,
    llm: LlmSettings,
) -> dict[str, Any]:
    """
    One chat turn: the message is moved into English, answered in English with the recent
    history as context, and the answer is translated to Japanese. History must already be
    English (`text_en`).
    """

    detected = detect_language(message)

    message_en = message
    message_translated = False
    if detected == "ja":
        outcome = await translate_text_to_english(message, llm=llm)
        message_en = outcome.value
        message_translated = isinstance(outcome, Ok)

    prompt = build_chat_prompt(history=history, message_en=message_en, category=category, weather=weather)
    reply = await gemini.generate_content(
        prompt,
        llm=llm,
        max_output_tokens=CHAT_MAX_OUTPUT_TOKENS,
        temperature=CHAT_TEMPERATURE,
    )
    reply_en = reply.raw.strip()

    reply_jp = await translate_text_to_japanese(reply_en, llm=llm)
    if not isinstance(reply_jp, Ok):
        logger.warning("Chat reply translation degraded to empty. reason=%s", reply_jp.reason)

    return {
        "message_en": message_en,
        "reply_en": reply_en,
        "reply_jp": reply_jp.value,
        "raw": reply.raw,
        "_meta": {
            "detectedUserLanguage": detected,
            "messageTranslated": message_translated,
            "geminiStatus": reply.status,
        },
    }
