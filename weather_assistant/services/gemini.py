from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from weather_assistant.config import Settings


logger = logging.getLogger("weather-assistant.gemini")


class LlmSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str
    model: str
    base_url: str
    timeout_s: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "LlmSettings":
        return cls(
            api_key=settings.gemini_api_key or "",
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout_s=settings.upstream_timeout_s,
        )


class LlmReply(BaseModel):
    ok: bool
    status: int
    raw: str = ""


async def generate_content(
    prompt: str,
    *,
    llm: LlmSettings,
    max_output_tokens: int = 400,
    temperature: float = 0.2,
) -> LlmReply:
    """
    Single `generateContent` call. A non-2xx status is reported on the reply, not raised;
    transport failures (`httpx.HTTPError`) propagate to the caller.
    """

    url = f"{llm.base_url.rstrip('/')}/models/{llm.model}:generateContent"
    payload: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
            "responseMimeType": "text/plain",
        },
    }

    async with httpx.AsyncClient(timeout=llm.timeout_s) as client:
        res = await client.post(
            url,
            headers={"Content-Type": "application/json", "x-goog-api-key": llm.api_key},
            json=payload,
        )

    try:
        data = res.json()
    except Exception:
        data = None

    if res.status_code >= 400:
        logger.warning("gemini_non_2xx status=%s body=%s", res.status_code, res.text[:500])

    return LlmReply(ok=res.is_success, status=res.status_code, raw=_first_candidate_text(data))


def _first_candidate_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def extract_json_from_text(text: Any) -> Optional[Any]:
    """
    Parse the span between the first `{` and the last `}`. Surrounding prose and code
    fences are ignored; the JSON itself must be strictly valid.
    """

    if not text or not isinstance(text, str):
        return None

    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last <= first:
        return None

    try:
        return json.loads(text[first : last + 1], parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
