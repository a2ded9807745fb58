"""Google Gemini provider -- the Generative Language `generateContent` endpoint."""

from __future__ import annotations

import logging
from typing import Any

from plugins.ai_providers.base import HTTPChatProvider

logger = logging.getLogger(__name__)


def to_gemini_contents(messages: list[dict]) -> dict[str, Any]:
    """Map chat messages to Gemini `contents` + `systemInstruction`.

    Gemini names the assistant role "model".
    """
    body: dict[str, Any] = {"contents": []}
    system_parts = []
    for msg in messages:
        role = str(msg.get("role", "user"))
        text = str(msg.get("content", ""))
        if role == "system":
            system_parts.append({"text": text})
            continue
        body["contents"].append({
            "role": "model" if role == "assistant" else "user",
            "parts": [{"text": text}],
        })
    if system_parts:
        body["systemInstruction"] = {"parts": system_parts}
    return body


class GeminiProvider(HTTPChatProvider):
    """Default provider. `base_url` is the API root; the model goes in the path."""

    provider_name = "gemini"
    default_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "gemini-1.5-flash"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"x-goog-api-key": api_key}

    def _build_request(self, messages: list[dict], options: dict[str, Any]) -> tuple[str, dict]:
        body = to_gemini_contents(messages)
        body["generationConfig"] = {
            "temperature": options["temperature"],
            "maxOutputTokens": options["max_tokens"],
        }
        return f"{self._url}/models/{options['model']}:generateContent", body

    def _parse_reply(self, data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            logger.warning("Gemini returned no candidates: %s", data.get("promptFeedback"))
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
