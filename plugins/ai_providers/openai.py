"""OpenAI provider -- the chat completions API, or any compatible server."""

from __future__ import annotations

import logging
from typing import Any

from plugins.ai_providers.base import HTTPChatProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(HTTPChatProvider):
    """Point `base_url` at Azure or a local server to use a compatible API."""

    provider_name = "openai"
    default_url = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-4o-mini"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def _build_request(self, messages: list[dict], options: dict[str, Any]) -> tuple[str, dict]:
        return self._url, {**options, "messages": messages}

    def _parse_reply(self, data: dict) -> str:
        usage = data.get("usage") or {}
        logger.debug(
            "OpenAI usage: prompt_tokens=%s completion_tokens=%s",
            usage.get("prompt_tokens"), usage.get("completion_tokens"),
        )
        return data["choices"][0]["message"]["content"] or ""
