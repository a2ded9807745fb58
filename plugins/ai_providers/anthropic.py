"""Anthropic provider -- the Claude messages API."""

from __future__ import annotations

from typing import Any

from plugins.ai_providers.base import HTTPChatProvider

API_VERSION = "2023-06-01"


def split_system(messages: list[dict]) -> tuple[str, list[dict[str, Any]]]:
    """Pull the system prompt out; Anthropic takes it as a top-level field."""
    system = ""
    chat: list[dict[str, Any]] = []
    for msg in messages:
        role = str(msg.get("role", "user"))
        content = str(msg.get("content", ""))
        if role == "system":
            system = content
        else:
            chat.append({"role": "assistant" if role == "assistant" else "user", "content": content})
    return system, chat


class AnthropicProvider(HTTPChatProvider):

    provider_name = "anthropic"
    default_url = "https://api.anthropic.com/v1/messages"
    default_model = "claude-3-5-haiku-latest"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": API_VERSION}

    def _build_request(self, messages: list[dict], options: dict[str, Any]) -> tuple[str, dict]:
        system, chat = split_system(messages)
        body: dict[str, Any] = {**options, "messages": chat}
        if system:
            body["system"] = system
        return self._url, body

    def _parse_reply(self, data: dict) -> str:
        return "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
