"""Shared httpx plumbing for the chat-completion providers."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class HTTPChatProvider:
    """Base for providers that POST one JSON request per completion.

    Subclasses set `provider_name`, `default_url` and `default_model`, and
    implement `_headers()`, `_build_request()` and `_parse_reply()`.
    Messages arrive in the OpenAI chat format.
    """

    provider_name = ""
    default_url = ""
    default_model = ""
    timeout = 60.0

    def __init__(
        self,
        api_key: str,
        model: str = "",
        base_url: str = "",
        max_tokens: int = 1024,
        temperature: float = 0.2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = model or self.default_model
        self._url = (base_url or self.default_url).rstrip("/")
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            headers={**self._headers(api_key), "Content-Type": "application/json"},
        )

    @property
    def name(self) -> str:
        return self.provider_name

    def _headers(self, api_key: str) -> dict[str, str]:
        raise NotImplementedError

    def _build_request(self, messages: list[dict], options: dict[str, Any]) -> tuple[str, dict]:
        """Return (url, json body) for one completion."""
        raise NotImplementedError

    def _parse_reply(self, data: dict) -> str:
        raise NotImplementedError

    async def complete(self, messages: list[dict], **kwargs: Any) -> str:
        """Send messages and return the text response.

        `model`, `max_tokens` and `temperature` override the configured
        values for this call. HTTP errors propagate as httpx exceptions.
        """
        options = {
            "model": kwargs.get("model", self._model),
            "max_tokens": kwargs.get("max_tokens", self._max_tokens),
            "temperature": kwargs.get("temperature", self._temperature),
        }
        url, body = self._build_request(messages, options)

        response = await self._client.post(url, json=body)
        response.raise_for_status()
        data = response.json()

        logger.debug("%s completion: model=%s", self.provider_name, options["model"])
        return self._parse_reply(data)

    async def close(self) -> None:
        await self._client.aclose()
