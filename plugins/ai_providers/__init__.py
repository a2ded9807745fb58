"""Text-generation providers, selected by name from the `ai.providers` config."""

from __future__ import annotations

import logging

from core.config import AIProviderConfig
from core.protocols import LLMProvider

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("gemini", "openai", "anthropic")


def build_provider(name: str, config: AIProviderConfig, **kwargs) -> LLMProvider:
    """Instantiate the provider called `name` from its config section.

    Extra keyword arguments (e.g. an httpx `transport`) are passed through.
    Raises ValueError for unknown provider names.
    """
    options = {
        "api_key": config.api_key,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        **kwargs,
    }
    if config.model:
        options["model"] = config.model
    if config.base_url:
        options["base_url"] = config.base_url

    if name == "gemini":
        from plugins.ai_providers.gemini import GeminiProvider
        return GeminiProvider(**options)
    if name == "openai":
        from plugins.ai_providers.openai import OpenAIProvider
        return OpenAIProvider(**options)
    if name == "anthropic":
        from plugins.ai_providers.anthropic import AnthropicProvider
        return AnthropicProvider(**options)

    raise ValueError(f"Unknown AI provider '{name}'. Must be one of: {list(PROVIDER_NAMES)}")


def load_providers(providers: dict[str, AIProviderConfig]) -> dict[str, LLMProvider]:
    """Build every configured provider that has an API key."""
    loaded: dict[str, LLMProvider] = {}
    for name, provider_config in providers.items():
        # Configured when an API key is present and not an unresolved ${VAR}.
        if not provider_config.api_key or provider_config.api_key.startswith("${"):
            continue
        try:
            loaded[name] = build_provider(name, provider_config)
            logger.info("Loaded AI provider: %s", name)
        except ValueError as e:
            logger.error("Failed to load AI provider %s: %s", name, e)
    return loaded
