"""Cron translator -- natural language <-> cron via an LLMProvider.

The model does the language work; this module owns the prompts and checks
that what comes back is usable.
"""

from __future__ import annotations

import logging

import httpx

from core.protocols import LLMProvider
from scheduler.cron import split_expression

logger = logging.getLogger(__name__)

TO_CRON_PROMPT = """You are a CRON expression generator. Convert natural language descriptions into valid CRON expressions.

CRON format: minute hour day month weekday (5 fields)
- minute: 0-59
- hour: 0-23 (24-hour format)
- day: 1-31
- month: 1-12
- weekday: 0-6 (0=Sunday, 6=Saturday)

Use * for "any" value.
Use */n for "every n" intervals.
Use comma-separated values for multiple specific values.

Examples:
- "every day at 9am" -> "0 9 * * *"
- "every 30 minutes" -> "*/30 * * * *"
- "every Monday at midnight" -> "0 0 * * 1"
- "weekdays at 2:30pm" -> "30 14 * * 1-5"

Respond ONLY with the CRON expression, no explanation."""

TO_NATURAL_LANGUAGE_PROMPT = """You are a CRON expression interpreter. Convert CRON expressions into clear, natural language descriptions.

CRON format: minute hour day month weekday
- minute: 0-59
- hour: 0-23 (24-hour format, convert to 12-hour with AM/PM in output)
- day: 1-31
- month: 1-12
- weekday: 0-6 (0=Sunday, 6=Saturday)

Rules:
- * means "every" or "any"
- */n means "every n units"
- Comma-separated values mean "at these specific times"
- Ranges like 1-5 mean "from 1 to 5"

Examples:
- "0 9 * * *" -> "Every day at 9:00 AM"
- "*/30 * * * *" -> "Every 30 minutes"
- "0 0 * * 1" -> "Every Monday at midnight"
- "30 14 * * 1-5" -> "Every weekday at 2:30 PM"

Provide a clear, concise description in natural language."""


class TranslationError(Exception):
    """The provider failed or produced something unusable."""


def _clean_reply(text: str) -> str:
    """Strip markdown code fences and surrounding quotes from a model reply."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        cleaned = "\n".join(lines[1:-1]) if len(lines) > 2 else cleaned.strip("`")
    return cleaned.strip().strip("`\"'").strip()


class CronTranslator:
    """Translates between cron expressions and plain English.

    Usage:
        translator = CronTranslator(llm=provider)
        cron = await translator.to_cron("every weekday at 9am")
        text = await translator.to_natural_language("0 9 * * 1-5")
    """

    def __init__(self, llm: LLMProvider) -> None:
        self._llm = llm

    @property
    def provider_name(self) -> str:
        return self._llm.name

    async def to_cron(self, natural_language: str) -> str:
        """Generate a 5-field cron expression from a description."""
        reply = await self._ask(
            TO_CRON_PROMPT,
            f'Convert this to a CRON expression: "{natural_language.strip()}"',
        )
        parts = split_expression(_clean_reply(reply))
        if len(parts) != 5:
            logger.warning("Model returned an invalid CRON expression: %r", reply)
            raise TranslationError("Invalid CRON expression generated")
        return " ".join(parts)

    async def to_natural_language(self, cron_expression: str) -> str:
        """Describe a cron expression in plain English."""
        parts = split_expression(cron_expression)
        if len(parts) != 5:
            raise TranslationError("Invalid CRON expression. Must have 5 parts.")

        reply = await self._ask(
            TO_NATURAL_LANGUAGE_PROMPT,
            f'Explain this CRON expression in natural language: "{" ".join(parts)}"',
        )
        description = reply.strip()
        if not description:
            raise TranslationError("Empty description generated")
        return description

    async def _ask(self, system_prompt: str, user_message: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        try:
            return await self._llm.complete(messages)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            logger.exception("LLM provider %s failed", self._llm.name)
            raise TranslationError(str(exc) or type(exc).__name__) from exc
