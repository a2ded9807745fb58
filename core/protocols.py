"""Core protocols -- the extension points plugins implement.

The core imports these protocols. Plugins implement them.
The core NEVER imports concrete implementations.

All protocols use Python's structural subtyping (typing.Protocol):
if your class has the right methods, it implements the protocol.
No inheritance required.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMProvider(Protocol):
    """Text-generation backend used for cron <-> natural language translation.

    Messages use the OpenAI chat format: a list of
    ``{"role": "system" | "user" | "assistant", "content": str}``.
    Providers translate that into their own wire format.
    """

    @property
    def name(self) -> str:
        """Unique provider name, e.g. 'gemini', 'openai'."""
        ...

    async def complete(self, messages: list[dict], **kwargs: Any) -> str:
        """Send messages and return the text response."""
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client."""
        ...
