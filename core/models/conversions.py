"""Conversion model -- one translation kept in the history store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

ConversionType = Literal["nl-to-cron", "cron-to-nl"]


class Conversion(BaseModel):
    """A natural language <-> cron translation and its result.

    `input` is what the user typed, `output` what came back: a cron
    expression for nl-to-cron, a sentence for cron-to-nl.
    """

    id: str = Field(default_factory=lambda: f"conv_{uuid4().hex[:12]}")
    input: str
    output: str
    type: ConversionType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
