"""Cron models -- results handed back by the evaluator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ValidationResult(BaseModel):
    """Verdict of validate_cron_expression().

    Serialises with camelCase keys (``isValid``) for the HTTP API.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_valid: bool
    message: str = ""

    @classmethod
    def valid(cls, message: str) -> ValidationResult:
        return cls(is_valid=True, message=message)

    @classmethod
    def invalid(cls, message: str) -> ValidationResult:
        return cls(is_valid=False, message=message)
