"""Pydantic data models shared across all components."""

from core.models.conversions import Conversion, ConversionType
from core.models.cron import ValidationResult

__all__ = [
    "Conversion",
    "ConversionType",
    "ValidationResult",
]
