"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_quiz,
    validate_answer_key,
    ValidationError,
)

__all__ = [
    "validate_quiz",
    "validate_answer_key",
    "ValidationError",
]
