"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_quiz,
    deserialize_quiz,
    serialize_answer_key,
    deserialize_answer_key,
    load_quiz_json,
    save_quiz_json,
    load_answer_key_json,
    save_answer_key_json,
)

__all__ = [
    "serialize_quiz",
    "deserialize_quiz",
    "serialize_answer_key",
    "deserialize_answer_key",
    "load_quiz_json",
    "save_quiz_json",
    "load_answer_key_json",
    "save_answer_key_json",
]
