"""Utility modules for NexMind."""

from nexmind.utils.dates import extract_due_date, next_weekday, parse_relative_date
from nexmind.utils.exceptions import (
    ConfigurationError,
    EmbeddingError,
    LLMError,
    NexMindError,
    NotFoundError,
    StoreError,
    ValidationError,
    VectorDimensionError,
)
from nexmind.utils.id_generator import (
    generate_group_id,
    generate_item_id,
    generate_message_id,
    generate_note_id,
    generate_suggestion_id,
)
from nexmind.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Dates
    "parse_relative_date",
    "extract_due_date",
    "next_weekday",
    # ID Generators
    "generate_note_id",
    "generate_suggestion_id",
    "generate_item_id",
    "generate_group_id",
    "generate_message_id",
    # Exceptions
    "NexMindError",
    "StoreError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "EmbeddingError",
    "LLMError",
    "VectorDimensionError",
]
