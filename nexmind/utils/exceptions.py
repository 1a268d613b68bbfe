"""
Custom exception hierarchy for NexMind.

Provides structured error types for better error handling and debugging.
All exceptions inherit from NexMindError for easy catching.
"""


class NexMindError(Exception):
    """
    Base exception for all NexMind errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize NexMind error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(NexMindError):
    """
    Base exception for store operations.
    Raised when a key-value store or note table cannot be written.
    """

    pass


class ValidationError(NexMindError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(NexMindError):
    """
    Resource not found errors.
    Raised when a requested resource (note, suggestion) doesn't exist.
    """

    pass


class ConfigurationError(NexMindError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class EmbeddingError(NexMindError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class LLMError(NexMindError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, timeouts, etc.).
    """

    pass


class VectorDimensionError(NexMindError):
    """
    Vector dimension mismatch.
    Raised when two embeddings of different length are compared. This points
    at corrupted or mixed-provider data and is never recovered silently.
    """

    pass
