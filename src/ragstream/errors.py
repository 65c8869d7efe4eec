"""Typed error taxonomy shared by ingestion, retrieval and chat.

Every failure that reaches the request boundary is one of these classes,
so the serving layer can map them to status codes without inspecting
messages.
"""

from __future__ import annotations

from enum import Enum


class RagError(Exception):
    """Base class for all ragstream errors."""


class ValidationError(RagError):
    """Input rejected before any remote call was attempted."""


class IngestionError(ValidationError):
    """The document text is unusable (empty, image-only, corrupt)."""


class EmbeddingError(RagError):
    """The remote embedding call failed or returned a malformed vector."""


class StorageError(RagError):
    """A vector-store call failed."""


class GenerationError(RagError):
    """The chat model call failed, possibly mid-stream."""


class ConfigurationError(RagError):
    """The system is misconfigured; retrying the request will not help."""


class DimensionMismatchError(ConfigurationError):
    """A vector's length differs from the store's fixed dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ChatErrorKind(str, Enum):
    EMBEDDING_FAILED = "embedding_failed"
    STORAGE_FAILED = "storage_failed"
    GENERATION_FAILED = "generation_failed"


class ChatError(RagError):
    """A question could not be answered.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, kind: ChatErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
