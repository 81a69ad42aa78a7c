"""Exception hierarchy for indexing, retrieval and answering."""

from __future__ import annotations


class RagError(Exception):
    """Base class for all resume_rag failures."""


class ConfigurationError(RagError):
    """Raised when a required setting (e.g. the provider credential) is missing."""


class IndexUnavailableError(RagError):
    """Raised when neither a session index nor a durable snapshot exists."""


class SnapshotError(RagError):
    """Raised when a durable snapshot cannot be read or decoded."""


class EmbeddingError(RagError):
    """Raised when the embedding provider fails or returns a malformed result."""


class CompletionError(RagError):
    """Raised when the completion provider fails."""


class ProtocolError(RagError):
    """Raised when an answer stream cannot be decoded."""
