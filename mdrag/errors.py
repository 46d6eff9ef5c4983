"""
Exception and warning types raised by the retrieval pipeline.

Chunk-level and candidate-level failures are recoverable by the caller;
an empty corpus is not an error and never raises.
"""
from typing import Optional


class RagError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(RagError):
    """Raised when a setting cannot be parsed."""


class ChunkingError(RagError, ValueError):
    """Raised for invalid chunk size / overlap parameters."""


class MalformedVectorError(RagError, ValueError):
    """Raised when a stored vector blob is not a whole number of float32s."""


class ProviderTimeoutError(RagError):
    """Marks a failure caused by a provider call timing out."""


class EmbeddingProviderError(RagError):
    """
    Raised when the embedding provider keeps failing after all retries.

    The error from the final attempt is chained as ``__cause__``.
    """

    def __init__(self, message: str, attempts: int = 0, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class EmbeddingTimeoutError(EmbeddingProviderError, ProviderTimeoutError):
    """The final embedding attempt timed out."""


class InvalidRequestError(RagError, ValueError):
    """Raised when a request is rejected before reaching a provider."""


class RerankProviderError(RagError):
    """Raised when the reranking provider call fails."""


class RerankTimeoutError(RerankProviderError, ProviderTimeoutError):
    """The reranking call timed out."""


class VectorAlignmentWarning(UserWarning):
    """Two vectors of different dimensions were compared after truncation."""
