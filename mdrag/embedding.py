"""
Embedding client for the Ollama embeddings endpoint.

Each call is retried with linear backoff; successful embeddings are cached
per text so identical chunks are only embedded once.
"""
import logging
import time
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

import numpy as np
import requests

from .errors import EmbeddingProviderError, EmbeddingTimeoutError
from .schemas import EmbeddingRequest, EmbeddingResponse
from .vectors import encode_vector

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """
    Embedding client with retry and caching support.

    Posts ``{"model", "prompt"}`` to ``{base_url}/api/embeddings`` and
    expects ``{"embedding": [...]}`` back.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        retries: int = 3,
        base_delay: float = 1.0,
        connect_timeout: float = 30.0,
        request_timeout: float = 60.0,
        cache_size: int = 1000,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the embedding client.

        Args:
            base_url: Base URL of the Ollama server
            model: Embedding model name
            retries: Total number of attempts per text
            base_delay: Backoff unit in seconds; attempt k+1 waits base_delay * k
            connect_timeout: Seconds allowed to establish the connection
            request_timeout: Seconds allowed for the whole response
            cache_size: Maximum number of embeddings to cache
            session: HTTP session to reuse (one is created if omitted)
            sleep: Function used to wait between attempts
        """
        if retries < 1:
            raise ValueError(f"retries must be at least 1, got {retries}")
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.retries = retries
        self.base_delay = base_delay
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self._sleep = sleep

        # Create cached version of the embedding function
        self._get_embedding_cached = lru_cache(maxsize=cache_size)(
            self._get_embedding_uncached
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/embeddings"

    def _timeouts(self, timeout: Optional[float]) -> Tuple[float, float]:
        if timeout is None:
            return (self.connect_timeout, self.request_timeout)
        return (min(self.connect_timeout, timeout), timeout)

    def _request_embedding(self, text: str, timeout: Optional[float]) -> Tuple[float, ...]:
        payload = EmbeddingRequest(model=self.model, prompt=text)
        response = self.session.post(
            self.endpoint,
            json=payload.model_dump(),
            timeout=self._timeouts(timeout)
        )
        response.raise_for_status()
        body = EmbeddingResponse.model_validate(response.json())
        if not body.embedding:
            raise ValueError("Provider returned an empty embedding")
        return tuple(body.embedding)

    def _get_embedding_uncached(self, text: str, timeout: Optional[float] = None) -> Tuple[float, ...]:
        """
        Generate embedding with retries (internal use).
        Returns tuple for hashability in lru_cache.
        """
        last_error: Optional[BaseException] = None
        for attempt in range(self.retries):
            try:
                return self._request_embedding(text, timeout)
            except (requests.RequestException, ValueError) as e:
                last_error = e
                if attempt == self.retries - 1:
                    break
                logger.warning(
                    "Embedding attempt %d/%d failed: %s", attempt + 1, self.retries, e
                )
                self._sleep(self.base_delay * (attempt + 1))

        logger.error("Failed to generate embedding after %d attempts: %s", self.retries, last_error)
        error_class = (
            EmbeddingTimeoutError if isinstance(last_error, requests.Timeout)
            else EmbeddingProviderError
        )
        raise error_class(
            f"Failed to generate embedding after {self.retries} attempts: {last_error}",
            attempts=self.retries,
            last_error=last_error
        ) from last_error

    def get_embedding(self, text: str, timeout: Optional[float] = None) -> np.ndarray:
        """
        Generate embedding for text with caching.

        Args:
            text: Text to embed
            timeout: Per-call timeout in seconds, overriding the defaults

        Returns:
            float32 numpy array of the embedding

        Raises:
            EmbeddingProviderError: If every attempt failed
        """
        embedding_tuple = self._get_embedding_cached(text, timeout)
        return np.array(embedding_tuple, dtype=np.float32)

    embed = get_embedding

    def get_embedding_list(self, text: str, timeout: Optional[float] = None) -> List[float]:
        """Generate embedding for text, returning a list of floats."""
        return list(self._get_embedding_cached(text, timeout))

    def embed_bytes(self, text: str, timeout: Optional[float] = None) -> bytes:
        """Generate embedding for text in its stored (encoded) form."""
        return encode_vector(self.get_embedding(text, timeout))

    def clear_cache(self):
        """Clear the embedding cache."""
        self._get_embedding_cached.cache_clear()

    def cache_info(self):
        """Get cache statistics."""
        return self._get_embedding_cached.cache_info()

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()
        logger.info("Embedding client closed")

    def __enter__(self) -> "EmbeddingClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
